"""Local storage for uploaded community hero images."""
from __future__ import annotations

import logging
import uuid
from pathlib import Path

from versebyverse.core.errors import ValidationError
from versebyverse.core.settings import settings

logger = logging.getLogger(__name__)

HERO_IMAGE_SUBDIR = "communities"

# Stored suffix always comes from the declared type, never from the client filename.
ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def normalize_content_type(content_type: str | None) -> str:
    """Lowercase a Content-Type and drop parameters such as charset."""
    return (content_type or "").split(";", 1)[0].strip().lower()


class HeroImageStorage:
    """Writes images under `<upload_dir>/communities` and maps them to public URLs."""

    def __init__(
        self,
        upload_dir: str | None = None,
        url_prefix: str | None = None,
        max_bytes: int | None = None,
    ) -> None:
        self.root = Path(upload_dir or settings.upload_dir)
        self.url_prefix = (url_prefix or settings.upload_url_prefix).rstrip("/")
        self.max_bytes = max_bytes or settings.hero_image_max_bytes

    @property
    def directory(self) -> Path:
        return self.root / HERO_IMAGE_SUBDIR

    def validate(self, content: bytes, content_type: str | None) -> str:
        """Check type and size; returns the file suffix for the image type."""
        suffix = ALLOWED_IMAGE_TYPES.get(normalize_content_type(content_type))
        if suffix is None:
            raise ValidationError("Only image uploads are allowed")
        if not content:
            raise ValidationError("heroImage file is required")
        if len(content) > self.max_bytes:
            max_mb = self.max_bytes / (1024 * 1024)
            raise ValidationError(f"Image exceeds maximum size of {max_mb:.0f}MB")
        return suffix

    def save(self, content: bytes, content_type: str | None, filename: str | None) -> str:
        """Validate and persist an image, returning its public URL path."""
        suffix = self.validate(content, content_type)
        stored_name = f"{uuid.uuid4().hex}{suffix}"

        self.directory.mkdir(parents=True, exist_ok=True)
        (self.directory / stored_name).write_bytes(content)
        logger.info(
            "Stored hero image %s (%d bytes, uploaded as %r)", stored_name, len(content), filename
        )
        return f"{self.url_prefix}/{HERO_IMAGE_SUBDIR}/{stored_name}"

    def remove(self, public_url: str | None) -> None:
        """Delete a previously stored image; foreign or missing paths are ignored."""
        prefix = f"{self.url_prefix}/{HERO_IMAGE_SUBDIR}/"
        if not public_url or not public_url.startswith(prefix):
            return
        name = Path(public_url[len(prefix):]).name
        try:
            (self.directory / name).unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove previous hero image %s", name, exc_info=True)


def get_hero_image_storage() -> HeroImageStorage:
    return HeroImageStorage()
