"""Scripture passage proxy.

Fetches a chapter from the upstream quote service as HTML and segments the
scraped text into verses. Only the Korean edition ("kor") is wired up.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

import httpx

from versebyverse.core.errors import NotSupportedError, UpstreamError, ValidationError
from versebyverse.core.settings import settings

logger = logging.getLogger(__name__)

KOR_EDITION = "kor"
MAX_VERSE = 200

_TAG = re.compile(r"<[^>]*>")
_BIBLE_QUOTE = re.compile(r"Bible\s*Quote:?", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
# Leading heading such as "레위기 3장".
_KOR_HEADING = re.compile(r"^[\u3131-\uD79D\w\s\"'「」()]+?\d+\s*장\s*")
_VERSE = re.compile(r"(\d+)\s*:\s*(\d+)\s*(.*?)(?=\d+\s*:\s*\d+|\Z)", re.S)


@dataclass(frozen=True)
class ParsedVerse:
    id: str
    number: int
    text: str


@dataclass(frozen=True)
class ChapterRef:
    book_id: str
    chapter: int


def parse_chapter_id(chapter_id: str) -> ChapterRef:
    """Split "GEN.1" into its book code and positive chapter number.

    Segments after the chapter ("GEN.1.5") are ignored.
    """
    parts = chapter_id.split(".")
    if len(parts) < 2:
        raise ValidationError("Invalid chapterId")
    book, chapter = parts[0].strip(), parts[1].strip()
    if not book or not chapter.isdigit() or int(chapter) < 1:
        raise ValidationError("Invalid chapterId")
    return ChapterRef(book_id=book, chapter=int(chapter))


def clean_upstream_text(html: str) -> str:
    plain = _TAG.sub(" ", html)
    plain = _BIBLE_QUOTE.sub(" ", plain)
    plain = _WHITESPACE.sub(" ", plain).strip()
    return _KOR_HEADING.sub(" ", plain, count=1).strip()


def parse_kor_passage(html: str, ref: ChapterRef) -> list[ParsedVerse]:
    """Segment a scraped chapter into ordered verses.

    Markers are `<chapter>:<verse>`; verses of other chapters and empty bodies
    are dropped and the first occurrence of each verse id wins. When the text
    holds no marker at all it becomes verse 1.
    """
    plain = clean_upstream_text(html)

    verses: list[ParsedVerse] = []
    seen: set[str] = set()
    found_marker = False
    for match in _VERSE.finditer(plain):
        found_marker = True
        chapter, number = int(match.group(1)), int(match.group(2))
        if chapter != ref.chapter:
            continue
        body = _WHITESPACE.sub(" ", match.group(3)).strip()
        if not body:
            continue
        verse_id = f"{ref.book_id}.{ref.chapter}.{number}"
        if verse_id in seen:
            continue
        seen.add(verse_id)
        verses.append(ParsedVerse(id=verse_id, number=number, text=body))

    if not found_marker and plain:
        verses.append(ParsedVerse(id=f"{ref.book_id}.{ref.chapter}.1", number=1, text=plain))
    return verses


class PassageClient:
    """Async HTTP client for upstream passage sources."""

    def __init__(
        self,
        kor_base_url: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.kor_base_url = kor_base_url or settings.passage_kor_base_url
        self.timeout_seconds = timeout_seconds or settings.passage_timeout_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout_seconds),
                    transport=self._transport,
                    follow_redirects=True,
                )
        return self._client

    def kor_url(self, ref: ChapterRef) -> str:
        return f"{self.kor_base_url}?kor-{ref.book_id}/{ref.chapter}:1-{MAX_VERSE}"

    async def fetch_kor_html(self, ref: ChapterRef) -> str:
        client = await self._ensure_client()
        url = self.kor_url(ref)
        logger.info("KOR fetch %s", url)
        try:
            response = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("KOR upstream timed out: %s", url)
            raise UpstreamError("KOR upstream timeout") from exc
        except httpx.HTTPError as exc:
            logger.warning("KOR upstream request failed: %s (%s)", url, exc)
            raise UpstreamError("KOR upstream unavailable") from exc

        if not response.is_success:
            logger.error("KOR upstream error %s %s", response.status_code, url)
            raise UpstreamError(f"KOR upstream {response.status_code}")
        return response.text

    async def get_passage(self, edition_id: str, chapter_id: str) -> tuple[ChapterRef, list[ParsedVerse]]:
        ref = parse_chapter_id(chapter_id)
        if edition_id != KOR_EDITION:
            raise NotSupportedError("Not implemented for this versionId")
        html = await self.fetch_kor_html(ref)
        return ref, parse_kor_passage(html, ref)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


class _PassageClientSingleton:
    _instance: PassageClient | None = None

    @classmethod
    def get_instance(cls) -> PassageClient:
        if cls._instance is None:
            cls._instance = PassageClient()
        return cls._instance

    @classmethod
    async def reset(cls) -> None:
        if cls._instance is not None:
            await cls._instance.close()
            cls._instance = None


def get_passage_client() -> PassageClient:
    """Return the process-wide passage client."""
    return _PassageClientSingleton.get_instance()


async def close_passage_client() -> None:
    await _PassageClientSingleton.reset()
