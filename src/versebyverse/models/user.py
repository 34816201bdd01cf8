# src/versebyverse/models/user.py
"""SQLAlchemy models for user accounts and their login sessions."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from versebyverse.db.session import Base
from versebyverse.db.time import utcnow

from .mixins import TimestampMixin


class User(TimestampMixin, Base):
    """Account identity; usernames and emails are stored lowercased."""

    __tablename__ = "app_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="user")
    provider: Mapped[str] = mapped_column(String(32), nullable=False, default="local")
    provider_id: Mapped[str | None] = mapped_column(Text, nullable=True)

    @validates("username", "email")
    def _normalize_identifier(self, _key: str, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower()

    @validates("first_name", "last_name")
    def _strip_name(self, _key: str, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @property
    def display_name(self) -> str:
        """Full name, falling back to the username, then "Unknown"."""
        full_name = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.username or "Unknown"


class UserSession(Base):
    """Server-side login session keyed by an opaque id."""

    __tablename__ = "user_session"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    # Slides forward on every authenticated request.
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
