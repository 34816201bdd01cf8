"""SQLAlchemy model for personal scripture notes."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from versebyverse.db.session import Base

from .mixins import TimestampMixin


def range_key_for(range_start: int | None, range_end: int | None) -> str:
    """Normalize a verse range into the value the scope constraint compares.

    SQL unique constraints treat NULLs as distinct, so chapter-level notes
    (no range) are stored with an explicit marker instead.
    """
    start = "*" if range_start is None else str(range_start)
    end = "*" if range_end is None else str(range_end)
    return f"{start}-{end}"


class Note(TimestampMixin, Base):
    """Annotation on a chapter, or on a verse range within it."""

    __tablename__ = "note"
    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "bible_id",
            "chapter_id",
            "range_key",
            name="uq_note_scope",
        ),
        Index("ix_note_user_updated", "user_id", "updated_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bible_id: Mapped[str] = mapped_column(String(64), nullable=False)
    # Book code plus chapter number, e.g. "GEN.1".
    chapter_id: Mapped[str] = mapped_column(String(64), nullable=False)
    range_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    range_end: Mapped[int | None] = mapped_column(Integer, nullable=True)
    range_key: Mapped[str] = mapped_column(String(32), nullable=False)

    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")
