"""Scripture note Pydantic schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .common import APIModel, OkResponse


def to_null_or_number(value: Any) -> int | None:
    """Coerce loose query/body input into a verse number or None.

    Empty strings, the literal "null" and non-numeric values all mean "no range".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text or text.lower() == "null":
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return int(number) if number.is_integer() else None


class NoteCreate(APIModel):
    """Schema for creating a new note."""

    bible_id: str = Field(..., min_length=1)
    chapter_id: str = Field(..., min_length=1)
    range_start: int | None = None
    range_end: int | None = None
    title: str | None = None
    text: str | None = None

    @field_validator("range_start", "range_end", mode="before")
    @classmethod
    def _coerce_range(cls, value: Any) -> int | None:
        return to_null_or_number(value)


class NoteUpdate(APIModel):
    title: str | None = None
    text: str | None = None


class NoteResponse(APIModel):
    id: int
    bible_id: str
    chapter_id: str
    range_start: int | None
    range_end: int | None
    title: str
    text: str
    created_at: datetime
    updated_at: datetime


class NoteListItem(NoteResponse):
    preview: str


class NoteEnvelope(OkResponse):
    note: NoteResponse | None


class NoteListEnvelope(OkResponse):
    notes: list[NoteListItem]
    total: int


class NoteExistsEnvelope(OkResponse):
    has_any_note: bool
