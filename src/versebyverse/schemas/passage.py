"""Scripture passage Pydantic schemas."""
from __future__ import annotations

from .common import APIModel, OkResponse


class Verse(APIModel):
    id: str
    number: int
    text: str


class PassageEnvelope(OkResponse):
    version_id: str
    chapter_id: str
    book_id: str
    chapter: int
    verses: list[Verse]
