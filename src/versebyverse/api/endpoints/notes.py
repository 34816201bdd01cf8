"""Scripture note endpoints; every route only sees the caller's notes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query, status

from versebyverse.schemas.common import OkResponse
from versebyverse.schemas.note import (
    NoteCreate,
    NoteEnvelope,
    NoteExistsEnvelope,
    NoteListEnvelope,
    NoteListItem,
    NoteResponse,
    NoteUpdate,
    to_null_or_number,
)
from versebyverse.services import note_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("/list", response_model=NoteListEnvelope)
async def list_notes(
    current_user: CurrentUserDep,
    db: SessionDep,
    q: str = "",
    bible_id: Annotated[str, Query(alias="bibleId")] = "",
    book_id: Annotated[str, Query(alias="bookId")] = "",
    sort: str = "updatedAt:desc",
    limit: str | None = None,
    offset: str | None = None,
) -> NoteListEnvelope:
    """Search, filter and page through the caller's notes."""
    params = note_service.NoteListParams(
        q=q.strip(),
        bible_id=bible_id.strip(),
        book_id=book_id.strip(),
        sort=sort,
        limit=to_null_or_number(limit),
        offset=to_null_or_number(offset),
    )
    notes, total = note_service.list_notes(db, current_user, params)
    items = [
        NoteListItem(
            **NoteResponse.model_validate(note).model_dump(),
            preview=note_service.build_preview(note.text),
        )
        for note in notes
    ]
    return NoteListEnvelope(notes=items, total=total)


@router.get("/exists", response_model=NoteExistsEnvelope)
async def note_exists(
    current_user: CurrentUserDep,
    db: SessionDep,
    bible_id: Annotated[str, Query(alias="bibleId")] = "",
    chapter_id: Annotated[str, Query(alias="chapterId")] = "",
) -> NoteExistsEnvelope:
    """Whether the caller has any note on a chapter, regardless of range."""
    exists = note_service.has_any_note(db, current_user, bible_id.strip(), chapter_id.strip())
    return NoteExistsEnvelope(has_any_note=exists)


@router.get("", response_model=NoteEnvelope)
async def get_latest_note(
    current_user: CurrentUserDep,
    db: SessionDep,
    bible_id: Annotated[str, Query(alias="bibleId")] = "",
    chapter_id: Annotated[str, Query(alias="chapterId")] = "",
    range_start: Annotated[str | None, Query(alias="rangeStart")] = None,
    range_end: Annotated[str | None, Query(alias="rangeEnd")] = None,
) -> NoteEnvelope:
    """Most recently updated note for a chapter/range scope, or null."""
    note = note_service.get_latest_for_scope(
        db,
        current_user,
        bible_id.strip(),
        chapter_id.strip(),
        to_null_or_number(range_start),
        to_null_or_number(range_end),
    )
    return NoteEnvelope(note=NoteResponse.model_validate(note) if note is not None else None)


@router.post("", response_model=NoteEnvelope, status_code=status.HTTP_201_CREATED)
async def create_note(
    payload: NoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NoteEnvelope:
    note = note_service.create_note(db, current_user, payload)
    return NoteEnvelope(note=NoteResponse.model_validate(note))


@router.get("/{note_id}", response_model=NoteEnvelope)
async def get_note(note_id: int, current_user: CurrentUserDep, db: SessionDep) -> NoteEnvelope:
    note = note_service.get_note(db, current_user, note_id)
    return NoteEnvelope(note=NoteResponse.model_validate(note))


@router.put("/{note_id}", response_model=NoteEnvelope)
async def update_note(
    note_id: int,
    payload: NoteUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NoteEnvelope:
    note = note_service.update_note(db, current_user, note_id, payload)
    return NoteEnvelope(note=NoteResponse.model_validate(note))


@router.delete("/{note_id}", response_model=OkResponse)
async def delete_note(note_id: int, current_user: CurrentUserDep, db: SessionDep) -> OkResponse:
    note_service.delete_note(db, current_user, note_id)
    return OkResponse()
