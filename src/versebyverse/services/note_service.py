"""Per-user scripture notes: listing, scope lookups and CRUD."""
from __future__ import annotations

import re
from dataclasses import dataclass

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from versebyverse.core.errors import ConflictError, NotFoundError, ValidationError
from versebyverse.models import Note, User, range_key_for
from versebyverse.schemas.note import NoteCreate, NoteUpdate

from .community_service import escape_like

TITLE_MAX = 120
TEXT_MAX = 50_000
PREVIEW_LENGTH = 160
DEFAULT_LIMIT = 50
MAX_LIMIT = 200

_WHITESPACE = re.compile(r"\s+")


def safe_str(value: object, max_length: int) -> str:
    return str(value if value is not None else "").strip()[:max_length]


def build_preview(text: str | None) -> str:
    return _WHITESPACE.sub(" ", safe_str(text, TEXT_MAX)).strip()[:PREVIEW_LENGTH]


@dataclass(frozen=True)
class NoteListParams:
    q: str = ""
    bible_id: str = ""
    book_id: str = ""
    sort: str = "updatedAt:desc"
    limit: int | None = None
    offset: int | None = None

    @property
    def clamped_limit(self) -> int:
        return min(max(self.limit or DEFAULT_LIMIT, 1), MAX_LIMIT)

    @property
    def clamped_offset(self) -> int:
        return max(self.offset or 0, 0)


def _owned(db: Session, user: User) -> Query[Note]:
    return db.query(Note).filter(Note.user_id == user.id)


def list_notes(db: Session, user: User, params: NoteListParams) -> tuple[list[Note], int]:
    """Return one page of the caller's notes and the total matching count."""
    query = _owned(db, user)
    if params.bible_id:
        query = query.filter(Note.bible_id == params.bible_id)
    if params.book_id:
        query = query.filter(Note.chapter_id.like(f"{escape_like(params.book_id)}.%", escape="\\"))
    if params.q:
        pattern = f"%{escape_like(params.q)}%"
        query = query.filter(
            or_(Note.title.ilike(pattern, escape="\\"), Note.text.ilike(pattern, escape="\\"))
        )

    total = query.count()

    field_name, _, direction = params.sort.partition(":")
    column = Note.title if field_name == "title" else Note.updated_at
    order = column.asc() if direction == "asc" else column.desc()
    notes = (
        query.order_by(order, Note.id.desc())
        .offset(params.clamped_offset)
        .limit(params.clamped_limit)
        .all()
    )
    return notes, total


def has_any_note(db: Session, user: User, bible_id: str, chapter_id: str) -> bool:
    if not bible_id or not chapter_id:
        raise ValidationError("Missing bibleId or chapterId")
    return (
        _owned(db, user)
        .filter(Note.bible_id == bible_id, Note.chapter_id == chapter_id)
        .first()
        is not None
    )


def get_note(db: Session, user: User, note_id: int) -> Note:
    note = _owned(db, user).filter(Note.id == note_id).first()
    if note is None:
        raise NotFoundError("Note not found")
    return note


def get_latest_for_scope(
    db: Session,
    user: User,
    bible_id: str,
    chapter_id: str,
    range_start: int | None,
    range_end: int | None,
) -> Note | None:
    """Most recently updated note for the exact (chapter, range) scope, or None."""
    if not bible_id or not chapter_id:
        raise ValidationError("Missing bibleId or chapterId")
    return (
        _owned(db, user)
        .filter(
            Note.bible_id == bible_id,
            Note.chapter_id == chapter_id,
            Note.range_key == range_key_for(range_start, range_end),
        )
        .order_by(Note.updated_at.desc(), Note.id.desc())
        .first()
    )


def create_note(db: Session, user: User, payload: NoteCreate) -> Note:
    """Insert a note; a second note for the same scope is a conflict."""
    note = Note(
        user_id=user.id,
        bible_id=payload.bible_id,
        chapter_id=payload.chapter_id,
        range_start=payload.range_start,
        range_end=payload.range_end,
        range_key=range_key_for(payload.range_start, payload.range_end),
        title=safe_str(payload.title, TITLE_MAX),
        text=safe_str(payload.text, TEXT_MAX),
    )
    db.add(note)
    try:
        db.commit()
    except IntegrityError as err:
        db.rollback()
        raise ConflictError("A note already exists for this passage") from err
    db.refresh(note)
    return note


def update_note(db: Session, user: User, note_id: int, payload: NoteUpdate) -> Note:
    note = get_note(db, user, note_id)
    if payload.title is not None:
        note.title = safe_str(payload.title, TITLE_MAX)
    if payload.text is not None:
        note.text = safe_str(payload.text, TEXT_MAX)
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, user: User, note_id: int) -> None:
    deleted = _owned(db, user).filter(Note.id == note_id).delete(synchronize_session=False)
    if not deleted:
        raise NotFoundError("Note not found")
    db.commit()
