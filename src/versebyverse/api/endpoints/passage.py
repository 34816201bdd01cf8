"""Scripture passage proxy endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from versebyverse.schemas.passage import PassageEnvelope, Verse
from versebyverse.services.passage import PassageClient, get_passage_client

router = APIRouter(prefix="/api", tags=["passage"])
PassageClientDep = Annotated[PassageClient, Depends(get_passage_client)]


@router.get("/passage/{edition_id}/{chapter_id}", response_model=PassageEnvelope)
async def get_passage(
    edition_id: str,
    chapter_id: str,
    client: PassageClientDep,
) -> PassageEnvelope:
    """Fetch one chapter of an edition and return it as numbered verses."""
    ref, verses = await client.get_passage(edition_id, chapter_id)
    return PassageEnvelope(
        version_id=edition_id,
        chapter_id=chapter_id,
        book_id=ref.book_id,
        chapter=ref.chapter,
        verses=[Verse(id=v.id, number=v.number, text=v.text) for v in verses],
    )
