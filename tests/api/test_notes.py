# tests/api/test_notes.py
"""Tests for personal scripture notes."""

from __future__ import annotations

from fastapi import status

from versebyverse.models import Note


def _note(client, **overrides):
    payload = {
        "bibleId": "kor",
        "chapterId": "GEN.1",
        "title": "In the beginning",
        "text": "God created the heavens and the earth.",
    }
    payload.update(overrides)
    return client.post("/notes", json=payload)


def test_create_chapter_note(user_client, db_session, test_user) -> None:
    response = _note(user_client, rangeStart="", rangeEnd="null", title="  Light  ")
    assert response.status_code == status.HTTP_201_CREATED
    note = response.json()["note"]
    assert note["rangeStart"] is None
    assert note["rangeEnd"] is None
    assert note["title"] == "Light"

    stored = db_session.get(Note, note["id"])
    assert stored.user_id == test_user.id
    assert stored.range_key == "*-*"


def test_create_requires_scope(user_client) -> None:
    response = user_client.post("/notes", json={"bibleId": "kor", "title": "x"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_duplicate_scope_conflicts(user_client, other_client) -> None:
    assert _note(user_client).status_code == status.HTTP_201_CREATED

    duplicate = _note(user_client, rangeStart=None)
    assert duplicate.status_code == status.HTTP_409_CONFLICT
    assert duplicate.json() == {"ok": False, "error": "A note already exists for this passage"}

    ranged = _note(user_client, rangeStart=1, rangeEnd="3")
    assert ranged.status_code == status.HTTP_201_CREATED
    assert ranged.json()["note"]["rangeEnd"] == 3

    # Scopes are per user.
    assert _note(other_client).status_code == status.HTTP_201_CREATED


def test_non_numeric_range_means_chapter(user_client) -> None:
    response = _note(user_client, rangeStart="abc", rangeEnd="2.5")
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["note"]["rangeStart"] is None
    assert response.json()["note"]["rangeEnd"] is None


def test_latest_for_scope(user_client) -> None:
    chapter = _note(user_client).json()["note"]
    ranged = _note(user_client, rangeStart=4, rangeEnd=5, title="Ranged").json()["note"]

    response = user_client.get(
        "/notes",
        params={"bibleId": "kor", "chapterId": "GEN.1", "rangeStart": "null", "rangeEnd": ""},
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["note"]["id"] == chapter["id"]

    response = user_client.get(
        "/notes",
        params={"bibleId": "kor", "chapterId": "GEN.1", "rangeStart": "4", "rangeEnd": "5"},
    )
    assert response.json()["note"]["id"] == ranged["id"]

    empty = user_client.get("/notes", params={"bibleId": "kor", "chapterId": "EXO.1"})
    assert empty.json() == {"ok": True, "note": None}


def test_latest_for_scope_requires_ids(user_client) -> None:
    response = user_client.get("/notes", params={"bibleId": "kor"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_exists(user_client, other_client) -> None:
    _note(user_client, rangeStart=1, rangeEnd=2)

    params = {"bibleId": "kor", "chapterId": "GEN.1"}
    assert user_client.get("/notes/exists", params=params).json() == {"ok": True, "hasAnyNote": True}
    assert other_client.get("/notes/exists", params=params).json()["hasAnyNote"] is False
    assert user_client.get("/notes/exists", params={"bibleId": "kor"}).status_code == (
        status.HTTP_400_BAD_REQUEST
    )


def test_list_filters_and_preview(user_client) -> None:
    _note(user_client, chapterId="GEN.1", title="Creation", text="Line one\n\n   line   two")
    _note(user_client, chapterId="GEN.2", title="Eden", text="A garden 100% planted")
    _note(user_client, chapterId="GENX.1", title="Other book", text="nothing")
    _note(user_client, bibleId="esv", chapterId="JHN.1", title="Word", text="x" * 400)

    everything = user_client.get("/notes/list").json()
    assert everything["total"] == 4

    genesis = user_client.get("/notes/list", params={"bookId": "GEN"}).json()
    assert {n["title"] for n in genesis["notes"]} == {"Creation", "Eden"}

    esv = user_client.get("/notes/list", params={"bibleId": "esv"}).json()["notes"]
    assert [n["title"] for n in esv] == ["Word"]
    assert len(esv[0]["preview"]) == 160

    creation = user_client.get("/notes/list", params={"q": "creat"}).json()["notes"]
    assert creation[0]["preview"] == "Line one line two"

    literal = user_client.get("/notes/list", params={"q": "100%"}).json()["notes"]
    assert [n["title"] for n in literal] == ["Eden"]


def test_list_sort_and_paging(user_client) -> None:
    for title in ["Beta", "Alpha", "Gamma"]:
        _note(user_client, chapterId=f"PSA.{title}", title=title)

    by_title = user_client.get("/notes/list", params={"sort": "title:asc"}).json()["notes"]
    assert [n["title"] for n in by_title] == ["Alpha", "Beta", "Gamma"]

    newest = user_client.get("/notes/list").json()["notes"]
    assert [n["title"] for n in newest] == ["Gamma", "Alpha", "Beta"]

    page = user_client.get("/notes/list", params={"sort": "title:asc", "limit": 1, "offset": 1}).json()
    assert [n["title"] for n in page["notes"]] == ["Beta"]
    assert page["total"] == 3

    clamped = user_client.get("/notes/list", params={"limit": "0", "offset": "-4"}).json()
    assert len(clamped["notes"]) == 3


def test_get_update_delete(user_client) -> None:
    note = _note(user_client).json()["note"]

    fetched = user_client.get(f"/notes/{note['id']}")
    assert fetched.json()["note"]["title"] == "In the beginning"

    updated = user_client.put(f"/notes/{note['id']}", json={"text": "  Revised  "})
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["note"]["text"] == "Revised"
    assert updated.json()["note"]["title"] == "In the beginning"

    deleted = user_client.delete(f"/notes/{note['id']}")
    assert deleted.json() == {"ok": True}
    assert user_client.get(f"/notes/{note['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert user_client.delete(f"/notes/{note['id']}").status_code == status.HTTP_404_NOT_FOUND


def test_update_keeps_omitted_fields(user_client) -> None:
    note = _note(user_client).json()["note"]

    updated = user_client.put(f"/notes/{note['id']}", json={"title": "Day one"})
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["note"]["title"] == "Day one"
    assert updated.json()["note"]["text"] == "God created the heavens and the earth."

    unchanged = user_client.put(f"/notes/{note['id']}", json={})
    assert unchanged.status_code == status.HTTP_200_OK
    assert unchanged.json()["note"]["title"] == "Day one"


def test_notes_are_private(user_client, other_client) -> None:
    note = _note(user_client).json()["note"]

    assert other_client.get(f"/notes/{note['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert other_client.put(f"/notes/{note['id']}", json={"title": "mine"}).status_code == (
        status.HTTP_404_NOT_FOUND
    )
    assert other_client.delete(f"/notes/{note['id']}").status_code == status.HTTP_404_NOT_FOUND
    assert other_client.get("/notes/list").json() == {"ok": True, "notes": [], "total": 0}


def test_notes_require_session(client) -> None:
    assert client.get("/notes/list").status_code == status.HTTP_401_UNAUTHORIZED
