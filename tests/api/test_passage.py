# tests/api/test_passage.py
"""Tests for the scripture passage proxy."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from urllib.parse import unquote

import httpx
import pytest
from fastapi import status

from versebyverse.services.passage import PassageClient, get_passage_client

GENESIS_1 = (
    "<html><body><b>Bible Quote:</b><br>창세기 1장<br>"
    "1:1 태초에 하나님이 천지를 창조하시니라<br>"
    "1:2 땅이 혼돈하고 공허하며<br>"
    "1:3 하나님이 이르시되 빛이 있으라 하시니 빛이 있었고"
    "</body></html>"
)


@pytest.fixture()
def upstream(app) -> Iterator[Callable[[Callable[[httpx.Request], httpx.Response]], list]]:
    """Route passage fetches through a mock transport; returns the seen requests."""
    seen: list[httpx.Request] = []

    def _install(handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        app.dependency_overrides[get_passage_client] = lambda: PassageClient(
            kor_base_url="http://upstream.test/quote.php",
            transport=httpx.MockTransport(_record),
        )
        return seen

    yield _install
    app.dependency_overrides.pop(get_passage_client, None)


def test_passage_returns_verses(client, upstream) -> None:
    seen = upstream(lambda request: httpx.Response(200, text=GENESIS_1))

    response = client.get("/api/passage/kor/GEN.1")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["ok"] is True
    assert data["versionId"] == "kor"
    assert data["chapterId"] == "GEN.1"
    assert data["bookId"] == "GEN"
    assert data["chapter"] == 1
    assert [v["id"] for v in data["verses"]] == ["GEN.1.1", "GEN.1.2", "GEN.1.3"]
    assert data["verses"][0] == {"id": "GEN.1.1", "number": 1, "text": "태초에 하나님이 천지를 창조하시니라"}

    assert len(seen) == 1
    assert unquote(str(seen[0].url)) == "http://upstream.test/quote.php?kor-GEN/1:1-200"


def test_passage_is_public(client, upstream) -> None:
    upstream(lambda request: httpx.Response(200, text=GENESIS_1))
    # No session cookie is set on `client`.
    assert client.get("/api/passage/kor/GEN.1").status_code == status.HTTP_200_OK


def test_passage_rejects_malformed_chapter(client, upstream) -> None:
    seen = upstream(lambda request: httpx.Response(200, text=GENESIS_1))
    for chapter_id in ("GEN", "GEN.x", "GEN.0", ".1"):
        response = client.get(f"/api/passage/kor/{chapter_id}")
        assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert seen == []


def test_passage_other_editions_not_implemented(client, upstream) -> None:
    seen = upstream(lambda request: httpx.Response(200, text=GENESIS_1))
    response = client.get("/api/passage/esv/GEN.1")
    assert response.status_code == status.HTTP_501_NOT_IMPLEMENTED
    assert response.json() == {"ok": False, "error": "Not implemented for this versionId"}
    assert seen == []


def test_passage_upstream_error_status(client, upstream) -> None:
    upstream(lambda request: httpx.Response(503, text="busy"))
    response = client.get("/api/passage/kor/GEN.1")
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json() == {"ok": False, "error": "KOR upstream 503"}


def test_passage_upstream_network_failure(client, upstream) -> None:
    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    upstream(_fail)
    response = client.get("/api/passage/kor/GEN.1")
    assert response.status_code == status.HTTP_502_BAD_GATEWAY


def test_passage_upstream_timeout(client, upstream) -> None:
    def _timeout(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    upstream(_timeout)
    response = client.get("/api/passage/kor/GEN.1")
    assert response.status_code == status.HTTP_502_BAD_GATEWAY
    assert response.json()["error"] == "KOR upstream timeout"
