# tests/services/test_helpers.py
"""Tests for small pure helpers used by the services."""

from __future__ import annotations

from datetime import datetime

import pytest

from versebyverse.models import CommunityPollVote, CommunityPost, GeneralContent, PollContent, range_key_for
from versebyverse.schemas.note import to_null_or_number
from versebyverse.schemas.post import ReplyResponse
from versebyverse.services.community_service import escape_like
from versebyverse.services.note_service import NoteListParams, build_preview
from versebyverse.services.post_service import build_reply_tree, subtitle_for, tally_votes
from versebyverse.services.uploads import normalize_content_type


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, None),
        ("", None),
        ("null", None),
        ("NULL", None),
        ("  7 ", 7),
        ("7.0", 7),
        ("7.5", None),
        ("abc", None),
        ("nan", None),
        (3, 3),
        (True, None),
    ],
)
def test_to_null_or_number(value, expected) -> None:
    assert to_null_or_number(value) == expected


def test_range_key_for() -> None:
    assert range_key_for(None, None) == "*-*"
    assert range_key_for(1, None) == "1-*"
    assert range_key_for(1, 3) == "1-3"


def test_note_list_params_clamp() -> None:
    assert NoteListParams().clamped_limit == 50
    assert NoteListParams(limit=500).clamped_limit == 200
    assert NoteListParams(limit=-3).clamped_limit == 1
    assert NoteListParams(offset=-3).clamped_offset == 0


def test_build_preview() -> None:
    assert build_preview(None) == ""
    assert build_preview("  a\n\tb  ") == "a b"
    assert build_preview("y" * 500) == "y" * 160


def test_escape_like() -> None:
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_subtitle_for() -> None:
    assert subtitle_for(None) == ""
    assert subtitle_for("  short  ") == "short"
    long_text = "a" * 200
    assert subtitle_for(long_text) == "a" * 140 + "..."


def test_tally_votes_ignores_out_of_range() -> None:
    votes = [
        CommunityPollVote(user_id=1, option_index=0),
        CommunityPollVote(user_id=2, option_index=0),
        CommunityPollVote(user_id=1, option_index=2),
        CommunityPollVote(user_id=2, option_index=9),
    ]
    counts, total, mine = tally_votes(["a", "b", "c"], votes, viewer_id=1)
    assert counts == [2, 0, 1]
    assert total == 3
    assert mine == [0, 2]


def _reply(reply_id: int, parent: int | None) -> ReplyResponse:
    return ReplyResponse(
        id=reply_id,
        post_id=1,
        parent_reply_id=parent,
        body=f"reply {reply_id}",
        author_id=1,
        author_name="Alice Kim",
        created_at=datetime(2024, 1, 1),
    )


def test_build_reply_tree_keeps_order_and_orphans() -> None:
    replies = [_reply(1, None), _reply(2, 1), _reply(3, None), _reply(4, 2), _reply(5, 99)]
    tree = build_reply_tree(replies)
    assert [node.id for node in tree] == [1, 3, 5]
    assert [child.id for child in tree[0].children] == [2]
    assert [child.id for child in tree[0].children[0].children] == [4]


def test_post_content_variants() -> None:
    post = CommunityPost(title="t", type="questions")
    post.content = GeneralContent(body="why?")
    assert post.content == GeneralContent(body="why?")
    assert post.poll is None

    poll = CommunityPost(title="p")
    poll.content = PollContent(options=("a", "b"), allow_multiple=True)
    assert poll.type == "poll"
    assert poll.poll == {
        "options": [{"text": "a"}, {"text": "b"}],
        "allowMultiple": True,
        "anonymous": True,
    }
    assert poll.content.options == ("a", "b")

    with pytest.raises(ValueError):
        poll.content = GeneralContent(body="no longer a poll")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("image/png", "image/png"),
        ("IMAGE/WEBP; q=1", "image/webp"),
        (" image/jpeg ;charset=binary", "image/jpeg"),
        ("", ""),
        (None, ""),
    ],
)
def test_normalize_content_type(value, expected) -> None:
    assert normalize_content_type(value) == expected
