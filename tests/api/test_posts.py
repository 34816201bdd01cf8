# tests/api/test_posts.py
"""Tests for community posts, poll voting and threaded replies."""

from __future__ import annotations

from fastapi import status

from tests.conftest import add_member
from versebyverse.db.time import as_utc
from versebyverse.models import (
    CommunityPollVote,
    CommunityPost,
    MembershipRole,
    Notification,
    NotificationType,
)
from versebyverse.services import post_service


def _posts_url(community) -> str:
    return f"/community/{community.id}/posts"


def _create_poll(client, community, allow_multiple=False):
    response = client.post(
        _posts_url(community),
        json={
            "title": "Which book next?",
            "type": "poll",
            "poll": {"options": ["A", {"text": "B"}], "allowMultiple": allow_multiple},
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["post"]


def test_member_creates_general_post(db_session, other_client, community, member) -> None:
    before = as_utc(community.last_activity_at)
    response = other_client.post(
        _posts_url(community),
        json={"title": " Hello ", "body": "First thoughts on Psalm 1"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    post = response.json()["post"]
    assert post["title"] == "Hello"
    assert post["type"] == "general"
    assert post["category"] == "General"
    assert post["authorName"] == "Bob Lee"
    assert post["replyCount"] == 0
    assert post["poll"] is None

    db_session.refresh(community)
    assert as_utc(community.last_activity_at) > before


def test_unknown_post_type_falls_back_to_general(user_client, community) -> None:
    response = user_client.post(
        _posts_url(community),
        json={"title": "Hi", "type": "memes", "body": "text"},
    )
    assert response.status_code == status.HTTP_201_CREATED
    assert response.json()["post"]["type"] == "general"


def test_questions_post_keeps_type(user_client, community) -> None:
    response = user_client.post(
        _posts_url(community),
        json={"title": "Why?", "type": "questions", "body": "Genesis 1:2"},
    )
    assert response.json()["post"]["category"] == "Questions"


def test_post_requires_body(user_client, community) -> None:
    response = user_client.post(_posts_url(community), json={"title": "Empty", "body": "   "})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Body is required"


def test_post_requires_title(user_client, community) -> None:
    response = user_client.post(_posts_url(community), json={"title": "  ", "body": "x"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_non_member_cannot_post(other_client, community) -> None:
    response = other_client.post(_posts_url(community), json={"title": "Hi", "body": "x"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_post_in_unknown_community(user_client) -> None:
    response = user_client.post("/community/777/posts", json={"title": "Hi", "body": "x"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_new_post_notifies_managers_except_author(
    db_session, other_client, community, member, test_user, other_user, third_user
) -> None:
    add_member(db_session, community, third_user, MembershipRole.LEADER)

    response = other_client.post(_posts_url(community), json={"title": "News", "body": "x"})
    post_id = response.json()["post"]["id"]

    notifications = (
        db_session.query(Notification)
        .filter(Notification.type == NotificationType.COMMUNITY_NEW_POST.value)
        .all()
    )
    assert sorted(n.user_id for n in notifications) == sorted([test_user.id, third_user.id])
    for notification in notifications:
        assert notification.post_id == post_id
        assert notification.target_kind == "CommunityPost"
        assert notification.target_id == post_id
        assert notification.actor_id == other_user.id
        assert notification.message == 'Bob Lee posted "News" in Morning Psalms.'


def test_post_survives_notification_failure(
    db_session, monkeypatch, other_client, community, member
) -> None:
    def fail(*args, **kwargs):
        raise RuntimeError("notify down")

    monkeypatch.setattr(post_service, "create_notification", fail)

    response = other_client.post(_posts_url(community), json={"title": "Still here", "body": "x"})
    assert response.status_code == status.HTTP_201_CREATED
    post_id = response.json()["post"]["id"]
    assert response.json()["post"]["title"] == "Still here"

    assert db_session.get(CommunityPost, post_id) is not None
    assert db_session.query(Notification).count() == 0


def test_owner_post_does_not_notify_owner(db_session, user_client, community, test_user) -> None:
    user_client.post(_posts_url(community), json={"title": "Mine", "body": "x"})
    assert db_session.query(Notification).count() == 0


def test_list_posts_newest_first_with_subtitle(user_client, other_client, community, member) -> None:
    long_body = "word " * 60
    user_client.post(_posts_url(community), json={"title": "First", "body": "short body"})
    other_client.post(_posts_url(community), json={"title": "Second", "body": long_body})

    response = other_client.get(_posts_url(community))
    assert response.status_code == status.HTTP_200_OK
    posts = response.json()["posts"]
    assert [p["title"] for p in posts] == ["Second", "First"]
    assert posts[0]["subtitle"].endswith("...")
    assert len(posts[0]["subtitle"]) <= 143
    assert posts[1]["subtitle"] == "short body"
    assert posts[1]["authorName"] == "Alice Kim"


def test_list_posts_requires_session(client, community) -> None:
    response = client.get(_posts_url(community))
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_create_poll_normalizes_options(user_client, community) -> None:
    response = user_client.post(
        _posts_url(community),
        json={
            "title": "Pick one",
            "type": "poll",
            "poll": {"options": [" Romans ", "", {"text": "James"}, "   "]},
        },
    )
    assert response.status_code == status.HTTP_201_CREATED
    poll = response.json()["post"]["poll"]
    assert [o["text"] for o in poll["options"]] == ["Romans", "James"]
    assert poll["allowMultiple"] is False
    assert poll["anonymous"] is True
    assert poll["totalVotes"] == 0


def test_poll_needs_two_options(user_client, community) -> None:
    response = user_client.post(
        _posts_url(community),
        json={"title": "Pick", "type": "poll", "poll": {"options": ["Only", " "]}},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_single_choice_vote_toggles(user_client, community) -> None:
    poll = _create_poll(user_client, community)
    vote_url = f"{_posts_url(community)}/{poll['id']}/vote"

    first = user_client.post(vote_url, json={"optionIndex": 0}).json()
    assert first["counts"] == [1, 0]
    assert first["myVotes"] == [0]

    switched = user_client.post(vote_url, json={"optionIndex": 1}).json()
    assert switched["counts"] == [0, 1]
    assert switched["totalVotes"] == 1

    cleared = user_client.post(vote_url, json={"optionIndex": 1}).json()
    assert cleared["counts"] == [0, 0]
    assert cleared["myVotes"] == []


def test_multi_choice_vote(user_client, other_client, community, member) -> None:
    poll = _create_poll(user_client, community, allow_multiple=True)
    vote_url = f"{_posts_url(community)}/{poll['id']}/vote"

    user_client.post(vote_url, json={"optionIndex": 0})
    result = user_client.post(vote_url, json={"optionIndex": 1}).json()
    assert result["counts"] == [1, 1]
    assert result["myVotes"] == [0, 1]

    theirs = other_client.post(vote_url, json={"optionIndex": 1}).json()
    assert theirs["counts"] == [1, 2]
    assert theirs["totalVotes"] == 3
    assert theirs["myVotes"] == [1]


def test_vote_validation(user_client, other_client, community) -> None:
    poll = _create_poll(user_client, community)
    vote_url = f"{_posts_url(community)}/{poll['id']}/vote"

    assert user_client.post(vote_url, json={"optionIndex": 2}).status_code == status.HTTP_400_BAD_REQUEST
    assert user_client.post(vote_url, json={"optionIndex": -1}).status_code == status.HTTP_400_BAD_REQUEST
    assert other_client.post(vote_url, json={"optionIndex": 0}).status_code == status.HTTP_403_FORBIDDEN

    general = user_client.post(_posts_url(community), json={"title": "Plain", "body": "x"}).json()["post"]
    response = user_client.post(
        f"{_posts_url(community)}/{general['id']}/vote", json={"optionIndex": 0}
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Post is not a poll"


def test_post_detail_tallies_and_hides_voters(
    db_session, user_client, community, other_user, member
) -> None:
    poll = _create_poll(user_client, community)
    db_session.add_all(
        [
            CommunityPollVote(post_id=poll["id"], user_id=other_user.id, option_index=1),
            CommunityPollVote(post_id=poll["id"], user_id=other_user.id, option_index=7),
        ]
    )
    db_session.commit()

    response = user_client.get(f"{_posts_url(community)}/{poll['id']}")
    assert response.status_code == status.HTTP_200_OK
    result = response.json()["post"]["poll"]
    assert [o["count"] for o in result["options"]] == [0, 1]
    assert result["totalVotes"] == 1
    assert result["myVotes"] == []
    assert "voters" not in result


def test_post_detail_not_found(user_client, community) -> None:
    response = user_client.get(f"{_posts_url(community)}/404")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_replies_thread_and_count(db_session, user_client, other_client, community, member) -> None:
    post = user_client.post(_posts_url(community), json={"title": "Discuss", "body": "x"}).json()["post"]
    replies_url = f"{_posts_url(community)}/{post['id']}/replies"

    top = other_client.post(replies_url, json={"body": "Top level"})
    assert top.status_code == status.HTTP_201_CREATED
    top_id = top.json()["reply"]["id"]
    child = user_client.post(replies_url, json={"body": "Nested", "parentReplyId": top_id})
    assert child.status_code == status.HTTP_201_CREATED
    second = other_client.post(replies_url, json={"body": "Another"}).json()["reply"]

    response = user_client.get(replies_url)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [r["body"] for r in data["replies"]] == ["Top level", "Nested", "Another"]
    threads = data["threads"]
    assert [t["id"] for t in threads] == [top_id, second["id"]]
    assert [c["body"] for c in threads[0]["children"]] == ["Nested"]
    assert threads[0]["children"][0]["authorName"] == "Alice Kim"

    stored = db_session.get(CommunityPost, post["id"])
    db_session.refresh(stored)
    assert stored.reply_count == 3
    assert stored.last_reply_at is not None

    listed = user_client.get(_posts_url(community)).json()["posts"]
    assert listed[0]["replyCount"] == 3


def test_reply_validation(user_client, other_client, community) -> None:
    first = user_client.post(_posts_url(community), json={"title": "One", "body": "x"}).json()["post"]
    second = user_client.post(_posts_url(community), json={"title": "Two", "body": "x"}).json()["post"]
    first_url = f"{_posts_url(community)}/{first['id']}/replies"
    second_url = f"{_posts_url(community)}/{second['id']}/replies"

    empty = user_client.post(first_url, json={"body": "   "})
    assert empty.status_code == status.HTTP_400_BAD_REQUEST

    foreign_parent = user_client.post(second_url, json={"body": "ok"}).json()["reply"]["id"]
    response = user_client.post(first_url, json={"body": "hi", "parentReplyId": foreign_parent})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "Invalid parent reply"

    missing_parent = user_client.post(first_url, json={"body": "hi", "parentReplyId": 999})
    assert missing_parent.status_code == status.HTTP_400_BAD_REQUEST

    outsider = other_client.post(first_url, json={"body": "let me in"})
    assert outsider.status_code == status.HTTP_403_FORBIDDEN
