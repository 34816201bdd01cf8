"""Community post, poll vote and reply endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from versebyverse.schemas.post import (
    PostCreate,
    PostEnvelope,
    PostListEnvelope,
    ReplyCreate,
    ReplyEnvelope,
    ReplyListEnvelope,
    VoteEnvelope,
    VoteRequest,
)
from versebyverse.services import post_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/community", tags=["posts"])


@router.get("/{community_id}/posts", response_model=PostListEnvelope)
async def list_posts(
    community_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
) -> PostListEnvelope:
    """List posts of a community, newest first."""
    return PostListEnvelope(posts=post_service.list_posts(db, community_id))


@router.post(
    "/{community_id}/posts",
    response_model=PostEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    community_id: int,
    payload: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostEnvelope:
    """Create a post or poll; members only."""
    post = post_service.create_post(db, current_user, community_id, payload)
    detail = post_service.get_post_detail(db, current_user, community_id, post.id)
    return PostEnvelope(post=detail)


@router.get("/{community_id}/posts/{post_id}", response_model=PostEnvelope)
async def get_post(
    community_id: int,
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PostEnvelope:
    """Return a post; polls include the tally and the caller's own picks."""
    return PostEnvelope(post=post_service.get_post_detail(db, current_user, community_id, post_id))


@router.post("/{community_id}/posts/{post_id}/vote", response_model=VoteEnvelope)
async def vote_on_poll(
    community_id: int,
    post_id: int,
    payload: VoteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteEnvelope:
    """Toggle the caller's vote for one poll option."""
    counts, total, mine = post_service.vote_on_poll(
        db, current_user, community_id, post_id, payload.option_index
    )
    return VoteEnvelope(counts=counts, total_votes=total, my_votes=mine)


@router.get("/{community_id}/posts/{post_id}/replies", response_model=ReplyListEnvelope)
async def list_replies(
    community_id: int,
    post_id: int,
    _current_user: CurrentUserDep,
    db: SessionDep,
) -> ReplyListEnvelope:
    replies = post_service.list_replies(db, community_id, post_id)
    return ReplyListEnvelope(replies=replies, threads=post_service.build_reply_tree(replies))


@router.post(
    "/{community_id}/posts/{post_id}/replies",
    response_model=ReplyEnvelope,
    status_code=status.HTTP_201_CREATED,
)
async def create_reply(
    community_id: int,
    post_id: int,
    payload: ReplyCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ReplyEnvelope:
    reply = post_service.create_reply(db, current_user, community_id, post_id, payload)
    return ReplyEnvelope(reply=reply)
