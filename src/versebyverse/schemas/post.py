"""Post, poll and reply Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from .common import APIModel, OkResponse


class PollCreate(APIModel):
    """Poll configuration as submitted by clients.

    Options may be plain strings or `{"text": ...}` objects.
    """

    options: list[str] = Field(default_factory=list)
    allow_multiple: bool = False
    anonymous: bool = True

    @field_validator("options", mode="before")
    @classmethod
    def _flatten_options(cls, value: object) -> object:
        if not isinstance(value, list):
            return value
        return [
            item.get("text", "") if isinstance(item, dict) else item
            for item in value
        ]


class PostCreate(APIModel):
    """Schema for creating a new community post."""

    title: str = Field(..., min_length=1)
    type: str | None = None
    body: str | None = None
    poll: PollCreate | None = None


class PostSummary(APIModel):
    """Schema for a post row in the community feed."""

    id: int
    title: str
    subtitle: str
    type: str
    category: str
    reply_count: int
    last_reply_at: datetime | None
    author_id: int
    author_name: str
    created_at: datetime


class PollOptionResult(APIModel):
    text: str
    count: int


class PollResults(APIModel):
    """Aggregated tally; voter identities are never included."""

    options: list[PollOptionResult]
    allow_multiple: bool
    anonymous: bool
    total_votes: int
    my_votes: list[int]


class PostDetail(APIModel):
    id: int
    community_id: int
    title: str
    type: str
    category: str
    body: str | None
    author_id: int
    author_name: str
    reply_count: int
    last_reply_at: datetime | None
    created_at: datetime
    updated_at: datetime
    poll: PollResults | None = None


class VoteRequest(APIModel):
    option_index: int


class ReplyCreate(APIModel):
    body: str = ""
    parent_reply_id: int | None = None


class ReplyResponse(APIModel):
    id: int
    post_id: int
    parent_reply_id: int | None
    body: str
    author_id: int
    author_name: str
    created_at: datetime


class ReplyThread(ReplyResponse):
    """Reply with its direct and nested children, oldest first."""

    children: list[ReplyThread] = Field(default_factory=list)


class PostListEnvelope(OkResponse):
    posts: list[PostSummary]


class PostEnvelope(OkResponse):
    post: PostDetail


class VoteEnvelope(OkResponse):
    counts: list[int]
    total_votes: int
    my_votes: list[int]


class ReplyListEnvelope(OkResponse):
    replies: list[ReplyResponse]
    threads: list[ReplyThread]


class ReplyEnvelope(OkResponse):
    reply: ReplyResponse
