"""SQLAlchemy models for community posts, poll votes and threaded replies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from versebyverse.db.session import Base

from .mixins import TimestampMixin
from .user import User

POST_TYPES: tuple[str, ...] = ("general", "questions", "announcements", "poll")
POST_TYPE_POLL = "poll"


@dataclass(frozen=True)
class GeneralContent:
    """Body of a general, questions or announcements post."""

    body: str


@dataclass(frozen=True)
class PollContent:
    """Poll configuration; `options` keeps the order votes index into."""

    options: tuple[str, ...]
    allow_multiple: bool = False
    anonymous: bool = True
    body: str | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "options": [{"text": option} for option in self.options],
            "allowMultiple": self.allow_multiple,
            "anonymous": self.anonymous,
        }


PostContent = GeneralContent | PollContent


class CommunityPost(TimestampMixin, Base):
    """Forum-style post inside a community.

    `body` and `poll` are persisted as columns; code reads them through
    `content`, which returns exactly one variant for the post type.
    """

    __tablename__ = "community_post"
    __table_args__ = (
        CheckConstraint(
            "type = 'poll' OR body IS NOT NULL",
            name="ck_community_post_body_required",
        ),
        CheckConstraint(
            "type != 'poll' OR poll IS NOT NULL",
            name="ck_community_post_poll_required",
        ),
        Index("ix_community_post_community_created", "community_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=False,
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False, default="general")
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    poll: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    reply_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_reply_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    author: Mapped[User] = relationship("User", lazy="joined")

    @property
    def content(self) -> PostContent:
        if self.type == POST_TYPE_POLL:
            poll = self.poll or {}
            return PollContent(
                options=tuple(str(option.get("text", "")) for option in poll.get("options", [])),
                allow_multiple=bool(poll.get("allowMultiple", False)),
                anonymous=bool(poll.get("anonymous", True)),
                body=self.body,
            )
        return GeneralContent(body=self.body or "")

    @content.setter
    def content(self, value: PostContent) -> None:
        if isinstance(value, PollContent):
            self.type = POST_TYPE_POLL
            self.body = value.body
            self.poll = value.to_json()
        else:
            if self.type == POST_TYPE_POLL:
                raise ValueError("Poll posts require poll content")
            self.body = value.body
            self.poll = None


class CommunityPollVote(TimestampMixin, Base):
    """One selected option of one user on one poll post."""

    __tablename__ = "community_poll_vote"
    __table_args__ = (
        UniqueConstraint("post_id", "user_id", "option_index", name="uq_poll_vote_option"),
        Index("ix_poll_vote_post_id", "post_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community_post.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Index into the post's poll options.
    option_index: Mapped[int] = mapped_column(Integer, nullable=False)


class CommunityReply(TimestampMixin, Base):
    """Reply under a post; `parent_reply_id` threads replies under replies."""

    __tablename__ = "community_reply"
    __table_args__ = (Index("ix_community_reply_post_created", "post_id", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community_post.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_reply_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("community_reply.id", ondelete="CASCADE"),
        nullable=True,
    )
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    author: Mapped[User] = relationship("User", lazy="joined")
