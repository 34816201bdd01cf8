"""SQLAlchemy model for user-directed notifications."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from versebyverse.db.session import Base

from .mixins import TimestampMixin
from .user import User


class NotificationType(str, Enum):
    """Producer events that create notifications."""

    COMMUNITY_INVITE = "COMMUNITY_INVITE"
    COMMUNITY_JOIN_REQUEST = "COMMUNITY_JOIN_REQUEST"
    COMMUNITY_NEW_POST = "COMMUNITY_NEW_POST"


class NotificationStatus(str, Enum):
    """Resolution state; only meaningful for actionable types."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


ACTIONABLE_TYPES: frozenset[str] = frozenset(
    {NotificationType.COMMUNITY_INVITE.value, NotificationType.COMMUNITY_JOIN_REQUEST.value}
)


class Notification(TimestampMixin, Base):
    """Message addressed to one recipient, with optional community/actor/post context."""

    __tablename__ = "notification"
    __table_args__ = (
        # Unread for a user, newest first.
        Index("ix_notification_user_read_created", "user_id", "read_at", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    community_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Who triggered it: inviter, join requester or post author.
    actor_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="SET NULL"),
        nullable=True,
    )
    post_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("community_post.id", ondelete="SET NULL"),
        nullable=True,
    )
    target_kind: Mapped[str | None] = mapped_column(String(64), nullable=True)
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=NotificationStatus.PENDING.value,
    )

    actor: Mapped[User | None] = relationship("User", foreign_keys=[actor_id], lazy="joined")

    @property
    def actor_name(self) -> str | None:
        return self.actor.display_name if self.actor is not None else None
