"""SQLAlchemy models for communities and their memberships."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from versebyverse.db.session import Base
from versebyverse.db.time import utcnow

from .mixins import TimestampMixin
from .user import User

COMMUNITY_TYPES: tuple[str, ...] = (
    "Bible Study",
    "Read Through",
    "Church Organization",
    "Prayer Group",
    "Other",
)


class MembershipRole(str, Enum):
    """Role a user holds inside a community."""

    OWNER = "Owner"
    LEADER = "Leader"
    MEMBER = "Member"


# Roles allowed to invite people and manage community settings.
MANAGER_ROLES: frozenset[str] = frozenset({MembershipRole.OWNER.value, MembershipRole.LEADER.value})


class Community(TimestampMixin, Base):
    """Named group with an owner, members and posts."""

    __tablename__ = "community"
    __table_args__ = (
        CheckConstraint("members_count >= 1", name="ck_community_members_count"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    header: Mapped[str] = mapped_column(Text, nullable=False)
    subheader: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id"),
        nullable=False,
    )
    # Denormalized; see services.community_service.reconcile_counts.
    members_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    hero_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner: Mapped[User] = relationship("User", lazy="joined")
    memberships: Mapped[list[CommunityMembership]] = relationship(
        "CommunityMembership",
        back_populates="community",
        cascade="all, delete-orphan",
    )

    def touch(self) -> None:
        """Record activity in the community."""
        self.last_activity_at = utcnow()


class CommunityMembership(TimestampMixin, Base):
    """Join record granting a user a role in a community."""

    __tablename__ = "community_membership"
    __table_args__ = (
        UniqueConstraint("user_id", "community_id", name="uq_membership_user_community"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("app_user.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=MembershipRole.MEMBER.value,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped[User] = relationship("User", lazy="joined")
    community: Mapped[Community] = relationship("Community", back_populates="memberships")
