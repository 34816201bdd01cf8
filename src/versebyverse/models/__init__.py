# src/versebyverse/models/__init__.py
"""SQLAlchemy models for the VerseByVerse application."""

from .community import (
    COMMUNITY_TYPES,
    MANAGER_ROLES,
    Community,
    CommunityMembership,
    MembershipRole,
)
from .note import Note, range_key_for
from .notification import (
    ACTIONABLE_TYPES,
    Notification,
    NotificationStatus,
    NotificationType,
)
from .post import (
    POST_TYPE_POLL,
    POST_TYPES,
    CommunityPollVote,
    CommunityPost,
    CommunityReply,
    GeneralContent,
    PollContent,
    PostContent,
)
from .user import User, UserSession

__all__ = [
    "COMMUNITY_TYPES", "MANAGER_ROLES", "Community", "CommunityMembership", "MembershipRole",
    "Note", "range_key_for",
    "ACTIONABLE_TYPES", "Notification", "NotificationStatus", "NotificationType",
    "POST_TYPE_POLL", "POST_TYPES",
    "CommunityPollVote", "CommunityPost", "CommunityReply",
    "GeneralContent", "PollContent", "PostContent",
    "User", "UserSession",
]
