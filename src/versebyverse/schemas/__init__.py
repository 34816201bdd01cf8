# src/versebyverse/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import ChangePasswordRequest, LoginRequest, SignupRequest, UserEnvelope, UserResponse
from .common import APIModel, OkResponse
from .community import (
    CommunityCreate,
    CommunityDetail,
    CommunitySummary,
    InviteRequest,
    UserSummary,
)
from .note import NoteCreate, NoteResponse, NoteUpdate
from .notification import NotificationAction, NotificationResponse
from .passage import PassageEnvelope, Verse
from .post import PollCreate, PostCreate, ReplyCreate, VoteRequest

__all__ = [
    "APIModel", "OkResponse",
    "ChangePasswordRequest", "LoginRequest", "SignupRequest", "UserEnvelope", "UserResponse",
    "CommunityCreate", "CommunityDetail", "CommunitySummary", "InviteRequest", "UserSummary",
    "NoteCreate", "NoteResponse", "NoteUpdate",
    "NotificationAction", "NotificationResponse",
    "PassageEnvelope", "Verse",
    "PollCreate", "PostCreate", "ReplyCreate", "VoteRequest",
]
