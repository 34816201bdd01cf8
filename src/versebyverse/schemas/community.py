"""Community-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from versebyverse.models.community import COMMUNITY_TYPES

from .common import APIModel, OkResponse


class CommunityCreate(APIModel):
    """Schema for creating a new community."""

    header: str = Field(..., min_length=1)
    subheader: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1)

    @field_validator("type")
    @classmethod
    def _known_type(cls, value: str) -> str:
        if value not in COMMUNITY_TYPES:
            raise ValueError(f"must be one of: {', '.join(COMMUNITY_TYPES)}")
        return value


class UserSummary(APIModel):
    """Public identity of a user inside community views."""

    id: int
    username: str | None
    first_name: str | None
    last_name: str | None
    display_name: str


class CommunitySummary(APIModel):
    """Schema for community information returned by list endpoints.

    `role` and `my` describe the caller's relation to the community.
    """

    id: int
    header: str
    subheader: str
    content: str
    type: str
    members_count: int
    last_activity_at: datetime
    hero_image_url: str | None = None
    created_at: datetime
    role: str | None = None
    my: bool = False


class CommunityMember(APIModel):
    user: UserSummary
    role: str
    joined_at: datetime


class CommunityDetail(CommunitySummary):
    """Community with owner, leaders and the full member list."""

    owner: UserSummary
    leaders: list[UserSummary]
    members: list[CommunityMember]


class InviteRequest(APIModel):
    user_id: int


class CommunityEnvelope(OkResponse):
    community: CommunitySummary


class CommunityListEnvelope(OkResponse):
    communities: list[CommunitySummary]


class CommunityDetailEnvelope(OkResponse):
    community: CommunityDetail


class HeroImageEnvelope(OkResponse):
    hero_image_url: str
