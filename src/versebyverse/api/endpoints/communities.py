"""Community endpoints: creation, browsing, detail and membership requests."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile, status

from versebyverse.models import MembershipRole
from versebyverse.schemas.common import OkResponse
from versebyverse.schemas.community import (
    CommunityCreate,
    CommunityDetailEnvelope,
    CommunityEnvelope,
    CommunityListEnvelope,
    HeroImageEnvelope,
    InviteRequest,
)
from versebyverse.services import community_service
from versebyverse.services.uploads import HeroImageStorage, get_hero_image_storage

from ..dependencies import CurrentUserDep, OptionalUserDep, SessionDep

router = APIRouter(prefix="/community", tags=["communities"])
HeroImageStorageDep = Annotated[HeroImageStorage, Depends(get_hero_image_storage)]


@router.post("", response_model=CommunityEnvelope, status_code=status.HTTP_201_CREATED)
async def create_community(
    payload: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityEnvelope:
    """Create a community owned by the caller."""
    community = community_service.create_community(db, current_user, payload)
    return CommunityEnvelope(
        community=community_service.summarize(community, MembershipRole.OWNER.value)
    )


@router.get("/my", response_model=CommunityListEnvelope)
async def list_my_communities(current_user: CurrentUserDep, db: SessionDep) -> CommunityListEnvelope:
    """List communities the caller belongs to, with the caller's role."""
    rows = community_service.list_my_communities(db, current_user)
    return CommunityListEnvelope(
        communities=[community_service.summarize(community, role) for community, role in rows]
    )


@router.get("/discover", response_model=CommunityListEnvelope)
async def discover_communities(
    db: SessionDep,
    current_user: OptionalUserDep,
    q: str | None = None,
    type: str | None = None,
    size: str | None = None,
    activity: str | None = None,
) -> CommunityListEnvelope:
    """Browse communities; signed-in callers only see ones they have not joined."""
    communities = community_service.discover_communities(
        db,
        current_user,
        q=q,
        type=type,
        size=size,
        activity=activity,
    )
    return CommunityListEnvelope(
        communities=[community_service.summarize(community, None) for community in communities]
    )


@router.get("/{community_id}", response_model=CommunityDetailEnvelope)
async def get_community(
    community_id: int,
    db: SessionDep,
    current_user: OptionalUserDep,
) -> CommunityDetailEnvelope:
    detail = community_service.get_community_detail(db, community_id, current_user)
    return CommunityDetailEnvelope(community=detail)


@router.post("/{community_id}/invite", response_model=OkResponse)
async def invite_to_community(
    community_id: int,
    payload: InviteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> OkResponse:
    """Invite a user; only owners and leaders may invite."""
    community_service.invite_user(db, current_user, community_id, payload.user_id)
    return OkResponse()


@router.post("/{community_id}/request-join", response_model=OkResponse)
async def request_to_join(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> OkResponse:
    community_service.request_to_join(db, current_user, community_id)
    return OkResponse()


@router.post("/{community_id}/hero-image", response_model=HeroImageEnvelope)
async def upload_hero_image(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    storage: HeroImageStorageDep,
    hero_image: Annotated[UploadFile, File(alias="heroImage")],
) -> HeroImageEnvelope:
    """Replace the community hero image (multipart field `heroImage`)."""
    # Read one byte past the limit so oversized uploads are detected without buffering them.
    content = await hero_image.read(storage.max_bytes + 1)
    url = community_service.set_hero_image(
        db,
        current_user,
        community_id,
        content=content,
        content_type=hero_image.content_type,
        filename=hero_image.filename,
        storage=storage,
    )
    return HeroImageEnvelope(hero_image_url=url)
