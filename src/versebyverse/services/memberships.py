"""Membership lookups and the guarded member insert shared by services."""
from __future__ import annotations

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from versebyverse.core.errors import AuthorizationError, NotFoundError
from versebyverse.models import (
    MANAGER_ROLES,
    Community,
    CommunityMembership,
    MembershipRole,
    User,
)


def get_community_or_404(db: Session, community_id: int) -> Community:
    community = db.get(Community, community_id)
    if community is None:
        raise NotFoundError("Community not found")
    return community


def get_membership(db: Session, community_id: int, user_id: int) -> CommunityMembership | None:
    return (
        db.query(CommunityMembership)
        .filter(
            CommunityMembership.community_id == community_id,
            CommunityMembership.user_id == user_id,
        )
        .first()
    )


def require_membership(db: Session, community_id: int, user: User) -> CommunityMembership:
    """Return the caller's membership or raise 403."""
    membership = get_membership(db, community_id, user.id)
    if membership is None:
        raise AuthorizationError("You must be a member of this community")
    return membership


def require_manager(db: Session, community_id: int, user: User) -> CommunityMembership:
    """Return the caller's membership if it is Owner or Leader, else raise 403."""
    membership = get_membership(db, community_id, user.id)
    if membership is None or membership.role not in MANAGER_ROLES:
        raise AuthorizationError("Only owners and leaders can do this")
    return membership


def add_member(
    db: Session,
    community: Community,
    user_id: int,
    role: MembershipRole = MembershipRole.MEMBER,
) -> bool:
    """Insert a membership unless one exists; bump `members_count` only on insert.

    Returns True when a row was inserted. Must run before any other pending
    change in the unit of work: a unique-constraint race rolls the session back.
    """
    if get_membership(db, community.id, user_id) is not None:
        return False

    db.add(CommunityMembership(community_id=community.id, user_id=user_id, role=role.value))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return False

    community.members_count = Community.members_count + 1
    return True
