"""Community lifecycle, discovery, membership requests and counter upkeep."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from versebyverse.core.errors import ConflictError, NotFoundError
from versebyverse.db.time import utcnow
from versebyverse.models import (
    Community,
    CommunityMembership,
    CommunityPost,
    CommunityReply,
    MembershipRole,
    Notification,
    NotificationStatus,
    NotificationType,
    User,
)
from versebyverse.schemas.community import (
    CommunityCreate,
    CommunityDetail,
    CommunityMember,
    CommunitySummary,
    UserSummary,
)

from .memberships import get_community_or_404, get_membership, require_manager
from .notification_service import create_notification
from .uploads import HeroImageStorage

logger = logging.getLogger(__name__)

DISCOVER_LIMIT = 50

# Inclusive member-count bounds; None means unbounded.
SIZE_BUCKETS: dict[str, tuple[int, int | None]] = {
    "small": (2, 10),
    "medium": (11, 30),
    "large": (31, None),
}
ACTIVITY_WINDOWS_DAYS = (7, 30, 90)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so user text matches literally (escape char is backslash)."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def summarize(community: Community, role: str | None) -> CommunitySummary:
    summary = CommunitySummary.model_validate(community)
    return summary.model_copy(update={"role": role, "my": role is not None})


def create_community(db: Session, owner: User, payload: CommunityCreate) -> Community:
    """Create a community with `owner` as its first member."""
    community = Community(
        header=payload.header,
        subheader=payload.subheader,
        content=payload.content,
        type=payload.type,
        owner_id=owner.id,
        members_count=1,
        last_activity_at=utcnow(),
    )
    db.add(community)
    db.flush()
    db.add(
        CommunityMembership(
            community_id=community.id,
            user_id=owner.id,
            role=MembershipRole.OWNER.value,
        )
    )
    db.commit()
    db.refresh(community)
    logger.info("User %s created community %s", owner.id, community.id)
    return community


def list_my_communities(db: Session, user: User) -> list[tuple[Community, str]]:
    rows = (
        db.query(Community, CommunityMembership.role)
        .join(CommunityMembership, CommunityMembership.community_id == Community.id)
        .filter(CommunityMembership.user_id == user.id)
        .order_by(Community.last_activity_at.desc(), Community.id.desc())
        .all()
    )
    return [(community, role) for community, role in rows]


def _activity_days(activity: str | None) -> int | None:
    if not activity:
        return None
    digits = activity.strip().lower().rstrip("d")
    if not digits.isdigit():
        return None
    days = int(digits)
    return days if days in ACTIVITY_WINDOWS_DAYS else None


def discover_communities(
    db: Session,
    user: User | None,
    *,
    q: str | None = None,
    type: str | None = None,
    size: str | None = None,
    activity: str | None = None,
) -> list[Community]:
    """Browse communities; authenticated callers never see ones they already joined."""
    query = db.query(Community)

    text = (q or "").strip()
    if text:
        pattern = f"%{escape_like(text)}%"
        query = query.filter(
            or_(
                Community.header.ilike(pattern, escape="\\"),
                Community.subheader.ilike(pattern, escape="\\"),
                Community.content.ilike(pattern, escape="\\"),
            )
        )

    if type:
        query = query.filter(Community.type == type)

    bucket = SIZE_BUCKETS.get((size or "").lower())
    if bucket is not None:
        lower, upper = bucket
        query = query.filter(Community.members_count >= lower)
        if upper is not None:
            query = query.filter(Community.members_count <= upper)

    days = _activity_days(activity)
    if days is not None:
        query = query.filter(Community.last_activity_at >= utcnow() - timedelta(days=days))

    if user is not None:
        joined = select(CommunityMembership.community_id).where(
            CommunityMembership.user_id == user.id
        )
        query = query.filter(Community.id.not_in(joined))

    return (
        query.order_by(Community.last_activity_at.desc(), Community.id.desc())
        .limit(DISCOVER_LIMIT)
        .all()
    )


def get_community_detail(db: Session, community_id: int, viewer: User | None) -> CommunityDetail:
    """Community with owner, leaders and every member with their role."""
    community = get_community_or_404(db, community_id)
    memberships = (
        db.query(CommunityMembership)
        .filter(CommunityMembership.community_id == community.id)
        .order_by(CommunityMembership.joined_at, CommunityMembership.id)
        .all()
    )

    viewer_role = None
    if viewer is not None:
        viewer_role = next(
            (m.role for m in memberships if m.user_id == viewer.id),
            None,
        )

    summary = summarize(community, viewer_role)
    return CommunityDetail(
        **summary.model_dump(),
        owner=UserSummary.model_validate(community.owner),
        leaders=[
            UserSummary.model_validate(m.user)
            for m in memberships
            if m.role == MembershipRole.LEADER.value
        ],
        members=[
            CommunityMember(
                user=UserSummary.model_validate(m.user),
                role=m.role,
                joined_at=m.joined_at,
            )
            for m in memberships
        ],
    )


def invite_user(db: Session, inviter: User, community_id: int, invitee_id: int) -> Notification:
    """Send a COMMUNITY_INVITE to `invitee_id`; membership is created on accept."""
    community = get_community_or_404(db, community_id)
    require_manager(db, community.id, inviter)

    invitee = db.get(User, invitee_id)
    if invitee is None:
        raise NotFoundError("User to invite not found")
    if get_membership(db, community.id, invitee.id) is not None:
        raise ConflictError("User is already a member of this community")

    notification = create_notification(
        db,
        user_id=invitee.id,
        type=NotificationType.COMMUNITY_INVITE,
        message=f"{inviter.display_name} has invited you to join {community.header}.",
        community_id=community.id,
        actor_id=inviter.id,
    )
    db.commit()
    logger.info("User %s invited user %s to community %s", inviter.id, invitee.id, community.id)
    return notification


def request_to_join(db: Session, requester: User, community_id: int) -> Notification:
    """Ask the owner for membership; repeated pending requests are not duplicated."""
    community = get_community_or_404(db, community_id)
    if get_membership(db, community.id, requester.id) is not None:
        raise ConflictError("Already a member of this community")

    pending = (
        db.query(Notification)
        .filter(
            Notification.user_id == community.owner_id,
            Notification.actor_id == requester.id,
            Notification.community_id == community.id,
            Notification.type == NotificationType.COMMUNITY_JOIN_REQUEST.value,
            Notification.status == NotificationStatus.PENDING.value,
        )
        .first()
    )
    if pending is not None:
        return pending

    notification = create_notification(
        db,
        user_id=community.owner_id,
        type=NotificationType.COMMUNITY_JOIN_REQUEST,
        message=f"{requester.display_name} has requested to join {community.header}.",
        community_id=community.id,
        actor_id=requester.id,
    )
    db.commit()
    return notification


def set_hero_image(
    db: Session,
    actor: User,
    community_id: int,
    *,
    content: bytes,
    content_type: str | None,
    filename: str | None,
    storage: HeroImageStorage,
) -> str:
    """Store a new hero image and replace the community's previous one."""
    community = get_community_or_404(db, community_id)
    require_manager(db, community.id, actor)

    url = storage.save(content, content_type, filename)
    previous = community.hero_image_url
    community.hero_image_url = url
    db.commit()
    if previous and previous != url:
        storage.remove(previous)
    return url


@dataclass
class ReconcileReport:
    communities_fixed: int = 0
    posts_fixed: int = 0


def reconcile_counts(db: Session) -> ReconcileReport:
    """Recompute `members_count` and `reply_count` from the rows they summarize."""
    report = ReconcileReport()

    member_counts = dict(
        db.query(CommunityMembership.community_id, func.count(CommunityMembership.id))
        .group_by(CommunityMembership.community_id)
        .all()
    )
    for community in db.query(Community).all():
        # The owner always counts, even if their membership row is missing.
        actual = max(member_counts.get(community.id, 0), 1)
        if community.members_count != actual:
            logger.warning(
                "Community %s members_count %s != %s", community.id, community.members_count, actual
            )
            community.members_count = actual
            report.communities_fixed += 1

    reply_counts = dict(
        db.query(CommunityReply.post_id, func.count(CommunityReply.id))
        .group_by(CommunityReply.post_id)
        .all()
    )
    for post in db.query(CommunityPost).all():
        actual = reply_counts.get(post.id, 0)
        if post.reply_count != actual:
            logger.warning("Post %s reply_count %s != %s", post.id, post.reply_count, actual)
            post.reply_count = actual
            report.posts_fixed += 1

    db.commit()
    logger.info(
        "Reconciled counters: %d communities, %d posts",
        report.communities_fixed,
        report.posts_fixed,
    )
    return report
