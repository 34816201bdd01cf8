"""Notification creation, inbox management and the accept/decline workflow."""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from versebyverse.core.errors import NotFoundError, ValidationError
from versebyverse.db.time import utcnow
from versebyverse.models import (
    ACTIONABLE_TYPES,
    Community,
    Notification,
    NotificationStatus,
    NotificationType,
    User,
)

from .memberships import add_member

logger = logging.getLogger(__name__)

LIST_LIMIT = 50
ACTIONS = {"accept": NotificationStatus.ACCEPTED, "decline": NotificationStatus.DECLINED}


def create_notification(
    db: Session,
    *,
    user_id: int,
    type: NotificationType,
    message: str,
    community_id: int | None = None,
    actor_id: int | None = None,
    post_id: int | None = None,
    target_kind: str | None = None,
    target_id: int | None = None,
    status: NotificationStatus = NotificationStatus.PENDING,
) -> Notification:
    """Add a notification to the session; the caller owns the commit."""
    notification = Notification(
        user_id=user_id,
        type=type.value,
        message=message,
        community_id=community_id,
        actor_id=actor_id,
        post_id=post_id,
        target_kind=target_kind,
        target_id=target_id,
        status=status.value,
    )
    db.add(notification)
    return notification


def list_notifications(db: Session, user: User, unread_only: bool = False) -> list[Notification]:
    query = db.query(Notification).filter(Notification.user_id == user.id)
    if unread_only:
        query = query.filter(Notification.read_at.is_(None))
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(LIST_LIMIT)
        .all()
    )


def _get_owned(db: Session, user: User, notification_id: int) -> Notification:
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user.id)
        .first()
    )
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(db: Session, user: User, notification_id: int) -> Notification:
    notification = _get_owned(db, user, notification_id)
    notification.read_at = utcnow()
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user: User) -> int:
    """Stamp every unread notification of `user`; returns how many were updated."""
    updated = (
        db.query(Notification)
        .filter(Notification.user_id == user.id, Notification.read_at.is_(None))
        .update({Notification.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, user: User, notification_id: int) -> int:
    deleted = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user.id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("Notification not found")
    db.commit()
    return deleted


def delete_all_notifications(db: Session, user: User) -> int:
    deleted = (
        db.query(Notification)
        .filter(Notification.user_id == user.id)
        .delete(synchronize_session=False)
    )
    if not deleted:
        raise NotFoundError("No notifications to delete")
    db.commit()
    return deleted


def _resolve(notification: Notification, status: NotificationStatus) -> None:
    notification.status = status.value
    notification.read_at = utcnow()


def act_on_notification(db: Session, user: User, notification_id: int, action: str) -> Notification:
    """Accept or decline a pending invite or join request addressed to `user`.

    Accepting a join request makes the requester (the notification's actor) a
    Member and tells them so; accepting an invite makes `user` a Member. The
    membership insert is idempotent and `members_count` only moves with it.
    """
    if action not in ACTIONS:
        raise ValidationError("Invalid action")

    notification = _get_owned(db, user, notification_id)
    if (
        notification.type not in ACTIONABLE_TYPES
        or notification.status != NotificationStatus.PENDING.value
    ):
        raise ValidationError("Notification is not actionable")

    community = (
        db.get(Community, notification.community_id)
        if notification.community_id is not None
        else None
    )
    if community is None:
        _resolve(notification, NotificationStatus.DECLINED)
        db.commit()
        raise NotFoundError("Community not found")

    status = ACTIONS[action]
    if status is NotificationStatus.ACCEPTED:
        if notification.type == NotificationType.COMMUNITY_JOIN_REQUEST.value:
            requester_id = notification.actor_id
            if requester_id is None:
                raise ValidationError("Join request has no requester")
            inserted = add_member(db, community, requester_id)
            create_notification(
                db,
                user_id=requester_id,
                type=NotificationType.COMMUNITY_INVITE,
                message=f"Your request to join {community.header} was accepted.",
                community_id=community.id,
                actor_id=user.id,
                status=NotificationStatus.ACCEPTED,
            )
            new_member_id = requester_id
        else:
            inserted = add_member(db, community, user.id)
            new_member_id = user.id
        if inserted:
            community.touch()
            logger.info("User %s joined community %s", new_member_id, community.id)

    _resolve(notification, status)
    db.commit()
    db.refresh(notification)
    return notification
