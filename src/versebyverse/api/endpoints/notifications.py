"""Notification inbox endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from versebyverse.schemas.notification import (
    DeleteEnvelope,
    MarkAllReadEnvelope,
    NotificationAction,
    NotificationEnvelope,
    NotificationListEnvelope,
    NotificationResponse,
)
from versebyverse.services import notification_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListEnvelope)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    unread: bool = False,
) -> NotificationListEnvelope:
    """List the caller's latest notifications, optionally only unread ones."""
    notifications = notification_service.list_notifications(db, current_user, unread_only=unread)
    return NotificationListEnvelope(
        notifications=[NotificationResponse.model_validate(n) for n in notifications]
    )


@router.delete("", response_model=DeleteEnvelope)
async def delete_all_notifications(current_user: CurrentUserDep, db: SessionDep) -> DeleteEnvelope:
    deleted = notification_service.delete_all_notifications(db, current_user)
    return DeleteEnvelope(deleted=deleted)


@router.post("/read-all", response_model=MarkAllReadEnvelope)
async def mark_all_read(current_user: CurrentUserDep, db: SessionDep) -> MarkAllReadEnvelope:
    updated = notification_service.mark_all_read(db, current_user)
    return MarkAllReadEnvelope(updated=updated)


@router.post("/{notification_id}/read", response_model=NotificationEnvelope)
async def mark_read(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationEnvelope:
    notification = notification_service.mark_read(db, current_user, notification_id)
    return NotificationEnvelope(notification=NotificationResponse.model_validate(notification))


@router.delete("/{notification_id}", response_model=DeleteEnvelope)
async def delete_notification(
    notification_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> DeleteEnvelope:
    deleted = notification_service.delete_notification(db, current_user, notification_id)
    return DeleteEnvelope(deleted=deleted)


@router.post("/{notification_id}/act", response_model=NotificationEnvelope)
async def act_on_notification(
    notification_id: int,
    payload: NotificationAction,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationEnvelope:
    """Accept or decline a pending invite or join request."""
    notification = notification_service.act_on_notification(
        db, current_user, notification_id, payload.action
    )
    return NotificationEnvelope(notification=NotificationResponse.model_validate(notification))
