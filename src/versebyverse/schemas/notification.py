"""Notification Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from .common import APIModel, OkResponse


class NotificationResponse(APIModel):
    id: int
    type: str
    message: str
    community_id: int | None
    actor_id: int | None
    actor_name: str | None = None
    post_id: int | None
    target_kind: str | None
    target_id: int | None
    read_at: datetime | None
    status: str
    created_at: datetime


class NotificationAction(APIModel):
    """Body of `POST /notifications/{id}/act`; `action` is accept or decline."""

    action: str = ""


class NotificationEnvelope(OkResponse):
    notification: NotificationResponse


class NotificationListEnvelope(OkResponse):
    notifications: list[NotificationResponse]


class MarkAllReadEnvelope(OkResponse):
    updated: int


class DeleteEnvelope(OkResponse):
    deleted: int
