"""Pydantic schemas for Notification API."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from domain.entities.notification import (
    DeliveryOutcome,
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    RecipientDelivery,
)


class NotificationResponse(BaseModel):
    """Single notification in the in-app feed."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    channels: list[NotificationChannel]
    status: NotificationStatus
    data: dict[str, Any] | None = None
    is_read: bool
    created_at: datetime
    sent_at: datetime | None = None
    read_at: datetime | None = None
    expires_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationResponse":
        return cls.model_validate(notification)


class NotificationListResponse(BaseModel):
    """In-app notification feed response."""

    data: list[NotificationResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class UnreadCountResponse(BaseModel):
    """Unread notification count response."""

    count: int


class MarkAllReadResponse(BaseModel):
    """Response for mark-all-read operation."""

    count: int  # Number of notifications marked


class EventRequest(BaseModel):
    """Domain event to dispatch.

    ``type`` and ``priority`` are plain strings so unknown values reach the
    manager and come back as structured 400 errors instead of 422s.
    """

    type: str = Field(..., min_length=1, examples=["BUDGET_ALERT"])
    user_id: str | list[str] = Field(..., examples=["user-1"])
    data: dict[str, Any] = Field(default_factory=dict)
    priority: str | None = Field(None, examples=["HIGH"])


class DeliveryResultResponse(BaseModel):
    """Outcome of one channel attempt."""

    model_config = ConfigDict(from_attributes=True)

    channel: NotificationChannel
    success: bool
    error: str | None = None
    delivered_at: datetime | None = None


class RecipientDeliveryResponse(BaseModel):
    """Per-recipient outcome of an event."""

    user_id: str
    notification_id: str
    outcome: DeliveryOutcome
    status: NotificationStatus
    priority: NotificationPriority
    channels: list[NotificationChannel]
    results: list[DeliveryResultResponse]
    error: str | None = None

    @classmethod
    def from_entity(cls, delivery: RecipientDelivery) -> "RecipientDeliveryResponse":
        return cls(
            user_id=delivery.user_id,
            notification_id=delivery.notification.id,
            outcome=delivery.outcome,
            status=delivery.notification.status,
            priority=delivery.notification.priority,
            channels=list(delivery.notification.channels),
            results=[_result(r) for r in delivery.results],
            error=delivery.error,
        )


class EventResponse(BaseModel):
    """Response for a dispatched event."""

    data: list[RecipientDeliveryResponse]


def _result(result: DeliveryResult) -> DeliveryResultResponse:
    return DeliveryResultResponse.model_validate(result)
