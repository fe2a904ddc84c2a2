"""SMS channel: short text messages sent through the SMS endpoint."""

import math
from collections.abc import Sequence
from typing import Any

import httpx

from domain.entities.notification import (
    TYPE_ICONS,
    Notification,
    NotificationChannel,
    NotificationPriority,
)
from infrastructure.channels.http_channel import HttpChannelStrategy

MAX_SMS_LENGTH = 160
SEGMENT_LENGTH = 153  # per part of a concatenated message
BODY_LENGTH = 140  # leaves room for the signature


class SMSNotificationStrategy(HttpChannelStrategy):
    """SMS delivery, restricted to HIGH and URGENT traffic."""

    channel = NotificationChannel.SMS

    def __init__(
        self,
        endpoint: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        signature: str = "- Expense Manager",
        cost_per_segment: float = 0.0075,
    ) -> None:
        super().__init__(endpoint, client=client, timeout=timeout)
        self._signature = signature
        self._cost_per_segment = cost_per_segment

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        return (NotificationPriority.HIGH, NotificationPriority.URGENT)

    def validate(self, notification: Notification) -> str | None:
        if not notification.message or not notification.message.strip():
            return "SMS content is required"
        if len(notification.message) > MAX_SMS_LENGTH:
            return f"SMS message too long (max {MAX_SMS_LENGTH} characters)"
        return None

    def build_payload(self, notification: Notification) -> dict[str, Any]:
        return {
            "notificationId": notification.id,
            "userId": notification.user_id,
            "message": self.format_content(notification),
            "priority": notification.priority.value,
        }

    def format_content(self, notification: Notification) -> str:
        icon = TYPE_ICONS.get(notification.type, "📱")
        prefix = "🚨 URGENT: " if notification.priority == NotificationPriority.URGENT else ""
        text = f"{icon} {prefix}{notification.title}\n\n{notification.message}"
        if len(text) > BODY_LENGTH:
            text = text[: BODY_LENGTH - 3] + "..."
        return f"{text}\n\n{self._signature}"

    def estimate_cost(self, message: str) -> float:
        """Estimated price of sending ``message``, by 153-character segment."""
        segments = math.ceil(len(message) / SEGMENT_LENGTH)
        return segments * self._cost_per_segment

    @staticmethod
    def will_split(message: str) -> bool:
        return len(message) > MAX_SMS_LENGTH
