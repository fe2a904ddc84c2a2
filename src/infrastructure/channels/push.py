"""Push channel: native notifications through an ``IPushGateway``."""

from collections.abc import Sequence

import structlog

from domain.entities.notification import (
    TYPE_ICONS,
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from infrastructure.channels.push_gateway import (
    IPushGateway,
    PushAction,
    PushMessage,
    PushPermission,
)

logger = structlog.get_logger()

MAX_TITLE_LENGTH = 100
MAX_MESSAGE_LENGTH = 300
VIBRATE_PATTERN = [200, 100, 200]

_TYPE_ACTIONS: dict[NotificationType, list[PushAction]] = {
    NotificationType.FRIEND_REQUEST: [
        PushAction("accept", "Accept"),
        PushAction("reject", "Reject"),
    ],
    NotificationType.PAYMENT_REMINDER: [
        PushAction("pay", "Pay Now"),
        PushAction("view", "View Details"),
    ],
    NotificationType.BUDGET_ALERT: [PushAction("view", "View Budget")],
    NotificationType.EXPENSE_ADDED: [PushAction("view", "View Expense")],
}


class PushNotificationStrategy:
    """Push delivery; LOW priority is never pushed."""

    def __init__(self, gateway: IPushGateway) -> None:
        self._gateway = gateway

    def get_channel(self) -> NotificationChannel:
        return NotificationChannel.PUSH

    def can_handle(self, notification: Notification) -> bool:
        return NotificationChannel.PUSH in notification.channels and self._gateway.is_supported()

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        return (NotificationPriority.MEDIUM, NotificationPriority.HIGH, NotificationPriority.URGENT)

    def validate(self, notification: Notification) -> str | None:
        if not notification.title or not notification.title.strip():
            return "Notification title is required"
        if len(notification.title) > MAX_TITLE_LENGTH:
            return f"Notification title too long (max {MAX_TITLE_LENGTH} characters)"
        if len(notification.message) > MAX_MESSAGE_LENGTH:
            return f"Notification message too long (max {MAX_MESSAGE_LENGTH} characters)"
        return None

    def is_enabled(self) -> bool:
        return self._gateway.is_supported() and self._gateway.permission == PushPermission.GRANTED

    async def request_permission(self) -> PushPermission:
        if not self._gateway.is_supported():
            return PushPermission.DENIED
        return await self._gateway.request_permission()

    async def send(self, notification: Notification) -> DeliveryResult:
        channel = NotificationChannel.PUSH
        try:
            if not self._gateway.is_supported():
                return DeliveryResult.failed(channel, "Push notifications not supported")

            error = self.validate(notification)
            if error:
                return DeliveryResult.failed(channel, error)

            if self._gateway.permission != PushPermission.GRANTED:
                if await self._gateway.request_permission() != PushPermission.GRANTED:
                    return DeliveryResult.failed(channel, "Push notification permission denied")

            await self._gateway.show(notification.user_id, self.build_message(notification))
        except Exception as e:
            logger.warning(
                "push_delivery_failed",
                notification_id=notification.id,
                error=str(e) or type(e).__name__,
            )
            return DeliveryResult.failed(channel, str(e) or "Unknown error")

        return DeliveryResult.ok(channel)

    @staticmethod
    def build_message(notification: Notification) -> PushMessage:
        urgent_or_high = notification.priority in (
            NotificationPriority.HIGH,
            NotificationPriority.URGENT,
        )
        return PushMessage(
            title=notification.title,
            body=notification.message,
            tag=notification.id,
            icon=TYPE_ICONS.get(notification.type, "📬"),
            data=notification.data,
            require_interaction=notification.priority == NotificationPriority.URGENT,
            vibrate=list(VIBRATE_PATTERN) if urgent_or_high else None,
            actions=list(_TYPE_ACTIONS.get(notification.type, [])),
        )
