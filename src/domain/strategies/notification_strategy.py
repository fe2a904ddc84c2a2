"""Channel strategy protocol."""

from collections.abc import Sequence
from typing import Protocol

from domain.entities.notification import (
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
)


class INotificationStrategy(Protocol):
    """Protocol for a single delivery channel.

    Implementations never raise from ``send``: validation and transport
    problems come back as a failed ``DeliveryResult`` so sibling channels
    of the same delivery attempt are unaffected.
    """

    def get_channel(self) -> NotificationChannel:
        """The channel this strategy implements."""
        ...

    def can_handle(self, notification: Notification) -> bool:
        """
        Check whether the notification is eligible for this channel.

        True when the notification's channels include this channel and any
        channel-specific precondition holds.
        """
        ...

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        """Priorities this channel accepts."""
        ...

    def validate(self, notification: Notification) -> str | None:
        """Return a failure reason, or None when the content is acceptable."""
        ...

    async def send(self, notification: Notification) -> DeliveryResult:
        """Format and transmit the notification."""
        ...


def supports(strategy: INotificationStrategy, notification: Notification) -> bool:
    """Channel eligibility: ``can_handle`` and priority support both hold."""
    return strategy.can_handle(notification) and (
        notification.priority in strategy.get_supported_priorities()
    )
