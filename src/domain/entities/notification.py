"""Notification domain entities and type constants."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any
from uuid import uuid4


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class NotificationType(StrEnum):
    """Closed set of notification-worthy domain events."""

    BUDGET_ALERT = "BUDGET_ALERT"
    EXPENSE_ADDED = "EXPENSE_ADDED"
    PAYMENT_REMINDER = "PAYMENT_REMINDER"
    FRIEND_REQUEST = "FRIEND_REQUEST"
    GROUP_INVITE = "GROUP_INVITE"
    SETTLEMENT_REMINDER = "SETTLEMENT_REMINDER"
    RECURRING_EXPENSE = "RECURRING_EXPENSE"
    DEBT_SETTLED = "DEBT_SETTLED"


class NotificationPriority(StrEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class NotificationChannel(StrEnum):
    IN_APP = "IN_APP"
    EMAIL = "EMAIL"
    SMS = "SMS"
    PUSH = "PUSH"


class NotificationStatus(StrEnum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    READ = "READ"


class NotificationCategory(StrEnum):
    """Preference categories that map to channel sets."""

    BUDGET_ALERTS = "budget_alerts"
    EXPENSE_UPDATES = "expense_updates"
    PAYMENT_REMINDERS = "payment_reminders"
    SOCIAL_UPDATES = "social_updates"


class DeliveryOutcome(StrEnum):
    """Per-recipient result of processing one event."""

    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    SUPPRESSED_NO_CHANNELS = "SUPPRESSED_NO_CHANNELS"
    SUPPRESSED_DND = "SUPPRESSED_DND"
    DEFERRED_DIGEST = "DEFERRED_DIGEST"


ALL_PRIORITIES: tuple[NotificationPriority, ...] = tuple(NotificationPriority)

# Strategy order used when seeding a delivery chain: cheap/preferred first,
# in-app last as the final fallback.
CANONICAL_CHANNEL_ORDER: tuple[NotificationChannel, ...] = (
    NotificationChannel.PUSH,
    NotificationChannel.EMAIL,
    NotificationChannel.SMS,
    NotificationChannel.IN_APP,
)

TYPE_CATEGORIES: dict[NotificationType, NotificationCategory] = {
    NotificationType.BUDGET_ALERT: NotificationCategory.BUDGET_ALERTS,
    NotificationType.EXPENSE_ADDED: NotificationCategory.EXPENSE_UPDATES,
    NotificationType.RECURRING_EXPENSE: NotificationCategory.EXPENSE_UPDATES,
    NotificationType.PAYMENT_REMINDER: NotificationCategory.PAYMENT_REMINDERS,
    NotificationType.SETTLEMENT_REMINDER: NotificationCategory.PAYMENT_REMINDERS,
    NotificationType.DEBT_SETTLED: NotificationCategory.PAYMENT_REMINDERS,
    NotificationType.FRIEND_REQUEST: NotificationCategory.SOCIAL_UPDATES,
    NotificationType.GROUP_INVITE: NotificationCategory.SOCIAL_UPDATES,
}

TYPE_ICONS: dict[NotificationType, str] = {
    NotificationType.BUDGET_ALERT: "⚠️",
    NotificationType.EXPENSE_ADDED: "💰",
    NotificationType.PAYMENT_REMINDER: "🔔",
    NotificationType.FRIEND_REQUEST: "👤",
    NotificationType.GROUP_INVITE: "👥",
    NotificationType.SETTLEMENT_REMINDER: "💸",
    NotificationType.RECURRING_EXPENSE: "🔄",
    NotificationType.DEBT_SETTLED: "✅",
}


@dataclass(frozen=True, slots=True)
class Notification:
    """One deliverable unit for one user.

    Records are never mutated; lifecycle changes go through ``with_status``
    and ``mark_read`` which return a new record.
    """

    user_id: str
    type: NotificationType
    title: str
    message: str
    priority: NotificationPriority
    id: str = field(default_factory=lambda: f"notif_{uuid4().hex}")
    channels: tuple[NotificationChannel, ...] = ()
    status: NotificationStatus = NotificationStatus.PENDING
    data: dict[str, Any] | None = None
    created_at: datetime = field(default_factory=utcnow)
    sent_at: datetime | None = None
    read_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def with_channels(self, channels: tuple[NotificationChannel, ...]) -> "Notification":
        return replace(self, channels=channels)

    def with_status(
        self, status: NotificationStatus, at: datetime | None = None
    ) -> "Notification":
        """Return a copy moved forward to ``status``.

        PENDING can become SENT or FAILED; READ is only reachable from SENT.
        """
        if status == NotificationStatus.SENT:
            return replace(self, status=status, sent_at=at or utcnow())
        if status == NotificationStatus.READ:
            return self.mark_read(at)
        return replace(self, status=status)

    def mark_read(self, at: datetime | None = None) -> "Notification":
        if self.read_at is not None:
            return self
        if self.status != NotificationStatus.SENT:
            raise ValueError(f"Cannot mark a {self.status} notification as read")
        return replace(self, status=NotificationStatus.READ, read_at=at or utcnow())


@dataclass
class NotificationEvent:
    """External trigger handed to the manager by domain collaborators."""

    type: NotificationType | str
    user_id: str | list[str]
    data: dict[str, Any] = field(default_factory=dict)
    priority: NotificationPriority | str | None = None

    @property
    def recipients(self) -> list[str]:
        if isinstance(self.user_id, str):
            return [self.user_id]
        return list(self.user_id)


@dataclass(frozen=True, slots=True)
class DeliveryResult:
    """Outcome of one channel send attempt."""

    channel: NotificationChannel
    success: bool
    error: str | None = None
    delivered_at: datetime | None = None

    @classmethod
    def ok(cls, channel: NotificationChannel) -> "DeliveryResult":
        return cls(channel=channel, success=True, delivered_at=utcnow())

    @classmethod
    def failed(cls, channel: NotificationChannel, error: str) -> "DeliveryResult":
        return cls(channel=channel, success=False, error=error)


@dataclass
class DoNotDisturb:
    enabled: bool = False
    start_time: str | None = None  # "HH:MM", local time
    end_time: str | None = None


@dataclass
class DigestSettings:
    enabled: bool = False
    delivery_time: str | None = None


def default_category_channels() -> dict[NotificationCategory, list[NotificationChannel]]:
    return {
        NotificationCategory.BUDGET_ALERTS: [
            NotificationChannel.IN_APP,
            NotificationChannel.EMAIL,
            NotificationChannel.PUSH,
        ],
        NotificationCategory.EXPENSE_UPDATES: [
            NotificationChannel.IN_APP,
            NotificationChannel.PUSH,
        ],
        NotificationCategory.PAYMENT_REMINDERS: [
            NotificationChannel.IN_APP,
            NotificationChannel.EMAIL,
            NotificationChannel.PUSH,
        ],
        NotificationCategory.SOCIAL_UPDATES: [
            NotificationChannel.IN_APP,
            NotificationChannel.PUSH,
        ],
    }


@dataclass
class NotificationPreferences:
    """Per-user delivery policy."""

    user_id: str
    channels: dict[NotificationCategory, list[NotificationChannel]] = field(
        default_factory=default_category_channels
    )
    do_not_disturb: DoNotDisturb = field(default_factory=DoNotDisturb)
    digest: DigestSettings = field(default_factory=DigestSettings)

    def channels_for(self, category: NotificationCategory) -> list[NotificationChannel]:
        return list(self.channels.get(category, []))


@dataclass
class RecipientDelivery:
    """Aggregated result of processing one recipient of an event."""

    user_id: str
    notification: Notification
    outcome: DeliveryOutcome
    results: list[DeliveryResult] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return any(result.success for result in self.results)
