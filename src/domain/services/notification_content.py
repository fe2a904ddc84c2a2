"""Title, message and default priority for each notification type."""

import math
from collections.abc import Mapping
from typing import Any

from core.exceptions import MalformedEventError
from domain.entities.notification import NotificationPriority, NotificationType

# Payload keys each type's message needs.
REQUIRED_DATA_KEYS: dict[NotificationType, tuple[str, ...]] = {
    NotificationType.BUDGET_ALERT: ("category", "spent", "limit"),
    NotificationType.EXPENSE_ADDED: ("description", "amount", "paidBy"),
    NotificationType.PAYMENT_REMINDER: ("amount", "friendName"),
    NotificationType.FRIEND_REQUEST: ("fromUserName",),
    NotificationType.GROUP_INVITE: ("groupName", "invitedBy"),
    NotificationType.SETTLEMENT_REMINDER: ("amount", "friendName"),
    NotificationType.RECURRING_EXPENSE: ("description", "amount"),
    NotificationType.DEBT_SETTLED: ("amount", "settledWith"),
}

# Payload keys that drive priority and must be numbers when present.
NUMERIC_DATA_KEYS: dict[NotificationType, tuple[str, ...]] = {
    NotificationType.BUDGET_ALERT: ("spent", "limit", "percentage"),
    NotificationType.PAYMENT_REMINDER: ("daysUntilDue",),
}
_WHOLE_NUMBER_KEYS = frozenset({"daysUntilDue"})

_STATIC_PRIORITIES: dict[NotificationType, NotificationPriority] = {
    NotificationType.EXPENSE_ADDED: NotificationPriority.LOW,
    NotificationType.FRIEND_REQUEST: NotificationPriority.MEDIUM,
    NotificationType.GROUP_INVITE: NotificationPriority.MEDIUM,
    NotificationType.SETTLEMENT_REMINDER: NotificationPriority.MEDIUM,
    NotificationType.RECURRING_EXPENSE: NotificationPriority.MEDIUM,
    NotificationType.DEBT_SETTLED: NotificationPriority.LOW,
}


def format_amount(value: Any) -> str:
    """Render an amount without trailing zeros: 950 -> "950", 12.5 -> "12.5"."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return str(value)
    return f"{number:,.2f}".rstrip("0").rstrip(".")


def round_percentage(value: float) -> int:
    """Round half up, so 89.5 reads as 90 both in text and in priority."""
    return math.floor(value + 0.5)


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _number(data: Mapping[str, Any], key: str) -> float:
    number = _to_number(data.get(key))
    if number is None:
        raise MalformedEventError(
            f"Event data field {key} must be a number", details={"invalid": [key]}
        )
    return number


def budget_percentage(data: Mapping[str, Any]) -> int:
    """Rounded percentage of the budget used, from ``percentage`` or ``spent``/``limit``."""
    if data.get("percentage") is not None:
        return round_percentage(_number(data, "percentage"))
    limit = _number(data, "limit")
    if limit <= 0:
        return 100
    return round_percentage(_number(data, "spent") / limit * 100)


def days_until_due(data: Mapping[str, Any]) -> int | None:
    if data.get("daysUntilDue") is None:
        return None
    return int(_number(data, "daysUntilDue"))


def priority_for_budget(percentage: float) -> NotificationPriority:
    if percentage >= 100:
        return NotificationPriority.URGENT
    if percentage >= 90:
        return NotificationPriority.HIGH
    return NotificationPriority.MEDIUM


def priority_for_due_date(days_until_due: int | None) -> NotificationPriority:
    if days_until_due is None:
        return NotificationPriority.MEDIUM
    if days_until_due < 0:
        return NotificationPriority.URGENT
    if days_until_due <= 1:
        return NotificationPriority.HIGH
    return NotificationPriority.MEDIUM


class NotificationContentBuilder:
    """Turns an event payload into user-facing notification text."""

    def __init__(self, currency_symbol: str = "৳") -> None:
        self._currency = currency_symbol

    def check_payload(self, notification_type: NotificationType, data: Mapping[str, Any]) -> None:
        """Raise ``MalformedEventError`` for missing keys or non-numeric priority inputs."""
        missing = [key for key in REQUIRED_DATA_KEYS[notification_type] if data.get(key) is None]
        if missing:
            raise MalformedEventError(
                f"Event {notification_type.value} is missing data: {', '.join(missing)}",
                details={"missing": missing},
            )

        invalid = []
        for key in NUMERIC_DATA_KEYS.get(notification_type, ()):
            if data.get(key) is None:
                continue
            number = _to_number(data[key])
            if number is None or (key in _WHOLE_NUMBER_KEYS and not number.is_integer()):
                invalid.append(key)
        if invalid:
            raise MalformedEventError(
                f"Event {notification_type.value} has non-numeric data: {', '.join(invalid)}",
                details={"invalid": invalid},
            )

    def default_priority(
        self, notification_type: NotificationType, data: Mapping[str, Any]
    ) -> NotificationPriority:
        if notification_type == NotificationType.BUDGET_ALERT:
            return priority_for_budget(budget_percentage(data))
        if notification_type == NotificationType.PAYMENT_REMINDER:
            return priority_for_due_date(days_until_due(data))
        return _STATIC_PRIORITIES[notification_type]

    def build(self, notification_type: NotificationType, data: Mapping[str, Any]) -> tuple[str, str]:
        """Return ``(title, message)`` for the event."""
        money = self._money

        match notification_type:
            case NotificationType.BUDGET_ALERT:
                category = data["category"]
                percentage = budget_percentage(data)
                spent, limit = money(data["spent"]), money(data["limit"])
                if percentage >= 100:
                    return (
                        f"Budget Exceeded: {category}",
                        f"You've exceeded your {category} budget! Spent {spent} of {limit}",
                    )
                return (
                    f"Budget Alert: {category}",
                    f"You've used {percentage}% of your {category} budget "
                    f"({spent} of {limit})",
                )
            case NotificationType.EXPENSE_ADDED:
                where = f" in {data['groupName']}" if data.get("groupName") else ""
                return (
                    f"New Expense{where}",
                    f"{data['paidBy']} added {money(data['amount'])} for {data['description']}",
                )
            case NotificationType.PAYMENT_REMINDER:
                return "Payment Reminder", self._payment_message(data)
            case NotificationType.FRIEND_REQUEST:
                return (
                    "New Friend Request",
                    f"{data['fromUserName']} sent you a friend request",
                )
            case NotificationType.GROUP_INVITE:
                return (
                    "Group Invitation",
                    f"{data['invitedBy']} invited you to join {data['groupName']}",
                )
            case NotificationType.SETTLEMENT_REMINDER:
                return (
                    "Settlement Reminder",
                    f"You owe {money(data['amount'])} to {data['friendName']}",
                )
            case NotificationType.RECURRING_EXPENSE:
                return (
                    "Recurring Expense Due",
                    f"Your recurring expense \"{data['description']}\" "
                    f"({money(data['amount'])}) is due soon",
                )
            case NotificationType.DEBT_SETTLED:
                via = f" via {data['paymentMethod']}" if data.get("paymentMethod") else ""
                return (
                    "Debt Settled",
                    f"Your debt of {money(data['amount'])} with {data['settledWith']} "
                    f"has been settled{via}",
                )
        raise MalformedEventError(f"No content template for {notification_type}")

    def _money(self, value: Any) -> str:
        return f"{self._currency}{format_amount(value)}"

    def _payment_message(self, data: Mapping[str, Any]) -> str:
        base = f"Your payment of {self._money(data['amount'])} to {data['friendName']}"
        days = days_until_due(data)
        if days is None:
            return f"{base} is due soon"
        if days < 0:
            return f"{base} is overdue by {abs(days)} day{'s' if abs(days) != 1 else ''}"
        if days == 0:
            return f"{base} is due today"
        return f"{base} is due in {days} day{'s' if days != 1 else ''}"
