"""Event builders for the domain actions that raise notifications."""

import math
from collections.abc import Callable
from datetime import datetime, timezone

from domain.entities.notification import (
    NotificationEvent,
    NotificationType,
    RecipientDelivery,
    utcnow,
)
from domain.services.notification_content import (
    priority_for_budget,
    priority_for_due_date,
    round_percentage,
)
from domain.services.notification_manager import NotificationManager

SECONDS_PER_DAY = 24 * 60 * 60


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_until(due_date: datetime, now: datetime) -> int:
    """Whole days until ``due_date``, rounded up; negative once overdue."""
    seconds = (_as_utc(due_date) - _as_utc(now)).total_seconds()
    return math.ceil(seconds / SECONDS_PER_DAY)


class NotificationTriggers:
    """Builds notification events for expenses, budgets, friends and groups."""

    def __init__(
        self,
        manager: NotificationManager,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._manager = manager
        self._clock = clock

    async def budget_alert(
        self, user_id: str, category: str, spent: float, limit: float
    ) -> list[RecipientDelivery]:
        percentage = round_percentage(spent / limit * 100) if limit > 0 else 100
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.BUDGET_ALERT,
                user_id=user_id,
                data={
                    "category": category,
                    "spent": spent,
                    "limit": limit,
                    "percentage": percentage,
                },
                priority=priority_for_budget(percentage),
            )
        )

    async def expense_added(
        self,
        user_ids: list[str],
        description: str,
        amount: float,
        paid_by: str,
        group_name: str,
        category: str,
        group_id: str,
    ) -> list[RecipientDelivery]:
        """Notify group members (except the payer) about a new expense."""
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.EXPENSE_ADDED,
                user_id=list(user_ids),
                data={
                    "description": description,
                    "amount": amount,
                    "paidBy": paid_by,
                    "groupName": group_name,
                    "category": category,
                    "actionUrl": f"/groups?groupId={group_id}",
                },
            )
        )

    async def payment_reminder(
        self,
        user_id: str,
        amount: float,
        friend_name: str,
        due_date: datetime,
        friend_id: str,
    ) -> list[RecipientDelivery]:
        days = days_until(due_date, self._clock())
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.PAYMENT_REMINDER,
                user_id=user_id,
                data={
                    "amount": amount,
                    "friendName": friend_name,
                    "dueDate": _as_utc(due_date).isoformat(),
                    "daysUntilDue": days,
                    "actionUrl": f"/friends?friendId={friend_id}",
                },
                priority=priority_for_due_date(days),
            )
        )

    async def friend_request(
        self, to_user_id: str, from_user_name: str, from_user_id: str
    ) -> list[RecipientDelivery]:
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.FRIEND_REQUEST,
                user_id=to_user_id,
                data={
                    "fromUserName": from_user_name,
                    "fromUserId": from_user_id,
                    "actionUrl": f"/friends?requestId={from_user_id}",
                },
            )
        )

    async def group_invite(
        self, invited_user_id: str, group_name: str, invited_by: str, group_id: str
    ) -> list[RecipientDelivery]:
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.GROUP_INVITE,
                user_id=invited_user_id,
                data={
                    "groupName": group_name,
                    "invitedBy": invited_by,
                    "groupId": group_id,
                    "actionUrl": f"/groups?groupId={group_id}",
                },
            )
        )

    async def settlement_reminder(
        self, user_id: str, amount: float, friend_name: str, friend_id: str
    ) -> list[RecipientDelivery]:
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.SETTLEMENT_REMINDER,
                user_id=user_id,
                data={
                    "amount": amount,
                    "friendName": friend_name,
                    "actionUrl": f"/friends?friendId={friend_id}",
                },
            )
        )

    async def recurring_expense_reminder(
        self, user_id: str, description: str, amount: float, due_date: datetime
    ) -> list[RecipientDelivery]:
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.RECURRING_EXPENSE,
                user_id=user_id,
                data={
                    "description": description,
                    "amount": amount,
                    "dueDate": _as_utc(due_date).isoformat(),
                },
            )
        )

    async def debt_settled(
        self, user_id: str, amount: float, settled_with: str, payment_method: str
    ) -> list[RecipientDelivery]:
        return await self._manager.handle_event(
            NotificationEvent(
                type=NotificationType.DEBT_SETTLED,
                user_id=user_id,
                data={
                    "amount": amount,
                    "settledWith": settled_with,
                    "paymentMethod": payment_method,
                },
            )
        )
