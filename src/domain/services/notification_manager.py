"""Notification manager: turns domain events into delivered notifications."""

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

import structlog

from core.exceptions import MalformedEventError, UnknownEventTypeError
from domain.entities.notification import (
    CANONICAL_CHANNEL_ORDER,
    TYPE_CATEGORIES,
    DeliveryOutcome,
    Notification,
    NotificationChannel,
    NotificationEvent,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    RecipientDelivery,
    utcnow,
)
from domain.services.delivery_chain import DeliveryChainBuilder
from domain.services.notification_content import NotificationContentBuilder
from domain.services.preference_service import PreferenceService
from domain.strategies.notification_strategy import INotificationStrategy

logger = structlog.get_logger()

DEFAULT_NOTIFICATION_TTL = timedelta(days=30)
DEFAULT_MAX_DEFERRED_PER_USER = 50


class NotificationManager:
    """Orchestrates preference resolution, chain selection and delivery.

    One event fans out to one notification per recipient. Recipients are
    processed concurrently and independently: a failure while handling one
    of them never affects the others. Only structural problems with the
    event itself are raised to the caller.
    """

    def __init__(
        self,
        strategies: Iterable[INotificationStrategy],
        preference_service: PreferenceService,
        clock: Callable[[], datetime] = datetime.now,
        notification_ttl: timedelta = DEFAULT_NOTIFICATION_TTL,
        content_builder: NotificationContentBuilder | None = None,
        max_deferred_per_user: int = DEFAULT_MAX_DEFERRED_PER_USER,
    ) -> None:
        self._strategies: dict[NotificationChannel, INotificationStrategy] = {
            strategy.get_channel(): strategy for strategy in strategies
        }
        self._preferences = preference_service
        self._clock = clock
        self._ttl = notification_ttl
        self._content = content_builder or NotificationContentBuilder()
        self._deferred: dict[str, list[Notification]] = {}
        self._max_deferred = max_deferred_per_user

    @property
    def strategies(self) -> dict[NotificationChannel, INotificationStrategy]:
        return dict(self._strategies)

    async def handle_event(self, event: NotificationEvent) -> list[RecipientDelivery]:
        """Process an event for every recipient.

        Raises:
            UnknownEventTypeError: event type is not a known notification type.
            MalformedEventError: recipients, priority or payload are invalid.
        """
        notification_type = self._resolve_type(event.type)
        recipients = self._resolve_recipients(event)
        data = dict(event.data or {})
        self._content.check_payload(notification_type, data)

        priority = self._resolve_priority(event.priority)
        if priority is None:
            priority = self._content.default_priority(notification_type, data)
        title, message = self._content.build(notification_type, data)

        logger.info(
            "notification_event_received",
            type=notification_type.value,
            priority=priority.value,
            recipients=len(recipients),
        )

        return list(
            await asyncio.gather(
                *(
                    self._deliver_to(user_id, notification_type, priority, title, message, data)
                    for user_id in recipients
                )
            )
        )

    # --- Deferral queue ---

    def get_deferred(self, user_id: str) -> list[Notification]:
        """Notifications held back by do-not-disturb or digest mode."""
        return list(self._deferred.get(user_id, []))

    def drain_deferred(self, user_id: str) -> list[Notification]:
        """Remove and return the user's held-back notifications."""
        return self._deferred.pop(user_id, [])

    def deferred_count(self) -> int:
        return sum(len(queued) for queued in self._deferred.values())

    def _defer(self, notification: Notification) -> None:
        """Queue oldest-first, dropping the oldest entries beyond the per-user cap."""
        queue = self._deferred.setdefault(notification.user_id, [])
        queue.append(notification)
        overflow = len(queue) - self._max_deferred
        if overflow > 0:
            dropped = queue[:overflow]
            del queue[:overflow]
            logger.warning(
                "deferred_notifications_evicted",
                user_id=notification.user_id,
                notification_ids=[n.id for n in dropped],
            )

    # --- Per-recipient processing ---

    async def _deliver_to(
        self,
        user_id: str,
        notification_type: NotificationType,
        priority: NotificationPriority,
        title: str,
        message: str,
        data: dict,
    ) -> RecipientDelivery:
        created_at = utcnow()
        notification = Notification(
            user_id=user_id,
            type=notification_type,
            title=title,
            message=message,
            priority=priority,
            data=dict(data),
            created_at=created_at,
            expires_at=created_at + self._ttl,
        )

        try:
            return await self._process(notification)
        except Exception as e:
            logger.exception(
                "notification_delivery_error",
                notification_id=notification.id,
                user_id=user_id,
            )
            return RecipientDelivery(
                user_id=user_id,
                notification=notification.with_status(NotificationStatus.FAILED),
                outcome=DeliveryOutcome.FAILED,
                error=str(e) or type(e).__name__,
            )

    async def _process(self, notification: Notification) -> RecipientDelivery:
        preferences = self._preferences.get_preferences(notification.user_id)
        decision = self._preferences.evaluate(
            preferences,
            TYPE_CATEGORIES[notification.type],
            notification.priority,
            self._clock(),
        )
        notification = notification.with_channels(decision.channels)

        if decision.outcome == DeliveryOutcome.SUPPRESSED_NO_CHANNELS:
            logger.info(
                "notification_suppressed_no_channels",
                notification_id=notification.id,
                user_id=notification.user_id,
                type=notification.type.value,
            )
            return RecipientDelivery(notification.user_id, notification, decision.outcome)

        if decision.outcome in (DeliveryOutcome.SUPPRESSED_DND, DeliveryOutcome.DEFERRED_DIGEST):
            self._defer(notification)
            logger.info(
                "notification_deferred",
                notification_id=notification.id,
                user_id=notification.user_id,
                reason=decision.outcome.value,
            )
            return RecipientDelivery(notification.user_id, notification, decision.outcome)

        eligible = [
            self._strategies[channel]
            for channel in CANONICAL_CHANNEL_ORDER
            if channel in decision.channels and channel in self._strategies
        ]
        chain = DeliveryChainBuilder.build_for_priority(notification.priority, eligible)
        results = await chain.handle(notification, decision.channels)

        failures = [result for result in results if not result.success]
        if any(result.success for result in results):
            notification = notification.with_status(NotificationStatus.SENT)
            outcome = DeliveryOutcome.DELIVERED
            if failures:
                logger.warning(
                    "notification_partially_delivered",
                    notification_id=notification.id,
                    user_id=notification.user_id,
                    failed_channels=[result.channel.value for result in failures],
                    errors=[result.error for result in failures],
                )
            else:
                logger.info(
                    "notification_delivered",
                    notification_id=notification.id,
                    user_id=notification.user_id,
                    channels=[result.channel.value for result in results],
                )
        else:
            notification = notification.with_status(NotificationStatus.FAILED)
            outcome = DeliveryOutcome.FAILED
            logger.warning(
                "notification_delivery_failed",
                notification_id=notification.id,
                user_id=notification.user_id,
                errors=[result.error for result in failures],
            )

        return RecipientDelivery(notification.user_id, notification, outcome, results)

    # --- Structural validation ---

    @staticmethod
    def _resolve_type(value: NotificationType | str) -> NotificationType:
        try:
            return NotificationType(value)
        except ValueError:
            raise UnknownEventTypeError(str(value)) from None

    @staticmethod
    def _resolve_recipients(event: NotificationEvent) -> list[str]:
        recipients = [user_id for user_id in event.recipients if user_id and user_id.strip()]
        if not recipients:
            raise MalformedEventError("Event has no recipients")
        if len(recipients) != len(event.recipients):
            raise MalformedEventError(
                "Event recipients must be non-blank user ids",
                details={"recipients": event.recipients},
            )
        return list(dict.fromkeys(recipients))

    @staticmethod
    def _resolve_priority(
        value: NotificationPriority | str | None,
    ) -> NotificationPriority | None:
        if value is None:
            return None
        try:
            return NotificationPriority(value)
        except ValueError:
            raise MalformedEventError(
                f"Unknown priority: {value}", details={"priority": str(value)}
            ) from None
