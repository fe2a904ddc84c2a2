"""Chain of Responsibility for notification delivery.

Two link flavours share one interface:

- ``MultiChannelDeliveryHandler`` sends through every eligible channel.
- ``FallbackDeliveryHandler`` stops at the first channel that succeeds.

``DeliveryChainBuilder.build_for_priority`` picks the flavour: URGENT and HIGH
get a multi-channel chain, MEDIUM and LOW a fallback chain.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol

import structlog

from core.exceptions import EmptyDeliveryChainError
from domain.entities.notification import (
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
)
from domain.strategies.notification_strategy import INotificationStrategy, supports

logger = structlog.get_logger()

MULTI_CHANNEL_PRIORITIES = frozenset({NotificationPriority.URGENT, NotificationPriority.HIGH})


class IDeliveryHandler(Protocol):
    """One link of a delivery chain."""

    def set_next(self, handler: "IDeliveryHandler") -> "IDeliveryHandler":
        """Link ``handler`` after this one and return it for fluent chaining."""
        ...

    async def handle(
        self,
        notification: Notification,
        preferred_channels: Iterable[NotificationChannel],
    ) -> list[DeliveryResult]:
        """Deliver through this link and (possibly) the rest of the chain."""
        ...


class _DeliveryHandlerBase:
    def __init__(self, strategy: INotificationStrategy) -> None:
        self._strategy = strategy
        self._next: IDeliveryHandler | None = None

    @property
    def strategy(self) -> INotificationStrategy:
        return self._strategy

    def set_next(self, handler: IDeliveryHandler) -> IDeliveryHandler:
        self._next = handler
        return handler

    def _is_eligible(
        self, notification: Notification, preferred_channels: Sequence[NotificationChannel]
    ) -> bool:
        channel = self._strategy.get_channel()
        if channel not in preferred_channels:
            return False
        if not supports(self._strategy, notification):
            logger.debug(
                "delivery_channel_skipped",
                channel=channel.value,
                notification_id=notification.id,
                priority=notification.priority.value,
            )
            return False
        return True

    async def _pass_on(
        self, notification: Notification, preferred_channels: Sequence[NotificationChannel]
    ) -> list[DeliveryResult]:
        if self._next is None:
            return []
        return await self._next.handle(notification, preferred_channels)


class MultiChannelDeliveryHandler(_DeliveryHandlerBase):
    """Attempts its channel when eligible, then always continues."""

    async def handle(
        self,
        notification: Notification,
        preferred_channels: Iterable[NotificationChannel],
    ) -> list[DeliveryResult]:
        preferred = tuple(preferred_channels)
        results: list[DeliveryResult] = []

        if self._is_eligible(notification, preferred):
            result = await self._strategy.send(notification)
            results.append(result)
            logger.debug(
                "delivery_attempted",
                channel=result.channel.value,
                notification_id=notification.id,
                success=result.success,
            )

        results.extend(await self._pass_on(notification, preferred))
        return results


class FallbackDeliveryHandler(_DeliveryHandlerBase):
    """Attempts its channel when eligible; a success ends the chain."""

    async def handle(
        self,
        notification: Notification,
        preferred_channels: Iterable[NotificationChannel],
    ) -> list[DeliveryResult]:
        preferred = tuple(preferred_channels)
        results: list[DeliveryResult] = []

        if self._is_eligible(notification, preferred):
            result = await self._strategy.send(notification)
            results.append(result)
            if result.success:
                logger.debug(
                    "fallback_delivery_succeeded",
                    channel=result.channel.value,
                    notification_id=notification.id,
                )
                return results
            logger.info(
                "fallback_delivery_failed",
                channel=result.channel.value,
                notification_id=notification.id,
                error=result.error,
            )

        results.extend(await self._pass_on(notification, preferred))
        return results


class DeliveryChainBuilder:
    """Builds linked handler chains from an ordered strategy list."""

    @staticmethod
    def _link(
        handler_cls: type[_DeliveryHandlerBase],
        strategies: Sequence[INotificationStrategy],
    ) -> IDeliveryHandler:
        if not strategies:
            raise EmptyDeliveryChainError()

        first = handler_cls(strategies[0])
        current: IDeliveryHandler = first
        for strategy in strategies[1:]:
            current = current.set_next(handler_cls(strategy))
        return first

    @classmethod
    def build_multi_channel(cls, strategies: Sequence[INotificationStrategy]) -> IDeliveryHandler:
        return cls._link(MultiChannelDeliveryHandler, strategies)

    @classmethod
    def build_fallback(cls, strategies: Sequence[INotificationStrategy]) -> IDeliveryHandler:
        return cls._link(FallbackDeliveryHandler, strategies)

    @classmethod
    def build_for_priority(
        cls,
        priority: NotificationPriority,
        strategies: Sequence[INotificationStrategy],
    ) -> IDeliveryHandler:
        """URGENT/HIGH get redundancy; MEDIUM/LOW stop at the first success."""
        if priority in MULTI_CHANNEL_PRIORITIES:
            return cls.build_multi_channel(strategies)
        return cls.build_fallback(strategies)
