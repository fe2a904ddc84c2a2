"""Shared transport for channels backed by an outbound HTTP endpoint."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from domain.entities.notification import (
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
)

logger = structlog.get_logger()


class HttpChannelStrategy(ABC):
    """Validate, format and POST a notification as JSON.

    Any non-2xx response, network error or timeout becomes a failed
    ``DeliveryResult``; ``send`` never raises.
    """

    channel: NotificationChannel

    def __init__(
        self,
        endpoint: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._endpoint = endpoint
        self._client = client
        self._timeout = timeout

    def get_channel(self) -> NotificationChannel:
        return self.channel

    def can_handle(self, notification: Notification) -> bool:
        return self.channel in notification.channels

    @abstractmethod
    def get_supported_priorities(self) -> Sequence[NotificationPriority]: ...

    @abstractmethod
    def validate(self, notification: Notification) -> str | None: ...

    @abstractmethod
    def build_payload(self, notification: Notification) -> dict[str, Any]:
        """JSON body POSTed to the endpoint."""

    async def send(self, notification: Notification) -> DeliveryResult:
        error = self.validate(notification)
        if error:
            return DeliveryResult.failed(self.channel, error)

        try:
            payload = self.build_payload(notification)
            response = await self._post(payload)
            if not response.is_success:
                return DeliveryResult.failed(
                    self.channel,
                    f"{self.channel.value} API error: {response.status_code} "
                    f"{response.reason_phrase}".strip(),
                )
        except httpx.HTTPError as e:
            logger.warning(
                "notification_transport_failed",
                channel=self.channel.value,
                notification_id=notification.id,
                error=str(e) or type(e).__name__,
            )
            return DeliveryResult.failed(self.channel, str(e) or type(e).__name__)
        except Exception as e:
            logger.exception(
                "notification_send_failed",
                channel=self.channel.value,
                notification_id=notification.id,
            )
            return DeliveryResult.failed(self.channel, str(e) or "Unknown error")

        return DeliveryResult.ok(self.channel)

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self._endpoint, json=payload, timeout=self._timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(self._endpoint, json=payload, timeout=self._timeout)
