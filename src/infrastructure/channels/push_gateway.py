"""Boundary to the host platform's native push notification API."""

from dataclasses import asdict, dataclass, field
from enum import StrEnum
from typing import Any, Protocol

import httpx


class PushPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass
class PushAction:
    action: str
    title: str


@dataclass
class PushMessage:
    """Everything the platform needs to show one push notification."""

    title: str
    body: str
    tag: str
    icon: str
    badge: str = "/notification-badge.png"
    data: dict[str, Any] | None = None
    require_interaction: bool = False
    vibrate: list[int] | None = None
    actions: list[PushAction] = field(default_factory=list)


class IPushGateway(Protocol):
    """Protocol for native push providers."""

    def is_supported(self) -> bool:
        """Whether the runtime can show push notifications at all."""
        ...

    @property
    def permission(self) -> PushPermission:
        """Current permission state."""
        ...

    async def request_permission(self) -> PushPermission:
        """Prompt for permission and return the resulting state."""
        ...

    async def show(self, user_id: str, message: PushMessage) -> None:
        """Display ``message`` to ``user_id``; raises on platform errors."""
        ...


class HttpPushGateway:
    """Push provider that hands messages to a push relay over HTTP.

    Unsupported when no relay endpoint is configured. Permission is an
    operator switch: granted when the relay is enabled, denied otherwise.
    """

    def __init__(
        self,
        endpoint: str,
        enabled: bool = True,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._endpoint = endpoint
        self._enabled = enabled
        self._client = client
        self._timeout = timeout

    def is_supported(self) -> bool:
        return bool(self._endpoint)

    @property
    def permission(self) -> PushPermission:
        return PushPermission.GRANTED if self._enabled else PushPermission.DENIED

    async def request_permission(self) -> PushPermission:
        return self.permission

    async def show(self, user_id: str, message: PushMessage) -> None:
        payload = {"userId": user_id, **asdict(message)}
        if self._client is not None:
            response = await self._client.post(self._endpoint, json=payload, timeout=self._timeout)
        else:
            async with httpx.AsyncClient() as client:
                response = await client.post(self._endpoint, json=payload, timeout=self._timeout)
        response.raise_for_status()
