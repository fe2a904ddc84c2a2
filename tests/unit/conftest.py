"""Shared fixtures for unit tests."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

import pytest

from domain.entities.notification import (
    ALL_PRIORITIES,
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from domain.services.preference_service import PreferenceService
from infrastructure.channels.in_app import InAppNotificationStore
from infrastructure.channels.push_gateway import PushMessage, PushPermission
from infrastructure.preferences.in_memory_preference_repo import InMemoryPreferenceRepository
from infrastructure.storage.local_storage import InMemoryStorage


class FakeStrategy:
    """Channel strategy that records sends and returns a scripted result."""

    def __init__(
        self,
        channel: NotificationChannel,
        priorities: Sequence[NotificationPriority] = ALL_PRIORITIES,
        succeed: bool = True,
        error: str = "boom",
        raises: Exception | None = None,
    ) -> None:
        self.channel = channel
        self.priorities = tuple(priorities)
        self.succeed = succeed
        self.error = error
        self.raises = raises
        self.sent: list[Notification] = []

    def get_channel(self) -> NotificationChannel:
        return self.channel

    def can_handle(self, notification: Notification) -> bool:
        return self.channel in notification.channels

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        return self.priorities

    def validate(self, notification: Notification) -> str | None:
        return None

    async def send(self, notification: Notification) -> DeliveryResult:
        if self.raises is not None:
            raise self.raises
        self.sent.append(notification)
        if self.succeed:
            return DeliveryResult.ok(self.channel)
        return DeliveryResult.failed(self.channel, self.error)


class FakePushGateway:
    """In-memory push gateway."""

    def __init__(
        self,
        supported: bool = True,
        permission: PushPermission = PushPermission.GRANTED,
        grant_on_request: bool = False,
        raises: Exception | None = None,
    ) -> None:
        self.supported = supported
        self._permission = permission
        self.grant_on_request = grant_on_request
        self.raises = raises
        self.permission_requests = 0
        self.shown: list[tuple[str, PushMessage]] = []

    def is_supported(self) -> bool:
        return self.supported

    @property
    def permission(self) -> PushPermission:
        return self._permission

    async def request_permission(self) -> PushPermission:
        self.permission_requests += 1
        if self.grant_on_request:
            self._permission = PushPermission.GRANTED
        elif self._permission == PushPermission.DEFAULT:
            self._permission = PushPermission.DENIED
        return self._permission

    async def show(self, user_id: str, message: PushMessage) -> None:
        if self.raises is not None:
            raise self.raises
        self.shown.append((user_id, message))


class FixedClock:
    """Settable clock for time-dependent services."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_notification(**overrides: Any) -> Notification:
    """Build a notification with sensible defaults."""
    values: dict[str, Any] = {
        "user_id": "user-1",
        "type": NotificationType.FRIEND_REQUEST,
        "title": "New Friend Request",
        "message": "Alice sent you a friend request",
        "priority": NotificationPriority.MEDIUM,
        "channels": tuple(NotificationChannel),
    }
    values.update(overrides)
    return Notification(**values)


def make_sent(**overrides: Any) -> Notification:
    return make_notification(**overrides).with_status(NotificationStatus.SENT)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def store(storage: InMemoryStorage) -> InAppNotificationStore:
    """Empty in-app store on in-memory storage."""
    return InAppNotificationStore(storage)


@pytest.fixture
def preference_service() -> PreferenceService:
    return PreferenceService(InMemoryPreferenceRepository())


@pytest.fixture
def push_gateway() -> FakePushGateway:
    return FakePushGateway()
