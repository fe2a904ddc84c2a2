"""In-app channel: the session's notification inbox and its subscription feed."""

import itertools
import threading
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any

import orjson
import structlog

from domain.entities.notification import (
    ALL_PRIORITIES,
    DeliveryResult,
    Notification,
    NotificationChannel,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
    utcnow,
)
from infrastructure.storage.local_storage import ILocalStorage

logger = structlog.get_logger()

DEFAULT_STORAGE_KEY = "in_app_notifications"
DEFAULT_MAX_NOTIFICATIONS = 100

NotificationListener = Callable[[list[Notification]], None]
Unsubscribe = Callable[[], None]

_DATETIME_FIELDS = ("created_at", "sent_at", "read_at", "expires_at")


def _as_delivered(notification: Notification) -> Notification:
    """Inbox entries have been delivered locally, so they are at least SENT."""
    if notification.status in (NotificationStatus.PENDING, NotificationStatus.FAILED):
        return notification.with_status(NotificationStatus.SENT, at=notification.sent_at)
    return notification


def serialize_notifications(notifications: Sequence[Notification]) -> str:
    """Encode notifications as a JSON array with ISO-8601 dates."""
    return orjson.dumps(list(notifications), default=str).decode("utf-8")


def deserialize_notifications(raw: str) -> list[Notification]:
    """Decode the persisted JSON array back into Notification records."""
    records = orjson.loads(raw)
    if not isinstance(records, list):
        raise ValueError("Persisted notifications must be a JSON array")
    return [_notification_from_record(record) for record in records]


def _notification_from_record(record: dict[str, Any]) -> Notification:
    dates = {
        name: datetime.fromisoformat(record[name]) if record.get(name) else None
        for name in _DATETIME_FIELDS
    }
    notification = Notification(
        id=record["id"],
        user_id=record["user_id"],
        type=NotificationType(record["type"]),
        title=record["title"],
        message=record["message"],
        priority=NotificationPriority(record["priority"]),
        channels=tuple(NotificationChannel(c) for c in record.get("channels") or ()),
        status=NotificationStatus(record["status"]),
        data=record.get("data"),
        created_at=dates["created_at"] or utcnow(),
        sent_at=dates["sent_at"],
        read_at=dates["read_at"],
        expires_at=dates["expires_at"],
    )
    return _as_delivered(notification)


class InAppNotificationStore:
    """IN_APP strategy plus an observable, persisted notification list.

    The list is newest-first and capped; every mutation notifies all
    subscribers with their own copy of the list and then persists it.
    Mutation, notification and persistence happen under one re-entrant
    lock, so listeners may call back into the store.
    """

    def __init__(
        self,
        storage: ILocalStorage,
        storage_key: str = DEFAULT_STORAGE_KEY,
        max_notifications: int = DEFAULT_MAX_NOTIFICATIONS,
    ) -> None:
        self._storage = storage
        self._storage_key = storage_key
        self._max_notifications = max_notifications
        self._notifications: list[Notification] = []
        self._listeners: dict[int, NotificationListener] = {}
        self._tokens = itertools.count(1)
        self._lock = threading.RLock()

    # --- Strategy contract ---

    def get_channel(self) -> NotificationChannel:
        return NotificationChannel.IN_APP

    def can_handle(self, notification: Notification) -> bool:
        return NotificationChannel.IN_APP in notification.channels

    def get_supported_priorities(self) -> Sequence[NotificationPriority]:
        return ALL_PRIORITIES

    def validate(self, notification: Notification) -> str | None:
        if not notification.title or not notification.title.strip():
            return "Notification title is required"
        if not notification.message or not notification.message.strip():
            return "Notification message is required"
        return None

    async def send(self, notification: Notification) -> DeliveryResult:
        error = self.validate(notification)
        if error:
            return DeliveryResult.failed(NotificationChannel.IN_APP, error)

        try:
            self.insert(notification.with_status(NotificationStatus.SENT))
        except Exception as e:
            logger.exception("in_app_delivery_failed", notification_id=notification.id)
            return DeliveryResult.failed(NotificationChannel.IN_APP, str(e))

        return DeliveryResult.ok(NotificationChannel.IN_APP)

    # --- Subscription feed ---

    def subscribe(self, listener: NotificationListener) -> Unsubscribe:
        """Register ``listener`` and hand it the current snapshot at once.

        Returns a callable that removes the registration.
        """
        with self._lock:
            token = next(self._tokens)
            self._listeners[token] = listener
            self._deliver(token, listener)

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._listeners)

    # --- Queries ---

    def get_all(self) -> list[Notification]:
        with self._lock:
            return list(self._notifications)

    def get(self, notification_id: str) -> Notification | None:
        with self._lock:
            return next((n for n in self._notifications if n.id == notification_id), None)

    def get_unread(self) -> list[Notification]:
        with self._lock:
            return [n for n in self._notifications if n.read_at is None]

    def get_unread_count(self) -> int:
        return len(self.get_unread())

    # --- Mutators ---

    def insert(self, notification: Notification) -> None:
        """Add a notification at the head, evicting the oldest on overflow."""
        with self._lock:
            self._notifications.insert(0, _as_delivered(notification))
            del self._notifications[self._max_notifications :]
            self._publish()

    def mark_as_read(self, notification_id: str) -> bool:
        """Mark one notification read. Returns False when the id is unknown.

        Already-read notifications are left untouched.
        """
        with self._lock:
            for index, notification in enumerate(self._notifications):
                if notification.id != notification_id:
                    continue
                if notification.read_at is None:
                    self._notifications[index] = notification.mark_read()
                    self._publish()
                return True
            return False

    def mark_all_as_read(self) -> int:
        """Mark every unread notification read; returns how many changed."""
        with self._lock:
            now = utcnow()
            count = 0
            for index, notification in enumerate(self._notifications):
                if notification.read_at is None:
                    self._notifications[index] = notification.mark_read(now)
                    count += 1
            if count:
                self._publish()
            return count

    def clear(self, notification_id: str) -> bool:
        with self._lock:
            remaining = [n for n in self._notifications if n.id != notification_id]
            if len(remaining) == len(self._notifications):
                return False
            self._notifications = remaining
            self._publish()
            return True

    def clear_all(self) -> None:
        with self._lock:
            self._notifications = []
            self._publish()

    def remove_expired(self, now: datetime | None = None) -> int:
        """Drop notifications past their expiry; returns how many were removed."""
        now = now or utcnow()
        with self._lock:
            remaining = [
                n for n in self._notifications if n.expires_at is None or n.expires_at > now
            ]
            removed = len(self._notifications) - len(remaining)
            if removed:
                self._notifications = remaining
                self._publish()
            return removed

    # --- Persistence ---

    def load(self) -> None:
        """Rehydrate the list from storage.

        Missing or unreadable storage leaves the store empty.
        """
        try:
            raw = self._storage.get_item(self._storage_key)
            loaded = deserialize_notifications(raw) if raw else []
        except Exception:
            logger.warning(
                "in_app_notifications_load_failed",
                storage_key=self._storage_key,
                exc_info=True,
            )
            loaded = []

        with self._lock:
            self._notifications = loaded[: self._max_notifications]
            self._notify_listeners()

    def persist(self) -> None:
        try:
            with self._lock:
                payload = serialize_notifications(self._notifications)
            self._storage.set_item(self._storage_key, payload)
        except Exception:
            logger.exception("in_app_notifications_persist_failed", storage_key=self._storage_key)

    # --- Internals ---

    def _publish(self) -> None:
        self._notify_listeners()
        self.persist()

    def _notify_listeners(self) -> None:
        for token, listener in list(self._listeners.items()):
            self._deliver(token, listener)

    def _deliver(self, token: int, listener: NotificationListener) -> None:
        try:
            listener(list(self._notifications))
        except Exception:
            logger.exception("in_app_listener_failed", subscription=token)
