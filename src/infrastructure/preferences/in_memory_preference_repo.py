"""Process-wide in-memory preference storage."""

import copy
import threading

from domain.entities.notification import NotificationPreferences


class InMemoryPreferenceRepository:
    """Keyed preference storage with no expiry.

    Records are copied in and out so callers can only change stored
    preferences through ``save``.
    """

    def __init__(self) -> None:
        self._preferences: dict[str, NotificationPreferences] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> NotificationPreferences | None:
        with self._lock:
            stored = self._preferences.get(user_id)
            return copy.deepcopy(stored) if stored is not None else None

    def get_or_create(self, user_id: str) -> NotificationPreferences:
        with self._lock:
            stored = self._preferences.get(user_id)
            if stored is None:
                stored = NotificationPreferences(user_id=user_id)
                self._preferences[user_id] = stored
            return copy.deepcopy(stored)

    def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        with self._lock:
            self._preferences[preferences.user_id] = copy.deepcopy(preferences)
        return preferences
