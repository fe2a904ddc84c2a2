"""Notification preference repository protocol."""

from typing import Protocol

from domain.entities.notification import NotificationPreferences


class IPreferenceRepository(Protocol):
    """Repository interface for per-user NotificationPreferences."""

    def get(self, user_id: str) -> NotificationPreferences | None:
        """Get the stored preferences for a user, if any."""
        ...

    def get_or_create(self, user_id: str) -> NotificationPreferences:
        """Get the stored preferences, storing defaults on first access."""
        ...

    def save(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Create or replace the preferences for ``preferences.user_id``."""
        ...
