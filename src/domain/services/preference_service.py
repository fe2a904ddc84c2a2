"""Preference resolution: channel selection, do-not-disturb and digest."""

import re
from dataclasses import dataclass, field
from datetime import datetime, time

import structlog

from core.exceptions import InvalidPreferenceError, InvalidTimeFormatError
from domain.entities.notification import (
    DeliveryOutcome,
    DigestSettings,
    DoNotDisturb,
    NotificationCategory,
    NotificationChannel,
    NotificationPreferences,
    NotificationPriority,
)
from domain.repositories.preference_repository import IPreferenceRepository

logger = structlog.get_logger()

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time(value: str | None) -> time:
    """Parse an ``HH:MM`` local time string."""
    match = _TIME_PATTERN.match(value or "")
    if not match:
        raise InvalidTimeFormatError(value)
    return time(int(match.group(1)), int(match.group(2)))


def is_within_do_not_disturb(dnd: DoNotDisturb, now: datetime) -> bool:
    """Check whether ``now`` falls in the half-open window [start, end).

    Windows whose start is after their end wrap past midnight
    (e.g. 22:00-08:00). An equal start and end is an empty window.
    """
    if not dnd.enabled or not dnd.start_time or not dnd.end_time:
        return False

    start = parse_time(dnd.start_time)
    end = parse_time(dnd.end_time)
    current = now.time().replace(second=0, microsecond=0)

    if start == end:
        return False
    if start < end:
        return start <= current < end
    return current >= start or current < end


@dataclass(frozen=True)
class PreferenceDecision:
    """What the resolver allows for one notification right now."""

    outcome: DeliveryOutcome
    channels: tuple[NotificationChannel, ...] = field(default_factory=tuple)

    @property
    def should_deliver(self) -> bool:
        return self.outcome == DeliveryOutcome.DELIVERED


class PreferenceService:
    """Service layer for per-user notification preferences."""

    def __init__(self, repository: IPreferenceRepository) -> None:
        self._repository = repository

    # --- Reads ---

    def get_preferences(self, user_id: str) -> NotificationPreferences:
        """Get preferences, falling back to the documented defaults."""
        return self._repository.get_or_create(user_id)

    def channels_for(
        self, user_id: str, category: NotificationCategory
    ) -> list[NotificationChannel]:
        """Allowed channels for a category."""
        return self.get_preferences(user_id).channels_for(category)

    # --- Updates ---

    def update_preferences(self, preferences: NotificationPreferences) -> NotificationPreferences:
        """Replace a user's preferences wholesale."""
        self._validate_dnd(preferences.do_not_disturb)
        if preferences.digest.enabled and preferences.digest.delivery_time:
            parse_time(preferences.digest.delivery_time)
        saved = self._repository.save(preferences)
        logger.info("notification_preferences_updated", user_id=preferences.user_id)
        return saved

    def toggle_channel(
        self,
        user_id: str,
        category: NotificationCategory,
        channel: NotificationChannel,
    ) -> NotificationPreferences:
        """Flip membership of ``channel`` in the category's channel set."""
        prefs = self.get_preferences(user_id)
        channels = prefs.channels_for(category)
        if channel in channels:
            channels.remove(channel)
        else:
            channels.append(channel)
        prefs.channels[category] = channels
        return self._repository.save(prefs)

    def set_do_not_disturb(
        self,
        user_id: str,
        enabled: bool,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> NotificationPreferences:
        prefs = self.get_preferences(user_id)
        dnd = DoNotDisturb(enabled=enabled, start_time=start_time, end_time=end_time)
        self._validate_dnd(dnd)
        prefs.do_not_disturb = dnd
        return self._repository.save(prefs)

    def set_digest_mode(
        self, user_id: str, enabled: bool, delivery_time: str | None = None
    ) -> NotificationPreferences:
        if delivery_time is not None:
            parse_time(delivery_time)
        prefs = self.get_preferences(user_id)
        prefs.digest = DigestSettings(enabled=enabled, delivery_time=delivery_time)
        return self._repository.save(prefs)

    # --- Decision point ---

    def evaluate(
        self,
        preferences: NotificationPreferences,
        category: NotificationCategory,
        priority: NotificationPriority,
        now: datetime,
    ) -> PreferenceDecision:
        """Decide whether a notification goes out now, and on which channels.

        URGENT bypasses both do-not-disturb and digest batching.
        """
        channels = tuple(dict.fromkeys(preferences.channels_for(category)))
        if not channels:
            return PreferenceDecision(DeliveryOutcome.SUPPRESSED_NO_CHANNELS)

        if priority != NotificationPriority.URGENT:
            if is_within_do_not_disturb(preferences.do_not_disturb, now):
                return PreferenceDecision(DeliveryOutcome.SUPPRESSED_DND, channels)
            if preferences.digest.enabled:
                return PreferenceDecision(DeliveryOutcome.DEFERRED_DIGEST, channels)

        return PreferenceDecision(DeliveryOutcome.DELIVERED, channels)

    @staticmethod
    def _validate_dnd(dnd: DoNotDisturb) -> None:
        if not dnd.enabled:
            return
        if not dnd.start_time or not dnd.end_time:
            raise InvalidPreferenceError(
                "Do not disturb requires both a start and an end time"
            )
        parse_time(dnd.start_time)
        parse_time(dnd.end_time)
