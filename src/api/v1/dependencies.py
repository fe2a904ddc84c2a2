"""Dependency injection factories for API v1."""

from functools import lru_cache

from fastapi import Depends

from core.config import get_settings
from domain.services.budget_monitor import BudgetMonitor
from domain.services.notification_manager import NotificationManager
from domain.services.preference_service import PreferenceService
from infrastructure.channels.in_app import InAppNotificationStore
from infrastructure.container import NotificationContainer, build_notification_container


@lru_cache
def get_notification_container() -> NotificationContainer:
    """Get the process-wide notification system."""
    return build_notification_container(get_settings())


def get_notification_manager(
    container: NotificationContainer = Depends(get_notification_container),
) -> NotificationManager:
    """Get Notification manager instance."""
    return container.manager


def get_in_app_store(
    container: NotificationContainer = Depends(get_notification_container),
) -> InAppNotificationStore:
    """Get the in-app notification store."""
    return container.in_app_store


def get_preference_service(
    container: NotificationContainer = Depends(get_notification_container),
) -> PreferenceService:
    """Get Preference service instance."""
    return container.preference_service


def get_budget_monitor(
    container: NotificationContainer = Depends(get_notification_container),
) -> BudgetMonitor:
    """Get the budget monitor."""
    return container.budget_monitor
