"""Composition root: wires storage, channels and services together."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

import httpx
import structlog

from core.config import Settings
from domain.entities.notification import NotificationChannel
from domain.services.budget_monitor import BudgetMonitor
from domain.services.notification_content import NotificationContentBuilder
from domain.services.notification_manager import NotificationManager
from domain.services.notification_triggers import NotificationTriggers
from domain.services.preference_service import PreferenceService
from domain.strategies.notification_strategy import INotificationStrategy
from infrastructure.channels.email import EmailNotificationStrategy
from infrastructure.channels.in_app import InAppNotificationStore
from infrastructure.channels.push import PushNotificationStrategy
from infrastructure.channels.push_gateway import HttpPushGateway
from infrastructure.channels.sms import SMSNotificationStrategy
from infrastructure.preferences.in_memory_preference_repo import InMemoryPreferenceRepository
from infrastructure.storage.local_storage import ILocalStorage, JsonFileStorage

logger = structlog.get_logger()


@dataclass
class NotificationContainer:
    """Everything the outer surfaces need from the notification system."""

    manager: NotificationManager
    in_app_store: InAppNotificationStore
    preference_service: PreferenceService
    triggers: NotificationTriggers
    budget_monitor: BudgetMonitor


def build_strategies(
    settings: Settings,
    in_app_store: InAppNotificationStore,
    client: httpx.AsyncClient | None = None,
) -> dict[NotificationChannel, INotificationStrategy]:
    """Map every channel to its strategy."""
    timeout = settings.transport_timeout_seconds
    strategies: dict[NotificationChannel, INotificationStrategy] = {}

    for channel in NotificationChannel:
        match channel:
            case NotificationChannel.IN_APP:
                strategies[channel] = in_app_store
            case NotificationChannel.EMAIL:
                strategies[channel] = EmailNotificationStrategy(
                    settings.email_endpoint, client=client, timeout=timeout
                )
            case NotificationChannel.SMS:
                strategies[channel] = SMSNotificationStrategy(
                    settings.sms_endpoint,
                    client=client,
                    timeout=timeout,
                    signature=settings.app_signature,
                    cost_per_segment=settings.sms_cost_per_segment,
                )
            case NotificationChannel.PUSH:
                gateway = HttpPushGateway(
                    settings.push_endpoint,
                    enabled=settings.push_enabled,
                    client=client,
                    timeout=timeout,
                )
                strategies[channel] = PushNotificationStrategy(gateway)

    return strategies


def build_notification_container(
    settings: Settings,
    storage: ILocalStorage | None = None,
    client: httpx.AsyncClient | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> NotificationContainer:
    """Build the notification system once for the process.

    ``clock`` returns the local wall-clock time used for do-not-disturb.
    """
    in_app_store = InAppNotificationStore(
        storage or JsonFileStorage(settings.in_app_storage_dir),
        storage_key=settings.in_app_storage_key,
        max_notifications=settings.in_app_max_notifications,
    )
    in_app_store.load()

    preference_service = PreferenceService(InMemoryPreferenceRepository())
    manager = NotificationManager(
        build_strategies(settings, in_app_store, client=client).values(),
        preference_service,
        clock=clock,
        notification_ttl=timedelta(days=settings.notification_ttl_days),
        content_builder=NotificationContentBuilder(settings.currency_symbol),
        max_deferred_per_user=settings.deferred_max_per_user,
    )

    logger.info(
        "notification_system_initialized",
        in_app_count=len(in_app_store.get_all()),
        push_supported=bool(settings.push_endpoint),
    )
    triggers = NotificationTriggers(manager)
    return NotificationContainer(
        manager=manager,
        in_app_store=in_app_store,
        preference_service=preference_service,
        triggers=triggers,
        budget_monitor=BudgetMonitor(triggers),
    )
