"""Unit tests for NotificationManager."""

from datetime import datetime, timedelta

import pytest

from core.exceptions import ErrorCode, MalformedEventError, UnknownEventTypeError
from domain.entities.notification import (
    DeliveryOutcome,
    DeliveryResult,
    Notification,
    NotificationCategory,
    NotificationChannel,
    NotificationEvent,
    NotificationPriority,
    NotificationStatus,
    NotificationType,
)
from domain.services.notification_manager import NotificationManager
from domain.services.preference_service import PreferenceService
from infrastructure.channels.in_app import InAppNotificationStore
from tests.unit.conftest import FakeStrategy, FixedClock

PUSH = NotificationChannel.PUSH
EMAIL = NotificationChannel.EMAIL
SMS = NotificationChannel.SMS
IN_APP = NotificationChannel.IN_APP

NOON = datetime(2024, 5, 1, 12, 0)


class SelectiveFailureStrategy(FakeStrategy):
    """Raises for one user, succeeds for everyone else."""

    def __init__(self, channel: NotificationChannel, failing_user: str) -> None:
        super().__init__(channel)
        self.failing_user = failing_user

    async def send(self, notification: Notification) -> DeliveryResult:
        if notification.user_id == self.failing_user:
            raise RuntimeError("transport exploded")
        return await super().send(notification)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOON)


@pytest.fixture
def fakes() -> dict[NotificationChannel, FakeStrategy]:
    return {
        PUSH: FakeStrategy(PUSH, priorities=(
            NotificationPriority.MEDIUM,
            NotificationPriority.HIGH,
            NotificationPriority.URGENT,
        )),
        EMAIL: FakeStrategy(EMAIL),
        SMS: FakeStrategy(SMS, priorities=(NotificationPriority.HIGH, NotificationPriority.URGENT)),
    }


@pytest.fixture
def manager(
    fakes: dict[NotificationChannel, FakeStrategy],
    store: InAppNotificationStore,
    preference_service: PreferenceService,
    clock: FixedClock,
) -> NotificationManager:
    return NotificationManager(
        [*fakes.values(), store],
        preference_service,
        clock=clock,
        notification_ttl=timedelta(days=7),
    )


def _budget_event(user_id: str = "user-1", spent: float = 950, limit: float = 1000):
    return NotificationEvent(
        type=NotificationType.BUDGET_ALERT,
        user_id=user_id,
        data={"category": "Food", "spent": spent, "limit": limit},
    )


def _friend_request(user_ids: list[str]) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType.FRIEND_REQUEST,
        user_id=user_ids,
        data={"fromUserName": "Alice", "fromUserId": "alice"},
    )


class TestBudgetAlertScenario:
    @pytest.mark.asyncio
    async def test_high_budget_alert_goes_to_every_allowed_channel(
        self,
        manager: NotificationManager,
        fakes: dict[NotificationChannel, FakeStrategy],
        store: InAppNotificationStore,
    ):
        [delivery] = await manager.handle_event(_budget_event())

        assert delivery.outcome == DeliveryOutcome.DELIVERED
        assert delivery.notification.priority == NotificationPriority.HIGH
        assert delivery.notification.status == NotificationStatus.SENT
        assert delivery.notification.sent_at is not None
        assert [r.channel for r in delivery.results] == [PUSH, EMAIL, IN_APP]
        assert all(r.success for r in delivery.results)
        # SMS is not in the default budget_alerts channels
        assert fakes[SMS].sent == []

        [entry] = store.get_unread()
        assert entry.title == "Budget Alert: Food"
        assert entry.message == "You've used 95% of your Food budget (৳950 of ৳1,000)"

    @pytest.mark.asyncio
    async def test_priority_follows_the_rounded_percentage(
        self, manager: NotificationManager, store: InAppNotificationStore
    ):
        [delivery] = await manager.handle_event(_budget_event(spent=895))

        assert delivery.notification.priority == NotificationPriority.HIGH
        assert [r.channel for r in delivery.results] == [PUSH, EMAIL, IN_APP]
        [entry] = store.get_unread()
        assert entry.message == "You've used 90% of your Food budget (৳895 of ৳1,000)"

    @pytest.mark.asyncio
    async def test_notification_carries_resolved_channels_and_expiry(
        self, manager: NotificationManager
    ):
        [delivery] = await manager.handle_event(_budget_event())

        notification = delivery.notification
        assert notification.channels == (IN_APP, EMAIL, PUSH)
        assert notification.expires_at == notification.created_at + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_medium_priority_stops_at_first_success(
        self, manager: NotificationManager, fakes: dict[NotificationChannel, FakeStrategy]
    ):
        [delivery] = await manager.handle_event(_budget_event(spent=500))

        assert delivery.notification.priority == NotificationPriority.MEDIUM
        assert [r.channel for r in delivery.results] == [PUSH]
        assert fakes[EMAIL].sent == []

    @pytest.mark.asyncio
    async def test_partial_failure_still_delivered(
        self, manager: NotificationManager, fakes: dict[NotificationChannel, FakeStrategy]
    ):
        fakes[EMAIL].succeed = False

        [delivery] = await manager.handle_event(_budget_event(spent=1200))

        assert delivery.notification.priority == NotificationPriority.URGENT
        assert delivery.outcome == DeliveryOutcome.DELIVERED
        assert [r.success for r in delivery.results] == [True, False, True]

    @pytest.mark.asyncio
    async def test_every_channel_failing_marks_failed(
        self,
        fakes: dict[NotificationChannel, FakeStrategy],
        preference_service: PreferenceService,
        clock: FixedClock,
    ):
        for fake in fakes.values():
            fake.succeed = False
        manager = NotificationManager(fakes.values(), preference_service, clock=clock)

        [delivery] = await manager.handle_event(_budget_event())

        assert delivery.outcome == DeliveryOutcome.FAILED
        assert delivery.notification.status == NotificationStatus.FAILED
        assert delivery.succeeded is False


class TestFanOut:
    @pytest.mark.asyncio
    async def test_friend_request_to_two_users(
        self, manager: NotificationManager, store: InAppNotificationStore
    ):
        deliveries = await manager.handle_event(_friend_request(["alice", "bob"]))

        assert [d.user_id for d in deliveries] == ["alice", "bob"]
        assert all(d.outcome == DeliveryOutcome.DELIVERED for d in deliveries)
        assert deliveries[0].notification.id != deliveries[1].notification.id
        # MEDIUM: push succeeds first, in-app is never reached
        assert store.get_all() == []

    @pytest.mark.asyncio
    async def test_one_recipient_failing_does_not_affect_the_other(
        self,
        store: InAppNotificationStore,
        preference_service: PreferenceService,
        clock: FixedClock,
    ):
        manager = NotificationManager(
            [SelectiveFailureStrategy(PUSH, failing_user="bob"), store],
            preference_service,
            clock=clock,
        )

        alice, bob = await manager.handle_event(_friend_request(["alice", "bob"]))

        assert alice.outcome == DeliveryOutcome.DELIVERED
        assert bob.outcome == DeliveryOutcome.FAILED
        assert bob.error == "transport exploded"
        assert bob.notification.status == NotificationStatus.FAILED

    @pytest.mark.asyncio
    async def test_disabled_category_suppresses_only_that_user(
        self, manager: NotificationManager, preference_service: PreferenceService
    ):
        prefs = preference_service.get_preferences("bob")
        prefs.channels[NotificationCategory.SOCIAL_UPDATES] = []
        preference_service.update_preferences(prefs)

        alice, bob = await manager.handle_event(_friend_request(["alice", "bob"]))

        assert alice.outcome == DeliveryOutcome.DELIVERED
        assert bob.outcome == DeliveryOutcome.SUPPRESSED_NO_CHANNELS
        assert bob.results == []

    @pytest.mark.asyncio
    async def test_duplicate_recipients_are_notified_once(self, manager: NotificationManager):
        deliveries = await manager.handle_event(_friend_request(["alice", "alice"]))

        assert len(deliveries) == 1


class TestPolicy:
    @pytest.mark.asyncio
    async def test_do_not_disturb_suppresses_and_queues(
        self,
        manager: NotificationManager,
        preference_service: PreferenceService,
        fakes: dict[NotificationChannel, FakeStrategy],
        clock: FixedClock,
    ):
        preference_service.set_do_not_disturb("user-1", True, "22:00", "08:00")
        clock.now = datetime(2024, 5, 1, 23, 0)

        [delivery] = await manager.handle_event(_budget_event())

        assert delivery.outcome == DeliveryOutcome.SUPPRESSED_DND
        assert delivery.results == []
        assert all(fake.sent == [] for fake in fakes.values())
        assert [n.id for n in manager.get_deferred("user-1")] == [delivery.notification.id]

    @pytest.mark.asyncio
    async def test_urgent_ignores_do_not_disturb(
        self,
        manager: NotificationManager,
        preference_service: PreferenceService,
        clock: FixedClock,
    ):
        preference_service.set_do_not_disturb("user-1", True, "22:00", "08:00")
        clock.now = datetime(2024, 5, 1, 23, 0)

        [delivery] = await manager.handle_event(_budget_event(spent=1000))

        assert delivery.notification.priority == NotificationPriority.URGENT
        assert delivery.outcome == DeliveryOutcome.DELIVERED

    @pytest.mark.asyncio
    async def test_do_not_disturb_with_email_only_category(
        self,
        manager: NotificationManager,
        preference_service: PreferenceService,
        fakes: dict[NotificationChannel, FakeStrategy],
        clock: FixedClock,
    ):
        prefs = preference_service.get_preferences("user-1")
        prefs.channels[NotificationCategory.BUDGET_ALERTS] = [EMAIL]
        preference_service.update_preferences(prefs)
        preference_service.set_do_not_disturb("user-1", True, "22:00", "08:00")
        clock.now = datetime(2024, 5, 1, 23, 0)

        [quiet] = await manager.handle_event(_budget_event(spent=500))
        [urgent] = await manager.handle_event(_budget_event(spent=1000))

        assert quiet.notification.priority == NotificationPriority.MEDIUM
        assert quiet.results == []
        assert urgent.notification.priority == NotificationPriority.URGENT
        assert [r.channel for r in urgent.results] == [EMAIL]
        assert len(fakes[EMAIL].sent) == 1
        assert fakes[PUSH].sent == []

    @pytest.mark.asyncio
    async def test_digest_defers_until_drained(
        self, manager: NotificationManager, preference_service: PreferenceService
    ):
        preference_service.set_digest_mode("user-1", True, "09:00")

        [delivery] = await manager.handle_event(_budget_event())
        assert manager.deferred_count() == 1
        drained = manager.drain_deferred("user-1")

        assert delivery.outcome == DeliveryOutcome.DEFERRED_DIGEST
        assert [n.id for n in drained] == [delivery.notification.id]
        assert manager.get_deferred("user-1") == []
        assert manager.deferred_count() == 0

    @pytest.mark.asyncio
    async def test_deferred_queue_keeps_only_the_newest(
        self,
        fakes: dict[NotificationChannel, FakeStrategy],
        preference_service: PreferenceService,
        clock: FixedClock,
    ):
        manager = NotificationManager(
            fakes.values(), preference_service, clock=clock, max_deferred_per_user=2
        )
        preference_service.set_digest_mode("user-1", True, "09:00")
        preference_service.set_digest_mode("user-2", True, "09:00")

        deliveries = [(await manager.handle_event(_budget_event()))[0] for _ in range(3)]
        await manager.handle_event(_budget_event(user_id="user-2"))

        assert [n.id for n in manager.get_deferred("user-1")] == [
            d.notification.id for d in deliveries[1:]
        ]
        assert manager.deferred_count() == 3

    @pytest.mark.asyncio
    async def test_priority_override_wins(self, manager: NotificationManager):
        event = _budget_event(spent=100)
        event.priority = "URGENT"

        [delivery] = await manager.handle_event(event)

        assert delivery.notification.priority == NotificationPriority.URGENT


class TestStructuralErrors:
    @pytest.mark.asyncio
    async def test_unknown_type(
        self, manager: NotificationManager, fakes: dict[NotificationChannel, FakeStrategy]
    ):
        event = NotificationEvent(type="SOMETHING_ELSE", user_id="user-1")

        with pytest.raises(UnknownEventTypeError) as exc_info:
            await manager.handle_event(event)

        assert exc_info.value.error_code == ErrorCode.UNKNOWN_EVENT_TYPE
        assert all(fake.sent == [] for fake in fakes.values())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", ["", "  ", []])
    async def test_no_recipients(self, manager: NotificationManager, user_id: str | list[str]):
        event = _friend_request([])
        event.user_id = user_id

        with pytest.raises(MalformedEventError):
            await manager.handle_event(event)

    @pytest.mark.asyncio
    async def test_blank_recipient_in_list(self, manager: NotificationManager):
        with pytest.raises(MalformedEventError):
            await manager.handle_event(_friend_request(["alice", ""]))

    @pytest.mark.asyncio
    async def test_missing_payload_keys(self, manager: NotificationManager):
        event = NotificationEvent(
            type=NotificationType.BUDGET_ALERT, user_id="user-1", data={"category": "Food"}
        )

        with pytest.raises(MalformedEventError) as exc_info:
            await manager.handle_event(event)

        assert exc_info.value.details == {"missing": ["spent", "limit"]}

    @pytest.mark.asyncio
    async def test_unknown_priority(self, manager: NotificationManager):
        event = _budget_event()
        event.priority = "CRITICAL"

        with pytest.raises(MalformedEventError):
            await manager.handle_event(event)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("notification_type", "data", "field"),
        [
            (
                NotificationType.BUDGET_ALERT,
                {"category": "Food", "spent": "lots", "limit": 1000},
                "spent",
            ),
            (
                NotificationType.BUDGET_ALERT,
                {"category": "Food", "spent": 10, "limit": 1000, "percentage": "high"},
                "percentage",
            ),
            (
                NotificationType.PAYMENT_REMINDER,
                {"amount": 300, "friendName": "Rafi", "daysUntilDue": "soon"},
                "daysUntilDue",
            ),
        ],
    )
    async def test_non_numeric_priority_inputs(
        self,
        manager: NotificationManager,
        fakes: dict[NotificationChannel, FakeStrategy],
        notification_type: NotificationType,
        data: dict,
        field: str,
    ):
        event = NotificationEvent(type=notification_type, user_id="user-1", data=data)

        with pytest.raises(MalformedEventError) as exc_info:
            await manager.handle_event(event)

        assert exc_info.value.details == {"invalid": [field]}
        assert all(fake.sent == [] for fake in fakes.values())
