"""Unit tests for PushNotificationStrategy and HttpPushGateway."""

import httpx
import orjson
import pytest

from domain.entities.notification import (
    NotificationChannel,
    NotificationPriority,
    NotificationType,
)
from domain.strategies.notification_strategy import supports
from infrastructure.channels.push import PushNotificationStrategy
from infrastructure.channels.push_gateway import HttpPushGateway, PushMessage, PushPermission
from tests.conftest import RecordingTransport
from tests.unit.conftest import FakePushGateway, make_notification


class TestEligibility:
    def test_low_priority_is_never_pushed(self, push_gateway: FakePushGateway):
        strategy = PushNotificationStrategy(push_gateway)

        assert supports(strategy, make_notification(priority=NotificationPriority.LOW)) is False
        assert supports(strategy, make_notification(priority=NotificationPriority.MEDIUM)) is True

    def test_unsupported_runtime_cannot_handle(self):
        strategy = PushNotificationStrategy(FakePushGateway(supported=False))

        assert strategy.can_handle(make_notification()) is False

    def test_requires_push_channel(self, push_gateway: FakePushGateway):
        strategy = PushNotificationStrategy(push_gateway)

        assert strategy.can_handle(
            make_notification(channels=(NotificationChannel.IN_APP,))
        ) is False

    def test_is_enabled_follows_permission(self):
        assert PushNotificationStrategy(FakePushGateway()).is_enabled() is True
        assert PushNotificationStrategy(
            FakePushGateway(permission=PushPermission.DENIED)
        ).is_enabled() is False


class TestSend:
    @pytest.mark.asyncio
    async def test_shows_message(self, push_gateway: FakePushGateway):
        strategy = PushNotificationStrategy(push_gateway)
        notification = make_notification(priority=NotificationPriority.HIGH)

        result = await strategy.send(notification)

        assert result.success is True
        assert result.channel == NotificationChannel.PUSH
        user_id, message = push_gateway.shown[0]
        assert user_id == "user-1"
        assert message.title == notification.title
        assert message.tag == notification.id
        assert message.vibrate == [200, 100, 200]
        assert message.require_interaction is False
        assert [a.action for a in message.actions] == ["accept", "reject"]

    @pytest.mark.asyncio
    async def test_unsupported_fails(self):
        strategy = PushNotificationStrategy(FakePushGateway(supported=False))

        result = await strategy.send(make_notification())

        assert result.success is False
        assert result.error == "Push notifications not supported"

    @pytest.mark.asyncio
    async def test_prompts_once_when_permission_undecided(self):
        gateway = FakePushGateway(permission=PushPermission.DEFAULT, grant_on_request=True)
        strategy = PushNotificationStrategy(gateway)

        result = await strategy.send(make_notification())

        assert result.success is True
        assert gateway.permission_requests == 1

    @pytest.mark.asyncio
    async def test_denied_permission_fails(self):
        gateway = FakePushGateway(permission=PushPermission.DEFAULT)
        strategy = PushNotificationStrategy(gateway)

        result = await strategy.send(make_notification())

        assert result.success is False
        assert result.error == "Push notification permission denied"
        assert gateway.shown == []

    @pytest.mark.asyncio
    async def test_gateway_error_becomes_failed_result(self):
        strategy = PushNotificationStrategy(FakePushGateway(raises=RuntimeError("relay down")))

        result = await strategy.send(make_notification())

        assert result.success is False
        assert result.error == "relay down"

    @pytest.mark.asyncio
    async def test_message_over_300_characters_fails(self, push_gateway: FakePushGateway):
        strategy = PushNotificationStrategy(push_gateway)

        result = await strategy.send(make_notification(message="m" * 301))

        assert result.success is False
        assert result.error == "Notification message too long (max 300 characters)"


class TestBuildMessage:
    def test_urgent_requires_interaction(self):
        message = PushNotificationStrategy.build_message(
            make_notification(
                type=NotificationType.BUDGET_ALERT, priority=NotificationPriority.URGENT
            )
        )

        assert message.require_interaction is True
        assert message.icon == "⚠️"
        assert [a.action for a in message.actions] == ["view"]

    def test_medium_does_not_vibrate(self):
        message = PushNotificationStrategy.build_message(make_notification())

        assert message.vibrate is None


class TestHttpPushGateway:
    def test_empty_endpoint_is_unsupported(self):
        assert HttpPushGateway("").is_supported() is False
        assert HttpPushGateway("http://push.test").is_supported() is True

    def test_permission_is_operator_switch(self):
        assert HttpPushGateway("http://push.test").permission == PushPermission.GRANTED
        assert (
            HttpPushGateway("http://push.test", enabled=False).permission
            == PushPermission.DENIED
        )

    @pytest.mark.asyncio
    async def test_show_posts_message(self):
        handler = RecordingTransport()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = HttpPushGateway("http://push.test/show", client=client)

            await gateway.show("user-9", PushMessage(title="Hi", body="There", tag="t1", icon="📬"))

        body = orjson.loads(handler.requests[0].content)
        assert body["userId"] == "user-9"
        assert body["title"] == "Hi"
        assert body["require_interaction"] is False

    @pytest.mark.asyncio
    async def test_show_raises_on_error_status(self):
        handler = RecordingTransport(status_code=500)
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            gateway = HttpPushGateway("http://push.test/show", client=client)

            with pytest.raises(httpx.HTTPStatusError):
                await gateway.show("user-9", PushMessage(title="Hi", body="x", tag="t", icon="i"))
