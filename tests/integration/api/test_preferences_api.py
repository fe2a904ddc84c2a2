"""Integration tests for the notification preference API."""

import pytest
from httpx import AsyncClient

BASE = "/api/v1/users/user-1/notification-preferences"


class TestGetPreferences:
    @pytest.mark.asyncio
    async def test_defaults(self, client: AsyncClient) -> None:
        response = await client.get(BASE)

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == "user-1"
        assert body["channels"] == {
            "budget_alerts": ["IN_APP", "EMAIL", "PUSH"],
            "expense_updates": ["IN_APP", "PUSH"],
            "payment_reminders": ["IN_APP", "EMAIL", "PUSH"],
            "social_updates": ["IN_APP", "PUSH"],
        }
        assert body["do_not_disturb"] == {"enabled": False, "start_time": None, "end_time": None}
        assert body["digest"] == {"enabled": False, "delivery_time": None}


class TestUpdatePreferences:
    @pytest.mark.asyncio
    async def test_replace_keeps_defaults_for_missing_categories(
        self, client: AsyncClient
    ) -> None:
        response = await client.put(
            BASE,
            json={
                "channels": {"expense_updates": ["EMAIL", "EMAIL"]},
                "do_not_disturb": {"enabled": True, "start_time": "22:00", "end_time": "07:30"},
            },
        )

        assert response.status_code == 200
        body = (await client.get(BASE)).json()
        assert body["channels"]["expense_updates"] == ["EMAIL"]
        assert body["channels"]["social_updates"] == ["IN_APP", "PUSH"]
        assert body["do_not_disturb"]["end_time"] == "07:30"

    @pytest.mark.asyncio
    async def test_bad_time_is_400(self, client: AsyncClient) -> None:
        response = await client.put(
            BASE,
            json={"do_not_disturb": {"enabled": True, "start_time": "10pm", "end_time": "08:00"}},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_TIME_FORMAT"

    @pytest.mark.asyncio
    async def test_unknown_channel_is_422(self, client: AsyncClient) -> None:
        response = await client.put(BASE, json={"channels": {"budget_alerts": ["FAX"]}})

        assert response.status_code == 422


class TestToggle:
    @pytest.mark.asyncio
    async def test_toggle_twice_restores(self, client: AsyncClient) -> None:
        payload = {"category": "social_updates", "channel": "PUSH"}

        first = await client.post(f"{BASE}/toggle", json=payload)
        second = await client.post(f"{BASE}/toggle", json=payload)

        assert first.json()["channels"]["social_updates"] == ["IN_APP"]
        assert second.json()["channels"]["social_updates"] == ["IN_APP", "PUSH"]


class TestDoNotDisturb:
    @pytest.mark.asyncio
    async def test_set_window(self, client: AsyncClient) -> None:
        response = await client.put(
            f"{BASE}/do-not-disturb",
            json={"enabled": True, "start_time": "22:00", "end_time": "08:00"},
        )

        assert response.status_code == 200
        assert response.json()["do_not_disturb"]["start_time"] == "22:00"

    @pytest.mark.asyncio
    async def test_missing_end_time_is_400(self, client: AsyncClient) -> None:
        response = await client.put(
            f"{BASE}/do-not-disturb", json={"enabled": True, "start_time": "22:00"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_PREFERENCE"

    @pytest.mark.asyncio
    async def test_suppresses_non_urgent_events(self, client: AsyncClient) -> None:
        # the test clock reads 12:00 local time
        await client.put(
            f"{BASE}/do-not-disturb",
            json={"enabled": True, "start_time": "11:00", "end_time": "13:00"},
        )

        response = await client.post(
            "/api/v1/events",
            json={"type": "FRIEND_REQUEST", "user_id": "user-1", "data": {"fromUserName": "A"}},
        )

        [delivery] = response.json()["data"]
        assert delivery["outcome"] == "SUPPRESSED_DND"
        assert delivery["results"] == []


class TestDigest:
    @pytest.mark.asyncio
    async def test_enable_digest_defers_events(self, client: AsyncClient) -> None:
        response = await client.put(f"{BASE}/digest", json={"enabled": True, "delivery_time": "09:00"})
        assert response.json()["digest"] == {"enabled": True, "delivery_time": "09:00"}

        event = await client.post(
            "/api/v1/events",
            json={
                "type": "EXPENSE_ADDED",
                "user_id": "user-1",
                "data": {"description": "Tea", "amount": 10, "paidBy": "Sam"},
            },
        )

        assert event.json()["data"][0]["outcome"] == "DEFERRED_DIGEST"

    @pytest.mark.asyncio
    async def test_bad_delivery_time_is_400(self, client: AsyncClient) -> None:
        response = await client.put(f"{BASE}/digest", json={"enabled": True, "delivery_time": "9"})

        assert response.status_code == 400
