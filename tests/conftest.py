"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import datetime
from pathlib import Path

# Keep the default JSON file storage out of the working tree
os.environ.setdefault("IN_APP_STORAGE_DIR", str(Path(__file__).parent / ".notifications"))

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import Settings
from infrastructure.container import NotificationContainer, build_notification_container
from infrastructure.storage.local_storage import InMemoryStorage


# Local wall-clock time seen by do-not-disturb checks in API tests
TEST_LOCAL_NOW = datetime(2024, 5, 1, 12, 0)


class RecordingTransport:
    """httpx handler that records outbound requests and answers 200."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={"ok": self.status_code < 400})

    def urls(self) -> list[str]:
        return [str(request.url) for request in self.requests]


@pytest.fixture
def test_settings() -> Settings:
    """Settings with fixed endpoints and push disabled."""
    return Settings(
        email_endpoint="http://mail.test/send",
        sms_endpoint="http://sms.test/send",
        push_endpoint="",
        in_app_max_notifications=100,
    )


@pytest.fixture
def outbound() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
async def container(
    test_settings: Settings, outbound: RecordingTransport
) -> AsyncGenerator[NotificationContainer, None]:
    """Notification system on in-memory storage with a recording HTTP transport."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(outbound)) as http_client:
        yield build_notification_container(
            test_settings,
            storage=InMemoryStorage(),
            client=http_client,
            clock=lambda: TEST_LOCAL_NOW,
        )


@pytest.fixture
async def client(container: NotificationContainer) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client wired to the test notification system."""
    from api.v1.dependencies import get_notification_container
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_notification_container] = lambda: container

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
