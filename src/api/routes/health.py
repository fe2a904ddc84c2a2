"""Health check endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.v1.dependencies import get_notification_container
from core.config import settings
from domain.entities.notification import NotificationChannel, utcnow
from infrastructure.container import NotificationContainer

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: str
    environment: str
    channels: list[NotificationChannel] | None = None
    in_app_notifications: int | None = None


@router.get("/health", response_model=HealthResponse, summary="Basic health check")
async def health_check() -> HealthResponse:
    """
    Basic health check for load balancers.

    Returns service status without checking dependencies. Fast and lightweight.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=utcnow().isoformat(),
        environment=settings.app_env,
    )


@router.get(
    "/health/detailed",
    response_model=HealthResponse,
    summary="Detailed health check",
)
async def detailed_health_check(
    container: NotificationContainer = Depends(get_notification_container),
) -> HealthResponse:
    """
    Detailed health check including the notification system.

    Reports the wired channels and the size of the in-app store.
    """
    return HealthResponse(
        status="healthy",
        version="1.0.0",
        timestamp=utcnow().isoformat(),
        environment=settings.app_env,
        channels=list(container.manager.strategies),
        in_app_notifications=len(container.in_app_store.get_all()),
    )
