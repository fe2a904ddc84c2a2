"""Main FastAPI application entry point."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from api.exception_handlers import setup_exception_handlers
from api.middleware.logging import RequestLoggingMiddleware
from api.middleware.request_id import RequestIDMiddleware
from api.routes.health import router as health_router
from api.v1 import router as v1_router
from api.v1.dependencies import get_notification_container
from core.config import settings
from core.logging import setup_logging

logger = structlog.get_logger()

# Initialize structured logging
setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager for startup/shutdown tasks."""
    container = app.dependency_overrides.get(
        get_notification_container, get_notification_container
    )()

    async def notification_cleanup_loop() -> None:
        """Periodically drop expired in-app notifications."""
        while True:
            await asyncio.sleep(settings.cleanup_interval_seconds)
            try:
                removed = container.in_app_store.remove_expired()
                if removed > 0:
                    logger.info("notification_cleanup_completed", removed_count=removed)
            except Exception:
                logger.exception("notification_cleanup_failed")

    cleanup_task = asyncio.create_task(notification_cleanup_loop())
    logger.info(
        "notification_service_started",
        channels=[channel.value for channel in container.manager.strategies],
        cleanup_interval_seconds=settings.cleanup_interval_seconds,
    )
    yield
    cleanup_task.cancel()
    container.in_app_store.persist()

    held_back = container.manager.deferred_count()
    if held_back:
        logger.warning("deferred_notifications_dropped", count=held_back)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        title=settings.app_name,
        description=(
            "## Expense Notifications\n\n"
            "Delivers expense-tracker events (budget alerts, new expenses, payment "
            "reminders, friend requests, ...) as notifications across in-app, email, "
            "SMS and push channels.\n\n"
            "### Features\n"
            "- **Priority routing**: URGENT/HIGH go out on every allowed channel, "
            "MEDIUM/LOW stop at the first channel that succeeds\n"
            "- **Preferences**: per-category channels, do-not-disturb and digest mode\n"
            "- **In-app feed**: newest-first list with read state"
        ),
        version="1.0.0",
        debug=settings.debug,
        openapi_tags=[
            {
                "name": "health",
                "description": "Health check endpoints",
            },
            {
                "name": "events",
                "description": "Notification event intake",
            },
            {
                "name": "notifications",
                "description": "In-app notification feed operations",
            },
            {
                "name": "notification-preferences",
                "description": "Per-user delivery preferences",
            },
            {
                "name": "budgets",
                "description": "Budget thresholds that raise budget alerts",
            },
        ],
    )

    # Tracking middleware (LIFO order - last added = outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # GZip compression for responses > 1KB
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup exception handlers
    setup_exception_handlers(app)

    # Include routers
    app.include_router(health_router)
    app.include_router(v1_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
