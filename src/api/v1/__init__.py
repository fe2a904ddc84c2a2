"""API v1 router configuration."""

from fastapi import APIRouter

from api.v1.routes.budgets import router as budgets_router
from api.v1.routes.deferred import router as deferred_router
from api.v1.routes.events import router as events_router
from api.v1.routes.notifications import router as notifications_router
from api.v1.routes.preferences import router as preferences_router

router = APIRouter()
router.include_router(events_router)
router.include_router(notifications_router)
router.include_router(deferred_router)
router.include_router(preferences_router)
router.include_router(budgets_router)
