"""Routes for notifications held back by do-not-disturb or digest mode."""

from fastapi import APIRouter, Depends

from api.v1.dependencies import get_notification_manager
from api.v1.schemas.notification import NotificationListResponse, NotificationResponse
from domain.services.notification_manager import NotificationManager

router = APIRouter(prefix="/users/{user_id}/deferred-notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List held-back notifications",
)
async def list_deferred_notifications(
    user_id: str,
    manager: NotificationManager = Depends(get_notification_manager),
) -> NotificationListResponse:
    deferred = manager.get_deferred(user_id)
    return NotificationListResponse(
        data=[NotificationResponse.from_entity(n) for n in deferred],
        meta={"total": len(deferred)},
    )


@router.post(
    "/drain",
    response_model=NotificationListResponse,
    summary="Take held-back notifications",
    responses={
        200: {"description": "Oldest-first notifications, removed from the queue"},
    },
)
async def drain_deferred_notifications(
    user_id: str,
    manager: NotificationManager = Depends(get_notification_manager),
) -> NotificationListResponse:
    """Hand the queue to a digest or quiet-hours scheduler and empty it."""
    drained = manager.drain_deferred(user_id)
    return NotificationListResponse(
        data=[NotificationResponse.from_entity(n) for n in drained],
        meta={"total": len(drained)},
    )
