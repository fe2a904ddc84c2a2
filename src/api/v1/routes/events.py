"""Event intake API routes."""

from fastapi import APIRouter, Depends

from api.v1.dependencies import get_notification_manager
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.notification import EventRequest, EventResponse, RecipientDeliveryResponse
from domain.entities.notification import NotificationEvent
from domain.services.notification_manager import NotificationManager

router = APIRouter(prefix="/events", tags=["events"])


@router.post(
    "",
    response_model=EventResponse,
    summary="Dispatch a notification event",
    responses={
        200: {"description": "Per-recipient delivery outcomes"},
        400: {"model": ErrorResponse, "description": "Unknown or malformed event"},
    },
)
async def dispatch_event(
    body: EventRequest,
    manager: NotificationManager = Depends(get_notification_manager),
) -> EventResponse:
    """Run an event through preference resolution and channel delivery."""
    deliveries = await manager.handle_event(
        NotificationEvent(
            type=body.type,
            user_id=body.user_id,
            data=body.data,
            priority=body.priority,
        )
    )
    return EventResponse(data=[RecipientDeliveryResponse.from_entity(d) for d in deliveries])
