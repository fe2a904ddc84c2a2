"""In-app notification API routes."""

from fastapi import APIRouter, Depends, Query, status

from api.v1.dependencies import get_in_app_store
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from core.exceptions import NotificationNotFoundError
from infrastructure.channels.in_app import InAppNotificationStore

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List in-app notifications",
    responses={
        200: {"description": "Newest-first notification feed"},
    },
)
async def list_notifications(
    user_id: str | None = Query(None, description="Only notifications for this user"),
    is_read: bool | None = Query(None, description="Filter by read status"),
    limit: int = Query(50, ge=1, le=100, description="Page size"),
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> NotificationListResponse:
    """List notifications, newest first."""
    notifications = store.get_all()
    if user_id is not None:
        notifications = [n for n in notifications if n.user_id == user_id]
    unread_count = sum(1 for n in notifications if not n.is_read)
    if is_read is not None:
        notifications = [n for n in notifications if n.is_read == is_read]

    return NotificationListResponse(
        data=[NotificationResponse.from_entity(n) for n in notifications[:limit]],
        meta={"unread_count": unread_count, "total": len(notifications)},
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Get unread notification count",
)
async def get_unread_count(
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> UnreadCountResponse:
    return UnreadCountResponse(count=store.get_unread_count())


@router.patch(
    "/{notification_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark notification as read",
    responses={
        204: {"description": "Notification marked as read"},
        404: {"model": ErrorResponse, "description": "Notification not found"},
    },
)
async def mark_notification_read(
    notification_id: str,
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> None:
    """Mark a notification as read. Marking it again is a no-op."""
    if store.get(notification_id) is None:
        raise NotificationNotFoundError(notification_id)
    store.mark_as_read(notification_id)


@router.post(
    "/mark-all-read",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
    responses={
        200: {"description": "Count of notifications marked as read"},
    },
)
async def mark_all_notifications_read(
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> MarkAllReadResponse:
    return MarkAllReadResponse(count=store.mark_all_as_read())


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete notification",
    responses={
        204: {"description": "Notification removed"},
        404: {"model": ErrorResponse, "description": "Notification not found"},
    },
)
async def delete_notification(
    notification_id: str,
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> None:
    if not store.clear(notification_id):
        raise NotificationNotFoundError(notification_id)


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete all notifications",
)
async def delete_all_notifications(
    store: InAppNotificationStore = Depends(get_in_app_store),
) -> None:
    store.clear_all()
