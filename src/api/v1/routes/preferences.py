"""Notification preference API routes."""

from fastapi import APIRouter, Depends

from api.v1.dependencies import get_preference_service
from api.v1.schemas.common import ErrorResponse
from api.v1.schemas.preference import (
    DigestSchema,
    DoNotDisturbSchema,
    NotificationPreferencesResponse,
    NotificationPreferencesSchema,
    ToggleChannelRequest,
)
from domain.services.preference_service import PreferenceService

router = APIRouter(
    prefix="/users/{user_id}/notification-preferences",
    tags=["notification-preferences"],
)


@router.get(
    "",
    response_model=NotificationPreferencesResponse,
    summary="Get notification preferences",
    responses={
        200: {"description": "Stored preferences, or the defaults"},
    },
)
async def get_notification_preferences(
    user_id: str,
    service: PreferenceService = Depends(get_preference_service),
) -> NotificationPreferencesResponse:
    return NotificationPreferencesResponse.from_entity(service.get_preferences(user_id))


@router.put(
    "",
    response_model=NotificationPreferencesResponse,
    summary="Replace notification preferences",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid time or preference"},
    },
)
async def update_notification_preferences(
    user_id: str,
    body: NotificationPreferencesSchema,
    service: PreferenceService = Depends(get_preference_service),
) -> NotificationPreferencesResponse:
    """Replace the full preference record.

    Categories missing from ``channels`` keep their default channel set.
    """
    preferences = service.update_preferences(body.to_entity(user_id))
    return NotificationPreferencesResponse.from_entity(preferences)


@router.post(
    "/toggle",
    response_model=NotificationPreferencesResponse,
    summary="Toggle a channel for a category",
)
async def toggle_channel(
    user_id: str,
    body: ToggleChannelRequest,
    service: PreferenceService = Depends(get_preference_service),
) -> NotificationPreferencesResponse:
    preferences = service.toggle_channel(user_id, body.category, body.channel)
    return NotificationPreferencesResponse.from_entity(preferences)


@router.put(
    "/do-not-disturb",
    response_model=NotificationPreferencesResponse,
    summary="Set do-not-disturb window",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid time or missing bound"},
    },
)
async def set_do_not_disturb(
    user_id: str,
    body: DoNotDisturbSchema,
    service: PreferenceService = Depends(get_preference_service),
) -> NotificationPreferencesResponse:
    preferences = service.set_do_not_disturb(
        user_id, body.enabled, start_time=body.start_time, end_time=body.end_time
    )
    return NotificationPreferencesResponse.from_entity(preferences)


@router.put(
    "/digest",
    response_model=NotificationPreferencesResponse,
    summary="Set digest mode",
    responses={
        400: {"model": ErrorResponse, "description": "Invalid delivery time"},
    },
)
async def set_digest_mode(
    user_id: str,
    body: DigestSchema,
    service: PreferenceService = Depends(get_preference_service),
) -> NotificationPreferencesResponse:
    preferences = service.set_digest_mode(user_id, body.enabled, delivery_time=body.delivery_time)
    return NotificationPreferencesResponse.from_entity(preferences)
