"""Custom exceptions and error codes."""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Standardized error codes for the API."""

    # Not found errors (404)
    NOTIFICATION_NOT_FOUND = "NOTIFICATION_NOT_FOUND"
    BUDGET_NOT_FOUND = "BUDGET_NOT_FOUND"

    # Validation errors (400)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_EVENT_TYPE = "UNKNOWN_EVENT_TYPE"
    MALFORMED_EVENT = "MALFORMED_EVENT"
    INVALID_TIME_FORMAT = "INVALID_TIME_FORMAT"
    INVALID_PREFERENCE = "INVALID_PREFERENCE"
    INVALID_BUDGET = "INVALID_BUDGET"

    # Server errors (500)
    EMPTY_DELIVERY_CHAIN = "EMPTY_DELIVERY_CHAIN"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Any | None = None,
    ) -> None:
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class UnknownEventTypeError(AppException):
    """Event type is not one of the known notification types."""

    def __init__(self, event_type: str) -> None:
        super().__init__(
            error_code=ErrorCode.UNKNOWN_EVENT_TYPE,
            message=f"Unknown notification event type: {event_type}",
            status_code=400,
            details={"event_type": event_type},
        )


class MalformedEventError(AppException):
    """Event is structurally invalid (recipients, priority or payload)."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.MALFORMED_EVENT,
            message=message,
            status_code=400,
            details=details,
        )


class EmptyDeliveryChainError(AppException):
    """A delivery chain was requested without any strategy."""

    def __init__(self) -> None:
        super().__init__(
            error_code=ErrorCode.EMPTY_DELIVERY_CHAIN,
            message="At least one strategy is required to build a delivery chain",
            status_code=500,
        )


class InvalidTimeFormatError(AppException):
    """A preference time string is not a valid HH:MM value."""

    def __init__(self, value: str | None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_TIME_FORMAT,
            message=f"Invalid time, expected HH:MM: {value!r}",
            status_code=400,
            details={"value": value},
        )


class InvalidPreferenceError(AppException):
    """A preference update is inconsistent."""

    def __init__(self, message: str) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_PREFERENCE,
            message=message,
            status_code=400,
        )


class NotificationNotFoundError(AppException):
    """Notification not found in the in-app store."""

    def __init__(self, notification_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.NOTIFICATION_NOT_FOUND,
            message=f"Notification not found: {notification_id}",
            status_code=404,
            details={"notification_id": notification_id},
        )


class BudgetNotFoundError(AppException):
    def __init__(self, budget_id: str) -> None:
        super().__init__(
            error_code=ErrorCode.BUDGET_NOT_FOUND,
            message=f"Budget not found: {budget_id}",
            status_code=404,
            details={"budget_id": budget_id},
        )


class InvalidBudgetError(AppException):
    """A budget set cannot be monitored as given."""

    def __init__(self, message: str, details: Any | None = None) -> None:
        super().__init__(
            error_code=ErrorCode.INVALID_BUDGET,
            message=message,
            status_code=400,
            details=details,
        )
