"""
Domain errors for the check-in engine.

Each error is an APIException so it can be raised from a service and rendered
by FastAPI without translation in the routers.
"""

from typing import Optional

from common.utils.exceptions import (
    APIException,
    ConflictException,
    ForbiddenException,
    PayloadTooLargeException,
    ServiceUnavailableException,
    UnsupportedMediaTypeException,
)


class DuplicateCheckInError(ConflictException):
    """A check-in already exists for this member and calendar day."""

    def __init__(self, message: str = "You have already checked in today"):
        super().__init__(message=message, code="DUPLICATE_CHECKIN")


class DeletionWindowExpiredError(ForbiddenException):
    """The owner's deletion window for a check-in has lapsed."""

    def __init__(self, window_minutes: int):
        super().__init__(
            message=f"Check-ins can only be deleted within {window_minutes} minutes of creation",
            code="DELETION_WINDOW_EXPIRED",
            details={"windowMinutes": window_minutes},
        )


class FileTooLargeError(PayloadTooLargeException):
    """Uploaded photo exceeds the configured size limit."""

    def __init__(self, max_bytes: int):
        super().__init__(
            message=f"File size must be less than {max_bytes // (1024 * 1024)}MB",
            code="FILE_TOO_LARGE",
            details={"maxBytes": max_bytes},
        )


class InvalidFileTypeError(UnsupportedMediaTypeException):
    """Uploaded photo has a content type outside the allowed set."""

    def __init__(self, allowed_types: list):
        super().__init__(
            message="Only JPEG and PNG images are allowed",
            code="INVALID_FILE_TYPE",
            details={"allowedTypes": allowed_types},
        )


class StorageUnavailableError(ServiceUnavailableException):
    """The durable store timed out or is unreachable. Safe to retry."""

    def __init__(self, message: str = "Storage temporarily unavailable", retry_after: Optional[int] = 5):
        super().__init__(message=message, code="STORAGE_UNAVAILABLE", retry_after=retry_after)


def is_retryable(error: Exception) -> bool:
    """True for errors the caller may retry unchanged."""
    return isinstance(error, StorageUnavailableError)


__all__ = [
    "APIException",
    "DuplicateCheckInError",
    "DeletionWindowExpiredError",
    "FileTooLargeError",
    "InvalidFileTypeError",
    "StorageUnavailableError",
    "is_retryable",
]
