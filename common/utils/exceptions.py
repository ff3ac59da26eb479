"""
Custom HTTP exceptions with error codes.

Extends FastAPI's HTTPException with standardized error codes so services can
raise them directly and the framework renders a consistent error body:

    {"detail": {"message": "...", "code": "...", "details": ...}}

Example:
    from common.utils import NotFoundException

    checkin = await store.get_checkin(checkin_id)
    if not checkin:
        raise NotFoundException("Check-in not found", code="CHECKIN_NOT_FOUND")
"""

from typing import Optional, Any, Dict
from fastapi import HTTPException


class APIException(HTTPException):
    """
    Base API exception with error code support.
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        code: Optional[str] = None,
        details: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """
        Create an API exception.

        Args:
            status_code: HTTP status code
            message: Human-readable error message
            code: Machine-readable error code
            details: Additional error details
            headers: Optional response headers
        """
        detail: Dict[str, Any] = {"message": message}

        if code:
            detail["code"] = code

        if details is not None:
            detail["details"] = details

        super().__init__(
            status_code=status_code,
            detail=detail,
            headers=headers,
        )
        self.message = message
        self.code = code


class UnauthorizedException(APIException):
    """401 Unauthorized - Missing or invalid credentials."""

    def __init__(self, message: str = "Unauthorized", code: str = "UNAUTHORIZED", details: Optional[Any] = None):
        super().__init__(401, message, code, details)


class ForbiddenException(APIException):
    """403 Forbidden - Known caller but insufficient permissions."""

    def __init__(self, message: str = "Forbidden", code: str = "FORBIDDEN", details: Optional[Any] = None):
        super().__init__(403, message, code, details)


class NotFoundException(APIException):
    """404 Not Found - Resource doesn't exist."""

    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND", details: Optional[Any] = None):
        super().__init__(404, message, code, details)


class ConflictException(APIException):
    """409 Conflict - Resource already exists or state conflict."""

    def __init__(self, message: str = "Conflict", code: str = "CONFLICT", details: Optional[Any] = None):
        super().__init__(409, message, code, details)


class PayloadTooLargeException(APIException):
    """413 Payload Too Large - Uploaded content exceeds the limit."""

    def __init__(self, message: str = "Payload too large", code: str = "PAYLOAD_TOO_LARGE", details: Optional[Any] = None):
        super().__init__(413, message, code, details)


class UnsupportedMediaTypeException(APIException):
    """415 Unsupported Media Type - Uploaded content type is not accepted."""

    def __init__(self, message: str = "Unsupported media type", code: str = "UNSUPPORTED_MEDIA_TYPE", details: Optional[Any] = None):
        super().__init__(415, message, code, details)


class ValidationException(APIException):
    """422 Validation Error - Request validation failed."""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Any] = None,
    ):
        super().__init__(422, message, code, details)


class ServiceUnavailableException(APIException):
    """503 Service Unavailable - Transient infrastructure failure; safe to retry."""

    def __init__(
        self,
        message: str = "Service unavailable",
        code: str = "SERVICE_UNAVAILABLE",
        retry_after: Optional[int] = None,
    ):
        headers = {}
        if retry_after:
            headers["Retry-After"] = str(retry_after)

        super().__init__(
            status_code=503,
            message=message,
            code=code,
            details={"retryAfter": retry_after} if retry_after else None,
            headers=headers if headers else None,
        )
