"""
Utilities module - Common helpers for API responses and exceptions.
"""

from common.utils.responses import success_response, offset_page_response
from common.utils.exceptions import (
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    PayloadTooLargeException,
    UnsupportedMediaTypeException,
    ValidationException,
    ServiceUnavailableException,
)

__all__ = [
    "success_response",
    "offset_page_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "PayloadTooLargeException",
    "UnsupportedMediaTypeException",
    "ValidationException",
    "ServiceUnavailableException",
]
