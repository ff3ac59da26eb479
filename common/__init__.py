"""
Common library for reusable infrastructure components.

Generic modules shared by the fitcheck application:

- database: Async MongoDB connection manager (Motor)
- auth: Pluggable identity resolution (JWT)
- utils: Standard responses and HTTP exceptions
- config: Base settings class
"""

from common.database import MongoDB
from common.auth import IdentityProvider, JWTIdentityProvider, create_identity_dependency
from common.utils import (
    success_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    # Auth
    "IdentityProvider",
    "JWTIdentityProvider",
    "create_identity_dependency",
    # Utils
    "success_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    # Config
    "BaseAppSettings",
]
