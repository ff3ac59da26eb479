"""
Authentication module - Pluggable identity resolution.
"""

from common.auth.base import Identity, IdentityProvider
from common.auth.jwt_auth import JWTIdentityProvider
from common.auth.dependencies import create_identity_dependency

__all__ = ["Identity", "IdentityProvider", "JWTIdentityProvider", "create_identity_dependency"]
