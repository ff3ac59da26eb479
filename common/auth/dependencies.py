"""
FastAPI identity dependencies.

Provides a factory that builds the dependency used by route handlers to
resolve the caller. Works with any IdentityProvider implementation.

Example:
    from common.auth import JWTIdentityProvider, create_identity_dependency

    provider = JWTIdentityProvider(secret="your-secret")
    get_identity = create_identity_dependency(lambda: provider)

    @app.get("/profile")
    async def get_profile(identity: Identity = Depends(get_identity)):
        return {"member_id": identity.member_id}
"""

from typing import Callable, Optional

from fastapi import Depends, Header

from common.auth.base import Identity, IdentityProvider
from common.utils.exceptions import UnauthorizedException


def create_identity_dependency(
    get_identity_provider: Callable[..., IdentityProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Factory to create FastAPI identity dependencies.

    Args:
        get_identity_provider: Dependency that returns the IdentityProvider
            (may itself take FastAPI-injected parameters such as Request)
        header_name: Header to extract token from (default: Authorization)
        scheme: Auth scheme prefix (default: Bearer)

    Returns:
        A FastAPI dependency function that returns the resolved Identity
    """

    async def get_current_identity(
        authorization: Optional[str] = Header(None, alias=header_name),
        provider: IdentityProvider = Depends(get_identity_provider),
    ) -> Identity:
        """
        Extract and resolve the caller identity from the header.

        Raises:
            UnauthorizedException: If token is missing or invalid
        """
        if not authorization:
            raise UnauthorizedException(
                message="Missing authorization header",
                code="UNAUTHORIZED",
            )

        prefix = f"{scheme} "
        if not authorization.startswith(prefix):
            raise UnauthorizedException(
                message=f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )

        token = authorization[len(prefix):].strip()
        if not token:
            raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

        try:
            return await provider.resolve(token)
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

    return get_current_identity
