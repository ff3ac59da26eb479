"""
Abstract identity provider interface.

Identity resolution maps an inbound credential to a stable member identifier.
Application code only ever sees the resolved Identity, never the raw token,
which allows swapping the token strategy without changing route handlers.

Example:
    from common.auth import IdentityProvider, JWTIdentityProvider

    def get_identity_provider(settings) -> IdentityProvider:
        return JWTIdentityProvider(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Identity:
    """Resolved caller identity."""

    member_id: str
    username: Optional[str] = None
    role: Optional[str] = None


class IdentityProvider(ABC):
    """
    Abstract identity provider.

    Implement this interface for different credential strategies.
    """

    @abstractmethod
    async def resolve(self, token: str) -> Identity:
        """
        Resolve a bearer token into an Identity.

        Args:
            token: Raw credential taken from the request

        Returns:
            The caller's Identity

        Raises:
            ValueError: If the token is malformed, expired or unverifiable
        """
        pass
