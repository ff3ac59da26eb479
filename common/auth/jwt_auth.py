"""
JWT identity provider.

Verifies signed JWTs with python-jose and maps their claims onto an Identity:

- sub: stable member id (required)
- username: optional display name
- role: optional role claim (MEMBER or COACH)

Example:
    provider = JWTIdentityProvider(secret="your-secret-key")
    identity = await provider.resolve(token)
    print(identity.member_id)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from common.auth.base import Identity, IdentityProvider

PLAIN_ID_PREFIX = "user_"


class JWTIdentityProvider(IdentityProvider):
    """
    Resolves identities from HS256 (or configured algorithm) JWTs.

    With allow_plain_ids enabled (development only), a bare "user_..."
    token is accepted as the member id itself.
    """

    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        allow_plain_ids: bool = False,
    ):
        """
        Initialize JWT identity provider.

        Args:
            secret: Secret key for JWT verification
            algorithm: JWT algorithm (default: HS256)
            allow_plain_ids: Accept unsigned "user_..." tokens
        """
        self.secret = secret
        self.algorithm = algorithm
        self.allow_plain_ids = allow_plain_ids

    def create_token(
        self,
        member_id: str,
        expires_in: timedelta = timedelta(hours=1),
        **claims: Any,
    ) -> str:
        """Create a signed token for a member (used by tooling and tests)."""
        if not self.secret:
            raise ValueError("JWT secret not configured")

        payload: Dict[str, Any] = {
            "sub": member_id,
            "exp": datetime.now(timezone.utc) + expires_in,
            **claims,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def resolve(self, token: str) -> Identity:
        """Verify the token and return the caller's identity."""
        if self.allow_plain_ids and token.startswith(PLAIN_ID_PREFIX):
            return Identity(member_id=token)

        if not self.secret:
            raise ValueError("JWT secret not configured")

        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")

        member_id = payload.get("sub")
        if not member_id:
            raise ValueError("Token missing subject")

        return Identity(
            member_id=str(member_id),
            username=payload.get("username"),
            role=payload.get("role"),
        )
