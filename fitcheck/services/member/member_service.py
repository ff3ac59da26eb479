"""
Member service.

Handles member provisioning on first contact, streak field writes and the
data-reset operation.
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from common.auth import Identity
from common.utils.exceptions import NotFoundException, ValidationException
from fitcheck.constants import MEMBER_ROLES
from fitcheck.services.checkin.calendar_day import to_key
from fitcheck.services.checkin.streak_rules import StreakState

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore
    from fitcheck.services.media.blob_store import BlobStore

logger = logging.getLogger(__name__)


class MemberService:
    """
    Manages member records and their derived streak fields.
    """

    def __init__(self, store: "MongoStore", blob_store: Optional["BlobStore"] = None):
        """
        Initialize MemberService.

        Args:
            store: Durable store
            blob_store: Photo blob storage, cleared on data reset
        """
        self._store = store
        self._blob_store = blob_store

    async def ensure_member(self, identity: Identity) -> Dict[str, Any]:
        """
        Create the member on first contact, or refresh username/role.

        Args:
            identity: Resolved caller identity

        Returns:
            Member document
        """
        role = identity.role.upper() if identity.role else None
        if role is not None and role not in MEMBER_ROLES:
            raise ValidationException(
                message=f"Unknown role: {identity.role}",
                code="VALIDATION_ERROR",
            )

        return await self._store.upsert_member(
            member_id=identity.member_id,
            username=identity.username,
            role=role,
        )

    async def get_member(self, member_id: str) -> Dict[str, Any]:
        """
        Get a member by id.

        Raises:
            NotFoundException: Member does not exist
        """
        member = await self._store.get_member(member_id)
        if not member:
            raise NotFoundException(message="Member not found", code="MEMBER_NOT_FOUND")
        return member

    async def apply_streak(self, member_id: str, state: StreakState) -> Dict[str, Any]:
        """Persist streak fields as absolute values."""
        member = await self._store.update_member(member_id, state.to_fields())
        if not member:
            raise NotFoundException(message="Member not found", code="MEMBER_NOT_FOUND")
        return member

    async def record_photo(self, member_id: str, day: date) -> None:
        """Track the day of the member's most recent photo."""
        await self._store.update_member(member_id, {"lastPhotoDate": to_key(day)})

    async def reset_member_data(self, member_id: str) -> List[str]:
        """
        Delete a member's check-ins and photos and zero their streak fields.

        Args:
            member_id: Member to reset

        Returns:
            Calendar day keys that lost check-ins (their aggregates are stale)
        """
        await self.get_member(member_id)

        affected_days = await self._store.delete_member_checkins(member_id)
        deleted_photos = await self._store.delete_member_photos(member_id)
        if self._blob_store is not None:
            await self._blob_store.delete_for_owner(member_id)

        await self._store.update_member(member_id, {
            **StreakState().to_fields(),
            "lastPhotoDate": None,
        })

        logger.info(
            f"Reset data for member {member_id}: "
            f"{len(affected_days)} check-in days, {deleted_photos} photos"
        )
        return affected_days


def format_member(member: Dict[str, Any]) -> Dict[str, Any]:
    """Format member document for API response."""
    return {
        "memberId": member["_id"],
        "username": member.get("username"),
        "role": member.get("role"),
        "currentStreak": member.get("currentStreak", 0),
        "longestStreak": member.get("longestStreak", 0),
        "lastCheckInDate": member.get("lastCheckInDate"),
        "lastPhotoDate": member.get("lastPhotoDate"),
        "lastActiveAt": member.get("lastActiveAt"),
    }
