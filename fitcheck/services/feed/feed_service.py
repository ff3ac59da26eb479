"""
Public feed.

The store returns every check-in whose note OR photo is public. This service
produces the outward view, in which the note and the photo are each nulled
unless that particular item is public.
"""

import logging
from typing import Any, Dict, List, TYPE_CHECKING

from common.utils.exceptions import ValidationException
from fitcheck.services.media.photo_service import format_photo

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore

logger = logging.getLogger(__name__)


def project_checkin(checkin: Dict[str, Any]) -> Dict[str, Any]:
    """
    Privacy-filtered view of a check-in.

    note is kept only when isNotePublic; photo only when the photo itself is
    public. The two are independent.
    """
    photo = checkin.get("photo")
    is_note_public = bool(checkin.get("isNotePublic", False))
    is_photo_public = bool(photo and photo.get("isPublic", False))

    return {
        "id": str(checkin["_id"]),
        "kind": checkin["kind"],
        "date": checkin["calendarDay"],
        "muscleGroup": checkin.get("muscleGroup"),
        "note": checkin.get("note") if is_note_public else None,
        "photo": format_photo(photo) if is_photo_public else None,
        "createdAt": checkin.get("createdAt"),
    }


class FeedService:
    """
    Builds the community feed of public check-ins.
    """

    def __init__(self, store: "MongoStore", max_limit: int = 100):
        """
        Initialize FeedService.

        Args:
            store: Durable store
            max_limit: Largest page size a caller may request
        """
        self._store = store
        self._max_limit = max_limit

    async def public_feed(self, limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        """
        Get a page of the public feed, newest first.

        Args:
            limit: Page size (1..max_limit)
            offset: Number of entries to skip

        Returns:
            Projected feed entries with author info

        Raises:
            ValidationException: limit or offset out of range
        """
        if limit < 1 or limit > self._max_limit:
            raise ValidationException(
                message=f"Limit must be between 1 and {self._max_limit}",
                code="VALIDATION_ERROR",
            )
        if offset < 0:
            raise ValidationException(message="Offset cannot be negative", code="VALIDATION_ERROR")

        checkins = await self._store.list_public_checkins(limit=limit, offset=offset)

        entries = []
        for checkin in checkins:
            entry = project_checkin(checkin)
            entry["author"] = {
                "memberId": checkin["memberId"],
                "username": checkin.get("authorUsername"),
            }
            entries.append(entry)

        logger.debug(f"Feed page offset={offset} limit={limit}: {len(entries)} entries")
        return entries
