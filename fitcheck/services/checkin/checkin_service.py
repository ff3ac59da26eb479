"""
Check-in ledger.

Owns the checkins collection: admission of new check-ins, owner/coach
deletion, visibility toggles and history reads.

One check-in per member per calendar day is guaranteed by the store's
unique (memberId, calendarDay) index. The ledger never reads before it
writes to decide admissibility; a concurrent loser gets
DuplicateCheckInError straight from the insert.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple, TYPE_CHECKING

from common.utils.exceptions import ForbiddenException, NotFoundException, ValidationException
from fitcheck.constants import HEATMAP_VALUES, VISIBILITY_NOTE
from fitcheck.errors import DeletionWindowExpiredError
from fitcheck.services.checkin.calendar_day import ensure_utc, normalize, parse_key, to_key, utcnow
from fitcheck.services.checkin.checkin_validator import CheckInValidator
from fitcheck.services.media.photo_service import PhotoService, format_photo

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore

logger = logging.getLogger(__name__)


class CheckInService:
    """
    Handles check-in admission, deletion and retrieval.
    Streak and aggregate effects are applied by the check-in pipeline.
    """

    def __init__(
        self,
        store: "MongoStore",
        photo_service: PhotoService,
        deletion_window_minutes: int = 30,
        history_max_limit: int = 365,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize CheckInService.

        Args:
            store: Durable store
            photo_service: Photo ownership and visibility
            deletion_window_minutes: How long an owner may delete a check-in
            history_max_limit: Cap on history page size
            now: Clock returning the current instant (defaults to UTC now)
        """
        self._store = store
        self._photo_service = photo_service
        self._deletion_window = timedelta(minutes=deletion_window_minutes)
        self._deletion_window_minutes = deletion_window_minutes
        self._history_max_limit = history_max_limit
        self._now = now or utcnow

    def today(self) -> date:
        """Today's calendar day by this service's clock."""
        return normalize(self._now())

    async def get_checkin_for(self, member_id: str, day: date) -> Optional[Dict[str, Any]]:
        """
        Get a member's check-in for a calendar day.

        Args:
            member_id: Member id
            day: Calendar day

        Returns:
            Check-in dict or None
        """
        return await self._store.find_checkin(member_id, to_key(day))

    async def get_today_checkin(self, member_id: str) -> Optional[Dict[str, Any]]:
        checkin = await self.get_checkin_for(member_id, self.today())
        if checkin and checkin.get("photoId"):
            checkin["photo"] = await self._store.get_photo(checkin["photoId"])
        return checkin

    async def create_checkin(
        self,
        member_id: str,
        kind: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Record today's check-in for a member.

        Args:
            member_id: Member id (member must already be provisioned)
            kind: WORKOUT, REST or REFLECTION
            details: muscleGroup, note, isNotePublic, photoId

        Returns:
            Saved check-in document, with the linked photo under "photo"

        Raises:
            ValidationException: Invalid kind or details, or a photo that is
                unknown, foreign or already attached
            DuplicateCheckInError: Member already checked in today
        """
        details = details or {}

        is_valid, error = CheckInValidator.validate_kind(kind)
        if not is_valid:
            raise ValidationException(message=error, code="VALIDATION_ERROR")

        is_valid, error = CheckInValidator.validate_details(kind, details)
        if not is_valid:
            raise ValidationException(message=error, code="VALIDATION_ERROR")

        photo = None
        if details.get("photoId"):
            photo = await self._photo_service.get_attachable_photo(details["photoId"], member_id)

        now = self._now()
        note = details.get("note")

        checkin = await self._store.insert_checkin({
            "memberId": member_id,
            "kind": kind,
            "calendarDay": to_key(now),
            "muscleGroup": details.get("muscleGroup"),
            "note": note.strip() if note else None,
            "isNotePublic": bool(details.get("isNotePublic", False)),
            "photoId": photo["_id"] if photo else None,
            "createdAt": now,
        })

        logger.info(f"Check-in {checkin['_id']} ({kind}) recorded for {member_id} on {checkin['calendarDay']}")
        checkin["photo"] = photo
        return checkin

    async def delete_checkin(
        self,
        checkin_id: str,
        requested_by: str,
        is_coach: bool = False,
    ) -> Dict[str, Any]:
        """
        Delete a check-in.

        Owners may delete within the deletion window; coaches at any time.

        Args:
            checkin_id: Check-in id
            requested_by: Member id of the caller
            is_coach: Whether the caller is a coach

        Returns:
            The deleted check-in document

        Raises:
            NotFoundException: Unknown check-in
            ForbiddenException: Caller is neither owner nor coach
            DeletionWindowExpiredError: Owner is past the deletion window
        """
        checkin = await self._store.get_checkin(checkin_id)
        if not checkin:
            raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")

        is_owner = checkin["memberId"] == requested_by
        if not is_owner and not is_coach:
            raise ForbiddenException(message="You can only delete your own check-ins", code="FORBIDDEN")

        if not is_coach:
            age = self._now() - ensure_utc(checkin["createdAt"])
            if age > self._deletion_window:
                raise DeletionWindowExpiredError(self._deletion_window_minutes)

        deleted = await self._store.delete_checkin(checkin_id)
        if not deleted:
            # Removed concurrently between the read and the delete
            raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")

        logger.info(
            f"Check-in {checkin_id} for {checkin['memberId']} on {checkin['calendarDay']} "
            f"deleted by {requested_by}{' (coach)' if is_coach and not is_owner else ''}"
        )
        return checkin

    async def toggle_visibility(
        self,
        checkin_id: str,
        field: str,
        requested_by: str,
        is_public: bool,
    ) -> Dict[str, Any]:
        """
        Set the visibility of a check-in's note or its linked photo.

        Args:
            checkin_id: Check-in id
            field: "note" or "photo"
            requested_by: Member id of the caller (must be the owner)
            is_public: New visibility

        Returns:
            Updated check-in document, with the linked photo under "photo"

        Raises:
            ValidationException: Unknown field, or "photo" with no linked photo
            NotFoundException: Unknown check-in
            ForbiddenException: Caller is not the owner
        """
        is_valid, error = CheckInValidator.validate_visibility_field(field)
        if not is_valid:
            raise ValidationException(message=error, code="VALIDATION_ERROR")

        checkin = await self._store.get_checkin(checkin_id)
        if not checkin:
            raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")

        if checkin["memberId"] != requested_by:
            raise ForbiddenException(message="You can only change your own check-ins", code="FORBIDDEN")

        if field == VISIBILITY_NOTE:
            checkin = await self._store.update_checkin(checkin_id, {"isNotePublic": is_public})
            if not checkin:
                raise NotFoundException(message="Check-in not found", code="CHECKIN_NOT_FOUND")
            photo = await self._store.get_photo(checkin["photoId"]) if checkin.get("photoId") else None
        else:
            if not checkin.get("photoId"):
                raise ValidationException(message="Check-in has no photo", code="VALIDATION_ERROR")
            photo = await self._photo_service.set_visibility(checkin["photoId"], is_public)

        logger.info(f"Check-in {checkin_id} {field} visibility set to {'public' if is_public else 'private'}")
        checkin["photo"] = photo
        return checkin

    async def get_history(
        self,
        member_id: str,
        limit: int = 30,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """
        Get a member's check-ins, most recent day first.

        Args:
            member_id: Member id
            limit: Max records to return (capped at the history limit)
            offset: Number of records to skip

        Returns:
            List of check-in dicts, each with its photo under "photo"
        """
        limit = max(1, min(limit, self._history_max_limit))
        return await self._store.list_member_checkins(member_id, limit=limit, offset=max(0, offset))

    async def get_total_count(self, member_id: str) -> int:
        return await self._store.count_member_checkins(member_id)

    async def get_days_before(self, member_id: str, day: date) -> List[Tuple[date, str]]:
        """(day, kind) of every check-in the member made before day, oldest first."""
        rows = await self._store.list_member_checkin_days(member_id, to_key(day))
        return [(parse_key(r["calendarDay"]), r["kind"]) for r in rows]


def format_checkin(checkin: Dict[str, Any]) -> Dict[str, Any]:
    """Format check-in document for the owner's view."""
    return {
        "id": str(checkin["_id"]),
        "memberId": checkin["memberId"],
        "kind": checkin["kind"],
        "date": checkin["calendarDay"],
        "muscleGroup": checkin.get("muscleGroup"),
        "note": checkin.get("note"),
        "isNotePublic": checkin.get("isNotePublic", False),
        "photo": format_photo(checkin.get("photo")),
        "createdAt": checkin.get("createdAt"),
    }


def build_heatmap(checkins: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Project check-ins onto heatmap cells.

    WORKOUT = 1, REST = 2, REFLECTION = 0.
    """
    return [
        {
            "date": c["calendarDay"],
            "kind": c["kind"],
            "value": HEATMAP_VALUES.get(c["kind"], 0),
        }
        for c in checkins
    ]
