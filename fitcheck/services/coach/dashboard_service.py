"""
Coach dashboard.

Read-only view over members, check-ins and photos for coaches:

    - every member with streak fields, photo count and engagement status
    - weekly check-in and reflection counts
    - engagement rate (weekly check-ins / (members * 7), percent)
    - photo compliance (members with enough photos in the last 7 days)
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from common.utils.exceptions import NotFoundException
from fitcheck.constants import ENGAGEMENT_STATUSES, REFLECTION, ROLE_MEMBER
from fitcheck.services.checkin.calendar_day import from_key, normalize, utcnow
from fitcheck.services.coach.engagement import classify
from fitcheck.services.feed.feed_service import project_checkin

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore

logger = logging.getLogger(__name__)

WEEK = timedelta(days=7)


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


class DashboardService:
    """
    Aggregates member engagement for the coach dashboard.
    """

    def __init__(
        self,
        store: "MongoStore",
        photos_per_week_required: int = 2,
        now: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize DashboardService.

        Args:
            store: Durable store
            photos_per_week_required: Weekly photos needed to count as compliant
            now: Clock returning the current instant (defaults to UTC now)
        """
        self._store = store
        self._photos_required = photos_per_week_required
        self._now = now or utcnow

    async def get_dashboard(self) -> Dict[str, Any]:
        """
        Build the coach dashboard.

        Returns:
            dict with "members" (list) and "stats"
        """
        now = self._now()
        today = normalize(now)
        week_ago = now - WEEK

        members = await self._store.list_members(ROLE_MEMBER)
        photo_counts = await self._store.photo_counts_by_member()
        weekly_photo_counts = await self._store.photo_counts_by_member(since=week_ago)

        status_counts = {status: 0 for status in ENGAGEMENT_STATUSES}
        member_rows = []
        for member in members:
            status = classify(from_key(member.get("lastCheckInDate")), today)
            status_counts[status] += 1
            member_rows.append({
                "memberId": member["_id"],
                "username": member.get("username"),
                "currentStreak": member.get("currentStreak", 0),
                "longestStreak": member.get("longestStreak", 0),
                "lastCheckInDate": member.get("lastCheckInDate"),
                "lastPhotoDate": member.get("lastPhotoDate"),
                "photoCount": photo_counts.get(member["_id"], 0),
                "status": status,
            })

        weekly_checkins = await self._store.count_checkins_since(week_ago)
        weekly_reflections = await self._store.count_checkins_since(week_ago, kind=REFLECTION)

        total_members = len(members)
        photo_compliant = sum(
            1 for member in members
            if weekly_photo_counts.get(member["_id"], 0) >= self._photos_required
        )

        if total_members > 0:
            engagement_rate = _round_half_up(weekly_checkins / (total_members * 7) * 100, 1)
            photo_compliance_rate = int(_round_half_up(photo_compliant / total_members * 100))
        else:
            engagement_rate = 0
            photo_compliance_rate = 0

        logger.debug(f"Coach dashboard built for {total_members} members")
        return {
            "members": member_rows,
            "stats": {
                "totalMembers": total_members,
                "weeklyCheckins": weekly_checkins,
                "weeklyReflections": weekly_reflections,
                "engagementRate": engagement_rate,
                "photoCompliantCount": photo_compliant,
                "photoComplianceRate": photo_compliance_rate,
                "statusCounts": status_counts,
            },
        }

    async def get_member_detail(self, member_id: str, history_limit: int = 30) -> Dict[str, Any]:
        """
        One member's stats, status and recent check-ins.

        Check-ins are privacy-projected the same way as the public feed.

        Raises:
            NotFoundException: Unknown member
        """
        member = await self._store.get_member(member_id)
        if not member:
            raise NotFoundException(message="Member not found", code="MEMBER_NOT_FOUND")

        now = self._now()
        checkins = await self._store.list_member_checkins(member_id, limit=history_limit)
        weekly_photos = await self._store.count_photos(member_id, since=now - WEEK)

        return {
            "memberId": member["_id"],
            "username": member.get("username"),
            "currentStreak": member.get("currentStreak", 0),
            "longestStreak": member.get("longestStreak", 0),
            "lastCheckInDate": member.get("lastCheckInDate"),
            "lastPhotoDate": member.get("lastPhotoDate"),
            "status": classify(from_key(member.get("lastCheckInDate")), normalize(now)),
            "weeklyPhotoCount": weekly_photos,
            "isPhotoCompliant": weekly_photos >= self._photos_required,
            "totalCheckins": await self._store.count_member_checkins(member_id),
            "recentCheckins": [project_checkin(c) for c in checkins],
        }
