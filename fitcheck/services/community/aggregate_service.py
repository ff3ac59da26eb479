"""
Community daily aggregates.

Each row is recomputed from the ledger in full and written with an upsert,
never incremented, so recomputing a day any number of times converges on
the same counts.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from fitcheck.constants import REFLECTION, REST, ROLE_MEMBER, WORKOUT
from fitcheck.services.checkin.calendar_day import normalize, to_key, utcnow

if TYPE_CHECKING:
    from fitcheck.database.store import MongoStore

logger = logging.getLogger(__name__)


class AggregateService:
    """
    Maintains one DailyAggregate per calendar day.
    """

    def __init__(self, store: "MongoStore", now: Optional[Callable[[], datetime]] = None):
        self._store = store
        self._now = now or utcnow

    def today(self) -> date:
        return normalize(self._now())

    async def recompute(self, day: date) -> Dict[str, Any]:
        """
        Recompute and store the aggregate for a calendar day.

        Args:
            day: Calendar day

        Returns:
            Stored aggregate document
        """
        day_key = to_key(day)

        workout_count = await self._store.count_checkins(day_key, WORKOUT)
        rest_count = await self._store.count_checkins(day_key, REST)
        reflection_count = await self._store.count_checkins(day_key, REFLECTION)
        total_members = await self._store.count_members(ROLE_MEMBER)

        aggregate = await self._store.upsert_daily_aggregate(day_key, {
            "totalMembers": total_members,
            "workoutCount": workout_count,
            "restCount": rest_count,
            "reflectionCount": reflection_count,
            "activeToday": workout_count + rest_count + reflection_count,
        })

        logger.info(
            f"Aggregate for {day_key}: {workout_count} workouts, {rest_count} rest, "
            f"{reflection_count} reflections, {total_members} members"
        )
        return aggregate

    async def get_for_day(self, day: date) -> Dict[str, Any]:
        """Stored aggregate for a day, or an all-zero row if none exists."""
        day_key = to_key(day)
        aggregate = await self._store.get_daily_aggregate(day_key)
        if aggregate:
            return aggregate

        logger.debug(f"No aggregate stored for {day_key}")
        return {
            "_id": day_key,
            "totalMembers": 0,
            "workoutCount": 0,
            "restCount": 0,
            "reflectionCount": 0,
            "activeToday": 0,
        }


def format_aggregate(aggregate: Dict[str, Any]) -> Dict[str, Any]:
    """Format aggregate document for API response."""
    return {
        "date": aggregate["_id"],
        "totalMembers": aggregate.get("totalMembers", 0),
        "workoutCount": aggregate.get("workoutCount", 0),
        "restCount": aggregate.get("restCount", 0),
        "reflectionCount": aggregate.get("reflectionCount", 0),
        "activeToday": aggregate.get("activeToday", 0),
    }
