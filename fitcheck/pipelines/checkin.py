"""
Check-in pipeline functions.

Stateless orchestration logic for check-in operations.

A submission runs: provision member -> ledger insert -> streak update ->
day aggregate recompute. Once the ledger insert succeeds the check-in is
persisted. The streak update is retried on transient storage errors; if it
still fails, the member's stored lastCheckInDate lags the ledger and the
next submission re-derives the streak from the ledger before applying.
Aggregate failures are left for the recompute job.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Optional

from common.auth import Identity
from fitcheck.errors import is_retryable
from fitcheck.services.checkin.calendar_day import parse_key, to_key
from fitcheck.services.checkin.checkin_service import CheckInService, build_heatmap, format_checkin
from fitcheck.services.checkin.streak_rules import StreakState, apply_checkin, derive_from_ledger
from fitcheck.services.community.aggregate_service import AggregateService
from fitcheck.services.member.member_service import MemberService

logger = logging.getLogger(__name__)

STREAK_WRITE_ATTEMPTS = 3
STREAK_RETRY_DELAY_SECONDS = 0.1


async def _streak_base(
    checkin_service: CheckInService,
    member: Dict[str, Any],
    day: date,
) -> StreakState:
    """
    Stored streak state to apply a check-in on day to.

    When the member's lastCheckInDate is older than their latest earlier
    check-in in the ledger, an earlier streak write was lost and the state
    is re-derived from the ledger.
    """
    state = StreakState.from_member(member)

    # Newest day first; today's check-in is already in the ledger
    recent = await checkin_service.get_history(member["_id"], limit=2)
    previous = next((c for c in recent if c["calendarDay"] < to_key(day)), None)
    if previous is None:
        return state

    previous_day = parse_key(previous["calendarDay"])
    if state.last_checkin_date is not None and state.last_checkin_date >= previous_day:
        return state

    logger.warning(
        f"Streak for {member['_id']} is behind the ledger "
        f"(stored {state.last_checkin_date}, ledger {previous_day}); re-deriving"
    )
    prior = await checkin_service.get_days_before(member["_id"], day)
    return derive_from_ledger(prior, state.longest_streak)


async def _apply_streak(
    checkin_service: CheckInService,
    member_service: MemberService,
    member_id: str,
    kind: str,
    day: date,
) -> Dict[str, Any]:
    """
    Apply a check-in to the member's streak, retrying transient failures.

    Each attempt re-reads the member. Re-applying a check-in that did land
    is a no-op (same day leaves a streak unchanged, a reflection zeroes it
    again), so retrying after an unacknowledged write is safe.

    Returns:
        Member document as persisted
    """
    for attempt in range(1, STREAK_WRITE_ATTEMPTS + 1):
        try:
            member = await member_service.get_member(member_id)
            state = await _streak_base(checkin_service, member, day)
            return await member_service.apply_streak(member_id, apply_checkin(state, kind, day))
        except Exception as e:
            if not is_retryable(e) or attempt == STREAK_WRITE_ATTEMPTS:
                raise
            logger.warning(
                f"Streak update for {member_id} failed "
                f"(attempt {attempt}/{STREAK_WRITE_ATTEMPTS}), retrying: {e}"
            )
            await asyncio.sleep(STREAK_RETRY_DELAY_SECONDS * attempt)


async def submit_checkin_pipeline(
    checkin_service: CheckInService,
    member_service: MemberService,
    aggregate_service: AggregateService,
    identity: Identity,
    kind: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Orchestrates the check-in submission flow.

    Args:
        checkin_service: Ledger
        member_service: For member provisioning and streak writes
        aggregate_service: For the day's community aggregate
        identity: Resolved caller identity
        kind: WORKOUT, REST or REFLECTION
        details: muscleGroup, note, isNotePublic, photoId

    Returns:
        dict with the saved check-in, the member's stored streak and whether
        the streak update was persisted

    Raises:
        ValidationException: Invalid check-in
        DuplicateCheckInError: Already checked in today
    """
    member = await member_service.ensure_member(identity)
    member_id = member["_id"]

    checkin = await checkin_service.create_checkin(member_id, kind, details)
    day = parse_key(checkin["calendarDay"])

    streak_updated = False
    try:
        member = await _apply_streak(checkin_service, member_service, member_id, kind, day)
        streak_updated = True
    except Exception as e:
        logger.error(
            f"Streak update failed for {member_id} after check-in {checkin['_id']} "
            f"(retryable={is_retryable(e)}): {e}"
        )

    try:
        await aggregate_service.recompute(day)
    except Exception as e:
        logger.error(
            f"Aggregate recompute failed for {checkin['calendarDay']} "
            f"(retryable={is_retryable(e)}): {e}"
        )

    return {
        "checkin": format_checkin(checkin),
        "streak": {
            "currentStreak": member.get("currentStreak", 0),
            "longestStreak": member.get("longestStreak", 0),
        },
        "streakUpdated": streak_updated,
    }

async def delete_checkin_pipeline(
    checkin_service: CheckInService,
    aggregate_service: AggregateService,
    checkin_id: str,
    requested_by: str,
    is_coach: bool = False,
) -> Dict[str, Any]:
    """
    Delete a check-in and refresh that day's aggregate.

    Streak fields are left as they are.

    Returns:
        dict with the deleted check-in id and its day
    """
    checkin = await checkin_service.delete_checkin(checkin_id, requested_by, is_coach)

    try:
        await aggregate_service.recompute(parse_key(checkin["calendarDay"]))
    except Exception as e:
        logger.error(f"Aggregate recompute failed for {checkin['calendarDay']} after delete: {e}")

    return {
        "id": str(checkin["_id"]),
        "date": checkin["calendarDay"],
        "deleted": True,
    }


async def toggle_visibility_pipeline(
    checkin_service: CheckInService,
    checkin_id: str,
    field: str,
    requested_by: str,
    is_public: bool,
) -> Dict[str, Any]:
    checkin = await checkin_service.toggle_visibility(checkin_id, field, requested_by, is_public)
    return format_checkin(checkin)


async def get_today_checkin_pipeline(
    checkin_service: CheckInService,
    member_id: str,
) -> Dict[str, Any]:
    """
    Get today's check-in status.

    Returns:
        dict with hasCheckedInToday flag and checkin data
    """
    checkin = await checkin_service.get_today_checkin(member_id)

    return {
        "date": checkin_service.today().isoformat(),
        "hasCheckedInToday": checkin is not None,
        "checkin": format_checkin(checkin) if checkin else None,
    }


async def get_history_pipeline(
    checkin_service: CheckInService,
    member_id: str,
    limit: int = 30,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Get check-in history with heatmap cells and pagination.

    Args:
        checkin_service: For data retrieval
        member_id: Current member's id
        limit: Max records to return
        offset: Records to skip

    Returns:
        dict with checkins, heatmap and pagination metadata
    """
    checkins = await checkin_service.get_history(member_id, limit=limit, offset=offset)
    total = await checkin_service.get_total_count(member_id)

    return {
        "checkins": [format_checkin(c) for c in checkins],
        "heatmap": build_heatmap(checkins),
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasMore": (offset + len(checkins)) < total,
    }
