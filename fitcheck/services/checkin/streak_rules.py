"""
Streak rules.

Pure functions mapping a member's stored streak fields plus a new check-in to
the updated fields. Nothing here touches storage; the caller persists the
result as absolute values, so applying the same check-in twice on the same
day yields the same state.

Rules:
    - WORKOUT and REST maintain the streak:
        no previous check-in       -> 1
        same day (gap 0)           -> unchanged
        consecutive day (gap 1)    -> current + 1
        skipped a day (gap > 1)    -> 1
      lastCheckInDate becomes today, longestStreak = max(longest, new).
    - REFLECTION resets currentStreak to 0 but still moves lastCheckInDate to
      today, leaving longestStreak untouched. A workout the day after a
      reflection therefore starts again at 1.
"""

from dataclasses import dataclass, replace
from datetime import date
from typing import Any, Dict, Iterable, Optional, Tuple

from fitcheck.constants import STREAK_MAINTAINING_KINDS
from fitcheck.services.checkin.calendar_day import days_between, from_key, to_key


@dataclass(frozen=True)
class StreakState:
    """The streak fields stored on a member."""

    current_streak: int = 0
    longest_streak: int = 0
    last_checkin_date: Optional[date] = None

    @classmethod
    def from_member(cls, member: Dict[str, Any]) -> "StreakState":
        """Read the streak fields from a member document."""
        return cls(
            current_streak=member.get("currentStreak", 0) or 0,
            longest_streak=member.get("longestStreak", 0) or 0,
            last_checkin_date=from_key(member.get("lastCheckInDate")),
        )

    def to_fields(self) -> Dict[str, Any]:
        """Member document fields for an absolute $set."""
        return {
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastCheckInDate": to_key(self.last_checkin_date) if self.last_checkin_date else None,
        }


def maintains_streak(kind: str) -> bool:
    """WORKOUT and REST extend a streak; REFLECTION does not."""
    return kind in STREAK_MAINTAINING_KINDS


def next_streak(last_checkin_date: Optional[date], checkin_date: date, current_streak: int) -> int:
    """
    Streak length after a maintaining check-in on checkin_date.

    Args:
        last_checkin_date: Day of the previous check-in, or None
        checkin_date: Day of the new check-in
        current_streak: Stored streak before this check-in

    Returns:
        New streak count
    """
    if last_checkin_date is None:
        return 1

    gap = days_between(last_checkin_date, checkin_date)

    # Same day. The ledger allows one check-in per day, so this only happens
    # when the update is re-applied.
    if gap == 0:
        return current_streak

    if gap == 1:
        return current_streak + 1

    return 1


def apply_checkin(state: StreakState, kind: str, checkin_date: date) -> StreakState:
    """
    Derive the new streak state for a check-in of the given kind.

    Args:
        state: Member's stored streak fields
        kind: Check-in kind
        checkin_date: Calendar day of the check-in

    Returns:
        Updated StreakState
    """
    if not maintains_streak(kind):
        return replace(state, current_streak=0, last_checkin_date=checkin_date)

    new_streak = next_streak(state.last_checkin_date, checkin_date, state.current_streak)
    return StreakState(
        current_streak=new_streak,
        longest_streak=max(state.longest_streak, new_streak),
        last_checkin_date=checkin_date,
    )


def derive_from_ledger(checkins: Iterable[Tuple[date, str]], longest_streak: int = 0) -> StreakState:
    """
    Rebuild streak fields by replaying check-ins oldest first.

    Args:
        checkins: (calendar day, kind) pairs in ascending day order
        longest_streak: Stored record to keep if it exceeds the replayed one
            (check-ins that built it may since have been deleted)

    Returns:
        StreakState as of the last replayed check-in
    """
    state = StreakState()
    for checkin_date, kind in checkins:
        state = apply_checkin(state, kind, checkin_date)
    return replace(state, longest_streak=max(state.longest_streak, longest_streak))
