"""
Calendar day normalization.

Every component works on one canonical calendar: the UTC date of an instant.
The caller's local clock is never consulted, so "today" is the same day for
every member and the one-check-in-per-day rule is well defined.

Days are stored as "YYYY-MM-DD" strings, which sort chronologically.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

from common.utils.exceptions import ValidationException

DAY_FORMAT = "%Y-%m-%d"


def ensure_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current instant, timezone-aware."""
    return datetime.now(timezone.utc)


def normalize(timestamp: Union[datetime, date]) -> date:
    """
    Collapse a timestamp to its UTC calendar day.

    Args:
        timestamp: Aware or naive (UTC) datetime, or a date

    Returns:
        The calendar day with no time-of-day component
    """
    if isinstance(timestamp, datetime):
        return ensure_utc(timestamp).date()
    return timestamp


def days_between(a: date, b: date) -> int:
    """Number of day boundaries between two calendar days, order-independent."""
    return abs((normalize(b) - normalize(a)).days)


def today(now: Optional[datetime] = None) -> date:
    """Today's calendar day, optionally relative to a supplied instant."""
    return normalize(now or utcnow())


def to_key(day: Union[datetime, date]) -> str:
    """Storage key for a calendar day."""
    return normalize(day).strftime(DAY_FORMAT)


def parse_key(value: str) -> date:
    """
    Parse a "YYYY-MM-DD" string into a calendar day.

    Raises:
        ValidationException: If the value is not a valid date
    """
    try:
        return datetime.strptime(value, DAY_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationException(
            message="Invalid date format. Use YYYY-MM-DD",
            code="VALIDATION_ERROR",
        )


def from_key(value: Optional[str]) -> Optional[date]:
    """Parse a stored day key, passing None through."""
    if value is None:
        return None
    return parse_key(value)
