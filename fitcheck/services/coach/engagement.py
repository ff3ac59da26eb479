"""
Engagement classification for the coach view.
"""

from datetime import date
from typing import Optional

from fitcheck.constants import STATUS_ACTIVE, STATUS_GHOSTING, STATUS_SLIPPING
from fitcheck.services.checkin.calendar_day import days_between

# Days since the last check-in after which a member counts as ghosting
GHOSTING_AFTER_DAYS = 3


def classify(last_checkin_date: Optional[date], today: date) -> str:
    """
    Classify a member by days since their last check-in.

    never checked in -> ghosting
    0 days           -> active
    1-2 days         -> slipping
    3+ days          -> ghosting
    """
    if last_checkin_date is None:
        return STATUS_GHOSTING

    days = days_between(last_checkin_date, today)
    if days == 0:
        return STATUS_ACTIVE
    if days < GHOSTING_AFTER_DAYS:
        return STATUS_SLIPPING
    return STATUS_GHOSTING
