"""Unit tests for calendar day normalization."""

import pytest
from datetime import date, datetime, timedelta, timezone

from common.utils.exceptions import ValidationException
from fitcheck.services.checkin.calendar_day import (
    days_between,
    from_key,
    normalize,
    parse_key,
    to_key,
    today,
)


class TestNormalize:

    def test_collapses_time_of_day(self):
        assert normalize(datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)) == date(2024, 3, 1)
        assert normalize(datetime(2024, 3, 1, 23, 59, 59, tzinfo=timezone.utc)) == date(2024, 3, 1)

    def test_uses_utc_not_local_offset(self):
        # 23:30 in UTC-5 is already the next day in UTC
        eastern = timezone(timedelta(hours=-5))
        assert normalize(datetime(2024, 3, 1, 23, 30, tzinfo=eastern)) == date(2024, 3, 2)

    def test_naive_datetime_is_treated_as_utc(self):
        assert normalize(datetime(2024, 3, 1, 23, 30)) == date(2024, 3, 1)

    def test_date_passes_through(self):
        assert normalize(date(2024, 3, 1)) == date(2024, 3, 1)

    def test_today_uses_supplied_instant(self):
        assert today(datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)) == date(2024, 1, 15)


class TestDaysBetween:

    def test_same_day_is_zero(self):
        assert days_between(date(2024, 1, 1), date(2024, 1, 1)) == 0

    def test_symmetric(self):
        a, b = date(2024, 1, 1), date(2024, 1, 4)
        assert days_between(a, b) == days_between(b, a) == 3

    def test_across_month_and_leap_day(self):
        assert days_between(date(2024, 2, 28), date(2024, 3, 1)) == 2


class TestKeys:

    def test_to_key_format(self):
        assert to_key(date(2024, 1, 5)) == "2024-01-05"

    def test_parse_key(self):
        assert parse_key("2024-01-05") == date(2024, 1, 5)

    @pytest.mark.parametrize("value", ["2024-13-01", "yesterday", "", "2024/01/05"])
    def test_parse_key_rejects_invalid(self, value):
        with pytest.raises(ValidationException) as exc_info:
            parse_key(value)
        assert exc_info.value.code == "VALIDATION_ERROR"

    def test_from_key_passes_none(self):
        assert from_key(None) is None
