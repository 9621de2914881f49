"""Tests for the working-day calendar."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

from models.company_calendar import CalendarEntry, CalendarEntryType
from engine.calendar_service import (
    get_working_days_between, is_non_working_day, iter_dates, working_dates_between,
)


def make_holiday(day, entry_type=CalendarEntryType.NATIONAL_HOLIDAY, location=None):
    return CalendarEntry(day, entry_type, "Holiday", location)


class TestNonWorkingDay:
    def test_weekend(self):
        assert is_non_working_day(date(2024, 6, 1), "Milano", [])   # Saturday
        assert is_non_working_day(date(2024, 6, 2), "Milano", [])   # Sunday
        assert not is_non_working_day(date(2024, 6, 3), "Milano", [])

    def test_company_wide_holiday_applies_everywhere(self):
        entries = [make_holiday(date(2024, 6, 4), CalendarEntryType.COMPANY_CLOSURE)]
        assert is_non_working_day(date(2024, 6, 4), "Milano", entries)
        assert is_non_working_day(date(2024, 6, 4), None, entries)

    def test_local_holiday_only_for_matching_location(self):
        entries = [make_holiday(date(2024, 6, 24), CalendarEntryType.LOCAL_HOLIDAY, "Torino")]
        assert is_non_working_day(date(2024, 6, 24), "Torino", entries)
        assert not is_non_working_day(date(2024, 6, 24), "Milano", entries)
        assert not is_non_working_day(date(2024, 6, 24), None, entries)


class TestWorkingDaysBetween:
    def test_full_week(self):
        assert get_working_days_between(date(2024, 6, 3), date(2024, 6, 9), [], "Milano") == 5

    def test_holiday_excluded(self):
        entries = [make_holiday(date(2024, 6, 4))]
        days = working_dates_between(date(2024, 6, 3), date(2024, 6, 9), entries, "Milano")
        assert date(2024, 6, 4) not in days
        assert len(days) == 4

    def test_reversed_range_is_zero(self):
        assert get_working_days_between(date(2024, 6, 9), date(2024, 6, 3), [], "Milano") == 0
        assert list(iter_dates(date(2024, 6, 9), date(2024, 6, 3))) == []

    def test_single_day(self):
        assert get_working_days_between(date(2024, 6, 3), date(2024, 6, 3), [], None) == 1
        assert get_working_days_between(date(2024, 6, 1), date(2024, 6, 1), [], None) == 0
