"""Working-day calendar: weekends plus company-wide and location-scoped holidays."""

from datetime import date, timedelta
from typing import Iterable, Iterator, List, Optional, Set

from models.company_calendar import CalendarEntry
from config.defaults import WEEKEND_WEEKDAYS


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every calendar date in the inclusive range; nothing when start > end."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def is_weekend(day: date) -> bool:
    return day.weekday() in WEEKEND_WEEKDAYS


def holiday_dates(calendar_entries: Iterable[CalendarEntry], location: Optional[str]) -> Set[date]:
    """Dates of every calendar entry that applies to the given location."""
    return {e.entry_date for e in calendar_entries if e.applies_to(location)}


def is_holiday(day: date, location: Optional[str], calendar_entries: Iterable[CalendarEntry]) -> bool:
    return any(e.entry_date == day and e.applies_to(location) for e in calendar_entries)


def is_non_working_day(
    day: date,
    location: Optional[str],
    calendar_entries: Iterable[CalendarEntry],
) -> bool:
    """True on weekends and on holidays whose scope covers the location.

    Company-wide entries always apply; LOCAL_HOLIDAY entries only apply when
    their location equals the resource location.
    """
    return is_weekend(day) or is_holiday(day, location, calendar_entries)


def working_dates_between(
    start: date,
    end: date,
    calendar_entries: Iterable[CalendarEntry],
    location: Optional[str],
) -> List[date]:
    holidays = holiday_dates(calendar_entries, location)
    return [d for d in iter_dates(start, end) if not is_weekend(d) and d not in holidays]


def get_working_days_between(
    start: date,
    end: date,
    calendar_entries: Iterable[CalendarEntry],
    location: Optional[str],
) -> int:
    """Count working days in the inclusive range. start > end yields 0."""
    return len(working_dates_between(start, end, calendar_entries, location))
