"""Utilization aggregation: the single source of every displayed utilization figure.

Day cells are the raw sum of the day's allocations. Week and month cells are
person-days consumed over available working days:

    utilization = sum(allocation / 100 over working days and assignments)
                  / (working days - leave days lost) * 100

Nothing here caches results; every call re-reads the allocation store.
"""

import calendar
import logging
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from models.allocation import Granularity
from models.company_calendar import CalendarEntry
from models.leave import LeaveRequest, LeaveType
from models.project import Assignment
from models.resource import Resource
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from engine.calendar_service import is_non_working_day, working_dates_between
from engine.classifier import classify
from config.defaults import HALF_DAY_LEAVE_FRACTION

logger = logging.getLogger(__name__)


def _leave_type_map(leave_types) -> Dict[str, LeaveType]:
    if leave_types is None:
        return {}
    if isinstance(leave_types, Mapping):
        return dict(leave_types)
    return {t.type_id: t for t in leave_types}


def leave_days_lost(
    resource: Resource,
    leave_requests: Iterable[LeaveRequest],
    leave_types,
    start: date,
    end: date,
    calendar_entries: Iterable[CalendarEntry] = (),
    rule_config: Optional[dict] = None,
) -> float:
    """Working days of capacity removed by approved leave inside the window.

    Full-day requests consume one day per overlapping working day, half-day
    requests a fraction of it. Leave types flagged as not affecting capacity
    are ignored; unknown types are treated as affecting capacity. Overlapping
    requests never remove more than one day per date.
    """
    cfg = rule_config or {}
    half_day = cfg.get("half_day_fraction", HALF_DAY_LEAVE_FRACTION)
    types = _leave_type_map(leave_types)
    calendar_entries = list(calendar_entries)

    lost_by_day: Dict[date, float] = {}
    for request in leave_requests:
        if request.resource_id != resource.resource_id or not request.is_approved:
            continue
        leave_type = types.get(request.type_id)
        if leave_type is not None and not leave_type.affects_capacity:
            continue
        overlap = request.overlap(start, end)
        if overlap is None:
            continue
        fraction = half_day if request.is_half_day else 1.0
        for day in working_dates_between(overlap[0], overlap[1], calendar_entries, resource.location):
            lost_by_day[day] = min(1.0, lost_by_day.get(day, 0.0) + fraction)

    return sum(lost_by_day.values())


def compute_utilization(
    resource: Resource,
    assignment_ids: Sequence[str],
    store: AllocationStore,
    start: date,
    end: date,
    granularity: Granularity,
    calendar_entries: Iterable[CalendarEntry] = (),
    leave_requests: Iterable[LeaveRequest] = (),
    leave_types=None,
    rule_config: Optional[dict] = None,
) -> float:
    """Utilization of `resource` over [start, end] summed across `assignment_ids`.

    Serves both a whole resource (all its assignments) and a single
    assignment. Reversed or fully truncated windows and windows without
    available days yield 0.
    """
    granularity = Granularity(granularity)
    if start > end:
        return 0.0

    if granularity == Granularity.DAY:
        if not resource.is_active_on(start):
            return 0.0
        return float(sum(store.get(aid, start) for aid in assignment_ids))

    effective_end = resource.effective_end(end)
    if start > effective_end:
        return 0.0

    calendar_entries = list(calendar_entries)
    working_dates = working_dates_between(start, effective_end, calendar_entries, resource.location)
    lost = leave_days_lost(
        resource, leave_requests, leave_types, start, effective_end, calendar_entries, rule_config,
    )
    available = len(working_dates) - lost
    if available <= 0:
        return 0.0

    person_days = 0.0
    for aid in assignment_ids:
        for day in working_dates:
            person_days += store.get(aid, day) / 100

    return person_days / available * 100


def resource_utilization(
    resource: Resource,
    working_set: WorkingSet,
    store: AllocationStore,
    start: date,
    end: date,
    granularity: Granularity,
    rule_config: Optional[dict] = None,
) -> float:
    """Utilization across every assignment of a resource."""
    assignment_ids = [a.assignment_id for a in working_set.assignments_for(resource.resource_id)]
    return compute_utilization(
        resource, assignment_ids, store, start, end, granularity,
        working_set.calendar_entries, working_set.leave_requests, working_set.leave_types,
        rule_config,
    )


def assignment_utilization(
    assignment: Assignment,
    working_set: WorkingSet,
    store: AllocationStore,
    start: date,
    end: date,
    granularity: Granularity,
    rule_config: Optional[dict] = None,
) -> float:
    """Utilization of exactly one assignment; 0 when its resource is unknown."""
    resource = working_set.resource(assignment.resource_id)
    if resource is None:
        logger.warning("Assignment %s references unknown resource %s",
                       assignment.assignment_id, assignment.resource_id)
        return 0.0
    return compute_utilization(
        resource, [assignment.assignment_id], store, start, end, granularity,
        working_set.calendar_entries, working_set.leave_requests, working_set.leave_types,
        rule_config,
    )


def iter_periods(start: date, end: date, granularity: Granularity) -> List[Tuple[date, date]]:
    """Split [start, end] into day, ISO-week or calendar-month buckets clipped to the window."""
    granularity = Granularity(granularity)
    periods = []
    current = start
    while current <= end:
        if granularity == Granularity.DAY:
            period_end = current
        elif granularity == Granularity.WEEK:
            period_end = current + timedelta(days=6 - current.weekday())
        else:
            last_day = calendar.monthrange(current.year, current.month)[1]
            period_end = date(current.year, current.month, last_day)
        period_end = min(period_end, end)
        periods.append((current, period_end))
        current = period_end + timedelta(days=1)
    return periods


def period_label(period_start: date, granularity: Granularity) -> str:
    granularity = Granularity(granularity)
    if granularity == Granularity.DAY:
        return period_start.strftime("%a %d/%m")
    if granularity == Granularity.WEEK:
        iso_year, iso_week, _ = period_start.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return period_start.strftime("%Y-%m")


def is_non_working_period(
    resource: Resource,
    calendar_entries: Iterable[CalendarEntry],
    start: date,
    end: date,
    granularity: Granularity,
) -> bool:
    """True when the resource has no working date at all in the period.

    Day cells: weekends, holidays at the resource's location and dates after
    the last day of work. Week and month cells only when every date is one.
    """
    if Granularity(granularity) == Granularity.DAY:
        return not resource.is_active_on(start) or is_non_working_day(
            start, resource.location, calendar_entries,
        )
    effective_end = resource.effective_end(end)
    if start > effective_end:
        return True
    return not working_dates_between(start, effective_end, calendar_entries, resource.location)


def non_working_cells(records: Iterable[dict]) -> set:
    """(resource_name, period) pairs of records flagged as non-working."""
    return {(r["resource_name"], r["period"]) for r in records if r.get("non_working")}


def utilization_records(
    working_set: WorkingSet,
    store: AllocationStore,
    start: date,
    end: date,
    granularity: Granularity,
    resources: Optional[Sequence[Resource]] = None,
    rule_config: Optional[dict] = None,
) -> List[dict]:
    """One record per (resource, period) with utilization, status and a non-working flag."""
    periods = iter_periods(start, end, granularity)
    calendar_entries = list(working_set.calendar_entries)
    records = []
    for resource in resources if resources is not None else working_set.resources:
        for period_start, period_end in periods:
            value = resource_utilization(
                resource, working_set, store, period_start, period_end, granularity, rule_config,
            )
            records.append({
                "resource_id": resource.resource_id,
                "resource_name": resource.name,
                "period": period_label(period_start, granularity),
                "period_start": period_start,
                "period_end": period_end,
                "utilization": value,
                "cap": resource.max_staffing_pct,
                "status": classify(value, resource.max_staffing_pct).value,
                "non_working": is_non_working_period(
                    resource, calendar_entries, period_start, period_end, granularity,
                ),
            })
    return records


def utilization_grid(
    working_set: WorkingSet,
    store: AllocationStore,
    start: date,
    end: date,
    granularity: Granularity,
    resources: Optional[Sequence[Resource]] = None,
    rule_config: Optional[dict] = None,
) -> pd.DataFrame:
    """Resource x period utilization table (resource names as index)."""
    records = utilization_records(working_set, store, start, end, granularity, resources, rule_config)
    if not records:
        return pd.DataFrame()
    df = pd.DataFrame(records)
    grid = df.pivot_table(
        index="resource_name", columns="period", values="utilization",
        aggfunc="first", sort=False,
    )
    ordered_periods = list(dict.fromkeys(df["period"]))
    return grid[ordered_periods]
