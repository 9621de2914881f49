"""Range fill of one allocation percentage over an assignment."""

import logging
from datetime import date
from typing import List

from models.allocation import AllocationUpdate
from engine.allocation_store import AllocationStore, to_iso, validate_percentage
from engine.calendar_service import is_weekend, iter_dates

logger = logging.getLogger(__name__)


def plan_bulk_dates(start: date, end: date) -> List[date]:
    """Dates a bulk fill writes: every weekday in the inclusive range.

    The holiday calendar is deliberately not consulted here (holiday scope
    depends on location, which is not resolved per date). Single-cell edits
    do reject holidays, so the two paths differ on holiday dates.
    """
    return [d for d in iter_dates(start, end) if not is_weekend(d)]


def apply_bulk(
    store: AllocationStore,
    assignment_id: str,
    start: date,
    end: date,
    percentage: int,
) -> List[AllocationUpdate]:
    """Write `percentage` on every weekday of the range and return the batch.

    A reversed range is a no-op returning an empty batch. The store is fully
    updated before returning.
    """
    value = validate_percentage(percentage)
    dates = plan_bulk_dates(start, end)
    updates = []
    for day in dates:
        store.set(assignment_id, day, value)
        updates.append(AllocationUpdate(assignment_id, to_iso(day), value))

    logger.debug(
        "Bulk fill of assignment %s: %d cells at %d%% (%s..%s)",
        assignment_id, len(updates), value, start, end,
    )
    return updates
