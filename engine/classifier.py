"""Overallocation status classes for a utilization figure against a resource cap."""

import math

from models.allocation import AllocationStatus
from config.defaults import DEFAULT_CAP_PCT, NON_WORKING_COLORS, STATUS_COLORS


def round_half_up(value: float) -> int:
    """Nearest whole percent, .5 rounds up (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def classify(percent: float, cap: int = DEFAULT_CAP_PCT) -> AllocationStatus:
    """Map a utilization percentage and a cap to EMPTY / UNDER / AT_CAP / OVER.

    Integer day totals are unaffected by rounding, so one comparison rule
    serves day cells and aggregated week/month cells alike.
    """
    if percent == 0:
        return AllocationStatus.EMPTY
    rounded = round_half_up(percent)
    if rounded > cap:
        return AllocationStatus.OVER
    if rounded == cap:
        return AllocationStatus.AT_CAP
    return AllocationStatus.UNDER


def status_style(status: AllocationStatus, non_working: bool = False) -> str:
    """CSS snippet used by table renderers."""
    background, color = NON_WORKING_COLORS if non_working else STATUS_COLORS[status.value]
    return f"background-color: {background}; color: {color}; font-weight: bold"
