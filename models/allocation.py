from dataclasses import dataclass
from enum import Enum


class Granularity(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class AllocationStatus(str, Enum):
    EMPTY = "EMPTY"
    UNDER = "UNDER"
    AT_CAP = "AT_CAP"
    OVER = "OVER"


@dataclass(frozen=True)
class AllocationUpdate:
    """Atomic allocation unit sent to persistence."""
    assignment_id: str
    day: str          # ISO date
    percentage: int   # 0 removes the entry
