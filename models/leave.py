from dataclasses import dataclass
from datetime import date
from enum import Enum


class LeaveStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class LeaveType:
    type_id: str
    name: str
    affects_capacity: bool = True


@dataclass(frozen=True)
class LeaveRequest:
    request_id: str
    resource_id: str
    type_id: str
    start_date: date
    end_date: date
    status: LeaveStatus = LeaveStatus.PENDING
    is_half_day: bool = False

    @property
    def is_approved(self) -> bool:
        return self.status == LeaveStatus.APPROVED

    def overlap(self, start: date, end: date):
        """Return the (start, end) overlap with a window, or None."""
        lo = max(start, self.start_date)
        hi = min(end, self.end_date)
        if lo > hi:
            return None
        return lo, hi
