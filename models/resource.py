from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class Role:
    role_id: str
    name: str
    daily_cost: float
    daily_expenses: Optional[float] = None   # None or 0 falls back to a share of daily_cost


@dataclass(frozen=True)
class Resource:
    resource_id: str
    name: str
    location: Optional[str]
    role_id: Optional[str]
    hire_date: Optional[date] = None
    max_staffing_pct: int = 100              # capacity cap
    last_day_of_work: Optional[date] = None  # inclusive
    daily_cost: Optional[float] = None       # per-resource override of the role cost
    is_ghost: bool = False                   # scenario-only resource

    def is_active_on(self, day: date) -> bool:
        """False once the resource has left the company."""
        return self.last_day_of_work is None or day <= self.last_day_of_work

    def effective_end(self, end: date) -> date:
        """Clip a window end at the last working date."""
        if self.last_day_of_work is not None and self.last_day_of_work < end:
            return self.last_day_of_work
        return end


@dataclass(frozen=True)
class RateCardEntry:
    rate_card_id: str
    resource_id: str
    daily_rate: float
