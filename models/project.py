from dataclasses import dataclass
from enum import Enum
from typing import Optional


class BillingType(str, Enum):
    TIME_MATERIAL = "TIME_MATERIAL"
    FIXED_PRICE = "FIXED_PRICE"


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str
    client_id: Optional[str] = None
    billing_type: BillingType = BillingType.TIME_MATERIAL
    rate_card_id: Optional[str] = None

    @property
    def is_time_material(self) -> bool:
        return self.billing_type != BillingType.FIXED_PRICE


@dataclass(frozen=True)
class Assignment:
    """Binding of one resource to one project, independent of any date."""
    assignment_id: str
    resource_id: str
    project_id: str
