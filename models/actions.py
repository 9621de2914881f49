"""Tagged transition variants accepted by the simulation engine."""

import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Optional, Tuple

from models.project import Assignment, BillingType, Project
from models.resource import Resource, Role
from models.scenario import (
    AllocationMap, BillingMilestone, ProjectExpense, ResourceFinancials, SimulationScenario,
)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class LoadScenario:
    scenario: SimulationScenario


@dataclass(frozen=True)
class ImportLiveSnapshot:
    resources: Tuple[Resource, ...]
    projects: Tuple[Project, ...]
    assignments: Tuple[Assignment, ...]
    allocations: AllocationMap
    financials: Dict[str, ResourceFinancials]
    expenses: Tuple[ProjectExpense, ...] = ()
    milestones: Tuple[BillingMilestone, ...] = ()


@dataclass(frozen=True)
class UpdateMeta:
    name: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class SetScenarioId:
    scenario_id: str


@dataclass(frozen=True)
class AddGhostResource:
    resource: Resource
    role: Optional[Role] = None   # seeds the financial row


@dataclass(frozen=True)
class SetResourceFinancials:
    resource_id: str
    daily_cost: float
    daily_expenses: float
    sell_rate: float


@dataclass(frozen=True)
class SetProjectRateCard:
    project_id: str
    rate_card_id: Optional[str]


@dataclass(frozen=True)
class BulkSetProjectRateCard:
    rate_card_id: Optional[str]


@dataclass(frozen=True)
class SetProjectBillingType:
    project_id: str
    billing_type: BillingType


@dataclass(frozen=True)
class AddAssignment:
    resource_id: str
    project_id: str
    assignment_id: str = field(default_factory=_new_id)


@dataclass(frozen=True)
class DeleteAssignment:
    assignment_id: str


@dataclass(frozen=True)
class SetAllocation:
    assignment_id: str
    day: date
    percentage: int


@dataclass(frozen=True)
class BulkSetAllocation:
    assignment_id: str
    start: date
    end: date
    percentage: int


@dataclass(frozen=True)
class AddExpense:
    expense: ProjectExpense


@dataclass(frozen=True)
class DeleteExpense:
    expense_id: str


@dataclass(frozen=True)
class AddMilestone:
    milestone: BillingMilestone


@dataclass(frozen=True)
class UpdateMilestone:
    milestone: BillingMilestone


@dataclass(frozen=True)
class DeleteMilestone:
    milestone_id: str


@dataclass(frozen=True)
class MarkSaved:
    """Clears the dirty flag; optionally records the stored version."""
    version: Optional[int] = None
    updated_at: Optional[datetime] = None
