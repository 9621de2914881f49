from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional, Tuple

from models.project import Assignment, Project
from models.resource import Resource


class MilestoneStatus(str, Enum):
    PLANNED = "PLANNED"
    INVOICED = "INVOICED"
    PAID = "PAID"


@dataclass(frozen=True)
class ResourceFinancials:
    daily_cost: float = 0.0
    daily_expenses: float = 0.0
    sell_rate: float = 0.0   # 0 means "resolve from the project's rate card"


@dataclass(frozen=True)
class ProjectExpense:
    expense_id: str
    project_id: str
    amount: float
    expense_date: date
    category: str = ""
    description: str = ""
    billable: bool = False


@dataclass(frozen=True)
class BillingMilestone:
    milestone_id: str
    project_id: str
    name: str
    milestone_date: date
    amount: float
    status: MilestoneStatus = MilestoneStatus.PLANNED


# assignment_id -> {ISO date -> percentage}
AllocationMap = Dict[str, Dict[str, int]]


@dataclass(frozen=True)
class SimulationScenario:
    """Named what-if snapshot of the full staffing and financial model.

    Instances are values: the simulation engine never mutates one in place,
    it builds a new scenario for every transition.
    """
    scenario_id: str = ""
    name: str = "New Simulation"
    description: str = ""
    resources: Tuple[Resource, ...] = ()
    projects: Tuple[Project, ...] = ()
    assignments: Tuple[Assignment, ...] = ()
    allocations: AllocationMap = field(default_factory=dict)
    financials: Dict[str, ResourceFinancials] = field(default_factory=dict)
    expenses: Tuple[ProjectExpense, ...] = ()
    milestones: Tuple[BillingMilestone, ...] = ()
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    dirty: bool = False

    def resource(self, resource_id: str) -> Optional[Resource]:
        return next((r for r in self.resources if r.resource_id == resource_id), None)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.project_id == project_id), None)

    def find_assignment(self, resource_id: str, project_id: str) -> Optional[Assignment]:
        return next(
            (a for a in self.assignments if a.resource_id == resource_id and a.project_id == project_id),
            None,
        )
