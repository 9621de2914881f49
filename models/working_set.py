from dataclasses import dataclass, field
from typing import Dict, List, Optional

from models.company_calendar import CalendarEntry
from models.leave import LeaveRequest, LeaveType
from models.project import Assignment, Project
from models.resource import RateCardEntry, Resource, Role


@dataclass
class WorkingSet:
    """Point-in-time snapshot of the live staffing data (allocations excluded)."""
    resources: List[Resource] = field(default_factory=list)
    projects: List[Project] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)
    roles: List[Role] = field(default_factory=list)
    rate_card_entries: List[RateCardEntry] = field(default_factory=list)
    calendar_entries: List[CalendarEntry] = field(default_factory=list)
    leave_requests: List[LeaveRequest] = field(default_factory=list)
    leave_types: List[LeaveType] = field(default_factory=list)

    def resource(self, resource_id: str) -> Optional[Resource]:
        return next((r for r in self.resources if r.resource_id == resource_id), None)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.projects if p.project_id == project_id), None)

    def role(self, role_id: Optional[str]) -> Optional[Role]:
        return next((r for r in self.roles if r.role_id == role_id), None)

    def assignment(self, assignment_id: str) -> Optional[Assignment]:
        return next((a for a in self.assignments if a.assignment_id == assignment_id), None)

    def assignments_for(self, resource_id: str) -> List[Assignment]:
        return [a for a in self.assignments if a.resource_id == resource_id]

    def find_assignment(self, resource_id: str, project_id: str) -> Optional[Assignment]:
        return next(
            (a for a in self.assignments if a.resource_id == resource_id and a.project_id == project_id),
            None,
        )

    def leave_type_map(self) -> Dict[str, LeaveType]:
        return {t.type_id: t for t in self.leave_types}
