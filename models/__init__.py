from models.resource import Resource, Role, RateCardEntry
from models.project import Assignment, BillingType, Project
from models.company_calendar import CalendarEntry, CalendarEntryType
from models.leave import LeaveRequest, LeaveStatus, LeaveType
from models.allocation import AllocationStatus, AllocationUpdate, Granularity
from models.scenario import (
    BillingMilestone, MilestoneStatus, ProjectExpense, ResourceFinancials, SimulationScenario,
)
from models.working_set import WorkingSet
