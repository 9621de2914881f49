"""Plain-dict encoding of model objects for JSON payloads."""

from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from models.company_calendar import CalendarEntry, CalendarEntryType
from models.leave import LeaveRequest, LeaveStatus, LeaveType
from models.project import Assignment, BillingType, Project
from models.resource import RateCardEntry, Resource, Role
from models.scenario import (
    BillingMilestone, MilestoneStatus, ProjectExpense, ResourceFinancials, SimulationScenario,
)
from engine.allocation_store import AllocationStore


def to_plain(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_plain(getattr(obj, f.name)) for f in fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {str(k): to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(v) for v in obj]
    return obj


def _date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _datetime(value) -> Optional[datetime]:
    if value in (None, ""):
        return None
    return datetime.fromisoformat(value)


def _float_or_none(value) -> Optional[float]:
    return None if value is None else float(value)


def resource_from_dict(d: Dict) -> Resource:
    return Resource(
        resource_id=str(d["resource_id"]),
        name=d.get("name", ""),
        location=d.get("location"),
        role_id=d.get("role_id"),
        hire_date=_date(d.get("hire_date")),
        max_staffing_pct=int(d.get("max_staffing_pct", 100)),
        last_day_of_work=_date(d.get("last_day_of_work")),
        daily_cost=_float_or_none(d.get("daily_cost")),
        is_ghost=bool(d.get("is_ghost", False)),
    )


def role_from_dict(d: Dict) -> Role:
    return Role(
        role_id=str(d["role_id"]),
        name=d.get("name", ""),
        daily_cost=float(d.get("daily_cost", 0)),
        daily_expenses=_float_or_none(d.get("daily_expenses")),
    )


def rate_card_entry_from_dict(d: Dict) -> RateCardEntry:
    return RateCardEntry(str(d["rate_card_id"]), str(d["resource_id"]), float(d["daily_rate"]))


def project_from_dict(d: Dict) -> Project:
    return Project(
        project_id=str(d["project_id"]),
        name=d.get("name", ""),
        client_id=d.get("client_id"),
        billing_type=BillingType(d.get("billing_type") or BillingType.TIME_MATERIAL.value),
        rate_card_id=d.get("rate_card_id"),
    )


def assignment_from_dict(d: Dict) -> Assignment:
    return Assignment(str(d["assignment_id"]), str(d["resource_id"]), str(d["project_id"]))


def calendar_entry_from_dict(d: Dict) -> CalendarEntry:
    return CalendarEntry(
        entry_date=_date(d["entry_date"]),
        entry_type=CalendarEntryType(d["entry_type"]),
        name=d.get("name", ""),
        location=d.get("location"),
    )


def leave_type_from_dict(d: Dict) -> LeaveType:
    return LeaveType(str(d["type_id"]), d.get("name", ""), bool(d.get("affects_capacity", True)))


def leave_request_from_dict(d: Dict) -> LeaveRequest:
    return LeaveRequest(
        request_id=str(d["request_id"]),
        resource_id=str(d["resource_id"]),
        type_id=str(d["type_id"]),
        start_date=_date(d["start_date"]),
        end_date=_date(d["end_date"]),
        status=LeaveStatus(d.get("status", LeaveStatus.PENDING.value)),
        is_half_day=bool(d.get("is_half_day", False)),
    )


def financials_from_dict(d: Dict) -> ResourceFinancials:
    return ResourceFinancials(
        daily_cost=float(d.get("daily_cost", 0)),
        daily_expenses=float(d.get("daily_expenses", 0)),
        sell_rate=float(d.get("sell_rate", 0)),
    )


def expense_from_dict(d: Dict) -> ProjectExpense:
    return ProjectExpense(
        expense_id=str(d["expense_id"]),
        project_id=str(d["project_id"]),
        amount=float(d["amount"]),
        expense_date=_date(d["expense_date"]),
        category=d.get("category", ""),
        description=d.get("description", ""),
        billable=bool(d.get("billable", False)),
    )


def milestone_from_dict(d: Dict) -> BillingMilestone:
    return BillingMilestone(
        milestone_id=str(d["milestone_id"]),
        project_id=str(d["project_id"]),
        name=d.get("name", ""),
        milestone_date=_date(d["milestone_date"]),
        amount=float(d["amount"]),
        status=MilestoneStatus(d.get("status", MilestoneStatus.PLANNED.value)),
    )


ENTITY_DECODERS: Dict[str, Callable[[Dict], Any]] = {
    "resources": resource_from_dict,
    "projects": project_from_dict,
    "assignments": assignment_from_dict,
    "roles": role_from_dict,
    "rate_card_entries": rate_card_entry_from_dict,
    "calendar_entries": calendar_entry_from_dict,
    "leave_requests": leave_request_from_dict,
    "leave_types": leave_type_from_dict,
}


def scenario_to_payload(scenario: SimulationScenario) -> Dict:
    """Snapshot document; the dirty flag is session state and is not stored."""
    payload = to_plain(scenario)
    payload.pop("dirty", None)
    return payload


def _section(d: Dict, key: str, kind: type):
    value = d.get(key)
    if value is None:
        return kind()
    if not isinstance(value, kind):
        raise ValueError(f"'{key}' must be a {kind.__name__}, got {type(value).__name__}")
    return value


def scenario_from_payload(d: Dict) -> SimulationScenario:
    """Rebuild a scenario. Older documents may lack expenses and milestones.

    Raises ValueError when a section has the wrong shape.
    """
    allocations = _section(d, "allocations", dict)
    for aid, cells in allocations.items():
        if not isinstance(cells, dict):
            raise ValueError(f"allocations of {aid} must be a dict")
    return SimulationScenario(
        scenario_id=str(d["scenario_id"]),
        name=d.get("name", ""),
        description=d.get("description") or "",
        resources=tuple(resource_from_dict(r) for r in _section(d, "resources", list)),
        projects=tuple(project_from_dict(p) for p in _section(d, "projects", list)),
        assignments=tuple(assignment_from_dict(a) for a in _section(d, "assignments", list)),
        allocations=AllocationStore.from_dict(allocations).as_mapping(),
        financials={rid: financials_from_dict(f) for rid, f in _section(d, "financials", dict).items()},
        expenses=tuple(expense_from_dict(e) for e in _section(d, "expenses", list)),
        milestones=tuple(milestone_from_dict(m) for m in _section(d, "milestones", list)),
        version=int(d.get("version", 0)),
        created_at=_datetime(d.get("created_at")),
        updated_at=_datetime(d.get("updated_at")),
        dirty=False,
    )
