"""File upload parsing: CSV/XLSX into typed model lists."""

import logging
from typing import Dict, List, Optional, Tuple

import pandas as pd

from models.company_calendar import CalendarEntry, CalendarEntryType
from models.leave import LeaveRequest, LeaveStatus, LeaveType
from models.project import Assignment, BillingType, Project
from models.resource import RateCardEntry, Resource, Role
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from config.defaults import DEFAULT_CAP_PCT

logger = logging.getLogger(__name__)


def _opt_str(row, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _opt_date(row, column: str):
    value = row.get(column)
    if value is None or pd.isna(value) or str(value).strip() == "":
        return None
    return pd.to_datetime(value).date()


def _opt_float(row, column: str) -> Optional[float]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    return float(value)


def _flag(row, column: str, default: bool) -> bool:
    value = row.get(column)
    if value is None or pd.isna(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "y", "1")
    return bool(value)


def parse_resources(df: pd.DataFrame, default_cap_pct: int = DEFAULT_CAP_PCT) -> List[Resource]:
    """A blank "Max Staffing %" falls back to default_cap_pct."""
    resources = []
    for _, row in df.iterrows():
        cap = _opt_float(row, "Max Staffing %")
        resources.append(Resource(
            resource_id=str(row["Resource ID"]).strip(),
            name=str(row["Name"]).strip(),
            location=_opt_str(row, "Location"),
            role_id=_opt_str(row, "Role ID"),
            hire_date=_opt_date(row, "Hire Date"),
            max_staffing_pct=int(cap) if cap is not None else default_cap_pct,
            last_day_of_work=_opt_date(row, "Last Day of Work"),
            daily_cost=_opt_float(row, "Daily Cost"),
        ))
    return resources


def parse_projects(df: pd.DataFrame) -> List[Project]:
    projects = []
    for _, row in df.iterrows():
        billing = _opt_str(row, "Billing Type")
        projects.append(Project(
            project_id=str(row["Project ID"]).strip(),
            name=str(row["Name"]).strip(),
            client_id=_opt_str(row, "Client ID"),
            billing_type=BillingType(billing.upper()) if billing else BillingType.TIME_MATERIAL,
            rate_card_id=_opt_str(row, "Rate Card ID"),
        ))
    return projects


def parse_assignments(df: pd.DataFrame) -> List[Assignment]:
    """Duplicate (resource, project) pairs collapse to the first assignment."""
    assignments = []
    seen = set()
    for _, row in df.iterrows():
        pair = (str(row["Resource ID"]).strip(), str(row["Project ID"]).strip())
        if pair in seen:
            logger.info("Skipping duplicate assignment for resource %s / project %s", *pair)
            continue
        seen.add(pair)
        assignments.append(Assignment(str(row["Assignment ID"]).strip(), *pair))
    return assignments


def parse_allocations(df: pd.DataFrame) -> AllocationStore:
    store = AllocationStore()
    for _, row in df.iterrows():
        store.set(
            str(row["Assignment ID"]).strip(),
            pd.to_datetime(row["Date"]).date(),
            int(row["Percentage"]),
        )
    return store


def parse_calendar(df: pd.DataFrame) -> List[CalendarEntry]:
    entries = []
    for _, row in df.iterrows():
        entries.append(CalendarEntry(
            entry_date=pd.to_datetime(row["Date"]).date(),
            entry_type=CalendarEntryType(str(row["Type"]).strip().upper()),
            name=_opt_str(row, "Name") or "",
            location=_opt_str(row, "Location"),
        ))
    return entries


def parse_leave_types(df: pd.DataFrame) -> List[LeaveType]:
    return [
        LeaveType(
            type_id=str(row["Leave Type ID"]).strip(),
            name=_opt_str(row, "Name") or "",
            affects_capacity=_flag(row, "Affects Capacity", True),
        )
        for _, row in df.iterrows()
    ]


def parse_leave_requests(df: pd.DataFrame) -> List[LeaveRequest]:
    requests = []
    for _, row in df.iterrows():
        status = _opt_str(row, "Status")
        requests.append(LeaveRequest(
            request_id=str(row["Request ID"]).strip(),
            resource_id=str(row["Resource ID"]).strip(),
            type_id=str(row["Leave Type ID"]).strip(),
            start_date=pd.to_datetime(row["Start Date"]).date(),
            end_date=pd.to_datetime(row["End Date"]).date(),
            status=LeaveStatus(status.upper()) if status else LeaveStatus.PENDING,
            is_half_day=_flag(row, "Half Day", False),
        ))
    return requests


def parse_roles(df: pd.DataFrame) -> List[Role]:
    return [
        Role(
            role_id=str(row["Role ID"]).strip(),
            name=_opt_str(row, "Name") or "",
            daily_cost=float(row["Daily Cost"]),
            daily_expenses=_opt_float(row, "Daily Expenses"),
        )
        for _, row in df.iterrows()
    ]


def parse_rate_cards(df: pd.DataFrame) -> List[RateCardEntry]:
    return [
        RateCardEntry(
            rate_card_id=str(row["Rate Card ID"]).strip(),
            resource_id=str(row["Resource ID"]).strip(),
            daily_rate=float(row["Daily Rate"]),
        )
        for _, row in df.iterrows()
    ]


def build_working_set(
    frames: Dict[str, pd.DataFrame],
    rule_config: Optional[dict] = None,
) -> Tuple[WorkingSet, AllocationStore]:
    """Parse every available sheet into a working set plus its allocation store.

    Allocation rows whose assignment is unknown are dropped so the store holds
    no orphans.
    """
    cfg = rule_config or {}

    def frame(key: str) -> pd.DataFrame:
        return frames.get(key, pd.DataFrame())

    working_set = WorkingSet(
        resources=parse_resources(frame("resources"), cfg.get("default_cap_pct", DEFAULT_CAP_PCT)),
        projects=parse_projects(frame("projects")),
        assignments=parse_assignments(frame("assignments")),
        roles=parse_roles(frame("roles")) if "roles" in frames else [],
        rate_card_entries=parse_rate_cards(frame("rate_cards")) if "rate_cards" in frames else [],
        calendar_entries=parse_calendar(frame("calendar")) if "calendar" in frames else [],
        leave_requests=parse_leave_requests(frame("leave_requests")) if "leave_requests" in frames else [],
        leave_types=parse_leave_types(frame("leave_types")) if "leave_types" in frames else [],
    )
    store = parse_allocations(frame("allocations")) if "allocations" in frames else AllocationStore()

    known = {a.assignment_id for a in working_set.assignments}
    for assignment_id in store.assignment_ids():
        if assignment_id not in known:
            logger.warning("Dropping allocations of unknown assignment %s", assignment_id)
            store.cascade_delete(assignment_id)
    return working_set, store


def load_file(uploaded_file) -> pd.DataFrame:
    """Load an uploaded file (CSV or XLSX) into a DataFrame."""
    name = uploaded_file.name.lower()
    if name.endswith(".csv"):
        return pd.read_csv(uploaded_file)
    elif name.endswith(".xlsx") or name.endswith(".xls"):
        return pd.read_excel(uploaded_file, engine="openpyxl")
    else:
        raise ValueError(f"Unsupported file format: {name}. Use CSV or XLSX.")


# Expected sheet names for a multi-tab workbook (case-insensitive matching)
SHEET_ALIASES = {
    "resources": ["resources", "resource", "people", "staff"],
    "projects": ["projects", "project"],
    "assignments": ["assignments", "assignment"],
    "allocations": ["allocations", "allocation", "staffing"],
    "calendar": ["calendar", "company calendar", "holidays"],
    "leave_types": ["leave types", "leave type"],
    "leave_requests": ["leave requests", "leave", "leaves", "absences"],
    "roles": ["roles", "role"],
    "rate_cards": ["rate cards", "rate card", "rates"],
}
REQUIRED_SHEETS = ["resources", "projects", "assignments"]


def _match_sheet(sheet_names: List[str], category: str) -> Optional[str]:
    """Find a sheet name matching the given category, or None."""
    aliases = SHEET_ALIASES[category]
    lower_map = {s.lower().strip(): s for s in sheet_names}
    for alias in aliases:
        if alias in lower_map:
            return lower_map[alias]
    return None


def load_multi_sheet_excel(uploaded_file) -> Dict[str, pd.DataFrame]:
    """Load a workbook with one tab per entity, keyed by category.

    Resources, Projects and Assignments tabs are required; the others are
    optional.
    """
    xl = pd.ExcelFile(uploaded_file, engine="openpyxl")
    sheet_names = xl.sheet_names

    frames = {}
    for category in SHEET_ALIASES:
        sheet = _match_sheet(sheet_names, category)
        if sheet is None:
            if category in REQUIRED_SHEETS:
                raise ValueError(
                    f"Could not find a sheet for '{category}'. "
                    f"Expected one of: {SHEET_ALIASES[category]}. "
                    f"Found sheets: {sheet_names}"
                )
            continue
        frames[category] = pd.read_excel(xl, sheet_name=sheet)
    return frames
