"""Schema validation for uploaded data files."""

from dataclasses import dataclass, field
from typing import Dict, List
import pandas as pd


@dataclass
class ValidationResult:
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        self.is_valid = self.is_valid and other.is_valid
        self.errors.extend(other.errors)
        self.warnings.extend(other.warnings)
        return self


RESOURCE_REQUIRED_COLUMNS = ["Resource ID", "Name", "Location", "Role ID"]
PROJECT_REQUIRED_COLUMNS = ["Project ID", "Name"]
ASSIGNMENT_REQUIRED_COLUMNS = ["Assignment ID", "Resource ID", "Project ID"]
ALLOCATION_REQUIRED_COLUMNS = ["Assignment ID", "Date", "Percentage"]
CALENDAR_REQUIRED_COLUMNS = ["Date", "Type"]
LEAVE_REQUEST_REQUIRED_COLUMNS = ["Request ID", "Resource ID", "Leave Type ID", "Start Date", "End Date", "Status"]

CALENDAR_TYPES = {"NATIONAL_HOLIDAY", "COMPANY_CLOSURE", "LOCAL_HOLIDAY"}
LEAVE_STATUSES = {"PENDING", "APPROVED", "REJECTED"}
BILLING_TYPES = {"TIME_MATERIAL", "FIXED_PRICE"}


def _check_required_columns(df: pd.DataFrame, required: List[str], file_label: str,
                            allow_empty: bool = False) -> ValidationResult:
    result = ValidationResult()
    missing = [col for col in required if col not in df.columns]
    if missing:
        result.is_valid = False
        result.errors.append(f"{file_label}: Missing required columns: {', '.join(missing)}")
    if df.empty and not allow_empty:
        result.is_valid = False
        result.errors.append(f"{file_label}: File contains no data rows.")
    return result


def _check_unique(df: pd.DataFrame, column: str, file_label: str, result: ValidationResult) -> None:
    dupes = df.duplicated(subset=[column], keep=False)
    if dupes.any():
        result.is_valid = False
        result.errors.append(f"{file_label}: Duplicate {column} values: {df[dupes][column].unique().tolist()}")


def _bad_dates(series: pd.Series) -> pd.Series:
    return pd.to_datetime(series, errors="coerce").isna() & series.notna()


def validate_resources(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, RESOURCE_REQUIRED_COLUMNS, "Resources")
    if not result.is_valid:
        return result

    _check_unique(df, "Resource ID", "Resources", result)

    if "Max Staffing %" in df.columns:
        caps = pd.to_numeric(df["Max Staffing %"], errors="coerce")
        if (caps.dropna() <= 0).any():
            result.is_valid = False
            result.errors.append("Resources: Max Staffing % must be greater than 0.")
        if caps.isna().any():
            result.warnings.append("Resources: Missing Max Staffing % values use the default cap.")

    for column in ("Hire Date", "Last Day of Work"):
        if column in df.columns and _bad_dates(df[column]).any():
            result.is_valid = False
            result.errors.append(f"Resources: {column} contains invalid dates.")

    return result


def validate_projects(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, PROJECT_REQUIRED_COLUMNS, "Projects")
    if not result.is_valid:
        return result

    _check_unique(df, "Project ID", "Projects", result)

    if "Billing Type" in df.columns:
        values = df["Billing Type"].dropna().astype(str).str.strip().str.upper()
        unknown = sorted(set(values) - BILLING_TYPES - {""})
        if unknown:
            result.is_valid = False
            result.errors.append(f"Projects: Unknown billing types: {unknown}")

    return result


def validate_assignments(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, ASSIGNMENT_REQUIRED_COLUMNS, "Assignments", allow_empty=True)
    if not result.is_valid:
        return result

    _check_unique(df, "Assignment ID", "Assignments", result)

    # Same (resource, project) twice is absorbed at import, not rejected
    pairs = df.duplicated(subset=["Resource ID", "Project ID"], keep="first")
    if pairs.any():
        result.warnings.append(
            f"Assignments: {int(pairs.sum())} duplicate resource/project pairs will be merged."
        )
    return result


def validate_allocations(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, ALLOCATION_REQUIRED_COLUMNS, "Allocations", allow_empty=True)
    if not result.is_valid:
        return result

    pct = pd.to_numeric(df["Percentage"], errors="coerce")
    if pct.isna().any() or (pct < 0).any() or (pct > 100).any():
        result.is_valid = False
        result.errors.append("Allocations: Percentage must be a number between 0 and 100.")
    elif (pct != pct.round()).any():
        result.is_valid = False
        result.errors.append("Allocations: Percentage must be a whole number.")

    if _bad_dates(df["Date"]).any():
        result.is_valid = False
        result.errors.append("Allocations: Date contains invalid dates.")

    dupes = df.duplicated(subset=["Assignment ID", "Date"], keep=False)
    if dupes.any():
        result.warnings.append("Allocations: Repeated assignment/date rows; the last value wins.")

    return result


def validate_calendar(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, CALENDAR_REQUIRED_COLUMNS, "Calendar", allow_empty=True)
    if not result.is_valid:
        return result

    types = df["Type"].astype(str).str.strip().str.upper()
    unknown = sorted(set(types) - CALENDAR_TYPES)
    if unknown:
        result.is_valid = False
        result.errors.append(f"Calendar: Unknown entry types: {unknown}")

    if "Location" in df.columns:
        local_without_location = (types == "LOCAL_HOLIDAY") & df["Location"].isna()
    else:
        local_without_location = types == "LOCAL_HOLIDAY"
    if local_without_location.any():
        result.warnings.append("Calendar: LOCAL_HOLIDAY rows without a location apply to nobody.")

    return result


def validate_leave_requests(df: pd.DataFrame) -> ValidationResult:
    result = _check_required_columns(df, LEAVE_REQUEST_REQUIRED_COLUMNS, "Leave Requests", allow_empty=True)
    if not result.is_valid:
        return result

    statuses = df["Status"].astype(str).str.strip().str.upper()
    unknown = sorted(set(statuses) - LEAVE_STATUSES)
    if unknown:
        result.is_valid = False
        result.errors.append(f"Leave Requests: Unknown statuses: {unknown}")

    start = pd.to_datetime(df["Start Date"], errors="coerce")
    end = pd.to_datetime(df["End Date"], errors="coerce")
    if start.isna().any() or end.isna().any():
        result.is_valid = False
        result.errors.append("Leave Requests: Start Date and End Date must be valid dates.")
    elif (end < start).any():
        result.is_valid = False
        result.errors.append("Leave Requests: End Date before Start Date.")

    return result


def validate_cross_file(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    """Check that references between sheets resolve."""
    result = ValidationResult()
    resource_ids = set(frames["resources"]["Resource ID"].astype(str).str.strip())
    project_ids = set(frames["projects"]["Project ID"].astype(str).str.strip())
    assignments = frames.get("assignments", pd.DataFrame(columns=ASSIGNMENT_REQUIRED_COLUMNS))

    unknown_resources = set(assignments["Resource ID"].astype(str).str.strip()) - resource_ids
    unknown_projects = set(assignments["Project ID"].astype(str).str.strip()) - project_ids
    if unknown_resources:
        result.is_valid = False
        result.errors.append(f"Assignments reference unknown resources: {', '.join(sorted(unknown_resources))}")
    if unknown_projects:
        result.is_valid = False
        result.errors.append(f"Assignments reference unknown projects: {', '.join(sorted(unknown_projects))}")

    allocations = frames.get("allocations")
    if allocations is not None and not allocations.empty:
        assignment_ids = set(assignments["Assignment ID"].astype(str).str.strip())
        orphans = set(allocations["Assignment ID"].astype(str).str.strip()) - assignment_ids
        if orphans:
            result.warnings.append(
                f"Allocations for unknown assignments will be ignored: {', '.join(sorted(orphans))}"
            )

    roles = frames.get("roles")
    if roles is not None and "Role ID" in frames["resources"].columns:
        role_ids = set(roles["Role ID"].astype(str).str.strip())
        used = set(frames["resources"]["Role ID"].dropna().astype(str).str.strip())
        missing = used - role_ids
        if missing:
            result.warnings.append(
                f"Resources reference roles without cost data: {', '.join(sorted(missing))}. "
                "Their simulated daily cost defaults to 0."
            )
    return result


def validate_frames(frames: Dict[str, pd.DataFrame]) -> ValidationResult:
    """Validate every sheet present, then the cross-sheet references."""
    result = ValidationResult()
    checks = {
        "resources": validate_resources,
        "projects": validate_projects,
        "assignments": validate_assignments,
        "allocations": validate_allocations,
        "calendar": validate_calendar,
        "leave_requests": validate_leave_requests,
    }
    for key, check in checks.items():
        if key in frames:
            result.merge(check(frames[key]))
        elif key in ("resources", "projects"):
            result.is_valid = False
            result.errors.append(f"Missing {key} data.")
    if result.is_valid:
        result.merge(validate_cross_file(frames))
    return result
