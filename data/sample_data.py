"""Generate a synthetic demo data set for the Staffing Planner."""

import os
import random
from datetime import date, timedelta
from typing import Dict, Optional

import pandas as pd

LOCATIONS = ["Milano", "Roma"]


def _week_start(today: date) -> date:
    return today - timedelta(days=today.weekday())


def generate_roles_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Role ID": "R-JR", "Name": "Junior Consultant", "Daily Cost": 220.0, "Daily Expenses": None},
        {"Role ID": "R-CO", "Name": "Consultant", "Daily Cost": 300.0, "Daily Expenses": 12.0},
        {"Role ID": "R-SR", "Name": "Senior Consultant", "Daily Cost": 410.0, "Daily Expenses": 15.0},
        {"Role ID": "R-MG", "Name": "Manager", "Daily Cost": 560.0, "Daily Expenses": 20.0},
    ])


def generate_resources_df(today: Optional[date] = None) -> pd.DataFrame:
    """Eight resources across two locations; one leaves the company mid-horizon."""
    today = today or date.today()
    rows = []
    names = ["Giulia Conti", "Marco Bianchi", "Sara Ricci", "Luca Romano",
             "Elena Greco", "Paolo Marino", "Chiara Gallo", "Davide Costa"]
    roles = ["R-MG", "R-SR", "R-SR", "R-CO", "R-CO", "R-CO", "R-JR", "R-JR"]
    for idx, (name, role) in enumerate(zip(names, roles), start=1):
        rows.append({
            "Resource ID": f"RES-{idx:02d}",
            "Name": name,
            "Location": LOCATIONS[idx % 2],
            "Role ID": role,
            "Hire Date": (today - timedelta(days=365 * (idx % 5 + 1))).isoformat(),
            "Max Staffing %": 80 if role == "R-MG" else 100,
            "Last Day of Work": (today + timedelta(days=45)).isoformat() if idx == 8 else None,
            "Daily Cost": None,
        })
    return pd.DataFrame(rows)


def generate_projects_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Project ID": "PRJ-01", "Name": "Core Banking Migration", "Client ID": "CL-01",
         "Billing Type": "TIME_MATERIAL", "Rate Card ID": "RC-STD"},
        {"Project ID": "PRJ-02", "Name": "Data Platform", "Client ID": "CL-02",
         "Billing Type": "TIME_MATERIAL", "Rate Card ID": "RC-PREMIUM"},
        {"Project ID": "PRJ-03", "Name": "Claims Portal", "Client ID": "CL-03",
         "Billing Type": "FIXED_PRICE", "Rate Card ID": None},
        {"Project ID": "PRJ-04", "Name": "Internal Tooling", "Client ID": None,
         "Billing Type": "TIME_MATERIAL", "Rate Card ID": None},
    ])


def generate_assignments_df() -> pd.DataFrame:
    pairs = [
        ("RES-01", "PRJ-01"), ("RES-01", "PRJ-02"),
        ("RES-02", "PRJ-01"), ("RES-03", "PRJ-02"), ("RES-03", "PRJ-03"),
        ("RES-04", "PRJ-03"), ("RES-05", "PRJ-01"), ("RES-05", "PRJ-04"),
        ("RES-06", "PRJ-02"), ("RES-07", "PRJ-03"), ("RES-08", "PRJ-01"),
    ]
    return pd.DataFrame([
        {"Assignment ID": f"ASG-{idx:03d}", "Resource ID": r, "Project ID": p}
        for idx, (r, p) in enumerate(pairs, start=1)
    ])


def generate_allocations_df(today: Optional[date] = None, weeks: int = 10) -> pd.DataFrame:
    """Weekday allocations from the current week onward; some weeks overbook on purpose."""
    random.seed(42)
    start = _week_start(today or date.today())
    rows = []
    for assignment_id in generate_assignments_df()["Assignment ID"]:
        for week in range(weeks):
            pct = random.choice([0, 20, 40, 50, 60, 80, 100])
            if pct == 0:
                continue
            for offset in range(5):
                day = start + timedelta(days=week * 7 + offset)
                rows.append({"Assignment ID": assignment_id, "Date": day.isoformat(), "Percentage": pct})
    return pd.DataFrame(rows)


def generate_calendar_df(year: Optional[int] = None) -> pd.DataFrame:
    year = year or date.today().year
    rows = []
    for y in (year, year + 1):
        for month, day, name in [(1, 1, "Capodanno"), (1, 6, "Epifania"), (4, 25, "Liberazione"),
                                 (5, 1, "Festa del Lavoro"), (6, 2, "Festa della Repubblica"),
                                 (8, 15, "Ferragosto"), (12, 25, "Natale"), (12, 26, "Santo Stefano")]:
            rows.append({"Date": date(y, month, day).isoformat(), "Type": "NATIONAL_HOLIDAY",
                         "Name": name, "Location": None})
        rows.append({"Date": date(y, 12, 24).isoformat(), "Type": "COMPANY_CLOSURE",
                     "Name": "Chiusura aziendale", "Location": None})
        rows.append({"Date": date(y, 12, 7).isoformat(), "Type": "LOCAL_HOLIDAY",
                     "Name": "Sant'Ambrogio", "Location": "Milano"})
        rows.append({"Date": date(y, 6, 29).isoformat(), "Type": "LOCAL_HOLIDAY",
                     "Name": "Santi Pietro e Paolo", "Location": "Roma"})
    return pd.DataFrame(rows)


def generate_leave_types_df() -> pd.DataFrame:
    return pd.DataFrame([
        {"Leave Type ID": "LT-FER", "Name": "Ferie", "Affects Capacity": True},
        {"Leave Type ID": "LT-PER", "Name": "Permesso", "Affects Capacity": True},
        {"Leave Type ID": "LT-FOR", "Name": "Formazione", "Affects Capacity": False},
    ])


def generate_leave_requests_df(today: Optional[date] = None) -> pd.DataFrame:
    start = _week_start(today or date.today())
    return pd.DataFrame([
        {"Request ID": "LV-01", "Resource ID": "RES-02", "Leave Type ID": "LT-FER",
         "Start Date": (start + timedelta(days=14)).isoformat(),
         "End Date": (start + timedelta(days=18)).isoformat(), "Status": "APPROVED", "Half Day": False},
        {"Request ID": "LV-02", "Resource ID": "RES-04", "Leave Type ID": "LT-PER",
         "Start Date": (start + timedelta(days=2)).isoformat(),
         "End Date": (start + timedelta(days=2)).isoformat(), "Status": "APPROVED", "Half Day": True},
        {"Request ID": "LV-03", "Resource ID": "RES-05", "Leave Type ID": "LT-FER",
         "Start Date": (start + timedelta(days=21)).isoformat(),
         "End Date": (start + timedelta(days=25)).isoformat(), "Status": "PENDING", "Half Day": False},
        {"Request ID": "LV-04", "Resource ID": "RES-06", "Leave Type ID": "LT-FOR",
         "Start Date": (start + timedelta(days=7)).isoformat(),
         "End Date": (start + timedelta(days=8)).isoformat(), "Status": "APPROVED", "Half Day": False},
    ])


def generate_rate_cards_df() -> pd.DataFrame:
    rates = {"RES-01": 900, "RES-02": 700, "RES-03": 680, "RES-04": 520,
             "RES-05": 500, "RES-06": 510, "RES-07": 380, "RES-08": 390}
    rows = []
    for resource_id, rate in rates.items():
        rows.append({"Rate Card ID": "RC-STD", "Resource ID": resource_id, "Daily Rate": float(rate)})
        rows.append({"Rate Card ID": "RC-PREMIUM", "Resource ID": resource_id, "Daily Rate": float(rate) * 1.15})
    return pd.DataFrame(rows)


def generate_all_frames(today: Optional[date] = None) -> Dict[str, pd.DataFrame]:
    """Every sheet of the demo workbook keyed like loader.SHEET_ALIASES."""
    today = today or date.today()
    return {
        "resources": generate_resources_df(today),
        "projects": generate_projects_df(),
        "assignments": generate_assignments_df(),
        "allocations": generate_allocations_df(today),
        "calendar": generate_calendar_df(today.year),
        "leave_types": generate_leave_types_df(),
        "leave_requests": generate_leave_requests_df(today),
        "roles": generate_roles_df(),
        "rate_cards": generate_rate_cards_df(),
    }


SHEET_NAMES = {
    "resources": "Resources",
    "projects": "Projects",
    "assignments": "Assignments",
    "allocations": "Allocations",
    "calendar": "Calendar",
    "leave_types": "Leave Types",
    "leave_requests": "Leave Requests",
    "roles": "Roles",
    "rate_cards": "Rate Cards",
}


def generate_sample_excel(output_dir: str) -> str:
    """Write a single multi-tab Excel workbook with every demo sheet."""
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, "sample_staffing.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        for key, df in generate_all_frames().items():
            df.to_excel(writer, sheet_name=SHEET_NAMES[key], index=False)
    return path


if __name__ == "__main__":
    out = os.path.join(os.path.dirname(__file__), "..", "sample_files")
    print(f"Sample workbook written to {generate_sample_excel(out)}")
