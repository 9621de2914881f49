"""Tests for upload parsing and validation."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pandas as pd

from models.company_calendar import CalendarEntryType
from models.project import BillingType
from data.loader import build_working_set, load_multi_sheet_excel, parse_resources
from data.sample_data import generate_all_frames, generate_sample_excel
from data.validator import validate_allocations, validate_frames

TODAY = date(2024, 6, 3)


class TestSampleData:
    def test_sample_frames_validate(self):
        result = validate_frames(generate_all_frames(TODAY))
        assert result.is_valid, result.errors

    def test_sample_frames_parse(self):
        ws, store = build_working_set(generate_all_frames(TODAY))
        assert len(ws.resources) == 8
        assert ws.project("PRJ-03").billing_type == BillingType.FIXED_PRICE
        assert ws.resource("RES-08").last_day_of_work is not None
        assert any(e.entry_type == CalendarEntryType.LOCAL_HOLIDAY for e in ws.calendar_entries)
        assert len(store) > 0
        assert set(store.assignment_ids()) <= {a.assignment_id for a in ws.assignments}

    def test_workbook_round_trip(self, tmp_path):
        path = generate_sample_excel(str(tmp_path))
        with open(path, "rb") as fh:
            frames = load_multi_sheet_excel(fh)
        assert set(frames) >= {"resources", "projects", "assignments", "allocations"}


class TestParsing:
    def test_default_cap(self):
        df = pd.DataFrame([{"Resource ID": "R1", "Name": "Anna", "Location": "Milano",
                            "Role ID": "DEV", "Max Staffing %": None}])
        assert parse_resources(df)[0].max_staffing_pct == 100
        assert parse_resources(df, default_cap_pct=80)[0].max_staffing_pct == 80

    def test_orphan_allocations_dropped(self):
        frames = {
            "resources": pd.DataFrame([{"Resource ID": "R1", "Name": "Anna", "Location": "Milano", "Role ID": "DEV"}]),
            "projects": pd.DataFrame([{"Project ID": "P1", "Name": "Alpha"}]),
            "assignments": pd.DataFrame([{"Assignment ID": "A1", "Resource ID": "R1", "Project ID": "P1"}]),
            "allocations": pd.DataFrame([
                {"Assignment ID": "A1", "Date": "2024-06-03", "Percentage": 50},
                {"Assignment ID": "GONE", "Date": "2024-06-03", "Percentage": 50},
            ]),
        }
        _, store = build_working_set(frames)
        assert store.assignment_ids() == ["A1"]


class TestValidation:
    def test_percentage_out_of_range(self):
        df = pd.DataFrame([{"Assignment ID": "A1", "Date": "2024-06-03", "Percentage": 120}])
        assert not validate_allocations(df).is_valid

    def test_unknown_references(self):
        frames = generate_all_frames(TODAY)
        frames["assignments"] = pd.concat([
            frames["assignments"],
            pd.DataFrame([{"Assignment ID": "ASG-999", "Resource ID": "RES-99", "Project ID": "PRJ-01"}]),
        ], ignore_index=True)
        result = validate_frames(frames)
        assert not result.is_valid
        assert any("RES-99" in e for e in result.errors)

    def test_missing_resources_sheet(self):
        frames = generate_all_frames(TODAY)
        del frames["resources"]
        assert not validate_frames(frames).is_valid
