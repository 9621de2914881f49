"""Tests for range fill of allocations."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest

from engine.allocation_store import AllocationStore
from engine.bulk_editor import apply_bulk, plan_bulk_dates


class TestApplyBulk:
    def test_weekend_dates_skipped(self):
        store = AllocationStore()
        updates = apply_bulk(store, "A1", date(2024, 6, 1), date(2024, 6, 3), 50)
        assert [u.day for u in updates] == ["2024-06-03"]
        assert store.get("A1", date(2024, 6, 3)) == 50
        assert not store.has_entry("A1", date(2024, 6, 1))
        assert not store.has_entry("A1", date(2024, 6, 2))

    def test_full_week(self):
        store = AllocationStore()
        updates = apply_bulk(store, "A1", date(2024, 6, 3), date(2024, 6, 9), 100)
        assert len(updates) == 5
        assert len(store) == 5

    def test_reversed_range_is_noop(self):
        store = AllocationStore()
        assert apply_bulk(store, "A1", date(2024, 6, 9), date(2024, 6, 3), 50) == []
        assert len(store) == 0

    def test_zero_clears_range(self):
        store = AllocationStore()
        apply_bulk(store, "A1", date(2024, 6, 3), date(2024, 6, 7), 50)
        apply_bulk(store, "A1", date(2024, 6, 3), date(2024, 6, 5), 0)
        assert store.assignment_map("A1") == {"2024-06-06": 50, "2024-06-07": 50}

    def test_invalid_percentage_writes_nothing(self):
        store = AllocationStore()
        with pytest.raises(ValueError):
            apply_bulk(store, "A1", date(2024, 6, 3), date(2024, 6, 7), 120)
        assert len(store) == 0

    def test_holidays_are_not_skipped(self):
        # Holiday scope is resolved per resource, so a range fill writes every weekday.
        assert date(2024, 12, 25) in plan_bulk_dates(date(2024, 12, 23), date(2024, 12, 27))
