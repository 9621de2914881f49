"""Tests for the sparse allocation store."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest

from engine.allocation_store import AllocationStore


class TestSetAndGet:
    def test_missing_cell_reads_zero(self):
        store = AllocationStore()
        assert store.get("A1", date(2024, 6, 3)) == 0

    def test_set_then_get(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 60)
        assert store.get("A1", date(2024, 6, 3)) == 60
        assert store.get("A1", "2024-06-03") == 60

    def test_zero_removes_key(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 60)
        store.set("A1", date(2024, 6, 3), 0)
        assert not store.has_entry("A1", date(2024, 6, 3))
        assert store.assignment_ids() == []
        assert len(store) == 0

    @pytest.mark.parametrize("bad", [-1, 101, 50.5])
    def test_out_of_range_rejected(self, bad):
        store = AllocationStore()
        with pytest.raises(ValueError):
            store.set("A1", date(2024, 6, 3), bad)
        assert len(store) == 0


class TestCopySemantics:
    def test_copy_is_isolated(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 40)
        clone = store.copy()
        clone.set("A1", date(2024, 6, 3), 80)
        clone.set("A2", date(2024, 6, 4), 20)
        assert store.get("A1", date(2024, 6, 3)) == 40
        assert store.get("A2", date(2024, 6, 4)) == 0

    def test_copy_shares_untouched_maps(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 40)
        store.set("A2", date(2024, 6, 3), 40)
        clone = store.copy()
        clone.set("A2", date(2024, 6, 4), 10)
        assert clone.as_mapping()["A1"] is store.as_mapping()["A1"]
        assert clone.as_mapping()["A2"] is not store.as_mapping()["A2"]

    def test_snapshot_is_deep(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 40)
        snap = store.snapshot()
        snap["A1"]["2024-06-03"] = 99
        assert store.get("A1", date(2024, 6, 3)) == 40


class TestCascadeAndLoad:
    def test_cascade_delete(self):
        store = AllocationStore()
        store.set("A1", date(2024, 6, 3), 40)
        store.set("A1", date(2024, 6, 4), 40)
        store.set("A2", date(2024, 6, 3), 10)
        store.cascade_delete("A1")
        assert store.assignment_map("A1") == {}
        assert len(store) == 1

    def test_from_dict_drops_zeros_and_normalizes_dates(self):
        store = AllocationStore.from_dict({
            "A1": {date(2024, 6, 3): 50, "2024-06-04": 0},
            "A2": {},
        })
        assert store.assignment_map("A1") == {"2024-06-03": 50}
        assert store.assignment_ids() == ["A1"]

    def test_from_dict_validates(self):
        with pytest.raises(ValueError):
            AllocationStore.from_dict({"A1": {"2024-06-03": 150}})
