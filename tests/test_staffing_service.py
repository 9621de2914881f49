"""Tests for the live staffing and simulation session services."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest

from models import actions
from models.allocation import AllocationStatus, Granularity
from models.company_calendar import CalendarEntry, CalendarEntryType
from models.project import Assignment, Project
from models.resource import Resource
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from engine.staffing_service import NonWorkingDayError, SimulationSession, StaffingService
from config.defaults import BLANK_SCENARIO_NAME
from data.data_store import DataStore
from data.errors import PersistenceError, ScenarioNotFoundError

MON = date(2024, 6, 3)
TUE = date(2024, 6, 4)


class FlakyDataStore:
    """Records persisted batches; fails while `failing` is set."""

    def __init__(self, failing=False):
        self.failing = failing
        self.batches = []
        self.created = []
        self.deleted = []
        self.calls = []

    def _check(self):
        if self.failing:
            raise PersistenceError("database is locked")

    def upsert_allocations(self, updates):
        self._check()
        self.batches.append(list(updates))
        self.calls.append("upsert")
        return len(self.batches[-1])

    def create_assignment(self, assignment):
        self._check()
        self.created.append(assignment)
        self.calls.append("create")

    def delete_assignment(self, assignment_id):
        self._check()
        self.deleted.append(assignment_id)
        self.calls.append("delete")


def make_service(data_store=None):
    ws = WorkingSet(
        resources=[Resource("R1", "Anna", "Milano", "DEV"), Resource("R2", "Luca", "Roma", "DEV")],
        projects=[Project("P1", "Alpha"), Project("P2", "Beta")],
        assignments=[Assignment("A1", "R1", "P1"), Assignment("A2", "R1", "P2")],
        calendar_entries=[
            CalendarEntry(TUE, CalendarEntryType.NATIONAL_HOLIDAY, "Holiday"),
            CalendarEntry(MON, CalendarEntryType.LOCAL_HOLIDAY, "Patron saint", "Roma"),
        ],
    )
    return StaffingService(ws, AllocationStore(), data_store)


class TestSingleCellEdit:
    def test_set_and_read_back(self):
        store = FlakyDataStore()
        service = make_service(store)
        result = service.set_allocation("A1", MON, 60)
        assert result.persisted
        assert service.get_utilization(service.working_set.resource("R1"), MON, MON, Granularity.DAY) == 60
        assert store.batches[0][0].day == "2024-06-03"

    def test_holiday_rejected(self):
        service = make_service()
        with pytest.raises(NonWorkingDayError):
            service.set_allocation("A1", TUE, 60)
        assert len(service.store) == 0

    def test_weekend_rejected(self):
        service = make_service()
        with pytest.raises(NonWorkingDayError):
            service.set_allocation("A1", date(2024, 6, 1), 60)

    def test_local_holiday_only_blocks_its_location(self):
        service = make_service()
        service.set_allocation("A1", MON, 50)   # Milano resource, Roma holiday
        assert service.store.get("A1", MON) == 50
        assert service.is_non_working_day(service.working_set.resource("R2"), MON)

    def test_unknown_assignment(self):
        with pytest.raises(KeyError):
            make_service().set_allocation("NOPE", MON, 10)

    def test_out_of_range(self):
        with pytest.raises(ValueError):
            make_service().set_allocation("A1", MON, 120)


class TestOptimisticPersistence:
    def test_failure_keeps_local_change(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        result = service.set_allocation("A1", MON, 60)
        assert not result.persisted
        assert "locked" in result.error
        assert service.store.get("A1", MON) == 60
        assert service.pending_persist
        assert len(service.pending_updates) == 1

    def test_retry_sends_pending(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        service.apply_bulk("A1", MON, date(2024, 6, 7), 40)
        store.failing = False
        result = service.retry_pending()
        assert result.persisted
        assert not service.pending_persist
        assert len(store.batches[0]) == 5

    def test_next_edit_flushes_backlog(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        service.set_allocation("A1", MON, 60)
        store.failing = False
        service.set_allocation("A2", MON, 20)
        assert len(store.batches[0]) == 2


class TestBulkEdit:
    def test_bulk_ignores_holidays(self):
        service = make_service(FlakyDataStore())
        result = service.apply_bulk("A1", MON, date(2024, 6, 9), 50)
        assert len(result.updates) == 5
        assert service.store.get("A1", TUE) == 50

    def test_week_view_excludes_holiday(self):
        service = make_service()
        service.apply_bulk("A1", MON, date(2024, 6, 9), 100)
        resource = service.working_set.resource("R1")
        assert service.get_utilization(resource, MON, date(2024, 6, 9), Granularity.WEEK) == 100
        assert service.status(resource, MON, date(2024, 6, 9), Granularity.WEEK) == AllocationStatus.AT_CAP

    def test_assignment_utilization(self):
        service = make_service()
        service.apply_bulk("A1", MON, date(2024, 6, 9), 100)
        service.apply_bulk("A2", MON, date(2024, 6, 9), 20)
        a2 = service.working_set.assignment("A2")
        assert service.get_utilization(a2, MON, date(2024, 6, 9), Granularity.WEEK) == 20
        resource = service.working_set.resource("R1")
        assert service.status(resource, MON, date(2024, 6, 9), Granularity.WEEK) == AllocationStatus.OVER


class TestAssignments:
    def test_create_is_idempotent(self):
        store = FlakyDataStore()
        service = make_service(store)
        first = service.create_assignment("R2", "P1")
        second = service.create_assignment("R2", "P1")
        assert first.assignment.assignment_id == second.assignment.assignment_id
        assert len(service.working_set.assignments_for("R2")) == 1
        assert len(store.created) == 1

    def test_create_many(self):
        service = make_service()
        results = service.create_assignments("R2", ["P1", "P2", "P1"])
        assert len({r.assignment.assignment_id for r in results}) == 2

    def test_delete_cascades(self):
        store = FlakyDataStore()
        service = make_service(store)
        service.set_allocation("A1", MON, 60)
        service.delete_assignment("A1")
        assert service.working_set.assignment("A1") is None
        assert service.store.assignment_map("A1") == {}
        assert store.deleted == ["A1"]

    def test_failed_create_stays_pending(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        result = service.create_assignment("R2", "P1")
        assert not result.persisted
        assert service.pending_persist
        assert service.working_set.find_assignment("R2", "P1") is not None

        retry = service.retry_pending()
        assert not retry.persisted
        assert "locked" in retry.error
        assert service.pending_persist
        assert store.created == []

    def test_retry_creates_before_cells(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        assignment = service.create_assignment("R2", "P1").assignment
        service.set_allocation(assignment.assignment_id, date(2024, 6, 5), 50)
        store.failing = False

        result = service.retry_pending()
        assert result.persisted
        assert not service.pending_persist
        assert store.created == [assignment]
        assert store.calls == ["create", "upsert"]
        assert store.batches[0][0].assignment_id == assignment.assignment_id

    def test_failed_delete_is_retried(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        service.set_allocation("A1", MON, 60)
        result = service.delete_assignment("A1")
        assert not result.persisted
        assert service.pending_updates == []
        assert service.pending_persist

        store.failing = False
        assert service.retry_pending().persisted
        assert store.deleted == ["A1"]
        assert store.batches == []

    def test_create_then_delete_replayed_in_order(self):
        store = FlakyDataStore(failing=True)
        service = make_service(store)
        assignment = service.create_assignment("R2", "P2").assignment
        service.delete_assignment(assignment.assignment_id)
        store.failing = False
        service.retry_pending()
        assert store.calls == ["create", "delete"]
        assert store.deleted == [assignment.assignment_id]

    def test_reload_discards_pending_ops(self, tmp_path):
        data_store = DataStore(str(tmp_path / "staffing.db"))
        service = make_service()
        data_store.save_working_set(service.working_set, service.store)
        service.data_store = data_store
        service.pending_ops.append(("create", Assignment("A9", "R2", "P1")))
        service.reload()
        assert service.pending_ops == []
        assert not service.pending_persist


class TestSimulationSession:
    def test_save_and_load_round_trip(self, tmp_path):
        data_store = DataStore(str(tmp_path / "staffing.db"))
        service = make_service()
        service.set_allocation("A1", MON, 60)

        session = SimulationSession(data_store)
        session.import_live(service.working_set, service.store)
        assert session.can_save
        scenario_id = session.save()
        assert not session.can_save
        assert session.state.scenario_id == scenario_id
        assert session.state.version == 1

        other = SimulationSession(data_store)
        loaded = other.load(scenario_id)
        assert loaded.allocations == {"A1": {"2024-06-03": 60}}
        assert not loaded.dirty
        assert other.list_scenarios()[0]["id"] == scenario_id

    def test_failed_load_keeps_state(self, tmp_path):
        session = SimulationSession(DataStore(str(tmp_path / "staffing.db")))
        session.start_blank("Draft")
        with pytest.raises(ScenarioNotFoundError):
            session.load("missing")
        assert session.state.name == "Draft"

    def test_save_without_store(self):
        with pytest.raises(PersistenceError):
            SimulationSession().save()

    def test_scenario_utilization_uses_live_calendar(self):
        service = make_service()
        service.apply_bulk("A1", MON, date(2024, 6, 9), 100)
        session = SimulationSession()
        session.import_live(service.working_set, service.store)
        value = session.utilization("R1", MON, date(2024, 6, 9), Granularity.WEEK, service.working_set)
        assert value == 100

    def test_start_blank_resets_name_and_dirty(self):
        session = SimulationSession()
        session.start_blank()
        session.dispatch(actions.UpdateMeta(name="Q3 plan", description="hiring"))
        assert session.can_save
        before = session.generation

        session.start_blank()
        assert session.state.name == BLANK_SCENARIO_NAME
        assert session.state.description == ""
        assert not session.can_save
        assert session.generation == before + 1

    def test_generation_unchanged_by_edits_and_save(self, tmp_path):
        session = SimulationSession(DataStore(str(tmp_path / "staffing.db")))
        session.dispatch(actions.UpdateMeta(name="Q3 plan"))
        before = session.generation
        scenario_id = session.save()
        assert session.generation == before

        session.load(scenario_id)
        assert session.generation == before + 1
