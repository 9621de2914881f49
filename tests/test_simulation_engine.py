"""Tests for the simulation engine transitions."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from datetime import date

import pytest

from models import actions
from models.project import Assignment, BillingType, Project
from models.resource import RateCardEntry, Resource, Role
from models.scenario import BillingMilestone, MilestoneStatus, ProjectExpense, SimulationScenario
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from engine.simulation_engine import (
    blank_scenario, build_live_import, dispatch, replay, seed_financials,
)

MON = date(2024, 6, 3)


def make_live():
    ws = WorkingSet(
        resources=[Resource("R1", "Anna", "Milano", "DEV"),
                   Resource("R2", "Marco", "Roma", "PM", daily_cost=500.0)],
        projects=[Project("P1", "Alpha", rate_card_id="RC-STD"), Project("P2", "Beta")],
        assignments=[Assignment("A1", "R1", "P1"), Assignment("A2", "R2", "P2")],
        roles=[Role("DEV", "Developer", 300.0, 12.0), Role("PM", "Manager", 450.0)],
        rate_card_entries=[RateCardEntry("RC-STD", "R1", 600.0)],
    )
    store = AllocationStore()
    store.set("A1", MON, 100)
    store.set("A2", MON, 50)
    return ws, store


def imported():
    ws, store = make_live()
    return dispatch(blank_scenario(), build_live_import(ws, store))


class TestImport:
    def test_import_copies_live_data(self):
        state = imported()
        assert len(state.resources) == 2
        assert state.allocations["A1"] == {"2024-06-03": 100}
        assert state.dirty

    def test_import_does_not_alias_live_store(self):
        ws, store = make_live()
        state = dispatch(blank_scenario(), build_live_import(ws, store))
        store.set("A1", MON, 10)
        state = dispatch(state, actions.SetAllocation("A1", MON, 30))
        assert store.get("A1", MON) == 10
        assert state.allocations["A1"]["2024-06-03"] == 30

    def test_seeded_financials(self):
        state = imported()
        anna = state.financials["R1"]
        assert anna.daily_cost == 300.0
        assert anna.daily_expenses == 12.0
        assert anna.sell_rate == 600.0
        marco = state.financials["R2"]
        assert marco.daily_cost == 500.0
        assert marco.daily_expenses == pytest.approx(500.0 * 0.035)
        assert marco.sell_rate == 0.0

    def test_seed_uses_configured_expense_ratio(self):
        fin = seed_financials(Resource("R9", "X", None, None, daily_cost=100.0), None,
                              rule_config={"expense_ratio": 0.1})
        assert fin.daily_expenses == pytest.approx(10.0)


class TestAssignments:
    def test_duplicate_add_is_idempotent(self):
        state = imported()
        state = dispatch(state, actions.AddAssignment("R1", "P2"))
        state = dispatch(state, actions.AddAssignment("R1", "P2"))
        assert len([a for a in state.assignments if (a.resource_id, a.project_id) == ("R1", "P2")]) == 1

    def test_duplicate_add_returns_same_state(self):
        state = dispatch(imported(), actions.MarkSaved())
        after = dispatch(state, actions.AddAssignment("R1", "P1"))
        assert after is state
        assert not after.dirty

    def test_delete_cascades_allocations(self):
        state = dispatch(imported(), actions.DeleteAssignment("A1"))
        assert "A1" not in state.allocations
        assert all(a.assignment_id != "A1" for a in state.assignments)

    def test_allocation_for_unknown_assignment_ignored(self):
        state = imported()
        assert dispatch(state, actions.SetAllocation("NOPE", MON, 50)) is state

    def test_bulk_set_skips_weekend(self):
        state = dispatch(imported(), actions.BulkSetAllocation("A2", date(2024, 6, 1), MON, 80))
        assert state.allocations["A2"] == {"2024-06-03": 80}

    def test_set_zero_removes_cell(self):
        state = dispatch(imported(), actions.SetAllocation("A1", MON, 0))
        assert "A1" not in state.allocations


class TestValueSemantics:
    def test_previous_state_untouched(self):
        before = imported()
        after = dispatch(before, actions.SetAllocation("A1", MON, 40))
        assert before.allocations["A1"]["2024-06-03"] == 100
        assert after.allocations["A1"]["2024-06-03"] == 40

    def test_untouched_assignment_maps_shared(self):
        before = imported()
        after = dispatch(before, actions.SetAllocation("A1", MON, 40))
        assert after.allocations["A2"] is before.allocations["A2"]

    def test_unknown_action_rejected(self):
        with pytest.raises(TypeError):
            dispatch(blank_scenario(), object())

    def test_replay(self):
        log = [
            actions.UpdateMeta(name="Q3 plan"),
            actions.AddGhostResource(Resource("G1", "Open role", "Milano", "DEV"),
                                     Role("DEV", "Developer", 300.0)),
            actions.AddAssignment("G1", "P1", assignment_id="AG"),
            actions.SetAllocation("AG", MON, 100),
        ]
        state = replay(imported(), log)
        assert state.name == "Q3 plan"
        assert state.resource("G1").is_ghost
        assert state.financials["G1"].daily_cost == 300.0
        assert state.allocations["AG"] == {"2024-06-03": 100}


class TestGhostResources:
    def test_financials_seeded_from_role(self):
        role = Role("DEV", "Developer", 300.0, 12.0)
        state = dispatch(imported(), actions.AddGhostResource(Resource("G1", "Open role", "Milano", "DEV"), role))
        fin = state.financials["G1"]
        assert fin.daily_cost == 300.0
        assert fin.daily_expenses == 12.0
        assert fin.sell_rate == 0.0

    def test_expenses_fall_back_to_share_of_cost(self):
        role = Role("PM", "Manager", 400.0)
        state = dispatch(imported(), actions.AddGhostResource(Resource("G2", "Open PM", "Roma", "PM"), role))
        assert state.financials["G2"].daily_cost == 400.0
        assert state.financials["G2"].daily_expenses == pytest.approx(14.0)

    def test_without_role(self):
        state = dispatch(imported(), actions.AddGhostResource(Resource("G3", "Open role", None, None)))
        assert state.resource("G3").is_ghost
        assert state.financials["G3"].daily_cost == 0.0
        assert state.financials["G3"].daily_expenses == 0.0


class TestDirtyFlag:
    def test_load_clears_dirty(self):
        state = dispatch(imported(), actions.LoadScenario(SimulationScenario(name="Stored", dirty=True)))
        assert not state.dirty
        assert state.name == "Stored"

    def test_mark_saved_records_version(self):
        state = dispatch(imported(), actions.MarkSaved(version=3))
        assert not state.dirty
        assert state.version == 3

    def test_set_scenario_id_keeps_flag(self):
        clean = dispatch(imported(), actions.MarkSaved())
        assert not dispatch(clean, actions.SetScenarioId("abc")).dirty

    @pytest.mark.parametrize("action", [
        actions.UpdateMeta(description="x"),
        actions.SetResourceFinancials("R1", 1.0, 2.0, 3.0),
        actions.SetProjectRateCard("P2", "RC-STD"),
        actions.BulkSetProjectRateCard(None),
        actions.SetProjectBillingType("P1", BillingType.FIXED_PRICE),
        actions.AddAssignment("R2", "P1"),
        actions.SetAllocation("A1", MON, 20),
        actions.AddExpense(ProjectExpense("E1", "P1", 100.0, MON)),
        actions.AddGhostResource(Resource("G9", "Open role", "Milano", "DEV"), Role("DEV", "Developer", 300.0)),
        actions.DeleteAssignment("A1"),
        actions.BulkSetAllocation("A1", MON, date(2024, 6, 7), 50),
        actions.AddMilestone(BillingMilestone("M1", "P1", "Kickoff", MON, 1000.0)),
    ])
    def test_edits_set_dirty(self, action):
        clean = dispatch(imported(), actions.MarkSaved())
        assert dispatch(clean, action).dirty

    @pytest.mark.parametrize("action", [
        actions.DeleteExpense("E1"),
        actions.UpdateMilestone(BillingMilestone("M1", "P1", "Kickoff", MON, 1000.0, MilestoneStatus.INVOICED)),
        actions.DeleteMilestone("M1"),
    ])
    def test_ledger_edits_set_dirty(self, action):
        state = dispatch(imported(), actions.AddExpense(ProjectExpense("E1", "P1", 100.0, MON)))
        state = dispatch(state, actions.AddMilestone(BillingMilestone("M1", "P1", "Kickoff", MON, 1000.0)))
        clean = dispatch(state, actions.MarkSaved())
        assert not clean.dirty
        assert dispatch(clean, action).dirty


class TestProjectsAndLedgers:
    def test_bulk_rate_card(self):
        state = dispatch(imported(), actions.BulkSetProjectRateCard("RC-PREMIUM"))
        assert {p.rate_card_id for p in state.projects} == {"RC-PREMIUM"}

    def test_billing_type(self):
        state = dispatch(imported(), actions.SetProjectBillingType("P2", BillingType.FIXED_PRICE))
        assert state.project("P2").billing_type == BillingType.FIXED_PRICE
        assert state.project("P1").billing_type == BillingType.TIME_MATERIAL

    def test_milestone_lifecycle(self):
        milestone = BillingMilestone("M1", "P1", "Go-live", MON, 5000.0)
        state = dispatch(imported(), actions.AddMilestone(milestone))
        state = dispatch(state, actions.UpdateMilestone(
            BillingMilestone("M1", "P1", "Go-live", MON, 5000.0, MilestoneStatus.INVOICED)))
        assert state.milestones[0].status == MilestoneStatus.INVOICED
        state = dispatch(state, actions.DeleteMilestone("M1"))
        assert state.milestones == ()

    def test_expense_delete(self):
        state = dispatch(imported(), actions.AddExpense(ProjectExpense("E1", "P1", 100.0, MON)))
        state = dispatch(state, actions.DeleteExpense("E1"))
        assert state.expenses == ()
