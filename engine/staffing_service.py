"""Entry points used by the presentation layer.

StaffingService wraps the live allocation store; SimulationSession wraps one
scenario value. Both apply edits optimistically in memory first and then call
the persistence collaborator. A failed persistence call is reported in the
result and leaves the in-memory state ahead of the stored state (no rollback);
the pending updates are kept so the caller can retry or reload.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional, Sequence, Tuple, Union

import pandas as pd

from models import actions
from models.allocation import AllocationStatus, AllocationUpdate, Granularity
from models.project import Assignment
from models.resource import Resource
from models.scenario import SimulationScenario
from models.working_set import WorkingSet
from engine.aggregation_engine import (
    assignment_utilization, resource_utilization, utilization_grid, utilization_records,
)
from engine.allocation_store import AllocationStore, to_iso, validate_percentage
from engine.bulk_editor import apply_bulk
from engine.calendar_service import is_non_working_day
from engine.classifier import classify
from engine.financials import MonthlyFinancials, compute_monthly_financials
from engine.simulation_engine import blank_scenario, build_live_import, dispatch
from data.errors import PersistenceError

logger = logging.getLogger(__name__)

CREATE = "create"
DELETE = "delete"


class NonWorkingDayError(ValueError):
    def __init__(self, resource_id: str, day: date) -> None:
        super().__init__(f"{day.isoformat()} is not a working day for resource {resource_id}")
        self.resource_id = resource_id
        self.day = day


@dataclass
class EditResult:
    updates: List[AllocationUpdate] = field(default_factory=list)
    persisted: bool = True
    error: Optional[str] = None
    assignment: Optional[Assignment] = None


class StaffingService:
    def __init__(
        self,
        working_set: WorkingSet,
        store: Optional[AllocationStore] = None,
        data_store=None,
        rule_config: Optional[dict] = None,
    ):
        self.working_set = working_set
        self.store = store if store is not None else AllocationStore()
        self.data_store = data_store
        self.rule_config = rule_config or {}
        self.pending_updates: List[AllocationUpdate] = []
        # (CREATE, Assignment) or (DELETE, assignment_id), replayed before cells
        self.pending_ops: List[Tuple[str, object]] = []
        self.last_error: Optional[str] = None

    @property
    def pending_persist(self) -> bool:
        return bool(self.pending_updates or self.pending_ops) or self.last_error is not None

    # --- Reads ---

    def get_utilization(
        self,
        target: Union[Resource, Assignment],
        start: date,
        end: date,
        granularity: Granularity,
    ) -> float:
        if isinstance(target, Assignment):
            return assignment_utilization(target, self.working_set, self.store, start, end,
                                          granularity, self.rule_config)
        return resource_utilization(target, self.working_set, self.store, start, end,
                                    granularity, self.rule_config)

    def classify(self, percent: float, cap: int) -> AllocationStatus:
        return classify(percent, cap)

    def status(self, resource: Resource, start: date, end: date, granularity: Granularity) -> AllocationStatus:
        return classify(self.get_utilization(resource, start, end, granularity), resource.max_staffing_pct)

    def is_non_working_day(self, resource: Resource, day: date) -> bool:
        """Weekend, applicable holiday, or after the last working date."""
        if not resource.is_active_on(day):
            return True
        return is_non_working_day(day, resource.location, self.working_set.calendar_entries)

    def utilization_grid(self, start: date, end: date, granularity: Granularity,
                         resources: Optional[Sequence[Resource]] = None) -> pd.DataFrame:
        return utilization_grid(self.working_set, self.store, start, end, granularity,
                                resources, self.rule_config)

    def utilization_records(self, start: date, end: date, granularity: Granularity,
                            resources: Optional[Sequence[Resource]] = None) -> List[dict]:
        return utilization_records(self.working_set, self.store, start, end, granularity,
                                   resources, self.rule_config)

    # --- Writes ---

    def _require_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.working_set.assignment(assignment_id)
        if assignment is None:
            raise KeyError(f"Unknown assignment {assignment_id}")
        return assignment

    def _flush(self) -> Optional[str]:
        """Send pending assignment operations in order, then pending cells.

        Returns the error message when something is still owed to the data store.
        """
        if self.data_store is None:
            self.pending_ops, self.pending_updates = [], []
            return None
        try:
            while self.pending_ops:
                op, payload = self.pending_ops[0]
                if op == CREATE:
                    self.data_store.create_assignment(payload)
                else:
                    self.data_store.delete_assignment(payload)
                self.pending_ops.pop(0)
            if self.pending_updates:
                self.data_store.upsert_allocations(list(self.pending_updates))
                self.pending_updates = []
        except PersistenceError as exc:
            self.last_error = str(exc)
            logger.warning("Live changes not persisted (%d assignment ops, %d cells pending): %s",
                           len(self.pending_ops), len(self.pending_updates), exc)
            return str(exc)
        self.last_error = None
        return None

    def _commit(self, updates: List[AllocationUpdate]) -> EditResult:
        self.pending_updates.extend(updates)
        error = self._flush()
        return EditResult(updates=updates, persisted=error is None, error=error)

    def set_allocation(self, assignment_id: str, day: date, percentage: int) -> EditResult:
        """Single-cell edit; rejected on the resource's non-working days."""
        assignment = self._require_assignment(assignment_id)
        value = validate_percentage(percentage)
        resource = self.working_set.resource(assignment.resource_id)
        if resource is not None and self.is_non_working_day(resource, day):
            raise NonWorkingDayError(resource.resource_id, day)
        self.store.set(assignment_id, day, value)
        return self._commit([AllocationUpdate(assignment_id, to_iso(day), value)])

    def apply_bulk(self, assignment_id: str, start: date, end: date, percentage: int) -> EditResult:
        """Fill every weekday in [start, end]; committed as one batch."""
        self._require_assignment(assignment_id)
        updates = apply_bulk(self.store, assignment_id, start, end, percentage)
        if not updates:
            return EditResult()
        return self._commit(updates)

    def retry_pending(self) -> EditResult:
        """Re-send assignment operations and cells whose persistence failed earlier."""
        return self._commit([])

    def create_assignment(self, resource_id: str, project_id: str,
                          assignment_id: Optional[str] = None) -> EditResult:
        """Idempotent per (resource, project): an existing pair is returned unchanged."""
        existing = self.working_set.find_assignment(resource_id, project_id)
        if existing is not None:
            return EditResult(assignment=existing)
        assignment = Assignment(assignment_id or uuid.uuid4().hex, resource_id, project_id)
        self.working_set.assignments.append(assignment)
        self.pending_ops.append((CREATE, assignment))
        error = self._flush()
        return EditResult(assignment=assignment, persisted=error is None, error=error)

    def create_assignments(self, resource_id: str, project_ids: Iterable[str]) -> List[EditResult]:
        return [self.create_assignment(resource_id, pid) for pid in project_ids]

    def delete_assignment(self, assignment_id: str) -> EditResult:
        """Remove the assignment and cascade its whole allocation map."""
        self.working_set.assignments = [
            a for a in self.working_set.assignments if a.assignment_id != assignment_id
        ]
        self.store.cascade_delete(assignment_id)
        self.pending_updates = [u for u in self.pending_updates if u.assignment_id != assignment_id]
        self.pending_ops.append((DELETE, assignment_id))
        error = self._flush()
        return EditResult(persisted=error is None, error=error)

    def reload(self) -> None:
        """Replace in-memory state with a fresh snapshot, discarding unsaved edits."""
        if self.data_store is None:
            return
        self.working_set, self.store = self.data_store.load_snapshot()
        self.pending_updates = []
        self.pending_ops = []
        self.last_error = None
        logger.info("Reloaded live snapshot: %d assignments, %d allocation cells",
                    len(self.working_set.assignments), len(self.store))


class SimulationSession:
    """Holds one scenario value and routes every change through dispatch()."""

    def __init__(self, data_store=None, scenario: Optional[SimulationScenario] = None):
        self.data_store = data_store
        self.state = scenario if scenario is not None else blank_scenario()
        # Bumped whenever the whole scenario is replaced; UI widgets key on it
        self.generation = 0

    @property
    def can_save(self) -> bool:
        return self.state.dirty

    def dispatch(self, action) -> SimulationScenario:
        self.state = dispatch(self.state, action)
        return self.state

    def start_blank(self, name: Optional[str] = None) -> SimulationScenario:
        scenario = blank_scenario(name) if name else blank_scenario()
        return self._replace(actions.LoadScenario(scenario))

    def _replace(self, action) -> SimulationScenario:
        self.generation += 1
        return self.dispatch(action)

    def import_live(self, working_set: WorkingSet, store: AllocationStore,
                    expenses=(), milestones=(), rule_config: Optional[dict] = None) -> SimulationScenario:
        return self._replace(build_live_import(working_set, store, expenses, milestones, rule_config))

    def save(self) -> str:
        """Persist the scenario; raises PersistenceError and keeps the dirty flag on failure."""
        if self.data_store is None:
            raise PersistenceError("No data store configured")
        scenario_id, version, updated_at = self.data_store.save_scenario(self.state)
        if scenario_id != self.state.scenario_id:
            self.dispatch(actions.SetScenarioId(scenario_id))
        self.dispatch(actions.MarkSaved(version=version, updated_at=updated_at))
        return scenario_id

    def load(self, scenario_id: str) -> SimulationScenario:
        """Load a stored scenario. On a missing or corrupt document the current state is kept."""
        if self.data_store is None:
            raise PersistenceError("No data store configured")
        try:
            scenario = self.data_store.load_scenario(scenario_id)
        except PersistenceError:
            logger.error("Could not load scenario %s; keeping current state", scenario_id)
            raise
        return self._replace(actions.LoadScenario(scenario))

    def list_scenarios(self) -> List[dict]:
        if self.data_store is None:
            return []
        return self.data_store.list_scenarios()

    def monthly_financials(self, rate_card_entries=()) -> List[MonthlyFinancials]:
        return compute_monthly_financials(self.state, rate_card_entries)

    def utilization(self, resource_id: str, start: date, end: date, granularity: Granularity,
                    working_set: Optional[WorkingSet] = None) -> float:
        """Scenario utilization using the live calendar and leave data when given."""
        resource = self.state.resource(resource_id)
        if resource is None:
            return 0.0
        scenario_set = scenario_working_set(self.state, working_set)
        return resource_utilization(resource, scenario_set, AllocationStore(self.state.allocations),
                                    start, end, granularity)


def scenario_working_set(scenario: SimulationScenario, live: Optional[WorkingSet] = None) -> WorkingSet:
    """Working set view of a scenario, borrowing calendar, leave and rate data from the live set."""
    live = live or WorkingSet()
    return WorkingSet(
        resources=list(scenario.resources),
        projects=list(scenario.projects),
        assignments=list(scenario.assignments),
        roles=list(live.roles),
        rate_card_entries=list(live.rate_card_entries),
        calendar_entries=list(live.calendar_entries),
        leave_requests=list(live.leave_requests),
        leave_types=list(live.leave_types),
    )
