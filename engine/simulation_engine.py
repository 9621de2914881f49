"""Scenario simulation engine: pure transitions over an isolated scenario value.

dispatch(state, action) never mutates `state`; it returns a new scenario
(or the same one for a no-op). Allocation writes reuse AllocationStore and
the bulk editor against the scenario's private allocation map, so a
scenario never aliases the live store.
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, Iterable, Optional, Tuple

from models import actions
from models.project import Assignment, Project
from models.resource import Resource, Role
from models.scenario import ResourceFinancials, SimulationScenario
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from engine.bulk_editor import apply_bulk
from config.defaults import BLANK_SCENARIO_NAME, DEFAULT_EXPENSE_RATIO

logger = logging.getLogger(__name__)


def blank_scenario(name: str = BLANK_SCENARIO_NAME, description: str = "") -> SimulationScenario:
    return SimulationScenario(name=name, description=description)


def role_daily_expenses(role: Optional[Role], daily_cost: float,
                        expense_ratio: float = DEFAULT_EXPENSE_RATIO) -> float:
    if role is not None and role.daily_expenses:
        return float(role.daily_expenses)
    return daily_cost * expense_ratio


def seed_financials(
    resource: Resource,
    role: Optional[Role],
    rate_card_rate: float = 0.0,
    rule_config: Optional[dict] = None,
) -> ResourceFinancials:
    """Default financial row: own cost, else role cost; role expenses, else a share of cost."""
    cfg = rule_config or {}
    expense_ratio = cfg.get("expense_ratio", DEFAULT_EXPENSE_RATIO)
    if resource.daily_cost:
        daily_cost = float(resource.daily_cost)
    else:
        daily_cost = float(role.daily_cost) if role is not None else 0.0
    return ResourceFinancials(
        daily_cost=daily_cost,
        daily_expenses=role_daily_expenses(role, daily_cost, expense_ratio),
        sell_rate=float(rate_card_rate),
    )


def build_live_import(
    working_set: WorkingSet,
    store: AllocationStore,
    expenses: Iterable = (),
    milestones: Iterable = (),
    rule_config: Optional[dict] = None,
) -> actions.ImportLiveSnapshot:
    """Build the IMPORT_LIVE_SNAPSHOT payload from the live working set.

    The sell rate is taken from the first rate-card entry matching one of the
    resource's assigned projects; 0 leaves resolution to the roll-up.
    """
    entries = {(e.rate_card_id, e.resource_id): e.daily_rate for e in working_set.rate_card_entries}
    financials = {}
    for resource in working_set.resources:
        rate = 0.0
        for assignment in working_set.assignments_for(resource.resource_id):
            project = working_set.project(assignment.project_id)
            if project is not None and project.rate_card_id:
                found = entries.get((project.rate_card_id, resource.resource_id))
                if found:
                    rate = found
                    break
        financials[resource.resource_id] = seed_financials(
            resource, working_set.role(resource.role_id), rate, rule_config,
        )

    return actions.ImportLiveSnapshot(
        resources=tuple(working_set.resources),
        projects=tuple(working_set.projects),
        assignments=tuple(working_set.assignments),
        allocations=store.snapshot(),
        financials=financials,
        expenses=tuple(expenses),
        milestones=tuple(milestones),
    )


# --- Transitions ---

def _load(state: SimulationScenario, action: actions.LoadScenario) -> SimulationScenario:
    return replace(action.scenario, dirty=False)


def _import_live(state: SimulationScenario, action: actions.ImportLiveSnapshot) -> SimulationScenario:
    return replace(
        state,
        resources=tuple(action.resources),
        projects=tuple(action.projects),
        assignments=tuple(action.assignments),
        allocations=AllocationStore.from_dict(action.allocations).as_mapping(),
        financials=dict(action.financials),
        expenses=tuple(action.expenses),
        milestones=tuple(action.milestones),
        dirty=True,
    )


def _update_meta(state: SimulationScenario, action: actions.UpdateMeta) -> SimulationScenario:
    return replace(
        state,
        name=action.name if action.name is not None else state.name,
        description=action.description if action.description is not None else state.description,
        dirty=True,
    )


def _set_scenario_id(state: SimulationScenario, action: actions.SetScenarioId) -> SimulationScenario:
    return replace(state, scenario_id=action.scenario_id)


def _add_ghost(state: SimulationScenario, action: actions.AddGhostResource) -> SimulationScenario:
    ghost = replace(action.resource, is_ghost=True)
    financials = dict(state.financials)
    financials[ghost.resource_id] = seed_financials(ghost, action.role)
    return replace(state, resources=state.resources + (ghost,), financials=financials, dirty=True)


def _set_financials(state: SimulationScenario, action: actions.SetResourceFinancials) -> SimulationScenario:
    financials = dict(state.financials)
    financials[action.resource_id] = ResourceFinancials(
        daily_cost=float(action.daily_cost),
        daily_expenses=float(action.daily_expenses),
        sell_rate=float(action.sell_rate),
    )
    return replace(state, financials=financials, dirty=True)


def _map_projects(state: SimulationScenario, project_id: Optional[str], **changes) -> Tuple[Project, ...]:
    return tuple(
        replace(p, **changes) if project_id is None or p.project_id == project_id else p
        for p in state.projects
    )


def _set_rate_card(state: SimulationScenario, action: actions.SetProjectRateCard) -> SimulationScenario:
    projects = _map_projects(state, action.project_id, rate_card_id=action.rate_card_id)
    return replace(state, projects=projects, dirty=True)


def _bulk_set_rate_card(state: SimulationScenario, action: actions.BulkSetProjectRateCard) -> SimulationScenario:
    projects = _map_projects(state, None, rate_card_id=action.rate_card_id)
    return replace(state, projects=projects, dirty=True)


def _set_billing_type(state: SimulationScenario, action: actions.SetProjectBillingType) -> SimulationScenario:
    projects = _map_projects(state, action.project_id, billing_type=action.billing_type)
    return replace(state, projects=projects, dirty=True)


def _add_assignment(state: SimulationScenario, action: actions.AddAssignment) -> SimulationScenario:
    if state.find_assignment(action.resource_id, action.project_id) is not None:
        return state
    assignment = Assignment(action.assignment_id, action.resource_id, action.project_id)
    return replace(state, assignments=state.assignments + (assignment,), dirty=True)


def _delete_assignment(state: SimulationScenario, action: actions.DeleteAssignment) -> SimulationScenario:
    store = AllocationStore(state.allocations)
    store.cascade_delete(action.assignment_id)
    return replace(
        state,
        assignments=tuple(a for a in state.assignments if a.assignment_id != action.assignment_id),
        allocations=store.as_mapping(),
        dirty=True,
    )


def _has_assignment(state: SimulationScenario, assignment_id: str) -> bool:
    return any(a.assignment_id == assignment_id for a in state.assignments)


def _set_allocation(state: SimulationScenario, action: actions.SetAllocation) -> SimulationScenario:
    if not _has_assignment(state, action.assignment_id):
        logger.warning("Ignoring allocation for unknown assignment %s", action.assignment_id)
        return state
    store = AllocationStore(state.allocations)
    store.set(action.assignment_id, action.day, action.percentage)
    return replace(state, allocations=store.as_mapping(), dirty=True)


def _bulk_set_allocation(state: SimulationScenario, action: actions.BulkSetAllocation) -> SimulationScenario:
    if not _has_assignment(state, action.assignment_id):
        logger.warning("Ignoring bulk allocation for unknown assignment %s", action.assignment_id)
        return state
    store = AllocationStore(state.allocations)
    apply_bulk(store, action.assignment_id, action.start, action.end, action.percentage)
    return replace(state, allocations=store.as_mapping(), dirty=True)


def _add_expense(state: SimulationScenario, action: actions.AddExpense) -> SimulationScenario:
    return replace(state, expenses=state.expenses + (action.expense,), dirty=True)


def _delete_expense(state: SimulationScenario, action: actions.DeleteExpense) -> SimulationScenario:
    expenses = tuple(e for e in state.expenses if e.expense_id != action.expense_id)
    return replace(state, expenses=expenses, dirty=True)


def _add_milestone(state: SimulationScenario, action: actions.AddMilestone) -> SimulationScenario:
    return replace(state, milestones=state.milestones + (action.milestone,), dirty=True)


def _update_milestone(state: SimulationScenario, action: actions.UpdateMilestone) -> SimulationScenario:
    milestones = tuple(
        action.milestone if m.milestone_id == action.milestone.milestone_id else m
        for m in state.milestones
    )
    return replace(state, milestones=milestones, dirty=True)


def _delete_milestone(state: SimulationScenario, action: actions.DeleteMilestone) -> SimulationScenario:
    milestones = tuple(m for m in state.milestones if m.milestone_id != action.milestone_id)
    return replace(state, milestones=milestones, dirty=True)


def _mark_saved(state: SimulationScenario, action: actions.MarkSaved) -> SimulationScenario:
    return replace(
        state,
        version=action.version if action.version is not None else state.version,
        updated_at=action.updated_at if action.updated_at is not None else state.updated_at,
        dirty=False,
    )


_TRANSITIONS: Dict[type, Callable] = {
    actions.LoadScenario: _load,
    actions.ImportLiveSnapshot: _import_live,
    actions.UpdateMeta: _update_meta,
    actions.SetScenarioId: _set_scenario_id,
    actions.AddGhostResource: _add_ghost,
    actions.SetResourceFinancials: _set_financials,
    actions.SetProjectRateCard: _set_rate_card,
    actions.BulkSetProjectRateCard: _bulk_set_rate_card,
    actions.SetProjectBillingType: _set_billing_type,
    actions.AddAssignment: _add_assignment,
    actions.DeleteAssignment: _delete_assignment,
    actions.SetAllocation: _set_allocation,
    actions.BulkSetAllocation: _bulk_set_allocation,
    actions.AddExpense: _add_expense,
    actions.DeleteExpense: _delete_expense,
    actions.AddMilestone: _add_milestone,
    actions.UpdateMilestone: _update_milestone,
    actions.DeleteMilestone: _delete_milestone,
    actions.MarkSaved: _mark_saved,
}


def dispatch(state: SimulationScenario, action) -> SimulationScenario:
    """Apply one transition and return the resulting scenario."""
    handler = _TRANSITIONS.get(type(action))
    if handler is None:
        raise TypeError(f"Unknown simulation action: {type(action).__name__}")
    new_state = handler(state, action)
    logger.debug("Simulation %s: %s (dirty=%s)", state.scenario_id or "<unsaved>",
                 type(action).__name__, new_state.dirty)
    return new_state


def replay(state: SimulationScenario, action_log: Iterable) -> SimulationScenario:
    """Fold a transition log over a starting scenario."""
    for action in action_log:
        state = dispatch(state, action)
    return state
