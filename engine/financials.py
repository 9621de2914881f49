"""Monthly financial roll-up of a simulation scenario (derived, never stored)."""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import pandas as pd

from models.project import Project
from models.resource import RateCardEntry
from models.scenario import ResourceFinancials, SimulationScenario

logger = logging.getLogger(__name__)


@dataclass
class MonthlyFinancials:
    month: str          # YYYY-MM
    revenue: float = 0.0
    cost: float = 0.0

    @property
    def margin(self) -> float:
        return self.revenue - self.cost

    @property
    def margin_pct(self) -> float:
        if self.revenue <= 0:
            return 0.0
        return self.margin / self.revenue * 100


def resolve_sell_rate(
    resource_id: str,
    project: Project,
    financials: Optional[ResourceFinancials],
    rate_card_entries: Iterable[RateCardEntry] = (),
) -> float:
    """Per-resource override, then the project's rate-card entry, then 0."""
    if financials is not None and financials.sell_rate:
        return float(financials.sell_rate)
    if project.rate_card_id:
        for entry in rate_card_entries:
            if entry.rate_card_id == project.rate_card_id and entry.resource_id == resource_id:
                return float(entry.daily_rate)
    return 0.0


def compute_monthly_financials(
    scenario: SimulationScenario,
    rate_card_entries: Iterable[RateCardEntry] = (),
) -> List[MonthlyFinancials]:
    """Revenue, cost and margin for every month touched by an allocation, expense or milestone.

    revenue = allocated fraction x sell rate on time-and-material projects
              + milestone amounts of fixed-price projects
    cost    = allocated fraction x (daily cost + daily expenses) on all projects
              + expense amounts
    """
    rate_card_entries = list(rate_card_entries)
    months: Dict[str, MonthlyFinancials] = {}

    def bucket(month: str) -> MonthlyFinancials:
        if month not in months:
            months[month] = MonthlyFinancials(month)
        return months[month]

    resources = {r.resource_id: r for r in scenario.resources}
    projects = {p.project_id: p for p in scenario.projects}

    for assignment in scenario.assignments:
        resource = resources.get(assignment.resource_id)
        project = projects.get(assignment.project_id)
        if resource is None or project is None:
            logger.debug("Skipping orphan assignment %s in financials", assignment.assignment_id)
            continue
        fin = scenario.financials.get(resource.resource_id) or ResourceFinancials()
        sell_rate = resolve_sell_rate(resource.resource_id, project, fin, rate_card_entries)
        daily_cost = fin.daily_cost + fin.daily_expenses

        for day, percentage in scenario.allocations.get(assignment.assignment_id, {}).items():
            fraction = percentage / 100
            row = bucket(day[:7])
            row.cost += fraction * daily_cost
            if project.is_time_material:
                row.revenue += fraction * sell_rate

    for expense in scenario.expenses:
        bucket(expense.expense_date.strftime("%Y-%m")).cost += float(expense.amount)

    for milestone in scenario.milestones:
        project = projects.get(milestone.project_id)
        if project is None or project.is_time_material:
            continue
        bucket(milestone.milestone_date.strftime("%Y-%m")).revenue += float(milestone.amount)

    return [months[m] for m in sorted(months)]


def financial_totals(rows: Iterable[MonthlyFinancials]) -> MonthlyFinancials:
    total = MonthlyFinancials("TOTAL")
    for row in rows:
        total.revenue += row.revenue
        total.cost += row.cost
    return total


def financials_to_frame(rows: List[MonthlyFinancials]) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Month": r.month,
            "Revenue": r.revenue,
            "Cost": r.cost,
            "Margin": r.margin,
            "Margin %": r.margin_pct,
        }
        for r in rows
    ], columns=["Month", "Revenue", "Cost", "Margin", "Margin %"])
