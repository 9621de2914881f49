"""Reusable KPI metric card widgets."""

import streamlit as st

from engine.financials import MonthlyFinancials


def render_metric_row(metrics: list[dict]):
    """Render a row of metric cards.

    Each metric dict should have: label, value, and optionally delta, delta_color.
    """
    cols = st.columns(len(metrics))
    for col, m in zip(cols, metrics):
        with col:
            st.metric(
                label=m["label"],
                value=m["value"],
                delta=m.get("delta"),
                delta_color=m.get("delta_color", "normal"),
            )


def render_status_counts(records: list[dict]):
    """One card per allocation status, counting (resource, period) cells.

    Non-working cells are left out of every count.
    """
    counts = {"OVER": 0, "AT_CAP": 0, "UNDER": 0, "EMPTY": 0}
    for r in records:
        if r.get("non_working"):
            continue
        counts[r["status"]] = counts.get(r["status"], 0) + 1
    render_metric_row([
        {"label": "Over-allocated", "value": counts["OVER"]},
        {"label": "At capacity", "value": counts["AT_CAP"]},
        {"label": "Under-allocated", "value": counts["UNDER"]},
        {"label": "Unstaffed", "value": counts["EMPTY"]},
    ])


def render_financial_totals(total: MonthlyFinancials):
    render_metric_row([
        {"label": "Revenue", "value": f"{total.revenue:,.0f}"},
        {"label": "Cost", "value": f"{total.cost:,.0f}"},
        {"label": "Margin", "value": f"{total.margin:,.0f}",
         "delta": f"{total.margin_pct:.1f}%",
         "delta_color": "normal" if total.margin >= 0 else "inverse"},
    ])


def render_alert_card(message: str, level: str = "warning"):
    """Render an alert card with appropriate styling."""
    if level == "error":
        st.error(message, icon="🔴")
    elif level == "warning":
        st.warning(message, icon="🟡")
    else:
        st.info(message, icon="🔵")
