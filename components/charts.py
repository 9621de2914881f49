"""Plotly chart builders for the Staffing Planner."""

import plotly.express as px
import plotly.graph_objects as go
import pandas as pd
from typing import List

from engine.financials import MonthlyFinancials


def utilization_heatmap(records: List[dict], title: str = "Utilization by Resource") -> go.Figure:
    """Heatmap of resource utilization per period, capped colour scale at 150%."""
    df = pd.DataFrame(records)
    if df.empty:
        return go.Figure()
    periods = list(dict.fromkeys(df["period"]))
    names = list(dict.fromkeys(df["resource_name"]))
    matrix = (
        df.pivot_table(index="resource_name", columns="period", values="utilization",
                       aggfunc="first", sort=False)
        .reindex(index=names, columns=periods)
    )
    text = matrix.round(0).astype(int).astype(str) + "%"

    fig = go.Figure(data=go.Heatmap(
        z=matrix.values,
        x=periods,
        y=names,
        zmin=0,
        zmax=150,
        colorscale=[[0, "#f1f3f5"], [0.4, "#F5C542"], [0.6667, "#4CAF50"], [0.68, "#E8734A"], [1, "#cc0000"]],
        text=text.values,
        texttemplate="%{text}",
        hovertemplate="Resource: %{y}<br>Period: %{x}<br>Utilization: %{z:.1f}%<extra></extra>",
    ))
    fig.update_layout(
        title=title,
        xaxis_title="Period",
        yaxis_title="Resource",
        height=max(350, len(names) * 35),
    )
    return fig


def status_distribution_bar(records: List[dict]) -> go.Figure:
    """Count of (resource, period) working cells per status."""
    df = pd.DataFrame([r for r in records if not r.get("non_working")])
    if df.empty:
        return go.Figure()
    counts = df.groupby(["period", "status"], sort=False).size().reset_index(name="cells")
    fig = px.bar(
        counts, x="period", y="cells", color="status",
        title="Allocation Status per Period",
        color_discrete_map={"EMPTY": "#adb5bd", "UNDER": "#F5C542", "AT_CAP": "#4CAF50", "OVER": "#cc0000"},
    )
    fig.update_layout(height=350, legend_title_text="")
    return fig


def financials_chart(rows: List[MonthlyFinancials]) -> go.Figure:
    """Monthly revenue and cost bars with a margin line."""
    months = [r.month for r in rows]
    fig = go.Figure()
    fig.add_trace(go.Bar(name="Revenue", x=months, y=[r.revenue for r in rows], marker_color="#4A90D9"))
    fig.add_trace(go.Bar(name="Cost", x=months, y=[r.cost for r in rows], marker_color="#E8734A"))
    fig.add_trace(go.Scatter(name="Margin", x=months, y=[r.margin for r in rows],
                             mode="lines+markers", line=dict(color="#155724", width=3)))
    fig.update_layout(
        barmode="group",
        title="Simulated Monthly Financials",
        xaxis_title="Month",
        yaxis_title="Amount",
        height=400,
    )
    return fig
