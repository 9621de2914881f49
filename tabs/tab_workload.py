"""Tab 2: Workload: utilization heatmap and status distribution."""

import streamlit as st
import pandas as pd

from data.session_store import get_staffing_service, get_working_set, is_data_loaded
from components.charts import utilization_heatmap, status_distribution_bar
from components.metrics_cards import render_metric_row
from components.tables import render_styled_table


def render(sidebar_state):
    """Render the Workload tab."""
    st.header("Workload")

    if not is_data_loaded():
        st.info("No data loaded. Please upload data in the Admin tab.")
        return

    service = get_staffing_service()
    ws = get_working_set()
    resources = [r for r in ws.resources
                 if sidebar_state.location is None or r.location == sidebar_state.location]
    if not resources:
        st.info("No resources for the selected location.")
        return

    records = service.utilization_records(
        sidebar_state.start, sidebar_state.end, sidebar_state.granularity, resources,
    )
    df = pd.DataFrame([r for r in records if not r["non_working"]])

    avg = df["utilization"].mean() if not df.empty else 0.0
    over = df[df["status"] == "OVER"]["resource_id"].nunique() if not df.empty else 0
    idle = df.groupby("resource_id")["utilization"].max().eq(0).sum() if not df.empty else 0
    render_metric_row([
        {"label": "Resources", "value": len(resources)},
        {"label": "Avg Utilization", "value": f"{avg:.1f}%"},
        {"label": "Over-allocated Resources", "value": int(over)},
        {"label": "Unstaffed Resources", "value": int(idle)},
    ])

    st.plotly_chart(utilization_heatmap(records), use_container_width=True)
    st.plotly_chart(status_distribution_bar(records), use_container_width=True)

    if not df.empty:
        hotspots = df[df["status"] == "OVER"][["resource_name", "period", "utilization", "cap"]]
        if not hotspots.empty:
            hotspots = hotspots.rename(columns={
                "resource_name": "Resource", "period": "Period",
                "utilization": "Utilization %", "cap": "Cap %",
            }).round({"Utilization %": 1})
            render_styled_table(hotspots, title="Over-allocation Hotspots")
