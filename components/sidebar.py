"""Global sidebar controls for view granularity and date window."""

import streamlit as st
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from data.session_store import get_working_set, is_data_loaded, get_simulation_session
from models.allocation import Granularity
from config.defaults import GRANULARITIES, DEFAULT_GRANULARITY, DEFAULT_VIEW_PERIODS


@dataclass
class SidebarState:
    granularity: Granularity
    start: date
    end: date
    location: Optional[str]


def _default_window(granularity: str, today: date):
    periods = DEFAULT_VIEW_PERIODS[granularity]
    start = today - timedelta(days=today.weekday())
    if granularity == "day":
        return start, start + timedelta(days=periods - 1)
    if granularity == "week":
        return start, start + timedelta(weeks=periods) - timedelta(days=1)
    start = today.replace(day=1)
    month = start.month - 1 + periods
    end = date(start.year + month // 12, month % 12 + 1, 1) - timedelta(days=1)
    return start, end


def render_sidebar() -> SidebarState:
    """Render the global sidebar controls and return current state."""
    with st.sidebar:
        st.title("Staffing Planner")
        st.divider()

        granularity = st.selectbox(
            "Granularity",
            options=GRANULARITIES,
            index=GRANULARITIES.index(DEFAULT_GRANULARITY),
            format_func=str.capitalize,
            key="sidebar_granularity",
        )

        default_start, default_end = _default_window(granularity, date.today())
        window = st.date_input(
            "Date window",
            value=(default_start, default_end),
            key=f"sidebar_window_{granularity}",
        )
        if isinstance(window, (tuple, list)) and len(window) == 2:
            start, end = window
        else:
            start, end = default_start, default_end

        locations = sorted({r.location for r in get_working_set().resources if r.location})
        location = st.selectbox(
            "Location",
            options=[None] + locations,
            format_func=lambda x: "All locations" if x is None else x,
            key="sidebar_location",
        )

        st.divider()

        if is_data_loaded():
            ws = get_working_set()
            st.success("Data loaded")
            st.caption(f"{len(ws.resources)} resources, {len(ws.projects)} projects, "
                       f"{len(ws.assignments)} assignments")
        else:
            st.warning("No data loaded. Go to the Admin tab")

        sim = get_simulation_session().state
        st.caption(f"Simulation: {sim.name}")
        if sim.dirty:
            st.caption("Unsaved simulation changes")

    st.session_state["sidebar_state"] = {"granularity": granularity, "location": location}
    return SidebarState(
        granularity=Granularity(granularity),
        start=start,
        end=end,
        location=location,
    )
