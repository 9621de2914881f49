"""Tab 4: Admin: data upload, validation, sample data and rule configuration."""

import logging
import streamlit as st
import pandas as pd
from typing import Dict

from data.loader import load_file, load_multi_sheet_excel, build_working_set, SHEET_ALIASES
from data.validator import validate_frames
from data.sample_data import generate_all_frames
from data.errors import PersistenceError
from data.session_store import (
    get_data_store, get_rule_config, get_working_set, is_data_loaded,
    reload_live_data, set_live_data, set_rule_config,
)
from components.metrics_cards import render_metric_row
from config.defaults import DEFAULT_CAP_PCT, DEFAULT_EXPENSE_RATIO, HALF_DAY_LEAVE_FRACTION

logger = logging.getLogger(__name__)

SHEET_LABELS = {
    "resources": "Resources",
    "projects": "Projects",
    "assignments": "Assignments",
    "allocations": "Allocations",
    "calendar": "Company Calendar",
    "leave_types": "Leave Types",
    "leave_requests": "Leave Requests",
    "roles": "Roles",
    "rate_cards": "Rate Cards",
}


def _load_and_validate(frames: Dict[str, pd.DataFrame]) -> bool:
    """Validate uploaded sheets, then replace and persist the live data."""
    result = validate_frames(frames)
    if not result.is_valid:
        for e in result.errors:
            st.error(e)
        return False
    for w in result.warnings:
        st.warning(w)

    working_set, store = build_working_set(frames, get_rule_config())
    try:
        set_live_data(working_set, store)
    except PersistenceError as exc:
        logger.error("Uploaded data not persisted: %s", exc)
        st.error(f"Data parsed but could not be saved: {exc}")
        return False

    st.success(
        f"Data loaded: {len(working_set.resources)} resources, {len(working_set.projects)} projects, "
        f"{len(working_set.assignments)} assignments, {len(store)} allocation cells"
    )
    return True


def _render_health_check():
    ws = get_working_set()
    st.subheader("Data Health Check")
    ghosts = sum(1 for r in ws.resources if r.is_ghost)
    unstaffed = {p.project_id for p in ws.projects} - {a.project_id for a in ws.assignments}
    render_metric_row([
        {"label": "Resources", "value": len(ws.resources)},
        {"label": "Projects", "value": len(ws.projects)},
        {"label": "Assignments", "value": len(ws.assignments)},
        {"label": "Calendar Entries", "value": len(ws.calendar_entries)},
    ])
    if ghosts:
        st.caption(f"{ghosts} placeholder resource(s) in live data")
    if unstaffed:
        st.warning(f"Projects without assignments: {', '.join(sorted(unstaffed))}")
    no_role = [r.name for r in ws.resources if ws.role(r.role_id) is None and not r.daily_cost]
    if no_role:
        st.warning(f"Resources without cost data: {', '.join(no_role)}")


def render(sidebar_state):
    """Render the Admin tab."""
    st.header("Admin")

    # --- Data Upload Section ---
    st.subheader("Data Upload")

    upload_mode = st.radio(
        "Upload mode",
        ["Single Excel workbook", "Separate files"],
        horizontal=True,
        key="upload_mode",
    )

    if upload_mode == "Single Excel workbook":
        st.caption(
            "Upload one `.xlsx` file with sheets named **Resources**, **Projects**, **Assignments** "
            "and optionally **Allocations**, **Calendar**, **Leave Types**, **Leave Requests**, "
            "**Roles**, **Rate Cards**."
        )
        single_file = st.file_uploader("Staffing workbook", type=["xlsx"], key="upload_single")

        col_upload, col_sample = st.columns(2)
        with col_upload:
            if st.button("Upload & Validate", type="primary", key="btn_upload_single"):
                if single_file:
                    try:
                        frames = load_multi_sheet_excel(single_file)
                    except ValueError as e:
                        st.error(f"Error loading file: {e}")
                    else:
                        _load_and_validate(frames)
                else:
                    st.warning("Please upload an Excel file.")
        with col_sample:
            if st.button("Load Sample Data", key="btn_sample_single"):
                _load_and_validate(generate_all_frames())

    else:
        uploads = {}
        cols = st.columns(3)
        for i, key in enumerate(SHEET_ALIASES):
            with cols[i % 3]:
                uploads[key] = st.file_uploader(
                    SHEET_LABELS[key], type=["csv", "xlsx"], key=f"upload_{key}",
                )

        col_upload, col_sample = st.columns(2)
        with col_upload:
            if st.button("Upload & Validate", type="primary", key="btn_upload_multi"):
                try:
                    frames = {key: load_file(f) for key, f in uploads.items() if f is not None}
                except ValueError as e:
                    st.error(f"Error loading files: {e}")
                else:
                    _load_and_validate(frames)
        with col_sample:
            if st.button("Load Sample Data", key="btn_sample_multi"):
                _load_and_validate(generate_all_frames())

    st.divider()

    if is_data_loaded():
        _render_health_check()
        if get_data_store() is not None and st.button("Reload from database", key="btn_reload_db"):
            try:
                reload_live_data()
            except PersistenceError as exc:
                st.error(f"Reload failed: {exc}")
            else:
                st.success("Live data reloaded.")
        st.divider()

    # --- Rule Configuration ---
    st.subheader("Rule Configuration")
    config = get_rule_config()

    col1, col2, col3 = st.columns(3)
    with col1:
        default_cap = st.number_input(
            "Default Max Staffing %", min_value=1, max_value=200,
            value=int(config.get("default_cap_pct", DEFAULT_CAP_PCT)), step=5,
            key="cfg_default_cap",
            help="Cap used for resources uploaded without a Max Staffing % value.",
        )
    with col2:
        half_day = st.slider(
            "Half-day Leave Fraction", 0.0, 1.0,
            float(config.get("half_day_fraction", HALF_DAY_LEAVE_FRACTION)),
            step=0.05, key="cfg_half_day",
        )
    with col3:
        expense_ratio = st.slider(
            "Default Expense Ratio", 0.0, 0.2,
            float(config.get("expense_ratio", DEFAULT_EXPENSE_RATIO)),
            step=0.005, format="%.3f", key="cfg_expense_ratio",
            help="Daily expenses as a share of daily cost when a role defines none.",
        )

    if st.button("Save Rule Configuration"):
        new_config = {
            "default_cap_pct": int(default_cap),
            "half_day_fraction": half_day,
            "expense_ratio": expense_ratio,
        }
        set_rule_config(new_config)
        logger.info("Rule configuration changed from %s to %s", config, new_config)
        st.success("Rule configuration saved.")
