"""Tab 1: Staffing: utilization grid, single-cell edits and bulk fill on live data."""

import streamlit as st
import pandas as pd
from datetime import timedelta

from data.session_store import get_staffing_service, get_working_set, is_data_loaded
from components.tables import render_utilization_table
from engine.aggregation_engine import non_working_cells
from components.metrics_cards import render_status_counts, render_alert_card
from engine.staffing_service import NonWorkingDayError
from engine.calendar_service import iter_dates


def _filtered_resources(ws, location):
    return [r for r in ws.resources if location is None or r.location == location]


def _assignment_label(ws, assignment):
    resource = ws.resource(assignment.resource_id)
    project = ws.project(assignment.project_id)
    return (f"{resource.name if resource else assignment.resource_id} / "
            f"{project.name if project else assignment.project_id}")


def _report(result, success_message):
    if result.persisted:
        st.success(success_message)
    else:
        render_alert_card(f"Saved locally but not persisted: {result.error}", level="error")


def _render_assignment_days(service, assignment, sidebar_state):
    """Day-level view of one assignment inside the window, non-working days flagged."""
    ws = service.working_set
    resource = ws.resource(assignment.resource_id)
    rows = []
    for day in iter_dates(sidebar_state.start, min(sidebar_state.end, sidebar_state.start + timedelta(days=41))):
        rows.append({
            "Date": day,
            "Allocation %": service.store.get(assignment.assignment_id, day),
            "Working Day": not service.is_non_working_day(resource, day) if resource else True,
        })
    st.dataframe(pd.DataFrame(rows), use_container_width=True, height=300)


def render(sidebar_state):
    """Render the Staffing tab."""
    st.header("Staffing")

    if not is_data_loaded():
        st.info("No data loaded. Please upload data in the Admin tab.")
        return

    service = get_staffing_service()
    ws = get_working_set()
    resources = _filtered_resources(ws, sidebar_state.location)

    if service.pending_persist:
        col_msg, col_btn = st.columns([4, 1])
        with col_msg:
            render_alert_card(
                f"{len(service.pending_updates)} allocation change(s) and "
                f"{len(service.pending_ops)} assignment change(s) are not persisted yet. "
                f"Last error: {service.last_error}",
                level="error",
            )
        with col_btn:
            if st.button("Retry", key="btn_retry_pending"):
                _report(service.retry_pending(), "Pending changes persisted.")
            if st.button("Reload", key="btn_reload_live"):
                service.reload()
                st.rerun()

    # --- Grid ---
    records = service.utilization_records(
        sidebar_state.start, sidebar_state.end, sidebar_state.granularity, resources,
    )
    render_status_counts(records)
    grid = service.utilization_grid(
        sidebar_state.start, sidebar_state.end, sidebar_state.granularity, resources,
    )
    render_utilization_table(grid, {r.name: r.max_staffing_pct for r in resources},
                             non_working_cells(records))

    st.divider()

    # --- Assignments ---
    st.subheader("Assignments")
    col_res, col_proj, col_add = st.columns([2, 2, 1])
    with col_res:
        resource_id = st.selectbox(
            "Resource", [r.resource_id for r in ws.resources],
            format_func=lambda rid: ws.resource(rid).name, key="staff_new_resource",
        )
    with col_proj:
        project_ids = st.multiselect(
            "Projects", [p.project_id for p in ws.projects],
            format_func=lambda pid: ws.project(pid).name, key="staff_new_projects",
        )
    with col_add:
        st.write("")
        if st.button("Assign", key="btn_assign", disabled=not project_ids):
            results = service.create_assignments(resource_id, project_ids)
            failed = [r for r in results if not r.persisted]
            if failed:
                render_alert_card(f"Assignment not persisted: {failed[0].error}", level="error")
            else:
                st.success(f"{len(results)} assignment(s) ready")

    if not ws.assignments:
        st.info("No assignments yet.")
        return

    assignment_ids = [a.assignment_id for a in ws.assignments
                      if any(r.resource_id == a.resource_id for r in resources)]
    if not assignment_ids:
        st.info("No assignments for the selected location.")
        return

    selected_id = st.selectbox(
        "Assignment", assignment_ids,
        format_func=lambda aid: _assignment_label(ws, ws.assignment(aid)),
        key="staff_assignment",
    )
    assignment = ws.assignment(selected_id)

    with st.expander("Daily allocation", expanded=False):
        _render_assignment_days(service, assignment, sidebar_state)

    tab_cell, tab_bulk, tab_delete = st.tabs(["Single day", "Bulk fill", "Remove"])

    with tab_cell:
        col_d, col_p, col_b = st.columns([2, 2, 1])
        with col_d:
            day = st.date_input("Date", value=sidebar_state.start, key="cell_date")
        with col_p:
            pct = st.number_input("Allocation %", 0, 100,
                                  value=service.store.get(selected_id, day), step=5, key="cell_pct")
        with col_b:
            st.write("")
            if st.button("Set", key="btn_cell_set"):
                try:
                    result = service.set_allocation(selected_id, day, int(pct))
                except NonWorkingDayError as exc:
                    st.error(str(exc))
                except ValueError as exc:
                    st.error(f"Invalid allocation: {exc}")
                else:
                    _report(result, f"{day.isoformat()} set to {int(pct)}%")

    with tab_bulk:
        st.caption("Writes every Monday to Friday in the range. Holidays are not skipped.")
        col_s, col_e, col_p, col_b = st.columns([2, 2, 2, 1])
        with col_s:
            bulk_start = st.date_input("From", value=sidebar_state.start, key="bulk_start")
        with col_e:
            bulk_end = st.date_input("To", value=sidebar_state.end, key="bulk_end")
        with col_p:
            bulk_pct = st.number_input("Allocation %", 0, 100, value=50, step=5, key="bulk_pct")
        with col_b:
            st.write("")
            if st.button("Apply", key="btn_bulk_apply", type="primary"):
                if bulk_start > bulk_end:
                    st.error("Start date must not be after end date.")
                else:
                    result = service.apply_bulk(selected_id, bulk_start, bulk_end, int(bulk_pct))
                    _report(result, f"{len(result.updates)} day(s) set to {int(bulk_pct)}%")

    with tab_delete:
        st.warning("Removing an assignment also deletes all of its allocations.")
        if st.button("Delete assignment", key="btn_delete_assignment"):
            result = service.delete_assignment(selected_id)
            _report(result, "Assignment removed.")
            st.rerun()
