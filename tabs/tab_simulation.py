"""Tab 3: Simulation: what-if staffing scenarios with a monthly financial roll-up."""

import uuid
import streamlit as st
import pandas as pd
from datetime import date

from data.session_store import (
    get_simulation_session, get_staffing_service, get_working_set, get_rule_config,
)
from data.errors import PersistenceError
from components.charts import financials_chart
from components.tables import render_financials_table, render_utilization_table
from components.metrics_cards import render_financial_totals, render_alert_card
from engine.allocation_store import AllocationStore
from engine.aggregation_engine import non_working_cells, utilization_grid, utilization_records
from engine.financials import financial_totals, financials_to_frame
from engine.staffing_service import scenario_working_set
from models import actions
from models.project import BillingType
from models.resource import Resource
from models.scenario import BillingMilestone, MilestoneStatus, ProjectExpense


def _render_scenario_controls(session):
    state = session.state
    col_name, col_desc = st.columns([1, 2])
    with col_name:
        name = st.text_input("Name", value=state.name, key=f"sim_name_{session.generation}")
    with col_desc:
        description = st.text_input("Description", value=state.description,
                                    key=f"sim_desc_{session.generation}")
    if name != state.name or description != state.description:
        session.dispatch(actions.UpdateMeta(name=name, description=description))

    col_blank, col_import, col_save = st.columns(3)
    with col_blank:
        if st.button("New blank simulation", key="btn_sim_blank"):
            session.start_blank()
            st.rerun()
    with col_import:
        if st.button("Import live data", key="btn_sim_import"):
            service = get_staffing_service()
            session.import_live(service.working_set, service.store, rule_config=get_rule_config())
            st.success("Live staffing imported into the simulation.")
    with col_save:
        if st.button("Save", key="btn_sim_save", type="primary", disabled=not session.can_save):
            try:
                scenario_id = session.save()
            except PersistenceError as exc:
                render_alert_card(f"Save failed: {exc}", level="error")
            else:
                st.success(f"Saved as {scenario_id} (version {session.state.version})")

    saved = session.list_scenarios()
    if saved:
        col_pick, col_load = st.columns([3, 1])
        with col_pick:
            picked = st.selectbox(
                "Saved simulations", [s["id"] for s in saved],
                format_func=lambda sid: next(s["name"] for s in saved if s["id"] == sid),
                key="sim_saved_pick",
            )
        with col_load:
            st.write("")
            if st.button("Load", key="btn_sim_load"):
                try:
                    session.load(picked)
                except PersistenceError as exc:
                    render_alert_card(f"Load failed: {exc}", level="error")
                else:
                    st.rerun()


def _render_resources(session):
    state = session.state
    ws = get_working_set()
    st.subheader("Resources")
    if state.resources:
        rows = []
        for r in state.resources:
            fin = state.financials.get(r.resource_id)
            rows.append({
                "Resource": r.name,
                "Ghost": r.is_ghost,
                "Role": r.role_id,
                "Daily Cost": fin.daily_cost if fin else 0.0,
                "Daily Expenses": fin.daily_expenses if fin else 0.0,
                "Sell Rate": fin.sell_rate if fin else 0.0,
            })
        st.dataframe(pd.DataFrame(rows), use_container_width=True)

    with st.expander("Add ghost resource"):
        col_n, col_r, col_l, col_b = st.columns([2, 2, 2, 1])
        with col_n:
            ghost_name = st.text_input("Name", value="Open position", key="ghost_name")
        with col_r:
            role_id = st.selectbox("Role", [None] + [r.role_id for r in ws.roles],
                                   format_func=lambda x: "No role" if x is None else ws.role(x).name,
                                   key="ghost_role")
        with col_l:
            location = st.text_input("Location", value="", key="ghost_location")
        with col_b:
            st.write("")
            if st.button("Add", key="btn_ghost_add"):
                resource = Resource(
                    resource_id=f"GHOST-{uuid.uuid4().hex[:8]}",
                    name=ghost_name,
                    location=location or None,
                    role_id=role_id,
                    is_ghost=True,
                )
                session.dispatch(actions.AddGhostResource(resource, ws.role(role_id)))
                st.rerun()

    if state.resources:
        with st.expander("Edit financials"):
            rid = st.selectbox("Resource", [r.resource_id for r in state.resources],
                               format_func=lambda x: state.resource(x).name, key="fin_resource")
            fin = state.financials.get(rid)
            col_c, col_e, col_s, col_b = st.columns(4)
            with col_c:
                cost = st.number_input("Daily cost", min_value=0.0,
                                       value=float(fin.daily_cost) if fin else 0.0, key=f"fin_cost_{rid}")
            with col_e:
                expenses = st.number_input("Daily expenses", min_value=0.0,
                                           value=float(fin.daily_expenses) if fin else 0.0,
                                           key=f"fin_exp_{rid}")
            with col_s:
                sell = st.number_input("Sell rate (0 = rate card)", min_value=0.0,
                                       value=float(fin.sell_rate) if fin else 0.0, key=f"fin_sell_{rid}")
            with col_b:
                st.write("")
                if st.button("Update", key="btn_fin_update"):
                    session.dispatch(actions.SetResourceFinancials(rid, cost, expenses, sell))
                    st.rerun()


def _render_projects(session):
    state = session.state
    ws = get_working_set()
    st.subheader("Projects")
    if not state.projects:
        st.info("Import live data to bring projects into the simulation.")
        return

    st.dataframe(pd.DataFrame([{
        "Project": p.name,
        "Billing": p.billing_type.value,
        "Rate Card": p.rate_card_id or "",
    } for p in state.projects]), use_container_width=True)

    rate_cards = sorted({e.rate_card_id for e in ws.rate_card_entries})
    col_p, col_bt, col_rc, col_all = st.columns(4)
    with col_p:
        pid = st.selectbox("Project", [p.project_id for p in state.projects],
                           format_func=lambda x: state.project(x).name, key="sim_project")
    project = state.project(pid)
    with col_bt:
        billing = st.selectbox("Billing type", [b.value for b in BillingType],
                               index=[b.value for b in BillingType].index(project.billing_type.value),
                               key=f"sim_billing_{pid}")
        if billing != project.billing_type.value:
            session.dispatch(actions.SetProjectBillingType(pid, BillingType(billing)))
            st.rerun()
    with col_rc:
        options = [None] + rate_cards
        card = st.selectbox("Rate card", options,
                            index=options.index(project.rate_card_id) if project.rate_card_id in options else 0,
                            format_func=lambda x: "None" if x is None else x, key=f"sim_rc_{pid}")
        if card != project.rate_card_id:
            session.dispatch(actions.SetProjectRateCard(pid, card))
            st.rerun()
    with col_all:
        st.write("")
        if st.button("Apply rate card to all", key="btn_sim_rc_all"):
            session.dispatch(actions.BulkSetProjectRateCard(card))
            st.rerun()


def _render_staffing(session, sidebar_state):
    state = session.state
    st.subheader("Staffing")
    if not state.resources or not state.projects:
        return

    col_r, col_p, col_b = st.columns([2, 2, 1])
    with col_r:
        rid = st.selectbox("Resource", [r.resource_id for r in state.resources],
                           format_func=lambda x: state.resource(x).name, key="sim_asg_resource")
    with col_p:
        pid = st.selectbox("Project", [p.project_id for p in state.projects],
                           format_func=lambda x: state.project(x).name, key="sim_asg_project")
    with col_b:
        st.write("")
        if st.button("Assign", key="btn_sim_assign"):
            session.dispatch(actions.AddAssignment(rid, pid))
            st.rerun()

    assignment = state.find_assignment(rid, pid)
    if assignment is not None:
        col_s, col_e, col_pct, col_apply, col_del = st.columns([2, 2, 2, 1, 1])
        with col_s:
            start = st.date_input("From", value=sidebar_state.start, key="sim_bulk_start")
        with col_e:
            end = st.date_input("To", value=sidebar_state.end, key="sim_bulk_end")
        with col_pct:
            pct = st.number_input("Allocation %", 0, 100, value=100, step=5, key="sim_bulk_pct")
        with col_apply:
            st.write("")
            if st.button("Fill", key="btn_sim_fill", disabled=start > end):
                session.dispatch(actions.BulkSetAllocation(assignment.assignment_id, start, end, int(pct)))
                st.rerun()
        with col_del:
            st.write("")
            if st.button("Remove", key="btn_sim_unassign"):
                session.dispatch(actions.DeleteAssignment(assignment.assignment_id))
                st.rerun()

    scenario_set = scenario_working_set(state, get_working_set())
    scenario_store = AllocationStore(state.allocations)
    window = (sidebar_state.start, sidebar_state.end, sidebar_state.granularity)
    records = utilization_records(scenario_set, scenario_store, *window, rule_config=get_rule_config())
    grid = utilization_grid(scenario_set, scenario_store, *window, rule_config=get_rule_config())
    render_utilization_table(grid, {r.name: r.max_staffing_pct for r in state.resources},
                             non_working_cells(records))


def _render_expenses_and_milestones(session):
    state = session.state
    if not state.projects:
        return
    project_ids = [p.project_id for p in state.projects]
    col_exp, col_ms = st.columns(2)

    with col_exp:
        st.subheader("Expenses")
        for e in state.expenses:
            c1, c2 = st.columns([4, 1])
            c1.write(f"{e.expense_date.isoformat()} | {state.project(e.project_id).name if state.project(e.project_id) else e.project_id} | {e.amount:,.2f} {e.category}")
            if c2.button("✕", key=f"del_exp_{e.expense_id}"):
                session.dispatch(actions.DeleteExpense(e.expense_id))
                st.rerun()
        with st.form("add_expense", clear_on_submit=True):
            pid = st.selectbox("Project", project_ids, format_func=lambda x: state.project(x).name, key="exp_project")
            amount = st.number_input("Amount", min_value=0.0, step=100.0, key="exp_amount")
            when = st.date_input("Date", value=date.today(), key="exp_date")
            category = st.text_input("Category", key="exp_category")
            billable = st.checkbox("Billable", key="exp_billable")
            if st.form_submit_button("Add expense"):
                session.dispatch(actions.AddExpense(ProjectExpense(
                    expense_id=uuid.uuid4().hex, project_id=pid, amount=amount,
                    expense_date=when, category=category, billable=billable,
                )))
                st.rerun()

    with col_ms:
        st.subheader("Milestones")
        fixed = [p.project_id for p in state.projects if p.billing_type == BillingType.FIXED_PRICE]
        for m in state.milestones:
            c1, c2, c3 = st.columns([3, 1, 1])
            c1.write(f"{m.milestone_date.isoformat()} | {m.name} | {m.amount:,.2f}")
            statuses = [s.value for s in MilestoneStatus]
            new_status = c2.selectbox("Status", statuses, index=statuses.index(m.status.value),
                                      key=f"ms_status_{m.milestone_id}", label_visibility="collapsed")
            if new_status != m.status.value:
                session.dispatch(actions.UpdateMilestone(
                    BillingMilestone(m.milestone_id, m.project_id, m.name, m.milestone_date,
                                     m.amount, MilestoneStatus(new_status))))
                st.rerun()
            if c3.button("✕", key=f"del_ms_{m.milestone_id}"):
                session.dispatch(actions.DeleteMilestone(m.milestone_id))
                st.rerun()
        if not fixed:
            st.caption("Milestones bill revenue only on fixed-price projects.")
        with st.form("add_milestone", clear_on_submit=True):
            pid = st.selectbox("Project", project_ids, format_func=lambda x: state.project(x).name, key="ms_project")
            name = st.text_input("Milestone", key="ms_name")
            amount = st.number_input("Amount", min_value=0.0, step=1000.0, key="ms_amount")
            when = st.date_input("Date", value=date.today(), key="ms_date")
            if st.form_submit_button("Add milestone"):
                session.dispatch(actions.AddMilestone(BillingMilestone(
                    milestone_id=uuid.uuid4().hex, project_id=pid, name=name or "Milestone",
                    milestone_date=when, amount=amount,
                )))
                st.rerun()


def _render_financials(session):
    st.subheader("Financials")
    rows = session.monthly_financials(get_working_set().rate_card_entries)
    if not rows:
        st.info("No allocations, expenses or milestones to roll up.")
        return
    render_financial_totals(financial_totals(rows))
    st.plotly_chart(financials_chart(rows), use_container_width=True)
    render_financials_table(financials_to_frame(rows))


def render(sidebar_state):
    """Render the Simulation tab."""
    st.header("Simulation")
    session = get_simulation_session()

    _render_scenario_controls(session)
    if session.state.dirty:
        st.caption("Unsaved changes")
    st.divider()
    _render_resources(session)
    _render_projects(session)
    st.divider()
    _render_staffing(session, sidebar_state)
    st.divider()
    _render_expenses_and_milestones(session)
    st.divider()
    _render_financials(session)
