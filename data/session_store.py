"""Typed wrapper around st.session_state for application data."""

import logging
from typing import Optional

import streamlit as st

from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from engine.staffing_service import SimulationSession, StaffingService
from data.data_store import DataStore
from data.errors import PersistenceError
from config.defaults import DEFAULT_GRANULARITY

logger = logging.getLogger(__name__)


def initialize_session_state():
    """Initialize all session state keys with defaults."""
    defaults = {
        "data_store": None,
        "staffing_service": None,
        "simulation_session": None,
        "data_loaded": False,
        "rule_config": {},
        "sidebar_state": {
            "granularity": DEFAULT_GRANULARITY,
            "location": None,
        },
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default

    if st.session_state["data_store"] is None:
        try:
            st.session_state["data_store"] = DataStore()
        except PersistenceError as exc:
            logger.error("Data store unavailable: %s", exc)

    if st.session_state["staffing_service"] is None:
        _load_live_snapshot()

    if st.session_state["simulation_session"] is None:
        st.session_state["simulation_session"] = SimulationSession(get_data_store())


def _load_live_snapshot():
    data_store = get_data_store()
    working_set, store = WorkingSet(), AllocationStore()
    if data_store is not None:
        try:
            working_set, store = data_store.load_snapshot()
        except PersistenceError as exc:
            logger.error("Could not load live snapshot: %s", exc)
    st.session_state["staffing_service"] = StaffingService(
        working_set, store, data_store, get_rule_config(),
    )
    st.session_state["data_loaded"] = bool(working_set.resources)


# --- Getters ---

def get_data_store() -> Optional[DataStore]:
    return st.session_state.get("data_store")


def get_staffing_service() -> StaffingService:
    return st.session_state["staffing_service"]


def get_working_set() -> WorkingSet:
    return get_staffing_service().working_set


def get_simulation_session() -> SimulationSession:
    return st.session_state["simulation_session"]


def get_rule_config() -> dict:
    return st.session_state.get("rule_config", {})


def is_data_loaded() -> bool:
    return st.session_state.get("data_loaded", False)


# --- Setters ---

def set_live_data(working_set: WorkingSet, store: AllocationStore):
    """Replace the live model, persisting it when a data store is available."""
    data_store = get_data_store()
    if data_store is not None:
        data_store.save_working_set(working_set, store)
    st.session_state["staffing_service"] = StaffingService(
        working_set, store, data_store, get_rule_config(),
    )
    st.session_state["data_loaded"] = bool(working_set.resources)


def reload_live_data():
    get_staffing_service().reload()
    st.session_state["data_loaded"] = bool(get_working_set().resources)


def set_rule_config(config: dict):
    st.session_state["rule_config"] = config
    get_staffing_service().rule_config = config
