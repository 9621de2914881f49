"""SQLite persistence for the live staffing model and simulation scenarios.

Live entities are stored as JSON payload rows keyed by (kind, id); allocation
cells have their own table so a bulk edit commits as one batch. Scenarios are
stored as named, versioned JSON documents.
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from models.allocation import AllocationUpdate
from models.project import Assignment
from models.scenario import SimulationScenario
from models.working_set import WorkingSet
from engine.allocation_store import AllocationStore
from data.errors import PersistenceError, ScenarioCorruptError, ScenarioNotFoundError
from data.serialization import (
    ENTITY_DECODERS, scenario_from_payload, scenario_to_payload, to_plain,
)
from config.defaults import DB_PATH_ENV, DEFAULT_DB_PATH

logger = logging.getLogger(__name__)


def _entity_key(kind: str, obj) -> str:
    if kind == "resources":
        return obj.resource_id
    if kind == "projects":
        return obj.project_id
    if kind == "assignments":
        return obj.assignment_id
    if kind == "roles":
        return obj.role_id
    if kind == "rate_card_entries":
        return f"{obj.rate_card_id}:{obj.resource_id}"
    if kind == "calendar_entries":
        return f"{obj.entry_date.isoformat()}:{obj.entry_type.value}:{obj.location or ''}"
    if kind == "leave_requests":
        return obj.request_id
    if kind == "leave_types":
        return obj.type_id
    raise ValueError(f"Unknown entity kind: {kind}")


# -----------------------------
# Connection helpers
# -----------------------------
def _exec(con: sqlite3.Connection, sql: str, params: Tuple = ()) -> None:
    con.execute(sql, params)


def _fetchall(con: sqlite3.Connection, sql: str, params: Tuple = ()) -> List[sqlite3.Row]:
    cur = con.execute(sql, params)
    return cur.fetchall()


class DataStore:
    def __init__(self, db_path: Optional[str] = None):
        self.db_path = Path(db_path or os.environ.get(DB_PATH_ENV) or DEFAULT_DB_PATH)
        self.ensure_schema()

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        """Connection that commits on success and maps sqlite failures to PersistenceError."""
        try:
            con = sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open {self.db_path}: {exc}") from exc
        con.row_factory = sqlite3.Row
        try:
            yield con
            con.commit()
        except sqlite3.Error as exc:
            con.rollback()
            raise PersistenceError(str(exc)) from exc
        finally:
            con.close()

    # -----------------------------
    # Schema
    # -----------------------------
    def ensure_schema(self) -> None:
        with self._conn() as con:
            _exec(con, """
                CREATE TABLE IF NOT EXISTS entities (
                    kind    TEXT NOT NULL,
                    id      TEXT NOT NULL,
                    payload TEXT NOT NULL,
                    PRIMARY KEY (kind, id)
                );
            """)
            _exec(con, """
                CREATE TABLE IF NOT EXISTS allocations (
                    assignment_id TEXT NOT NULL,
                    day           TEXT NOT NULL,
                    percentage    INTEGER NOT NULL,
                    PRIMARY KEY (assignment_id, day)
                );
            """)
            _exec(con, """
                CREATE TABLE IF NOT EXISTS scenarios (
                    id         TEXT PRIMARY KEY,
                    name       TEXT NOT NULL,
                    version    INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    payload    TEXT NOT NULL
                );
            """)

    # -----------------------------
    # Live model
    # -----------------------------
    def save_working_set(self, working_set: WorkingSet, store: Optional[AllocationStore] = None) -> None:
        """Replace the live data with a full working set (used by data import)."""
        with self._conn() as con:
            _exec(con, "DELETE FROM entities;")
            for kind in ENTITY_DECODERS:
                rows = [
                    (kind, _entity_key(kind, obj), json.dumps(to_plain(obj)))
                    for obj in getattr(working_set, kind)
                ]
                con.executemany("INSERT OR REPLACE INTO entities (kind, id, payload) VALUES (?,?,?)", rows)
            if store is not None:
                _exec(con, "DELETE FROM allocations;")
                con.executemany(
                    "INSERT INTO allocations (assignment_id, day, percentage) VALUES (?,?,?)",
                    list(store.entries()),
                )
        logger.info("Saved working set: %d resources, %d assignments",
                    len(working_set.resources), len(working_set.assignments))

    def load_snapshot(self) -> Tuple[WorkingSet, AllocationStore]:
        """Point-in-time snapshot of the live model."""
        with self._conn() as con:
            rows = _fetchall(con, "SELECT kind, payload FROM entities ORDER BY kind, id;")
            alloc_rows = _fetchall(con, "SELECT assignment_id, day, percentage FROM allocations;")

        working_set = WorkingSet()
        for row in rows:
            decoder = ENTITY_DECODERS.get(row["kind"])
            if decoder is None:
                continue
            getattr(working_set, row["kind"]).append(decoder(json.loads(row["payload"])))

        known = {a.assignment_id for a in working_set.assignments}
        maps: Dict[str, Dict[str, int]] = {}
        for row in alloc_rows:
            maps.setdefault(row["assignment_id"], {})[row["day"]] = row["percentage"]
        for orphan in sorted(set(maps) - known):
            logger.warning("Dropping %d allocation rows of unknown assignment %s", len(maps[orphan]), orphan)
            del maps[orphan]
        return working_set, AllocationStore.from_dict(maps)

    def create_assignment(self, assignment: Assignment) -> None:
        with self._conn() as con:
            _exec(
                con,
                "INSERT OR IGNORE INTO entities (kind, id, payload) VALUES (?,?,?)",
                ("assignments", assignment.assignment_id, json.dumps(to_plain(assignment))),
            )

    def delete_assignment(self, assignment_id: str) -> None:
        """Remove an assignment together with all its allocation rows."""
        with self._conn() as con:
            _exec(con, "DELETE FROM allocations WHERE assignment_id = ?;", (assignment_id,))
            _exec(con, "DELETE FROM entities WHERE kind = 'assignments' AND id = ?;", (assignment_id,))

    def upsert_allocations(self, updates: Iterable[AllocationUpdate]) -> int:
        """Apply a batch in one transaction; percentage 0 deletes the row."""
        updates = list(updates)
        deletes = [(u.assignment_id, u.day) for u in updates if u.percentage == 0]
        upserts = [(u.assignment_id, u.day, u.percentage) for u in updates if u.percentage != 0]
        with self._conn() as con:
            con.executemany("DELETE FROM allocations WHERE assignment_id = ? AND day = ?;", deletes)
            con.executemany(
                "INSERT OR REPLACE INTO allocations (assignment_id, day, percentage) VALUES (?,?,?);",
                upserts,
            )
        return len(updates)

    # -----------------------------
    # Scenarios
    # -----------------------------
    def save_scenario(self, scenario: SimulationScenario) -> Tuple[str, int, datetime]:
        """Store a scenario, assigning an id on first save and bumping its version.

        Returns (scenario_id, version, updated_at).
        """
        scenario_id = scenario.scenario_id or uuid.uuid4().hex
        now = datetime.now().replace(microsecond=0)
        with self._conn() as con:
            row = con.execute(
                "SELECT version, created_at FROM scenarios WHERE id = ?;", (scenario_id,)
            ).fetchone()
            version = (row["version"] if row else scenario.version) + 1
            created_at = row["created_at"] if row else (scenario.created_at or now).isoformat()

            payload = scenario_to_payload(scenario)
            payload.update({
                "scenario_id": scenario_id,
                "version": version,
                "created_at": created_at,
                "updated_at": now.isoformat(),
            })
            _exec(
                con,
                """
                INSERT INTO scenarios (id, name, version, created_at, updated_at, payload)
                VALUES (?,?,?,?,?,?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    version = excluded.version,
                    updated_at = excluded.updated_at,
                    payload = excluded.payload;
                """,
                (scenario_id, scenario.name, version, created_at, now.isoformat(), json.dumps(payload)),
            )
        logger.info("Saved scenario %s (%s) version %d", scenario_id, scenario.name, version)
        return scenario_id, version, now

    def load_scenario(self, scenario_id: str) -> SimulationScenario:
        with self._conn() as con:
            row = con.execute("SELECT payload FROM scenarios WHERE id = ?;", (scenario_id,)).fetchone()
        if row is None:
            raise ScenarioNotFoundError(scenario_id)
        try:
            payload = json.loads(row["payload"])
            if not isinstance(payload, dict):
                raise ValueError("payload is not an object")
            payload.setdefault("scenario_id", scenario_id)
            return scenario_from_payload(payload)
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise ScenarioCorruptError(scenario_id, str(exc)) from exc

    def list_scenarios(self) -> List[Dict]:
        with self._conn() as con:
            rows = _fetchall(con, "SELECT id, name, updated_at FROM scenarios ORDER BY updated_at DESC, name;")
        return [{"id": r["id"], "name": r["name"], "updated_at": r["updated_at"]} for r in rows]

    def delete_scenario(self, scenario_id: str) -> None:
        with self._conn() as con:
            _exec(con, "DELETE FROM scenarios WHERE id = ?;", (scenario_id,))
