"""Read-only data access for the conflict rules.

``ScheduleStore`` is the query contract the evaluator depends on.
``SqliteScheduleStore`` answers it from the schema in ``SCHEMA``; entries
come back in insertion order (rowid) so rule output is deterministic for a
given snapshot.
"""

from __future__ import annotations

import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

from conflict_core.models import ScheduleEntry, WorkerAvailability

SCHEMA = """
CREATE TABLE IF NOT EXISTS workers (
    id TEXT PRIMARY KEY,
    employee_code TEXT,
    max_hours_per_week REAL NOT NULL DEFAULT 40,
    is_active INTEGER NOT NULL DEFAULT 1
);

CREATE TABLE IF NOT EXISTS worker_availability (
    worker_id TEXT NOT NULL REFERENCES workers(id) ON DELETE CASCADE,
    day_of_week INTEGER NOT NULL CHECK (day_of_week BETWEEN 0 AND 6),
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    PRIMARY KEY (worker_id, day_of_week)
);

CREATE TABLE IF NOT EXISTS service_jobs (
    id TEXT PRIMARY KEY,
    status TEXT NOT NULL DEFAULT 'UNSCHEDULED',
    scheduled_date TEXT
);

CREATE TABLE IF NOT EXISTS schedule_entries (
    id TEXT PRIMARY KEY,
    worker_id TEXT NOT NULL REFERENCES workers(id),
    service_job_id TEXT,
    location_id TEXT,
    date TEXT NOT NULL,
    start_time TEXT NOT NULL,
    end_time TEXT NOT NULL,
    route_order INTEGER,
    notes TEXT
);

CREATE INDEX IF NOT EXISTS idx_schedule_entries_worker_date
    ON schedule_entries (worker_id, date);
"""

_ENTRY_COLUMNS = (
    "id, worker_id, service_job_id, location_id, date, start_time, end_time, route_order, notes"
)


@runtime_checkable
class ScheduleStore(Protocol):
    def find_entries_for_worker_on_date(
        self, worker_id: str, day: date, exclude_id: str | None = None
    ) -> list[ScheduleEntry]: ...

    def find_availability(self, worker_id: str, day_of_week: int) -> WorkerAvailability | None: ...

    def find_worker_cap(self, worker_id: str) -> float | None: ...

    def find_entries_for_worker_in_range(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[ScheduleEntry]: ...


def connect(db_path: str | Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open an autocommit connection with named row access and the schema in place.

    Writers wrap their work in explicit ``BEGIN IMMEDIATE`` transactions.
    """
    conn = sqlite3.connect(
        str(db_path), isolation_level=None, check_same_thread=check_same_thread
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    init_schema(conn)
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA)


def entry_from_row(row: sqlite3.Row) -> ScheduleEntry:
    return ScheduleEntry(
        id=row["id"],
        worker_id=row["worker_id"],
        date=date.fromisoformat(row["date"]),
        start_time=row["start_time"],
        end_time=row["end_time"],
        service_job_id=row["service_job_id"],
        location_id=row["location_id"],
        route_order=row["route_order"],
        notes=row["notes"],
    )


class SqliteScheduleStore:
    """ScheduleStore backed by a sqlite3 connection owned by the caller."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def _entries(self, where: str, params: list, exclude_id: str | None) -> list[ScheduleEntry]:
        if exclude_id:
            where += " AND id != ?"
            params.append(exclude_id)
        cur = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM schedule_entries WHERE {where} ORDER BY rowid",
            params,
        )
        return [entry_from_row(row) for row in cur.fetchall()]

    def find_entries_for_worker_on_date(
        self, worker_id: str, day: date, exclude_id: str | None = None
    ) -> list[ScheduleEntry]:
        return self._entries("worker_id = ? AND date = ?", [worker_id, day.isoformat()], exclude_id)

    def find_availability(self, worker_id: str, day_of_week: int) -> WorkerAvailability | None:
        row = self.conn.execute(
            """
            SELECT worker_id, day_of_week, start_time, end_time
            FROM worker_availability
            WHERE worker_id = ? AND day_of_week = ?
            """,
            (worker_id, day_of_week),
        ).fetchone()
        if row is None:
            return None
        return WorkerAvailability(
            worker_id=row["worker_id"],
            day_of_week=row["day_of_week"],
            start_time=row["start_time"],
            end_time=row["end_time"],
        )

    def find_worker_cap(self, worker_id: str) -> float | None:
        row = self.conn.execute(
            "SELECT max_hours_per_week FROM workers WHERE id = ?", (worker_id,)
        ).fetchone()
        if row is None:
            return None
        return float(row["max_hours_per_week"])

    def find_entries_for_worker_in_range(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[ScheduleEntry]:
        return self._entries(
            "worker_id = ? AND date >= ? AND date <= ?",
            [worker_id, start.date().isoformat(), end.date().isoformat()],
            exclude_id,
        )
