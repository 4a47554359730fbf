"""SQLite repository for the write side of scheduling.

The conflict rules only read through ``conflict_core.io.SqliteScheduleStore``;
everything that creates, changes or lists rows lives here.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import date

from conflict_core.io.store import SqliteScheduleStore, entry_from_row
from conflict_core.models import ScheduleEntry, Worker, WorkerAvailability
from conflict_core.time_utils import day_of_week

JOB_SCHEDULED = "SCHEDULED"
JOB_UNSCHEDULED = "UNSCHEDULED"

_ENTRY_SELECT = """
    SELECT id, worker_id, service_job_id, location_id, date, start_time, end_time,
           route_order, notes
    FROM schedule_entries
"""


class ScheduleRepository:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.store = SqliteScheduleStore(conn)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Serialize writers on the database file for the duration of the block."""
        self.conn.execute("BEGIN IMMEDIATE")
        try:
            yield
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")

    # -- Workers --

    def upsert_worker(self, worker: Worker) -> Worker:
        self.conn.execute(
            """
            INSERT INTO workers (id, employee_code, max_hours_per_week, is_active)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                employee_code = excluded.employee_code,
                max_hours_per_week = excluded.max_hours_per_week,
                is_active = excluded.is_active
            """,
            (worker.id, worker.employee_code, float(worker.max_hours_per_week), int(worker.is_active)),
        )
        return worker

    def get_worker(self, worker_id: str) -> Worker | None:
        row = self.conn.execute(
            "SELECT id, employee_code, max_hours_per_week, is_active FROM workers WHERE id = ?",
            (worker_id,),
        ).fetchone()
        return _worker_from_row(row) if row is not None else None

    def available_workers(self, day: date) -> list[tuple[Worker, WorkerAvailability]]:
        """Active workers with an availability window on the weekday of ``day``."""
        cur = self.conn.execute(
            """
            SELECT w.id, w.employee_code, w.max_hours_per_week, w.is_active,
                   a.day_of_week, a.start_time, a.end_time
            FROM workers w
            JOIN worker_availability a ON a.worker_id = w.id
            WHERE w.is_active = 1 AND a.day_of_week = ?
            ORDER BY w.id
            """,
            (day_of_week(day),),
        )
        return [
            (
                _worker_from_row(row),
                WorkerAvailability(
                    worker_id=row["id"],
                    day_of_week=row["day_of_week"],
                    start_time=row["start_time"],
                    end_time=row["end_time"],
                ),
            )
            for row in cur.fetchall()
        ]

    # -- Availability --

    def replace_availability(
        self, worker_id: str, rows: Sequence[WorkerAvailability]
    ) -> list[WorkerAvailability]:
        self.conn.execute("DELETE FROM worker_availability WHERE worker_id = ?", (worker_id,))
        self.conn.executemany(
            """
            INSERT INTO worker_availability (worker_id, day_of_week, start_time, end_time)
            VALUES (?, ?, ?, ?)
            """,
            [(worker_id, r.day_of_week, r.start_time, r.end_time) for r in rows],
        )
        return self.list_availability(worker_id)

    def list_availability(self, worker_id: str) -> list[WorkerAvailability]:
        cur = self.conn.execute(
            """
            SELECT worker_id, day_of_week, start_time, end_time
            FROM worker_availability
            WHERE worker_id = ?
            ORDER BY day_of_week
            """,
            (worker_id,),
        )
        return [
            WorkerAvailability(
                worker_id=row["worker_id"],
                day_of_week=row["day_of_week"],
                start_time=row["start_time"],
                end_time=row["end_time"],
            )
            for row in cur.fetchall()
        ]

    # -- Schedule entries --

    def get_entry(self, entry_id: str) -> ScheduleEntry | None:
        row = self.conn.execute(f"{_ENTRY_SELECT} WHERE id = ?", (entry_id,)).fetchone()
        return entry_from_row(row) if row is not None else None

    def insert_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        self.conn.execute(
            """
            INSERT INTO schedule_entries (
                id, worker_id, service_job_id, location_id, date,
                start_time, end_time, route_order, notes
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            _entry_params(entry),
        )
        return entry

    def update_entry(self, entry: ScheduleEntry) -> ScheduleEntry:
        params = _entry_params(entry)
        self.conn.execute(
            """
            UPDATE schedule_entries SET
                worker_id = ?, service_job_id = ?, location_id = ?, date = ?,
                start_time = ?, end_time = ?, route_order = ?, notes = ?
            WHERE id = ?
            """,
            (*params[1:], params[0]),
        )
        return entry

    def delete_entry(self, entry_id: str) -> None:
        self.conn.execute("DELETE FROM schedule_entries WHERE id = ?", (entry_id,))

    def list_entries(
        self,
        *,
        worker_id: str | None = None,
        day: date | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[ScheduleEntry]:
        where: list[str] = []
        params: list = []
        if worker_id:
            where.append("worker_id = ?")
            params.append(worker_id)
        if day is not None:
            where.append("date = ?")
            params.append(day.isoformat())
        else:
            if start is not None:
                where.append("date >= ?")
                params.append(start.isoformat())
            if end is not None:
                where.append("date <= ?")
                params.append(end.isoformat())
        clause = f" WHERE {' AND '.join(where)}" if where else ""
        cur = self.conn.execute(
            f"{_ENTRY_SELECT}{clause} ORDER BY date, start_time, route_order IS NULL, route_order",
            params,
        )
        return [entry_from_row(row) for row in cur.fetchall()]

    def route_entries(self, worker_id: str, day: date) -> list[ScheduleEntry]:
        cur = self.conn.execute(
            f"""{_ENTRY_SELECT}
            WHERE worker_id = ? AND date = ?
            ORDER BY route_order IS NULL, route_order, start_time
            """,
            (worker_id, day.isoformat()),
        )
        return [entry_from_row(row) for row in cur.fetchall()]

    def set_route_order(self, entry_ids: Sequence[str]) -> None:
        self.conn.executemany(
            "UPDATE schedule_entries SET route_order = ? WHERE id = ?",
            [(index, entry_id) for index, entry_id in enumerate(entry_ids)],
        )

    # -- Service jobs --

    def count_entries_for_job(self, job_id: str) -> int:
        row = self.conn.execute(
            "SELECT COUNT(*) AS n FROM schedule_entries WHERE service_job_id = ?", (job_id,)
        ).fetchone()
        return int(row["n"])

    def set_job_status(self, job_id: str, status: str, scheduled_date: date | None) -> None:
        self.conn.execute(
            """
            INSERT INTO service_jobs (id, status, scheduled_date) VALUES (?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                status = excluded.status,
                scheduled_date = excluded.scheduled_date
            """,
            (job_id, status, scheduled_date.isoformat() if scheduled_date else None),
        )

    def get_job_status(self, job_id: str) -> str | None:
        row = self.conn.execute("SELECT status FROM service_jobs WHERE id = ?", (job_id,)).fetchone()
        return row["status"] if row is not None else None


def _worker_from_row(row: sqlite3.Row) -> Worker:
    return Worker(
        id=row["id"],
        max_hours_per_week=float(row["max_hours_per_week"]),
        employee_code=row["employee_code"],
        is_active=bool(row["is_active"]),
    )


def _entry_params(entry: ScheduleEntry) -> tuple:
    return (
        entry.id,
        entry.worker_id,
        entry.service_job_id,
        entry.location_id,
        entry.date.isoformat(),
        entry.start_time,
        entry.end_time,
        entry.route_order,
        entry.notes,
    )
