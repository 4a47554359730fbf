"""Schedule-entry operations wrapped around the conflict engine.

Writes are evaluated and persisted inside one ``BEGIN IMMEDIATE``
transaction. A result with blocking errors raises ``ScheduleConflictError``
and nothing is written; warnings are returned alongside the persisted entry.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from conflict_core import (
    BatchFinding,
    Candidate,
    ConflictResult,
    SEVERITY_ERROR,
    InvalidInputError,
    ScheduleEntry,
    Worker,
    WorkerAvailability,
    check_bulk_schedule_conflicts,
    check_schedule_conflicts,
    time_to_minutes,
)
from conflict_core.time_utils import parse_date

from .storage import JOB_SCHEDULED, JOB_UNSCHEDULED, ScheduleRepository
from .utils import new_id

logger = logging.getLogger(__name__)

_CAMEL_FIELDS = {
    "workerId": "worker_id",
    "serviceJobId": "service_job_id",
    "locationId": "location_id",
    "startTime": "start_time",
    "endTime": "end_time",
    "routeOrder": "route_order",
}
_ENTRY_FIELDS = {
    "worker_id", "service_job_id", "location_id", "date",
    "start_time", "end_time", "route_order", "notes",
}


class ScheduleConflictError(ValueError):
    """A write was rejected because the conflict check reported errors."""

    def __init__(self, message: str, result: ConflictResult, index: int | None = None):
        super().__init__(message)
        self.result = result
        self.index = index


@dataclass
class WriteOutcome:
    entry: ScheduleEntry
    result: ConflictResult

    def to_dict(self) -> dict[str, Any]:
        return {"entry": self.entry.to_dict(), "conflictCheck": self.result.to_dict()}


@dataclass
class AvailableWorker:
    worker: Worker
    availability: WorkerAvailability
    entries: list[ScheduleEntry]

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.worker.to_dict(),
            "availability": self.availability.to_dict(),
            "scheduleEntries": [e.to_dict() for e in self.entries],
        }


def _normalize_fields(data: dict[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in data.items():
        name = _CAMEL_FIELDS.get(key, key)
        if name not in _ENTRY_FIELDS:
            raise InvalidInputError(f"unknown schedule entry field: {key!r}")
        out[name] = value
    return out


def _validated_entry(entry: ScheduleEntry) -> ScheduleEntry:
    if not entry.worker_id:
        raise InvalidInputError("schedule entry is missing a worker id")
    if time_to_minutes(entry.end_time) <= time_to_minutes(entry.start_time):
        raise InvalidInputError(
            f"end time {entry.end_time} must be after start time {entry.start_time}"
        )
    if entry.route_order is not None and not isinstance(entry.route_order, int):
        raise InvalidInputError(f"route order must be an integer: {entry.route_order!r}")
    return entry


def _entry_from_fields(entry_id: str, fields: dict[str, Any]) -> ScheduleEntry:
    return _validated_entry(
        ScheduleEntry(
            id=entry_id,
            worker_id=str(fields.get("worker_id") or ""),
            date=parse_date(fields.get("date")),
            start_time=str(fields.get("start_time") or ""),
            end_time=str(fields.get("end_time") or ""),
            service_job_id=fields.get("service_job_id") or None,
            location_id=fields.get("location_id") or None,
            route_order=fields.get("route_order"),
            notes=fields.get("notes"),
        )
    )


class ScheduleService:
    def __init__(
        self,
        repo: ScheduleRepository,
        *,
        locale: str | None = None,
        batch_cross_check: bool = False,
    ):
        self.repo = repo
        self.locale = locale
        self.batch_cross_check = batch_cross_check

    # -- Read-only checks --

    def check(
        self,
        worker_id: str,
        day: date | str,
        start_time: str,
        end_time: str,
        exclude_entry_id: str | None = None,
    ) -> ConflictResult:
        return check_schedule_conflicts(
            self.repo.store, worker_id, day, start_time, end_time, exclude_entry_id,
            locale=self.locale,
        )

    def check_bulk(
        self,
        candidates: Sequence[Candidate | dict[str, Any]],
        *,
        include_batch_peers: bool | None = None,
    ) -> list[BatchFinding]:
        peers = self.batch_cross_check if include_batch_peers is None else include_batch_peers
        return check_bulk_schedule_conflicts(
            self.repo.store, candidates, include_batch_peers=peers, locale=self.locale,
        )

    # -- Entry writes --

    def create_entry(self, data: dict[str, Any]) -> WriteOutcome:
        entry = _entry_from_fields(new_id("entry"), _normalize_fields(data))
        with self.repo.transaction():
            self._require_worker(entry.worker_id)
            result = self.check(entry.worker_id, entry.date, entry.start_time, entry.end_time)
            if result.has_conflict:
                raise ScheduleConflictError(_rejection_message(result), result)
            self.repo.insert_entry(entry)
            if entry.service_job_id:
                self.repo.set_job_status(entry.service_job_id, JOB_SCHEDULED, entry.date)
        logger.info(
            "Created entry %s for worker %s on %s (%s-%s), %d warning(s)",
            entry.id, entry.worker_id, entry.date, entry.start_time, entry.end_time,
            len(result.conflicts),
        )
        return WriteOutcome(entry=entry, result=result)

    def bulk_create(self, items: Sequence[dict[str, Any]]) -> list[WriteOutcome]:
        """Create every entry or none.

        Earlier entries in the batch count as existing for later ones, since
        all of them are about to be persisted together.
        """
        entries = [_entry_from_fields(new_id("entry"), _normalize_fields(d)) for d in items]
        candidates = [
            Candidate(e.worker_id, e.date, e.start_time, e.end_time) for e in entries
        ]
        with self.repo.transaction():
            for worker_id in dict.fromkeys(e.worker_id for e in entries):
                self._require_worker(worker_id)
            findings = self.check_bulk(candidates, include_batch_peers=True)
            for finding in findings:
                if finding.result.has_conflict:
                    raise ScheduleConflictError(
                        f"entry {finding.index}: {_rejection_message(finding.result)}",
                        finding.result,
                        index=finding.index,
                    )
            results = {f.index: f.result for f in findings}
            outcomes = []
            for index, entry in enumerate(entries):
                self.repo.insert_entry(entry)
                if entry.service_job_id:
                    self.repo.set_job_status(entry.service_job_id, JOB_SCHEDULED, entry.date)
                outcomes.append(WriteOutcome(entry=entry, result=results.get(index, ConflictResult())))
        logger.info("Bulk created %d entries, %d with warnings", len(entries), len(findings))
        return outcomes

    def update_entry(self, entry_id: str, changes: dict[str, Any]) -> WriteOutcome:
        fields = _normalize_fields(changes)
        with self.repo.transaction():
            current = self._require_entry(entry_id)
            merged = {**_fields_of(current), **fields}
            entry = _entry_from_fields(entry_id, merged)
            self._require_worker(entry.worker_id)
            result = self.check(
                entry.worker_id, entry.date, entry.start_time, entry.end_time,
                exclude_entry_id=entry_id,
            )
            if result.has_conflict:
                raise ScheduleConflictError(_rejection_message(result), result)
            self.repo.update_entry(entry)
            if entry.service_job_id:
                self.repo.set_job_status(entry.service_job_id, JOB_SCHEDULED, entry.date)
            if current.service_job_id and current.service_job_id != entry.service_job_id:
                self._release_job(current.service_job_id)
        logger.info("Updated entry %s, %d warning(s)", entry_id, len(result.conflicts))
        return WriteOutcome(entry=entry, result=result)

    def delete_entry(self, entry_id: str) -> ScheduleEntry:
        with self.repo.transaction():
            entry = self._require_entry(entry_id)
            self.repo.delete_entry(entry_id)
            if entry.service_job_id:
                self._release_job(entry.service_job_id)
        logger.info("Deleted entry %s", entry_id)
        return entry

    def reorder_route(self, worker_id: str, day: date | str, entry_ids: Sequence[str]) -> list[ScheduleEntry]:
        day = parse_date(day)
        with self.repo.transaction():
            route_ids = {e.id for e in self.repo.route_entries(worker_id, day)}
            unknown = [i for i in entry_ids if i not in route_ids]
            if unknown:
                raise ValueError(
                    f"entries not on the route of {worker_id} for {day}: {', '.join(unknown)}"
                )
            self.repo.set_route_order(entry_ids)
        return self.repo.route_entries(worker_id, day)

    # -- Workers and availability --

    def register_worker(
        self,
        worker_id: str,
        *,
        max_hours_per_week: float = 40.0,
        employee_code: str | None = None,
        is_active: bool = True,
    ) -> Worker:
        if max_hours_per_week <= 0:
            raise ValueError(f"max hours per week must be positive: {max_hours_per_week}")
        worker = Worker(
            id=worker_id,
            max_hours_per_week=float(max_hours_per_week),
            employee_code=employee_code,
            is_active=is_active,
        )
        with self.repo.transaction():
            return self.repo.upsert_worker(worker)

    def available_workers(self, day: date | str) -> list[AvailableWorker]:
        """Active workers with a window on that weekday, and their entries for the day."""
        day = parse_date(day)
        return [
            AvailableWorker(
                worker=worker,
                availability=availability,
                entries=self.repo.list_entries(worker_id=worker.id, day=day),
            )
            for worker, availability in self.repo.available_workers(day)
        ]

    def set_availability(self, worker_id: str, rows: Sequence[dict[str, Any]]) -> list[WorkerAvailability]:
        """Replace all availability windows of a worker."""
        parsed: dict[int, WorkerAvailability] = {}
        for row in rows:
            day = row.get("dayOfWeek", row.get("day_of_week"))
            if not isinstance(day, int) or not 0 <= day <= 6:
                raise InvalidInputError(f"day of week must be an integer 0-6: {day!r}")
            start = str(row.get("startTime", row.get("start_time")) or "")
            end = str(row.get("endTime", row.get("end_time")) or "")
            if time_to_minutes(end) <= time_to_minutes(start):
                raise InvalidInputError(f"availability end {end} must be after start {start}")
            if day in parsed:
                raise InvalidInputError(f"duplicate availability for day {day}")
            parsed[day] = WorkerAvailability(worker_id, day, start, end)

        with self.repo.transaction():
            self._require_worker(worker_id)
            return self.repo.replace_availability(worker_id, list(parsed.values()))

    # -- Internal helpers --

    def _require_worker(self, worker_id: str) -> Worker:
        worker = self.repo.get_worker(worker_id)
        if worker is None:
            raise KeyError(f"worker not found: {worker_id}")
        return worker

    def _require_entry(self, entry_id: str) -> ScheduleEntry:
        entry = self.repo.get_entry(entry_id)
        if entry is None:
            raise KeyError(f"schedule entry not found: {entry_id}")
        return entry

    def _release_job(self, job_id: str) -> None:
        if self.repo.count_entries_for_job(job_id) == 0:
            self.repo.set_job_status(job_id, JOB_UNSCHEDULED, None)


def _fields_of(entry: ScheduleEntry) -> dict[str, Any]:
    return {
        "worker_id": entry.worker_id,
        "service_job_id": entry.service_job_id,
        "location_id": entry.location_id,
        "date": entry.date,
        "start_time": entry.start_time,
        "end_time": entry.end_time,
        "route_order": entry.route_order,
        "notes": entry.notes,
    }


def _rejection_message(result: ConflictResult) -> str:
    errors = [c.message for c in result.conflicts if c.severity == SEVERITY_ERROR]
    return "schedule conflict: " + "; ".join(errors)
