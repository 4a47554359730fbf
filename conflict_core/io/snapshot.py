"""In-memory ScheduleStore and batch prefetching.

``prefetch_snapshot`` reads everything a batch of candidates needs with a
handful of queries per distinct worker, so the bulk evaluator does not
issue one round of store reads per candidate.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime

from conflict_core.models import Candidate, ScheduleEntry, Worker, WorkerAvailability
from conflict_core.time_utils import day_of_week, week_bounds

from .store import ScheduleStore

logger = logging.getLogger(__name__)


class InMemoryScheduleStore:
    """ScheduleStore over plain lists; entries keep the order they were added in."""

    def __init__(
        self,
        entries: Iterable[ScheduleEntry] = (),
        availability: Iterable[WorkerAvailability] = (),
        workers: Iterable[Worker] = (),
    ):
        self.entries: list[ScheduleEntry] = list(entries)
        self.availability: dict[tuple[str, int], WorkerAvailability] = {
            (a.worker_id, a.day_of_week): a for a in availability
        }
        self.caps: dict[str, float] = {w.id: float(w.max_hours_per_week) for w in workers}

    def add_entry(self, entry: ScheduleEntry) -> None:
        self.entries.append(entry)

    def find_entries_for_worker_on_date(
        self, worker_id: str, day: date, exclude_id: str | None = None
    ) -> list[ScheduleEntry]:
        return [
            e for e in self.entries
            if e.worker_id == worker_id and e.date == day and (not exclude_id or e.id != exclude_id)
        ]

    def find_availability(self, worker_id: str, day_of_week: int) -> WorkerAvailability | None:
        return self.availability.get((worker_id, day_of_week))

    def find_worker_cap(self, worker_id: str) -> float | None:
        return self.caps.get(worker_id)

    def find_entries_for_worker_in_range(
        self,
        worker_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> list[ScheduleEntry]:
        lo = start.date()
        hi = end.date()
        return [
            e for e in self.entries
            if e.worker_id == worker_id and lo <= e.date <= hi and (not exclude_id or e.id != exclude_id)
        ]


def prefetch_snapshot(store: ScheduleStore, candidates: Sequence[Candidate]) -> InMemoryScheduleStore:
    """Load caps, needed availability rows and entries for every worker in ``candidates``."""
    by_worker: dict[str, list[Candidate]] = {}
    for c in candidates:
        by_worker.setdefault(c.worker_id, []).append(c)

    snapshot = InMemoryScheduleStore()
    for worker_id, items in by_worker.items():
        cap = store.find_worker_cap(worker_id)
        if cap is not None:
            snapshot.caps[worker_id] = cap

        for weekday in sorted({day_of_week(c.date) for c in items}):
            row = store.find_availability(worker_id, weekday)
            if row is not None:
                snapshot.availability[(worker_id, weekday)] = row

        range_start = week_bounds(min(c.date for c in items))[0]
        range_end = week_bounds(max(c.date for c in items))[1]
        for entry in store.find_entries_for_worker_in_range(worker_id, range_start, range_end):
            snapshot.add_entry(entry)

    logger.debug(
        "Prefetched %d entries for %d workers (%d candidates)",
        len(snapshot.entries), len(by_worker), len(candidates),
    )
    return snapshot
