"""Single-candidate conflict evaluation.

``evaluate_candidate`` is pure: it runs the overlap, availability and
weekly-hours rules over data the caller already loaded, in that order, and
never short-circuits. ``check_schedule_conflicts`` loads that data through a
``ScheduleStore`` and delegates.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from .constraints import availability_conflict, overlap_conflicts, weekly_hours_conflict
from .io.store import ScheduleStore
from .models import Candidate, ConflictDetail, ConflictResult, ScheduleEntry, WorkerAvailability
from .time_utils import day_of_week, parse_date, time_to_minutes, week_bounds

logger = logging.getLogger(__name__)


def evaluate_candidate(
    candidate: Candidate,
    *,
    same_day_entries: Iterable[ScheduleEntry],
    availability: WorkerAvailability | None,
    max_hours_per_week: float | None,
    week_entries: Iterable[ScheduleEntry] = (),
    locale: str | None = None,
) -> ConflictResult:
    start, end = candidate.start_time, candidate.end_time
    conflicts: list[ConflictDetail] = []

    conflicts.extend(overlap_conflicts(start, end, same_day_entries, locale=locale))

    detail = availability_conflict(
        start, end, day_of_week(candidate.date), availability, locale=locale
    )
    if detail is not None:
        conflicts.append(detail)

    detail = weekly_hours_conflict(start, end, week_entries, max_hours_per_week, locale=locale)
    if detail is not None:
        conflicts.append(detail)

    return ConflictResult(conflicts=conflicts)


def check_schedule_conflicts(
    store: ScheduleStore,
    worker_id: str,
    day: date | str,
    start_time: str,
    end_time: str,
    exclude_entry_id: str | None = None,
    *,
    locale: str | None = None,
) -> ConflictResult:
    """Evaluate a proposed window for ``worker_id`` against the store's current data.

    Pass ``exclude_entry_id`` when validating an update so the entry being
    edited is not compared with itself. Malformed times or dates raise
    ``InvalidInputError`` before any store read.
    """
    time_to_minutes(start_time)
    time_to_minutes(end_time)
    candidate = Candidate(
        worker_id=str(worker_id),
        date=parse_date(day),
        start_time=start_time,
        end_time=end_time,
    )

    same_day = store.find_entries_for_worker_on_date(
        candidate.worker_id, candidate.date, exclude_entry_id
    )
    availability = store.find_availability(candidate.worker_id, day_of_week(candidate.date))
    cap = store.find_worker_cap(candidate.worker_id)
    week_entries: list[ScheduleEntry] = []
    if cap is not None:
        start_of_week, end_of_week = week_bounds(candidate.date)
        week_entries = store.find_entries_for_worker_in_range(
            candidate.worker_id, start_of_week, end_of_week, exclude_entry_id
        )

    result = evaluate_candidate(
        candidate,
        same_day_entries=same_day,
        availability=availability,
        max_hours_per_week=cap,
        week_entries=week_entries,
        locale=locale,
    )
    logger.debug(
        "Evaluated worker=%s date=%s %s-%s: %d finding(s), conflict=%s warning=%s",
        candidate.worker_id, candidate.date, start_time, end_time,
        len(result.conflicts), result.has_conflict, result.has_warning,
    )
    return result
