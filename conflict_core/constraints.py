"""Rule checks for a single candidate window.

Each rule is a pure function over data already loaded from the store.
Overlap and violated availability are blocking errors; a missing
availability record and the weekly hour cap are advisory warnings.
"""

from __future__ import annotations

from collections.abc import Iterable

from .messages import day_name, plain_number, render
from .models import (
    MAX_HOURS_EXCEEDED,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    TIME_OVERLAP,
    UNAVAILABLE,
    ConflictDetail,
    ScheduleEntry,
    WorkerAvailability,
)
from .time_utils import duration_hours, time_to_minutes, windows_overlap


# ---- Rule A: time overlap ---------------------------------------------------

def overlap_conflicts(
    start_time: str,
    end_time: str,
    same_day_entries: Iterable[ScheduleEntry],
    *,
    locale: str | None = None,
) -> list[ConflictDetail]:
    """One TIME_OVERLAP error per existing entry overlapping [start, end)."""
    found: list[ConflictDetail] = []
    for entry in same_day_entries:
        if not windows_overlap(start_time, end_time, entry.start_time, entry.end_time):
            continue
        found.append(
            ConflictDetail(
                type=TIME_OVERLAP,
                message=render("overlap", locale, start=entry.start_time, end=entry.end_time),
                severity=SEVERITY_ERROR,
                details={
                    "existingEntryId": entry.id,
                    "existingStart": entry.start_time,
                    "existingEnd": entry.end_time,
                },
            )
        )
    return found


# ---- Rule B: declared availability ------------------------------------------

def availability_conflict(
    start_time: str,
    end_time: str,
    weekday: int,
    availability: WorkerAvailability | None,
    *,
    locale: str | None = None,
) -> ConflictDetail | None:
    if availability is None:
        return ConflictDetail(
            type=UNAVAILABLE,
            message=render("no_availability", locale, day=day_name(weekday, locale)),
            severity=SEVERITY_WARNING,
            details={"dayOfWeek": weekday},
        )

    new_start = time_to_minutes(start_time)
    new_end = time_to_minutes(end_time)
    avail_start = time_to_minutes(availability.start_time)
    avail_end = time_to_minutes(availability.end_time)
    if new_start >= avail_start and new_end <= avail_end:
        return None

    return ConflictDetail(
        type=UNAVAILABLE,
        message=render(
            "outside_availability", locale,
            start=availability.start_time, end=availability.end_time,
        ),
        severity=SEVERITY_ERROR,
        details={
            "availableStart": availability.start_time,
            "availableEnd": availability.end_time,
        },
    )


# ---- Rule C: weekly hour cap -------------------------------------------------

def week_hours(entries: Iterable[ScheduleEntry]) -> float:
    return sum(entry.hours for entry in entries)


def weekly_hours_conflict(
    start_time: str,
    end_time: str,
    week_entries: Iterable[ScheduleEntry],
    max_hours_per_week: float | None,
    *,
    locale: str | None = None,
) -> ConflictDetail | None:
    if max_hours_per_week is None:
        return None

    current = week_hours(week_entries)
    new_hours = duration_hours(start_time, end_time)
    projected = current + new_hours
    if projected <= max_hours_per_week:
        return None

    return ConflictDetail(
        type=MAX_HOURS_EXCEEDED,
        message=render("max_hours", locale, projected=projected, cap=plain_number(max_hours_per_week)),
        severity=SEVERITY_WARNING,
        details={
            "currentWeekHours": current,
            "maxHoursPerWeek": max_hours_per_week,
            "newEntryHours": new_hours,
        },
    )
