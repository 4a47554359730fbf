"""Shared time and week utilities used by the conflict rules."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

_HHMM_RE = re.compile(r"([0-1]?[0-9]|2[0-3]):([0-5][0-9])")


class InvalidInputError(ValueError):
    """A time or date value handed to the engine is malformed."""


def is_valid_hhmm(value: str | None) -> bool:
    return bool(value) and _HHMM_RE.fullmatch(str(value)) is not None


def time_to_minutes(value: str) -> int:
    """Parse HH:MM into minutes after midnight."""
    match = _HHMM_RE.fullmatch(str(value or ""))
    if match is None:
        raise InvalidInputError(f"invalid HH:MM time: {value!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def duration_hours(start: str, end: str) -> float:
    """Duration of a same-day window in decimal hours.

    Negative when ``end`` precedes ``start``; no overnight wrap.
    """
    return (time_to_minutes(end) - time_to_minutes(start)) / 60.0


def windows_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Return True if two half-open HH:MM windows [start, end) overlap."""
    a0 = time_to_minutes(start_a)
    a1 = time_to_minutes(end_a)
    b0 = time_to_minutes(start_b)
    b1 = time_to_minutes(end_b)
    return a0 < b1 and a1 > b0


def parse_date(value: date | datetime | str) -> date:
    """Coerce a calendar date from a date, datetime or ISO string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    # Only a trailing time component may follow the date.
    if len(text) > 10 and text[10] not in ("T", " "):
        raise InvalidInputError(f"invalid calendar date: {value!r}")
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise InvalidInputError(f"invalid calendar date: {value!r}") from exc


def day_of_week(day: date) -> int:
    """Weekday index with Sunday=0 through Saturday=6."""
    return (day.weekday() + 1) % 7


def week_bounds(day: date) -> tuple[datetime, datetime]:
    """Monday 00:00:00.000 and Sunday 23:59:59.999 of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    sunday = monday + timedelta(days=6)
    start_of_week = datetime.combine(monday, time.min)
    end_of_week = datetime.combine(sunday, time(23, 59, 59, 999000))
    return start_of_week, end_of_week
