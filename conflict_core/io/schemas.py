"""Column constants and type coercion for CSV import and report export."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Input CSV column names
# ---------------------------------------------------------------------------

CANDIDATES_COLS = [
    "worker_id",
    "date",
    "start_time",
    "end_time",
]

# ---------------------------------------------------------------------------
# Report column names
# ---------------------------------------------------------------------------

FINDINGS_COLS = [
    "index",
    "worker_id",
    "date",
    "start_time",
    "end_time",
    "type",
    "severity",
    "message",
    "blocking",
    "details",
]

SUMMARY_COLS = [
    "metric",
    "value",
]


# ---------------------------------------------------------------------------
# Type coercion helpers
# ---------------------------------------------------------------------------


def to_bool(value: str | None) -> bool:
    """Coerce a string to bool. TRUE/true/1/yes -> True, else False."""
    if value is None:
        return False
    return str(value).strip().upper() in ("TRUE", "1", "YES")


def fmt_bool(value: bool) -> str:
    """Format a bool for report output."""
    return "TRUE" if value else "FALSE"
