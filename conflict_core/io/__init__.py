"""Input/output layer for the conflict engine.

Public API:
    ScheduleStore               -- query contract the evaluator reads through
    SqliteScheduleStore         -- ScheduleStore over the sqlite3 schema
    InMemoryScheduleStore       -- ScheduleStore over plain lists
    prefetch_snapshot(...)      -- load a batch's data into an in-memory store
    load_candidates(path)       -- read candidates.csv -> list[Candidate]
    render_conflict_report(...) -- write findings to an XLSX workbook
"""

from .reader import load_candidates
from .snapshot import InMemoryScheduleStore, prefetch_snapshot
from .store import ScheduleStore, SqliteScheduleStore, connect, init_schema

__all__ = [
    "InMemoryScheduleStore",
    "ScheduleStore",
    "SqliteScheduleStore",
    "connect",
    "init_schema",
    "load_candidates",
    "prefetch_snapshot",
    "render_conflict_report",
]


# Lazy import for the optional openpyxl dependency.
def render_conflict_report(*args, **kwargs):
    from .xlsx import render_conflict_report as _fn
    return _fn(*args, **kwargs)
