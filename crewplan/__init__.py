"""Scheduling service and MCP tools around the conflict engine."""

from .service import AvailableWorker, ScheduleConflictError, ScheduleService, WriteOutcome
from .storage import ScheduleRepository

__all__ = [
    "AvailableWorker",
    "ScheduleConflictError",
    "ScheduleRepository",
    "ScheduleService",
    "WriteOutcome",
]
