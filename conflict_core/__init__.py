"""Schedule conflict detection for worker assignments."""

from .bulk import check_bulk_schedule_conflicts
from .evaluator import check_schedule_conflicts, evaluate_candidate
from .models import (
    MAX_HOURS_EXCEEDED,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    TIME_OVERLAP,
    UNAVAILABLE,
    BatchFinding,
    Candidate,
    ConflictDetail,
    ConflictResult,
    ScheduleEntry,
    Worker,
    WorkerAvailability,
)
from .time_utils import (
    InvalidInputError,
    day_of_week,
    duration_hours,
    time_to_minutes,
    week_bounds,
    windows_overlap,
)

__all__ = [
    "BatchFinding",
    "Candidate",
    "ConflictDetail",
    "ConflictResult",
    "InvalidInputError",
    "MAX_HOURS_EXCEEDED",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "ScheduleEntry",
    "TIME_OVERLAP",
    "UNAVAILABLE",
    "Worker",
    "WorkerAvailability",
    "check_bulk_schedule_conflicts",
    "check_schedule_conflicts",
    "day_of_week",
    "duration_hours",
    "evaluate_candidate",
    "time_to_minutes",
    "week_bounds",
    "windows_overlap",
]
