"""Typed entities passed between the store, the rules and the callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from .time_utils import InvalidInputError, duration_hours, parse_date, time_to_minutes

TIME_OVERLAP = "TIME_OVERLAP"
UNAVAILABLE = "UNAVAILABLE"
MAX_HOURS_EXCEEDED = "MAX_HOURS_EXCEEDED"

CONFLICT_TYPES = (TIME_OVERLAP, UNAVAILABLE, MAX_HOURS_EXCEEDED)

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass(frozen=True)
class ScheduleEntry:
    id: str
    worker_id: str
    date: date
    start_time: str
    end_time: str
    service_job_id: str | None = None
    location_id: str | None = None
    route_order: int | None = None
    notes: str | None = None

    @property
    def hours(self) -> float:
        return duration_hours(self.start_time, self.end_time)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "workerId": self.worker_id,
            "serviceJobId": self.service_job_id,
            "locationId": self.location_id,
            "date": self.date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "routeOrder": self.route_order,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class WorkerAvailability:
    worker_id: str
    day_of_week: int
    start_time: str
    end_time: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "workerId": self.worker_id,
            "dayOfWeek": self.day_of_week,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }


@dataclass(frozen=True)
class Worker:
    id: str
    max_hours_per_week: float = 40.0
    employee_code: str | None = None
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "maxHoursPerWeek": self.max_hours_per_week,
            "employeeCode": self.employee_code,
            "isActive": self.is_active,
        }


def _pick(data: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) not in (None, ""):
            return data[key]
    return None


@dataclass(frozen=True)
class Candidate:
    """A proposed, not yet persisted assignment."""

    worker_id: str
    date: date
    start_time: str
    end_time: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Candidate:
        """Build a candidate from camelCase or snake_case keys, validating formats."""
        worker_id = _pick(data, "workerId", "worker_id")
        if worker_id is None:
            raise InvalidInputError("candidate is missing a worker id")
        start = str(_pick(data, "startTime", "start_time") or "")
        end = str(_pick(data, "endTime", "end_time") or "")
        time_to_minutes(start)
        time_to_minutes(end)
        return cls(
            worker_id=str(worker_id),
            date=parse_date(_pick(data, "date")),
            start_time=start,
            end_time=end,
        )

    @property
    def hours(self) -> float:
        return duration_hours(self.start_time, self.end_time)


@dataclass
class ConflictDetail:
    type: str
    message: str
    severity: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type,
            "message": self.message,
            "severity": self.severity,
        }
        if self.details is not None:
            out["details"] = dict(self.details)
        return out


@dataclass
class ConflictResult:
    conflicts: list[ConflictDetail] = field(default_factory=list)

    @property
    def has_conflict(self) -> bool:
        return any(c.severity == SEVERITY_ERROR for c in self.conflicts)

    @property
    def has_warning(self) -> bool:
        return any(c.severity == SEVERITY_WARNING for c in self.conflicts)

    @property
    def flagged(self) -> bool:
        return self.has_conflict or self.has_warning

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasConflict": self.has_conflict,
            "hasWarning": self.has_warning,
            "conflicts": [c.to_dict() for c in self.conflicts],
        }


@dataclass
class BatchFinding:
    index: int
    result: ConflictResult

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "result": self.result.to_dict()}
