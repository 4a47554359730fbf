"""Bulk conflict evaluation for imports and multi-entry creation."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from .evaluator import check_schedule_conflicts
from .io.snapshot import prefetch_snapshot
from .io.store import ScheduleStore
from .models import BatchFinding, Candidate, ScheduleEntry

logger = logging.getLogger(__name__)


def _as_candidate(item: Candidate | dict[str, Any]) -> Candidate:
    if isinstance(item, Candidate):
        return item
    return Candidate.from_dict(item)


def check_bulk_schedule_conflicts(
    store: ScheduleStore,
    candidates: Iterable[Candidate | dict[str, Any]],
    *,
    include_batch_peers: bool = False,
    locale: str | None = None,
) -> list[BatchFinding]:
    """Evaluate candidates in input order and return only the flagged ones.

    Every finding carries the candidate's zero-based input position, so the
    output index sequence is strictly increasing. Candidates are compared
    against persisted data only, unless ``include_batch_peers`` is set, in
    which case each evaluated candidate also counts as an existing entry
    for the candidates after it.
    """
    items = [_as_candidate(c) for c in candidates]
    snapshot = prefetch_snapshot(store, items)

    findings: list[BatchFinding] = []
    for index, candidate in enumerate(items):
        result = check_schedule_conflicts(
            snapshot,
            candidate.worker_id,
            candidate.date,
            candidate.start_time,
            candidate.end_time,
            locale=locale,
        )
        if result.flagged:
            findings.append(BatchFinding(index=index, result=result))
        if include_batch_peers:
            snapshot.add_entry(
                ScheduleEntry(
                    id=f"batch:{index}",
                    worker_id=candidate.worker_id,
                    date=candidate.date,
                    start_time=candidate.start_time,
                    end_time=candidate.end_time,
                )
            )

    logger.info("Bulk check: %d candidate(s), %d flagged", len(items), len(findings))
    return findings
