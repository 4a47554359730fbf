"""Read a CSV file of proposed assignments into Candidate objects."""

from __future__ import annotations

import csv
from pathlib import Path

from conflict_core.models import Candidate
from conflict_core.time_utils import InvalidInputError

from .schemas import CANDIDATES_COLS


def load_candidates(path: Path) -> list[Candidate]:
    """Read candidates.csv -> list of Candidate, in file order.

    Raises FileNotFoundError if the file is missing, ValueError if a
    required column is absent, and InvalidInputError naming the offending
    row (1-based, header excluded) for malformed values.
    """
    rows = _read_csv(Path(path))
    candidates: list[Candidate] = []
    for number, row in enumerate(rows, 1):
        try:
            candidates.append(Candidate.from_dict(row))
        except InvalidInputError as exc:
            raise InvalidInputError(f"{path}: row {number}: {exc}") from exc
    return candidates


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_csv(path: Path) -> list[dict[str, str]]:
    """Read a CSV file into a list of dicts via csv.DictReader."""
    if not path.exists():
        raise FileNotFoundError(f"Required file not found: {path}")
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        missing = [c for c in CANDIDATES_COLS if c not in (reader.fieldnames or [])]
        if missing:
            raise ValueError(f"{path}: missing column(s): {', '.join(missing)}")
        return [{k: (v or "").strip() for k, v in row.items() if k} for row in reader]
