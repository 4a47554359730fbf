"""Render bulk conflict findings to an XLSX workbook."""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from conflict_core.models import SEVERITY_ERROR, BatchFinding, Candidate

from .schemas import FINDINGS_COLS, SUMMARY_COLS, fmt_bool


def _get_openpyxl():
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Font, PatternFill
        return Workbook, Font, PatternFill
    except ImportError as exc:
        raise ImportError("openpyxl is required for XLSX export: pip install openpyxl") from exc


def _style_headers(worksheets):
    """Apply bold + blue fill to header row of each worksheet."""
    _, Font, PatternFill = _get_openpyxl()
    header_font = Font(bold=True)
    header_fill = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
    for ws in worksheets:
        for cell in ws[1]:
            cell.font = header_font
            cell.fill = header_fill


def _finding_rows(finding: BatchFinding, candidate: Candidate) -> list[dict[str, Any]]:
    rows = []
    for c in finding.result.conflicts:
        rows.append({
            "index": finding.index,
            "worker_id": candidate.worker_id,
            "date": candidate.date.isoformat(),
            "start_time": candidate.start_time,
            "end_time": candidate.end_time,
            "type": c.type,
            "severity": c.severity,
            "message": c.message,
            "blocking": fmt_bool(c.severity == SEVERITY_ERROR),
            "details": json.dumps(c.details, sort_keys=True) if c.details else "",
        })
    return rows


def render_conflict_report(
    findings: Sequence[BatchFinding],
    candidates: Sequence[Candidate],
    path: Path,
) -> Path:
    """Write Findings and Summary sheets for a bulk check.

    ``candidates`` is the full input sequence the findings' indices refer to.
    Returns the path to the written file.
    """
    Workbook, _, _ = _get_openpyxl()

    wb = Workbook()

    ws_findings = wb.active
    ws_findings.title = "Findings"
    ws_findings.append(FINDINGS_COLS)
    type_counts: Counter[str] = Counter()
    for finding in findings:
        for row in _finding_rows(finding, candidates[finding.index]):
            ws_findings.append([row.get(c, "") for c in FINDINGS_COLS])
            type_counts[row["type"]] += 1

    ws_summary = wb.create_sheet("Summary")
    ws_summary.append(SUMMARY_COLS)
    summary = [
        ("candidates", len(candidates)),
        ("flagged", len(findings)),
        ("blocked", sum(1 for f in findings if f.result.has_conflict)),
        ("warning_only", sum(1 for f in findings if not f.result.has_conflict)),
        *sorted(type_counts.items()),
    ]
    for metric, value in summary:
        ws_summary.append([metric, value])

    _style_headers([ws_findings, ws_summary])

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path
