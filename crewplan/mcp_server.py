"""crewplan MCP server.

Exposes tools for schedule conflict checks (single and bulk), CSV candidate
import, schedule-entry writes guarded by the conflict engine, worker
availability management, route ordering, and XLSX conflict reports.
"""
from __future__ import annotations

import argparse
import logging
import os
from typing import Any

from mcp.server.fastmcp import FastMCP

from conflict_core.io import connect, load_candidates, render_conflict_report
from conflict_core.time_utils import parse_date

from .config import RuntimeConfig, load_env, runtime_config
from .service import ScheduleService
from .storage import ScheduleRepository
from .utils import now_utc_iso, report_name

mcp = FastMCP(
    "crewplan",
    host=os.getenv("HOST", "127.0.0.1"),
    port=int(os.getenv("PORT", "8000")),
    instructions=(
        "Workforce scheduling assistant for field service jobs. "
        "Checks proposed worker assignments for time overlaps, availability "
        "violations and weekly hour caps, and creates, updates or deletes "
        "schedule entries only when no blocking conflict is found. "
        "Warnings never block a write."
    ),
)

_ENV_FILE: str | None = None
_SERVICE: ScheduleService | None = None


def _config() -> RuntimeConfig:
    load_env(_ENV_FILE or os.getenv("CREWPLAN_ENV_FILE"))
    return runtime_config()


def _service() -> ScheduleService:
    global _SERVICE
    if _SERVICE is None:
        cfg = _config()
        # FastMCP may run sync tools on worker threads.
        conn = connect(cfg.db_path, check_same_thread=False)
        _SERVICE = ScheduleService(
            ScheduleRepository(conn),
            locale=cfg.locale,
            batch_cross_check=cfg.batch_cross_check,
        )
    return _SERVICE


# -- Conflict checks --

@mcp.tool()
def check_conflicts(
    worker_id: str,
    date: str,
    start_time: str,
    end_time: str,
    exclude_entry_id: str | None = None,
) -> dict[str, Any]:
    """Check a proposed assignment for overlaps, availability and weekly hours.

    Pass exclude_entry_id when validating an edit of an existing entry.
    Returns {hasConflict, hasWarning, conflicts}.
    """
    result = _service().check(worker_id, date, start_time, end_time, exclude_entry_id)
    return result.to_dict()


@mcp.tool()
def check_bulk_conflicts(
    candidates: list[dict[str, Any]],
    include_batch_peers: bool | None = None,
) -> list[dict[str, Any]]:
    """Check many proposed assignments; returns only flagged ones as {index, result}.

    Each candidate needs workerId, date, startTime, endTime. Set
    include_batch_peers to also compare candidates with earlier ones in the
    same batch (defaults to the server configuration).
    """
    findings = _service().check_bulk(candidates, include_batch_peers=include_batch_peers)
    return [f.to_dict() for f in findings]


@mcp.tool()
def import_candidates_csv(path: str, include_batch_peers: bool | None = None) -> dict[str, Any]:
    """Read a candidates CSV (worker_id,date,start_time,end_time) and bulk-check it."""
    candidates = load_candidates(path)
    findings = _service().check_bulk(candidates, include_batch_peers=include_batch_peers)
    return {
        "candidates": len(candidates),
        "flagged": [f.to_dict() for f in findings],
    }


@mcp.tool()
def export_conflict_report(path: str, include_batch_peers: bool | None = None) -> dict[str, Any]:
    """Bulk-check a candidates CSV and write the findings to an XLSX report.

    Returns the report path and counts.
    """
    candidates = load_candidates(path)
    findings = _service().check_bulk(candidates, include_batch_peers=include_batch_peers)
    target = _config().report_root / f"{report_name('conflicts')}.xlsx"
    render_conflict_report(findings, candidates, target)
    return {
        "path": str(target),
        "generated_at": now_utc_iso(),
        "candidates": len(candidates),
        "flagged": len(findings),
        "blocked": sum(1 for f in findings if f.result.has_conflict),
    }


# -- Schedule entries --

@mcp.tool()
def create_schedule_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Create a schedule entry unless it conflicts.

    Fields: workerId, date, startTime, endTime, and optional serviceJobId,
    locationId, routeOrder, notes. Warnings are returned with the entry.
    """
    return _service().create_entry(entry).to_dict()


@mcp.tool()
def bulk_create_schedule_entries(entries: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Create several entries atomically; any blocking conflict rejects the whole batch."""
    return [outcome.to_dict() for outcome in _service().bulk_create(entries)]


@mcp.tool()
def update_schedule_entry(entry_id: str, changes: dict[str, Any]) -> dict[str, Any]:
    """Apply partial changes to an entry, re-checking it against the other entries."""
    return _service().update_entry(entry_id, changes).to_dict()


@mcp.tool()
def delete_schedule_entry(entry_id: str) -> dict[str, Any]:
    """Delete an entry; its service job reverts to UNSCHEDULED when no entries remain."""
    return _service().delete_entry(entry_id).to_dict()


@mcp.tool()
def list_schedule_entries(
    worker_id: str | None = None,
    date: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
) -> list[dict[str, Any]]:
    """List entries filtered by worker and by a single date or a date range."""
    entries = _service().repo.list_entries(
        worker_id=worker_id,
        day=parse_date(date) if date else None,
        start=parse_date(start_date) if start_date else None,
        end=parse_date(end_date) if end_date else None,
    )
    return [e.to_dict() for e in entries]


@mcp.tool()
def worker_route(worker_id: str, date: str) -> dict[str, Any]:
    """A worker's entries for one day in route order."""
    day = parse_date(date)
    entries = _service().repo.route_entries(worker_id, day)
    return {"workerId": worker_id, "date": day.isoformat(), "entries": [e.to_dict() for e in entries]}


@mcp.tool()
def reorder_route(worker_id: str, date: str, entry_ids: list[str]) -> list[dict[str, Any]]:
    """Set route order for a worker's day to the order of entry_ids."""
    return [e.to_dict() for e in _service().reorder_route(worker_id, date, entry_ids)]


# -- Workers --

@mcp.tool()
def register_worker(
    worker_id: str,
    max_hours_per_week: float = 40.0,
    employee_code: str | None = None,
    is_active: bool = True,
) -> dict[str, Any]:
    """Create or update a worker and its weekly hour cap."""
    worker = _service().register_worker(
        worker_id,
        max_hours_per_week=max_hours_per_week,
        employee_code=employee_code,
        is_active=is_active,
    )
    return worker.to_dict()


@mcp.tool()
def available_workers(date: str) -> list[dict[str, Any]]:
    """Active workers with availability on the weekday of date.

    Each item carries the worker, that day's availability window and the
    entries already scheduled for the date.
    """
    return [w.to_dict() for w in _service().available_workers(date)]


@mcp.tool()
def set_worker_availability(worker_id: str, availability: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Replace a worker's weekly availability.

    Each item: dayOfWeek (0=Sunday..6=Saturday), startTime, endTime.
    """
    return [a.to_dict() for a in _service().set_availability(worker_id, availability)]


# -- Server entrypoints --

async def _run_http() -> None:
    import uvicorn
    from starlette.responses import PlainTextResponse
    from starlette.routing import Route

    starlette_app = mcp.streamable_http_app()
    starlette_app.routes.append(
        Route("/health", lambda r: PlainTextResponse("ok"))
    )

    config = uvicorn.Config(
        starlette_app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
        log_level="info",
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    global _ENV_FILE

    parser = argparse.ArgumentParser(description="Run crewplan MCP server")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument(
        "--transport",
        default=None,
        choices=["stdio", "sse", "streamable-http"],
        help="MCP transport (default: streamable-http when PORT is set, else stdio)",
    )
    args = parser.parse_args()
    _ENV_FILE = args.env_file

    logging.basicConfig(
        level=_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    transport = args.transport
    if transport is None:
        transport = "streamable-http" if os.getenv("PORT") else "stdio"

    if transport == "streamable-http":
        import anyio
        anyio.run(_run_http)
    else:
        mcp.run(transport=transport)


if __name__ == "__main__":
    main()
