from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from conflict_core.io.schemas import to_bool


@dataclass(frozen=True)
class RuntimeConfig:
    db_path: Path
    report_root: Path
    locale: str
    batch_cross_check: bool
    log_level: str


def load_env(dotenv_path: str | Path | None = None) -> None:
    path = Path(dotenv_path) if dotenv_path else None
    if path and path.exists():
        load_dotenv(path)
        return
    load_dotenv()


def runtime_config() -> RuntimeConfig:
    db_path = Path(os.getenv("CREWPLAN_DB_PATH", "./crewplan.db")).expanduser().resolve()
    report_root = Path(os.getenv("CREWPLAN_REPORT_DIR", "./reports")).expanduser().resolve()
    locale = os.getenv("CREWPLAN_LOCALE", "en").strip().lower() or "en"
    batch_cross_check = to_bool(os.getenv("CREWPLAN_BATCH_CROSS_CHECK", "false"))
    log_level = os.getenv("CREWPLAN_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return RuntimeConfig(
        db_path=db_path,
        report_root=report_root,
        locale=locale,
        batch_cross_check=batch_cross_check,
        log_level=log_level,
    )
