from __future__ import annotations

import json
import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any, Dict

from .config import get_settings
from .runtime.docker_probe import probe


def _safe_version(dist: str) -> str | None:
    try:
        return version(dist)
    except PackageNotFoundError:
        return None


def collect_env() -> Dict[str, Any]:
    status = probe()
    settings = get_settings()
    return {
        "os": {
            "platform": platform.system(),
            "release": platform.release(),
            "machine": platform.machine(),
        },
        "python": {
            "version": platform.python_version(),
            "implementation": platform.python_implementation(),
            "executable": os.path.realpath(sys.executable),
        },
        "docker": {
            "ok": status.ok,
            "path": status.path,
            "source": status.source,
            "server_version": status.version,
            "reason": status.reason,
        },
        "settings": {
            "host": settings.host,
            "mongo_timeout": settings.mongo_timeout,
            "mysql_timeout": settings.mysql_timeout,
            "postgres_timeout": settings.postgres_timeout,
            "sql_max_try": settings.sql_max_try,
            "skip": settings.skip,
        },
        "packages": {
            name: _safe_version(name)
            for name in ("dockerdb", "SQLAlchemy", "psycopg2-binary", "tenacity", "typer")
        },
    }


def write_snapshot(run_dir: Path, snapshot: Dict[str, Any] | None = None) -> Path:
    snap = snapshot or collect_env()
    target = run_dir / "env.json"
    target.write_text(json.dumps(snap, indent=2, ensure_ascii=False), encoding="utf-8")
    return target
