"""Logging helpers for dockerdb.

* ``setup_logging`` attaches a single file handler to the root logger.
* ``current_log_dir`` / ``get_log_path`` expose where that file lives.

Library modules never call ``setup_logging`` themselves; they log through
``logging.getLogger(__name__)`` and leave handler wiring to the CLI (or to
whatever test runner imports them).
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from pathlib import Path
from typing import Optional

__all__ = [
    "current_log_dir",
    "get_log_path",
    "setup_logging",
]

_configured = False
_log_dir: Optional[Path] = None
_log_path: Optional[Path] = None


def _platform_data_dir() -> Path:
    """Return a per-user writable application data directory."""
    app = "dockerdb"
    if os.name == "nt":
        base = Path(os.getenv("LOCALAPPDATA") or os.getenv("APPDATA") or (Path.home() / "AppData" / "Local"))
        return base / app
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / app
    xdg_home = os.getenv("XDG_DATA_HOME")
    if xdg_home:
        return Path(xdg_home) / app
    return Path.home() / ".local" / "share" / app


def _default_logs_dir() -> Path:
    return _platform_data_dir() / "logs"


def current_log_dir() -> Optional[Path]:
    """Return the directory that currently holds the log file."""
    return _log_dir


def _resolve_log_path(file_env: str) -> Path:
    override = os.getenv(file_env)
    if override:
        path = Path(override).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        return path
    logs_dir = _default_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir / "dockerdb.log"


def setup_logging(
    *,
    level_env: str = "DOCKERDB_LOG_LEVEL",
    file_env: str = "DOCKERDB_LOG_FILE",
) -> Path:
    """
    Configure the root logger with a single file handler.

    The level comes from ``DOCKERDB_LOG_LEVEL`` (default WARNING) and the file
    from ``DOCKERDB_LOG_FILE`` (default ``<data dir>/logs/dockerdb.log``). The
    function is idempotent: repeated calls return the already configured log
    directory without touching handlers again.
    """
    global _configured, _log_dir, _log_path

    if _configured:
        return _log_dir if _log_dir is not None else _default_logs_dir()

    handler: logging.Handler
    try:
        log_path = _resolve_log_path(file_env)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    except OSError:
        log_path = Path(tempfile.gettempdir()) / "dockerdb.log"
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
    _log_path = log_path
    _log_dir = log_path.parent

    level_name = os.getenv(level_env, "WARNING").upper().strip()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # Third-party chatter stays at WARNING even when ours is turned up.
    for name in ("urllib3", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    _configured = True
    return _log_dir


def get_log_path() -> Optional[Path]:
    """Expose the resolved log file path for modules that need it."""
    return _log_path
