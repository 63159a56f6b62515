"""
Environment-driven settings for dockerdb.

Everything is read from ``DOCKERDB_*`` variables at call time so tests (and
CI jobs) can steer behaviour with plain environment overrides. Malformed
numbers never raise; the default is used and a warning is logged.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())

DEFAULT_HOST = "127.0.0.1"
DEFAULT_MONGO_TIMEOUT = 10.0
DEFAULT_MYSQL_TIMEOUT = 10.0
DEFAULT_POSTGRES_TIMEOUT = 15.0
DEFAULT_SQL_MAX_TRY = 50
DEFAULT_DBNAME = "dockerdb_test"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_str(name: str) -> Optional[str]:
    raw = os.getenv(name, "").strip()
    return raw or None


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        LOG.warning("config.invalid_float name=%s value=%r default=%s", name, raw, default)
        return default


def _env_int(name: str, default: int) -> int:
    raw = _env_str(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        LOG.warning("config.invalid_int name=%s value=%r default=%s", name, raw, default)
        return default


def env_flag(name: str) -> bool:
    """Return True when *name* holds a truthy value (``1``, ``true``, ``yes``, ``on``)."""
    return (os.getenv(name, "").strip().lower()) in _TRUTHY


@dataclass(frozen=True)
class Settings:
    docker_binary: Optional[str] = None
    host: str = DEFAULT_HOST
    mongo_timeout: float = DEFAULT_MONGO_TIMEOUT
    mysql_timeout: float = DEFAULT_MYSQL_TIMEOUT
    postgres_timeout: float = DEFAULT_POSTGRES_TIMEOUT
    sql_max_try: int = DEFAULT_SQL_MAX_TRY
    skip: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            docker_binary=_env_str("DOCKERDB_DOCKER_BINARY"),
            host=_env_str("DOCKERDB_HOST") or DEFAULT_HOST,
            mongo_timeout=_env_float("DOCKERDB_MONGO_TIMEOUT", DEFAULT_MONGO_TIMEOUT),
            mysql_timeout=_env_float("DOCKERDB_MYSQL_TIMEOUT", DEFAULT_MYSQL_TIMEOUT),
            postgres_timeout=_env_float("DOCKERDB_POSTGRES_TIMEOUT", DEFAULT_POSTGRES_TIMEOUT),
            sql_max_try=_env_int("DOCKERDB_SQL_MAX_TRY", DEFAULT_SQL_MAX_TRY),
            skip=env_flag("DOCKERDB_SKIP"),
        )


def get_settings() -> Settings:
    """Snapshot the current environment."""
    return Settings.from_env()


__all__ = ["Settings", "env_flag", "get_settings"]
