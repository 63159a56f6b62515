"""
Throwaway database containers for integration tests.

Exports:
    __version__                : best-effort package version (falls back to "0+unknown")
    start_*_container          : start MongoDB / MySQL / PostgreSQL and wait until reachable
    ContainerID                : handle returned by ``docker run`` (kill / remove / lookup)
    await_reachable            : TCP reachability poll
    sql_exec_retry             : exponential-backoff retry for one SQL statement

The pytest fixtures live in :mod:`dockerdb.pytest_plugin` and are registered
automatically through the ``pytest11`` entry point.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from .container import ContainerID, StartedContainer, kill_container, run, setup_container
from .databases import start_mongo_container, start_mysql_container, start_postgresql_container
from .errors import (
    ContainerSetupError,
    DockerCommandError,
    DockerError,
    DockerNotFoundError,
    SQLRetryError,
    UnreachableError,
)
from .reachability import await_reachable
from .sql_retry import sql_exec_retry

__all__ = [
    "ContainerID",
    "ContainerSetupError",
    "DockerCommandError",
    "DockerError",
    "DockerNotFoundError",
    "SQLRetryError",
    "StartedContainer",
    "UnreachableError",
    "__version__",
    "await_reachable",
    "kill_container",
    "run",
    "setup_container",
    "sql_exec_retry",
    "start_mongo_container",
    "start_mysql_container",
    "start_postgresql_container",
]


def _detect_version() -> str:
    try:
        return _pkg_version("dockerdb")
    except PackageNotFoundError:
        return "0+unknown"


__version__ = _detect_version()
