"""
pytest fixtures that hand tests a running database container.

The plugin is registered through the ``pytest11`` entry point, so installing
dockerdb is enough::

    def test_roundtrip(postgres_container):
        container, ip = postgres_container
        ...

Containers are session-scoped and killed/removed at teardown. Pass
``--dockerdb-skip`` (or set ``DOCKERDB_SKIP=1``) for a quick run that skips
every test needing one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterator

import pytest

from .config import DEFAULT_DBNAME, get_settings
from .container import StartedContainer
from .databases import start_mongo_container, start_mysql_container, start_postgresql_container
from .runtime.docker_probe import have_docker

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser


def pytest_addoption(parser: "Parser") -> None:
    group = parser.getgroup("dockerdb", "throwaway database containers")
    group.addoption(
        "--dockerdb-skip",
        action="store_true",
        default=False,
        help="skip every test that needs a database container",
    )
    group.addoption(
        "--dockerdb-dbname",
        default=None,
        help=f"database created in MySQL/PostgreSQL containers (default: {DEFAULT_DBNAME})",
    )
    parser.addini("dockerdb_dbname", "database created in MySQL/PostgreSQL containers", default=DEFAULT_DBNAME)


def pytest_configure(config: "Config") -> None:
    config.addinivalue_line("markers", "docker: test needs a running docker daemon")


def skip_reason(config: "Config") -> str | None:
    """Why container fixtures must skip under *config*, or None when they may run."""
    if config.getoption("dockerdb_skip", default=False) or get_settings().skip:
        return "skipping in short mode (--dockerdb-skip / DOCKERDB_SKIP)"
    if not have_docker():
        return "'docker' command not found"
    return None


def dbname_for(config: "Config") -> str:
    return config.getoption("dockerdb_dbname", default=None) or config.getini("dockerdb_dbname") or DEFAULT_DBNAME


def provision(config: "Config", start: Callable[[], StartedContainer]) -> Iterator[StartedContainer]:
    """Start a container via *start*, yield it, then kill and remove it."""
    reason = skip_reason(config)
    if reason is not None:
        pytest.skip(reason)
    started = start()
    try:
        yield started
    finally:
        started.container.kill_remove()


@pytest.fixture(scope="session")
def mongo_container(pytestconfig: "Config") -> Iterator[StartedContainer]:
    yield from provision(pytestconfig, start_mongo_container)


@pytest.fixture(scope="session")
def mysql_container(pytestconfig: "Config") -> Iterator[StartedContainer]:
    dbname = dbname_for(pytestconfig)
    yield from provision(pytestconfig, lambda: start_mysql_container(dbname))


@pytest.fixture(scope="session")
def postgres_container(pytestconfig: "Config") -> Iterator[StartedContainer]:
    dbname = dbname_for(pytestconfig)
    yield from provision(pytestconfig, lambda: start_postgresql_container(dbname))
