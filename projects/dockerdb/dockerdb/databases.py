"""
Throwaway database servers for integration tests.

Each ``start_*`` function runs the official image with its port published on
the host, waits until the port accepts connections, and returns a
:class:`~dockerdb.container.StartedContainer`. The caller owns the container
and should ``kill_remove()`` it when done (the pytest fixtures do this).
"""

from __future__ import annotations

import logging
import re
from typing import Final, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine
from sqlalchemy.pool import NullPool

from .config import get_settings
from .container import ContainerID, StartedContainer, run, setup_container
from .errors import ContainerSetupError, DockerError
from .sql_retry import sql_exec_retry

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())

MONGO_IMAGE: Final = "mongo"
MONGO_PORT: Final = 27017

MYSQL_IMAGE: Final = "mysql"
MYSQL_PORT: Final = 3306
MYSQL_USERNAME: Final = "root"
MYSQL_PASSWORD: Final = "root"

POSTGRES_IMAGE: Final = "library/postgres"
POSTGRES_PORT: Final = 5432
POSTGRES_USERNAME: Final = "docker"
POSTGRES_PASSWORD: Final = "docker"

_DBNAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


def _check_dbname(dbname: str) -> str:
    if not _DBNAME_RE.fullmatch(dbname or ""):
        raise ValueError(f"invalid database name {dbname!r}: expected letters, digits and underscores")
    return dbname


def _publish(port: int) -> str:
    return f"{port}:{port}"


def start_mongo_container() -> StartedContainer:
    """Start a MongoDB server reachable on port 27017."""
    settings = get_settings()
    return setup_container(
        MONGO_IMAGE,
        MONGO_PORT,
        settings.mongo_timeout,
        lambda: run("-d", "-p", _publish(MONGO_PORT), MONGO_IMAGE),
    )


def start_mysql_container(dbname: str) -> StartedContainer:
    """Start a MySQL server with an empty *dbname* database, root/root credentials."""
    _check_dbname(dbname)
    settings = get_settings()
    return setup_container(
        MYSQL_IMAGE,
        MYSQL_PORT,
        settings.mysql_timeout,
        lambda: run(
            "-d",
            "-p", _publish(MYSQL_PORT),
            "-e", f"MYSQL_ROOT_PASSWORD={MYSQL_PASSWORD}",
            "-e", f"MYSQL_DATABASE={dbname}",
            MYSQL_IMAGE,
        ),
    )


def postgres_url(host: str, dbname: str = "postgres", *, port: int = POSTGRES_PORT) -> URL:
    """SQLAlchemy URL for the docker/docker account on a started server."""
    return URL.create(
        "postgresql+psycopg2",
        username=POSTGRES_USERNAME,
        password=POSTGRES_PASSWORD,
        host=host,
        port=port,
        database=dbname,
        query={"sslmode": "disable"},
    )


def _root_engine(host: str) -> Engine:
    # CREATE DATABASE cannot run inside a transaction block.
    return create_engine(postgres_url(host), isolation_level="AUTOCOMMIT", poolclass=NullPool)


def start_postgresql_container(dbname: str, *, max_try: Optional[int] = None) -> StartedContainer:
    """
    Start a PostgreSQL server and create *dbname* on it (C collation).

    The server accepts TCP before it accepts queries, so the CREATE DATABASE
    statement is retried with backoff. Any failure after the container is up
    kills and removes it before ``ContainerSetupError`` is raised.
    """
    _check_dbname(dbname)
    settings = get_settings()
    started = setup_container(
        POSTGRES_IMAGE,
        POSTGRES_PORT,
        settings.postgres_timeout,
        lambda: run(
            "-d",
            "-p", _publish(POSTGRES_PORT),
            "-e", f"POSTGRES_USER={POSTGRES_USERNAME}",
            "-e", f"POSTGRES_PASSWORD={POSTGRES_PASSWORD}",
            POSTGRES_IMAGE,
        ),
    )
    container: ContainerID = started.container
    budget = settings.sql_max_try if max_try is None else max_try

    try:
        engine = _root_engine(started.ip)
    except Exception as exc:
        container.kill_remove()
        raise ContainerSetupError(f"Could not open postgres rootdb: {exc}", container=str(container)) from exc

    try:
        sql_exec_retry(
            engine,
            f"CREATE DATABASE {dbname} LC_COLLATE = 'C' TEMPLATE = template0",
            budget,
        )
    except DockerError as exc:
        container.kill_remove()
        raise ContainerSetupError(f"Could not create database {dbname}: {exc}", container=str(container)) from exc
    finally:
        engine.dispose()

    LOG.info("postgres.ready id=%s ip=%s dbname=%s", container, started.ip, dbname)
    return started


__all__ = [
    "MONGO_IMAGE",
    "MYSQL_IMAGE",
    "MYSQL_PASSWORD",
    "MYSQL_USERNAME",
    "POSTGRES_IMAGE",
    "POSTGRES_PASSWORD",
    "POSTGRES_USERNAME",
    "postgres_url",
    "start_mongo_container",
    "start_mysql_container",
    "start_postgresql_container",
]
