# projects/dockerdb/dockerdb/cli.py
from __future__ import annotations

import json
import logging
import sys
from enum import Enum
from typing import Callable, NoReturn, Optional

import typer

from .config import DEFAULT_DBNAME
from .container import ContainerID, StartedContainer
from .databases import start_mongo_container, start_mysql_container, start_postgresql_container
from .env_audit import collect_env
from .errors import DockerError
from .logging_config import setup_logging
from .runtime.docker_probe import probe, pull as pull_image

LOGGER = logging.getLogger(__name__)


def _log_event(event: str, **info: object) -> None:
    if info:
        detail = " ".join(f"{k}={info[k]}" for k in sorted(info) if info[k] is not None)
        LOGGER.info("%s %s", event, detail)
    else:
        LOGGER.info("%s", event)


_IS_WINDOWS = sys.platform.startswith("win")
_HELP_NAMES = ["-h", "--help"] + (["/?"] if _IS_WINDOWS else [])

app = typer.Typer(
    add_completion=False,
    rich_markup_mode="rich",
    context_settings={"help_option_names": _HELP_NAMES},
    help="Throwaway MongoDB / MySQL / PostgreSQL containers for integration tests.",
)


class Kind(str, Enum):
    mongo = "mongo"
    mysql = "mysql"
    postgres = "postgres"


@app.callback()
def _main() -> None:
    setup_logging()


def _fail(exc: Exception) -> NoReturn:
    _log_event("cli.error", error=exc)
    typer.secho(str(exc), fg=typer.colors.RED, err=True)
    raise typer.Exit(1)


@app.command()
def check(
    as_json: bool = typer.Option(False, "--json", help="Print the full environment snapshot as JSON"),
) -> None:
    """Report whether docker is installed and its daemon answers."""
    if as_json:
        snapshot = collect_env()
        typer.echo(json.dumps(snapshot, indent=2, ensure_ascii=False))
        if not snapshot["docker"]["ok"]:
            raise typer.Exit(1)
        return

    status = probe()
    if not status.ok:
        typer.secho(f"docker unavailable: {status.reason}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    typer.echo(f"docker {status.version} ({status.path}, from {status.source})")


@app.command()
def pull(image: str = typer.Argument(..., help="Image reference, e.g. library/postgres")) -> None:
    """Pull IMAGE, streaming docker's progress output."""
    _log_event("cli.pull", image=image)
    try:
        pull_image(image, echo_output=True)
    except DockerError as exc:
        _fail(exc)


@app.command()
def start(
    kind: Kind = typer.Argument(..., help="mongo | mysql | postgres"),
    dbname: str = typer.Option(DEFAULT_DBNAME, "--dbname", "-d", help="Database to create (mysql/postgres)"),
) -> None:
    """Start a database container and print "<container-id> <ip>"."""
    starters: dict[Kind, Callable[[], StartedContainer]] = {
        Kind.mongo: start_mongo_container,
        Kind.mysql: lambda: start_mysql_container(dbname),
        Kind.postgres: lambda: start_postgresql_container(dbname),
    }
    _log_event("cli.start", kind=kind.value, dbname=dbname if kind is not Kind.mongo else None)
    try:
        container, ip = starters[kind]()
    except (DockerError, ValueError) as exc:
        _fail(exc)
    typer.echo(f"{container} {ip}")


@app.command()
def stop(container_id: str = typer.Argument(..., metavar="CONTAINER_ID")) -> None:
    """Kill and remove a container started earlier."""
    container = ContainerID(container_id)
    _log_event("cli.stop", container=container)
    try:
        container.kill()
        container.remove()
    except DockerError as exc:
        _fail(exc)


def main(argv: Optional[list[str]] = None) -> None:
    app(args=argv)


if __name__ == "__main__":  # pragma: no cover
    main()
