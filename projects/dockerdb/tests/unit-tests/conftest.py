# projects/dockerdb/tests/unit-tests/conftest.py
from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Tuple, Union

import pytest

from dockerdb.runtime import process

_ENV_VARS = (
    "DOCKERDB_DOCKER_BINARY",
    "DOCKERDB_HOST",
    "DOCKERDB_MONGO_TIMEOUT",
    "DOCKERDB_MYSQL_TIMEOUT",
    "DOCKERDB_POSTGRES_TIMEOUT",
    "DOCKERDB_SQL_MAX_TRY",
    "DOCKERDB_SKIP",
    "DOCKERDB_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Start every test from an environment with no dockerdb overrides."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DOCKERDB_LOG_FILE", str(tmp_path / "logs" / "dockerdb.log"))


Reply = Union[Tuple[int, str, str], Callable[[Tuple[str, ...]], Tuple[int, str, str]]]


@dataclass
class FakeDocker:
    """
    Stand-in for the docker CLI.

    ``replies`` maps the docker sub-command (``"run"``, ``"kill"``...) to
    ``(returncode, stdout, stderr)`` or to a callable producing it from the
    full argument tuple. Unscripted commands succeed with empty output.
    """

    replies: Dict[str, Reply] = field(default_factory=dict)
    calls: List[Tuple[str, ...]] = field(default_factory=list)

    def _reply(self, args: Tuple[str, ...]) -> Tuple[int, str, str]:
        self.calls.append(args)
        reply = self.replies.get(args[0], (0, "", ""))
        if callable(reply):
            return reply(args)
        return reply

    def run_docker(self, *args: str) -> "subprocess.CompletedProcess[str]":
        rc, out, err = self._reply(args)
        return subprocess.CompletedProcess(["docker", *args], rc, out, err)

    def stream_docker(self, *args: str, **_: object) -> Tuple[int, str]:
        rc, out, err = self._reply(args)
        return rc, out + err

    def commands(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_docker(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeDocker:
    """Route every docker invocation through a scripted :class:`FakeDocker`."""
    exe = tmp_path / "bin" / "docker"
    exe.parent.mkdir(parents=True, exist_ok=True)
    exe.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    exe.chmod(0o755)
    monkeypatch.setenv("DOCKERDB_DOCKER_BINARY", str(exe))

    fake = FakeDocker()
    monkeypatch.setattr(process, "run_docker", fake.run_docker)
    monkeypatch.setattr(process, "stream_docker", fake.stream_docker)
    return fake


@pytest.fixture
def unrunnable_docker(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    A docker that is found on lookup but whose launch fails in the OS.

    Every invocation execs a file without the execute bit, so ``subprocess``
    raises ``PermissionError`` the way it does on a noexec mount.
    """
    exe = tmp_path / "bin" / "docker"
    exe.parent.mkdir(parents=True, exist_ok=True)
    exe.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    exe.chmod(0o755)
    monkeypatch.setenv("DOCKERDB_DOCKER_BINARY", str(exe))

    noexec = tmp_path / "bin" / "docker-noexec"
    noexec.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    noexec.chmod(0o644)
    monkeypatch.setattr(process, "docker_command", lambda *args: [str(noexec), *args])
    return noexec


@pytest.fixture
def no_docker(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pretend the docker executable is not installed."""
    monkeypatch.setattr("dockerdb.docker_utils.shutil.which", lambda name: None)


class FakeEngine:
    """Just enough of ``sqlalchemy.Engine`` for ``engine.connect().execute()``."""

    def __init__(self, failures: int = 0) -> None:
        self.failures_left = failures
        self.statements: List[str] = []
        self.disposed = False

    def connect(self) -> "FakeConnection":
        return FakeConnection(self)

    def dispose(self) -> None:
        self.disposed = True


class FakeConnection:
    def __init__(self, engine: FakeEngine) -> None:
        self.engine = engine

    def __enter__(self) -> "FakeConnection":
        return self

    def __exit__(self, *exc: object) -> bool:
        return False

    def execute(self, clause: object) -> str:
        self.engine.statements.append(str(clause))
        if self.engine.failures_left > 0:
            self.engine.failures_left -= 1
            raise RuntimeError("the database system is starting up")
        return "ok"


@pytest.fixture
def make_engine() -> Callable[..., FakeEngine]:
    """Factory for engines that fail their first *failures* statements."""
    return FakeEngine
