from __future__ import annotations

import socket
import time
from typing import Iterator, List

import pytest

import dockerdb.reachability as reach
from dockerdb.errors import UnreachableError


@pytest.fixture
def listening_port() -> Iterator[int]:
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(8)
    try:
        yield srv.getsockname()[1]
    finally:
        srv.close()


@pytest.fixture
def closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_reachable_listener_returns_immediately(listening_port: int) -> None:
    reach.await_reachable(f"127.0.0.1:{listening_port}", 2.0)


def test_tuple_address_is_accepted(listening_port: int) -> None:
    reach.await_reachable(("127.0.0.1", listening_port), 2.0)


def test_closed_port_times_out(closed_port: int) -> None:
    with pytest.raises(UnreachableError) as info:
        reach.await_reachable(f"127.0.0.1:{closed_port}", 0.3, interval=0.05)

    assert str(info.value) == f"127.0.0.1:{closed_port} unreachable for 0.3s"
    assert isinstance(info.value.__cause__, OSError)


def test_polls_until_port_opens(monkeypatch: pytest.MonkeyPatch) -> None:
    attempts: List[tuple] = []
    sleeps: List[float] = []

    def flaky_dial(host: str, port: int, connect_timeout: float) -> None:
        attempts.append((host, port))
        if len(attempts) < 3:
            raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(reach, "_dial", flaky_dial)

    reach.await_reachable("db.local:5432", 10.0, sleep=sleeps.append)

    assert attempts == [("db.local", 5432)] * 3
    assert sleeps == [pytest.approx(0.1), pytest.approx(0.1)]


def test_non_positive_timeout_makes_no_attempt(monkeypatch: pytest.MonkeyPatch) -> None:
    def fail_dial(*_: object) -> None:
        raise AssertionError("must not dial")

    monkeypatch.setattr(reach, "_dial", fail_dial)

    with pytest.raises(UnreachableError, match="unreachable for 0s"):
        reach.await_reachable("127.0.0.1:1", 0)


def test_non_network_errors_propagate(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken_dial(*_: object) -> None:
        raise ValueError("bad")

    monkeypatch.setattr(reach, "_dial", broken_dial)

    with pytest.raises(ValueError, match="bad"):
        reach.await_reachable("127.0.0.1:1", 1.0, sleep=lambda _s: None)


@pytest.mark.parametrize(
    "addr, expected",
    [
        ("127.0.0.1:27017", ("127.0.0.1", 27017)),
        ("[::1]:5432", ("::1", 5432)),
        (("localhost", "3306"), ("localhost", 3306)),
    ],
)
def test_split_address(addr, expected) -> None:
    assert reach.split_address(addr) == expected


@pytest.mark.parametrize("addr", ["localhost", ":5432", "localhost:", "host:port"])
def test_split_address_rejects_malformed(addr: str) -> None:
    with pytest.raises(ValueError):
        reach.split_address(addr)


def test_format_address_brackets_ipv6() -> None:
    assert reach.format_address("::1", 5432) == "[::1]:5432"
    assert reach.format_address("127.0.0.1", 5432) == "127.0.0.1:5432"


def test_dial_timeout_never_runs_past_deadline(monkeypatch: pytest.MonkeyPatch) -> None:
    dial_timeouts: List[float] = []

    def slow_refusal(host: str, port: int, connect_timeout: float) -> None:
        dial_timeouts.append(connect_timeout)
        time.sleep(0.05)
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(reach, "_dial", slow_refusal)

    started = time.monotonic()
    with pytest.raises(UnreachableError):
        reach.await_reachable("127.0.0.1:1", 0.3, connect_timeout=5.0, sleep=lambda _s: None)

    assert max(dial_timeouts) <= 0.3
    assert dial_timeouts[-1] < dial_timeouts[0]
    assert time.monotonic() - started < 1.0
