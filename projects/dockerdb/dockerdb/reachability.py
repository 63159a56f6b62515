"""
TCP reachability polling.

A freshly started database container accepts TCP connections some time
after ``docker run`` returns. ``await_reachable`` dials the address until a
connection succeeds or the deadline passes.
"""

from __future__ import annotations

import logging
import socket
import time
from typing import Callable, Tuple, Union

from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_delay, wait_fixed

from .errors import UnreachableError

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())

Address = Union[str, Tuple[str, int]]

_MIN_DIAL = 0.01


def split_address(addr: Address) -> Tuple[str, int]:
    """Parse ``"host:port"`` (or ``"[v6]:port"``) into ``(host, port)``."""
    if isinstance(addr, tuple):
        host, port = addr
        return str(host), int(port)
    host, sep, port = addr.rpartition(":")
    if not sep or not host or not port:
        raise ValueError(f"address {addr!r} is not of the form host:port")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise ValueError(f"address {addr!r} has a non-numeric port") from None


def format_address(host: str, port: int) -> str:
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _dial(host: str, port: int, connect_timeout: float) -> None:
    conn = socket.create_connection((host, port), timeout=connect_timeout)
    conn.close()


def await_reachable(
    addr: Address,
    timeout: float,
    *,
    interval: float = 0.1,
    connect_timeout: float = 1.0,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Block until *addr* accepts a TCP connection or *timeout* seconds pass.

    Raises ``UnreachableError`` on timeout, chained to the last connection
    error. A non-positive *timeout* makes no attempt at all. Each dial waits
    at most *connect_timeout* and never past the deadline.
    """
    host, port = split_address(addr)
    label = format_address(host, port)
    if timeout <= 0:
        raise UnreachableError(f"{label} unreachable for {timeout}s")

    deadline = time.monotonic() + timeout
    retryer = Retrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=retry_if_exception_type(OSError),
        sleep=sleep,
    )
    try:
        for attempt in retryer:
            with attempt:
                remaining = deadline - time.monotonic()
                _dial(host, port, max(min(connect_timeout, remaining), _MIN_DIAL))
    except RetryError as exc:
        last = exc.last_attempt.exception()
        LOG.debug("reachability.timeout addr=%s attempts=%s last=%s", label, exc.last_attempt.attempt_number, last)
        raise UnreachableError(f"{label} unreachable for {timeout}s") from last
    LOG.debug("reachability.ok addr=%s", label)


__all__ = ["Address", "await_reachable", "format_address", "split_address"]
