"""
Retry a single SQL statement with exponential backoff.

Database containers accept TCP connections before they accept queries, so
the first statement against a fresh server typically fails a few times.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.engine import Engine
from tenacity import RetryError, Retrying, stop_after_attempt, wait_exponential

from .errors import SQLRetryError

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())


def _execute(engine: Engine, stmt: str) -> Any:
    with engine.connect() as conn:
        return conn.execute(text(stmt))


def sql_exec_retry(
    engine: Engine,
    stmt: str,
    max_try: int,
    *,
    initial_interval: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Execute *stmt* on *engine* until it succeeds or was tried *max_try* times.

    The wait between tries starts at *initial_interval* seconds and doubles
    after each failure. Returns the result of the successful execution.
    """
    if max_try <= 0:
        raise SQLRetryError("did not try at all", attempts=0)

    retryer = Retrying(
        stop=stop_after_attempt(max_try),
        wait=wait_exponential(multiplier=initial_interval, min=initial_interval),
        sleep=sleep,
    )
    try:
        return retryer(_execute, engine, stmt)
    except RetryError as exc:
        attempts = exc.last_attempt.attempt_number
        last = exc.last_attempt.exception()
        LOG.warning("sql.retry_exhausted attempts=%s error=%s", attempts, last)
        raise SQLRetryError(f"failed {attempts} times: {last}", attempts=attempts) from last


__all__ = ["sql_exec_retry"]
