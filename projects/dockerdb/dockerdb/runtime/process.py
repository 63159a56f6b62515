# projects/dockerdb/dockerdb/runtime/process.py
"""
Thin wrappers around ``subprocess`` for docker invocations.

``run_docker`` captures stdout/stderr separately for short commands whose
output we parse (``run``, ``images``, ``kill``). ``stream_docker`` is for
long-running commands such as ``pull``: it reads the child's combined
stdout/stderr in chunks, optionally echoes it, and keeps a copy so a failure
can be reported with the full output.

An executable that cannot be launched at all is reported as
``DockerCommandError`` like any other failed docker command.
"""
from __future__ import annotations

import logging
import subprocess
import sys
from typing import IO, Callable, List, Optional, Tuple

from ..docker_utils import docker_command
from ..errors import DockerCommandError

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())


def run_docker(*args: str) -> "subprocess.CompletedProcess[str]":
    """Run ``docker <args>`` to completion and capture its text output."""
    cmd = docker_command(*args)
    LOG.debug("docker.exec %s", " ".join(cmd))
    try:
        return subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise DockerCommandError(f"cannot execute {cmd[0]}: {exc}", command=cmd) from exc


def stream_docker(
    *args: str,
    on_bytes: Optional[Callable[[int], None]] = None,
    echo_output: bool = True,
    echo_stream: Optional[IO[bytes]] = None,
) -> Tuple[int, str]:
    """
    Run ``docker <args>`` and stream its combined stdout/stderr.

    Parameters
    ----------
    on_bytes : Optional[Callable[[int], None]]
        Callback invoked with the number of bytes seen per chunk.
    echo_output : bool, default True
        Echo the child's output as it arrives.
    echo_stream : Optional[IO[bytes]]
        Where to echo. Defaults to ``sys.stdout.buffer``.

    Returns
    -------
    Tuple[int, str]
        Process return code and the decoded combined output.
    """
    cmd = docker_command(*args)
    LOG.debug("docker.stream %s", " ".join(cmd))

    try:
        p: subprocess.Popen[bytes] = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            bufsize=0,
        )
    except OSError as exc:
        raise DockerCommandError(f"cannot execute {cmd[0]}: {exc}", command=cmd) from exc

    assert p.stdout is not None
    out = p.stdout
    writer: Optional[IO[bytes]] = None
    if echo_output:
        writer = echo_stream if echo_stream is not None else getattr(sys.stdout, "buffer", None)

    chunks: List[bytes] = []
    try:
        for chunk in iter(lambda: out.read(8192), b""):
            chunks.append(chunk)
            if on_bytes is not None:
                on_bytes(len(chunk))
            if writer is not None:
                writer.write(chunk)
                writer.flush()
    except KeyboardInterrupt:
        p.terminate()
        try:
            p.wait(timeout=5)
        except subprocess.TimeoutExpired:
            p.kill()
        raise
    finally:
        out.close()
        rc = p.wait()

    return int(rc), b"".join(chunks).decode("utf-8", errors="replace")


__all__ = ["run_docker", "stream_docker"]
