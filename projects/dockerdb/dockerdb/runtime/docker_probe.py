"""
Lightweight docker availability probes.

These helpers answer "can we run containers here?" before a test pays for a
``docker run``: is the executable present, is the image already local, and
if not, pull it.
"""

from __future__ import annotations

import logging
import subprocess
from typing import NamedTuple, Optional

from ..docker_utils import resolve_docker
from ..errors import DockerCommandError, DockerNotFoundError
from . import process

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())


class DockerProbeStatus(NamedTuple):
    ok: bool
    path: Optional[str]
    source: str
    version: Optional[str]
    reason: Optional[str]


def _command_error(args: tuple[str, ...], result: subprocess.CompletedProcess[str]) -> DockerCommandError:
    output = (result.stderr or "") + (result.stdout or "")
    return DockerCommandError(
        f"docker {' '.join(args)} exited with status {result.returncode}: {output.strip()}",
        command=["docker", *args],
        returncode=result.returncode,
        output=output,
    )


def have_docker() -> bool:
    """Return whether the ``docker`` command was found."""
    path, _ = resolve_docker()
    return path is not None


def have_image(name: str) -> bool:
    """Return True when ``docker images --no-trunc`` mentions *name*."""
    args = ("images", "--no-trunc")
    result = process.run_docker(*args)
    if result.returncode != 0:
        raise _command_error(args, result)
    return name in result.stdout


def pull(image: str, *, echo_output: bool = False) -> None:
    """Retrieve *image* with ``docker pull``."""
    rc, output = process.stream_docker("pull", image, echo_output=echo_output)
    if rc != 0:
        raise DockerCommandError(
            f"docker pull {image} exited with status {rc}: {output.strip()}",
            command=["docker", "pull", image],
            returncode=rc,
            output=output,
        )


def ensure_image(image: str) -> None:
    """
    Make sure docker is usable and *image* is available locally.

    A missing docker executable is fatal. A failing presence check or pull is
    only logged: ``docker run`` pulls on its own and reports the real error if
    the image truly cannot be fetched.
    """
    if not have_docker():
        raise DockerNotFoundError("'docker' command not found")
    try:
        present = have_image(image)
    except DockerCommandError as exc:
        LOG.error("Error running docker to check for %s: %s", image, exc)
        present = False
    if present:
        return
    LOG.info("Pulling docker image %s ...", image)
    try:
        pull(image)
    except DockerCommandError as exc:
        LOG.error("Error pulling %s: %s", image, exc)


def probe() -> DockerProbeStatus:
    """Report whether the docker CLI is present and its daemon answers."""
    path, source = resolve_docker()
    if path is None:
        status = DockerProbeStatus(False, None, source, None, "'docker' command not found")
        LOG.warning("docker not-ready reason=%s", status.reason)
        return status

    args = ("version", "--format", "{{.Server.Version}}")
    try:
        result = process.run_docker(*args)
    except DockerCommandError as exc:
        status = DockerProbeStatus(False, path, source, None, str(exc))
        LOG.warning("docker not-ready reason=%s", status.reason)
        return status

    if result.returncode != 0:
        reason = (result.stderr or result.stdout or "").strip() or f"exit status {result.returncode}"
        status = DockerProbeStatus(False, path, source, None, reason)
        LOG.warning("docker not-ready reason=%s", status.reason)
        return status

    version = result.stdout.strip() or None
    LOG.info("docker ready path=%s source=%s version=%s", path, source, version)
    return DockerProbeStatus(True, path, source, version, None)


__all__ = [
    "DockerProbeStatus",
    "ensure_image",
    "have_docker",
    "have_image",
    "probe",
    "pull",
]
