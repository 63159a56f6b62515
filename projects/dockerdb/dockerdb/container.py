"""
Start, address, and dispose of docker containers.

``run`` wraps ``docker run`` and returns a :class:`ContainerID`; the handle
knows how to find its address, wait until a port answers, and clean itself
up. ``setup_container`` strings those steps together for a single image.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Callable, NamedTuple, Optional, Type

from .config import get_settings
from .errors import ContainerSetupError, DockerCommandError, DockerError
from .reachability import await_reachable, format_address
from .runtime import process
from .runtime.docker_probe import ensure_image

LOG = logging.getLogger(__name__)
LOG.addHandler(logging.NullHandler())


def _docker_checked(*args: str) -> str:
    result = process.run_docker(*args)
    if result.returncode != 0:
        stderr = result.stderr or ""
        raise DockerCommandError(
            f"{stderr}docker {args[0]} exited with status {result.returncode}",
            command=["docker", *args],
            returncode=result.returncode,
            output=stderr + (result.stdout or ""),
        )
    return result.stdout or ""


class ContainerID(str):
    """The id printed by ``docker run``, with lifecycle helpers attached."""

    def ip(self) -> str:
        """Return the address the container's published ports are reachable on."""
        return get_settings().host

    def kill(self) -> None:
        _docker_checked("kill", str(self))

    def remove(self) -> None:
        """Run ``docker rm`` on the container."""
        _docker_checked("rm", str(self))

    def kill_remove(self) -> None:
        """Kill the container, then remove it if the kill worked. Errors are only logged."""
        try:
            self.kill()
        except DockerError as exc:
            LOG.error("container.kill_failed id=%s error=%s", self, exc)
            return
        try:
            self.remove()
        except DockerError as exc:
            LOG.error("container.remove_failed id=%s error=%s", self, exc)

    def lookup(self, port: int, timeout: float) -> str:
        """
        Resolve the container address and wait until *port* answers there.

        Returns the address. Raises ``UnreachableError`` when the port stays
        closed for *timeout* seconds.
        """
        try:
            ip = self.ip()
        except Exception as exc:
            raise DockerError(f"error getting IP: {exc}") from exc
        await_reachable(format_address(ip, port), timeout)
        return ip

    def __enter__(self) -> "ContainerID":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        self.kill_remove()


class StartedContainer(NamedTuple):
    container: ContainerID
    ip: str


def run(*args: str) -> ContainerID:
    """Run ``docker run <args>`` and return the new container id."""
    stdout = _docker_checked("run", *args)
    container_id = stdout.strip()
    if not container_id:
        raise DockerCommandError("unexpected empty output from `docker run`", command=["docker", "run", *args])
    LOG.info("container.started id=%s args=%s", container_id, " ".join(args))
    return ContainerID(container_id)


def kill_container(container: str) -> None:
    ContainerID(container).kill()


def setup_container(
    image: str,
    port: int,
    timeout: float,
    start: Callable[[], ContainerID],
) -> StartedContainer:
    """
    Start a container for *image* with *start* and wait until *port* answers.

    The image is pulled first when it is not present locally. If the port
    never opens within *timeout* seconds the container is killed and removed
    before ``ContainerSetupError`` is raised.
    """
    ensure_image(image)

    try:
        container = start()
    except DockerError as exc:
        raise ContainerSetupError(f"docker run: {exc}") from exc

    try:
        ip = container.lookup(port, timeout)
    except DockerError as exc:
        container.kill_remove()
        raise ContainerSetupError(f"Container {container} setup failed: {exc}", container=str(container)) from exc
    return StartedContainer(container, ip)


__all__ = [
    "ContainerID",
    "StartedContainer",
    "kill_container",
    "run",
    "setup_container",
]
