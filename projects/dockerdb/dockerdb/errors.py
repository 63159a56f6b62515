"""Exception types raised by dockerdb helpers."""

from __future__ import annotations

from typing import Optional, Sequence


class DockerError(RuntimeError):
    """Base class for every failure raised by dockerdb."""


class DockerNotFoundError(DockerError):
    """The ``docker`` executable could not be located."""


class DockerCommandError(DockerError):
    """A ``docker`` invocation exited non-zero or produced unusable output."""

    def __init__(
        self,
        message: str,
        *,
        command: Optional[Sequence[str]] = None,
        returncode: Optional[int] = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(command) if command else []
        self.returncode = returncode
        self.output = output


class UnreachableError(DockerError):
    """A TCP address did not accept a connection before the deadline."""


class SQLRetryError(DockerError):
    """A statement kept failing until its attempt budget ran out."""

    def __init__(self, message: str, *, attempts: int = 0) -> None:
        super().__init__(message)
        self.attempts = attempts


class ContainerSetupError(DockerError):
    """A container was started (or tried to be) but never became usable."""

    def __init__(self, message: str, *, container: Optional[str] = None) -> None:
        super().__init__(message)
        self.container = container


__all__ = [
    "ContainerSetupError",
    "DockerCommandError",
    "DockerError",
    "DockerNotFoundError",
    "SQLRetryError",
    "UnreachableError",
]
