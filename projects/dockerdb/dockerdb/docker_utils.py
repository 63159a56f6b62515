"""
Utility helpers for locating the docker executable.

The search order is deterministic:

1. Honour the ``DOCKERDB_DOCKER_BINARY`` environment variable when it points
   to an executable file.
2. Look for ``docker`` on PATH via ``shutil.which``.

The resolver returns both the executable path (or ``None``) and a short
label describing where it came from, so callers can emit diagnostics.
"""
from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import List, Optional, Tuple

from .config import get_settings
from .errors import DockerNotFoundError


def resolve_docker() -> Tuple[Optional[str], str]:
    """
    Return ``(path, source)`` where *path* is the docker executable to use.

    *source* is one of ``{"env", "path", "missing"}``. When no executable can
    be located, *path* is ``None`` and *source* is ``"missing"``.
    """
    env = get_settings().docker_binary
    if env:
        candidate = Path(env).expanduser()
        if candidate.is_file() and os.access(candidate, os.X_OK):
            return str(candidate), "env"

    exe = shutil.which("docker")
    if exe:
        return exe, "path"

    return None, "missing"


def docker_command(*args: str) -> List[str]:
    """Build an argv for ``docker <args>``; raise when docker is unavailable."""
    exe, _ = resolve_docker()
    if exe is None:
        raise DockerNotFoundError("'docker' command not found")
    return [exe, *args]


__all__ = ["docker_command", "resolve_docker"]
