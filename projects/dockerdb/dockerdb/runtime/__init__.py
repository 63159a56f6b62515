"""
Docker runtime helpers: executable discovery, presence probes and the
subprocess wrappers every docker call goes through.

Modules in this package avoid side effects at import time so they can be
imported by the pytest plugin before any test decides whether it needs a
daemon at all.
"""

from __future__ import annotations

__all__: list[str] = []
