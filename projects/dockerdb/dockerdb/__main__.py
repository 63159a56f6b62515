# projects/dockerdb/dockerdb/__main__.py
"""
`python -m dockerdb …` forwards to the Typer CLI defined in `dockerdb.cli`.
"""

from __future__ import annotations

from dockerdb.cli import app

if __name__ == "__main__":  # pragma: no cover
    app(prog_name="dockerdb")
