"""Module entry point: ``python -m log_fanout`` behaves like the ``log-fanout`` script."""

from __future__ import annotations

from .cli import main

if __name__ == "__main__":
    raise SystemExit(main())
