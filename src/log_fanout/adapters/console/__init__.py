"""Console adapters."""

from __future__ import annotations

from .rich_console import RichConsoleConnection

__all__ = ["RichConsoleConnection"]
