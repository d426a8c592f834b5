"""Adapter implementations for the relay's ports."""

from __future__ import annotations

from .console import RichConsoleConnection
from .queue import InboundQueue
from .registry import ConnectionRegistry

__all__ = ["ConnectionRegistry", "InboundQueue", "RichConsoleConnection"]
