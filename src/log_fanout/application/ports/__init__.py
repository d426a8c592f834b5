"""Protocols the application layer depends on."""

from __future__ import annotations

from .connection import ConnectionPort
from .queue import QueuePort
from .registry import RegistryPort, Visitor

__all__ = ["ConnectionPort", "QueuePort", "RegistryPort", "Visitor"]
