"""Port describing the consumer registry used by the broadcast use case."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from .connection import ConnectionPort

Visitor = Callable[[int, ConnectionPort], Awaitable[bool]]
"""Coroutine invoked per entry; returning ``True`` requests removal of that handle."""


@runtime_checkable
class RegistryPort(Protocol):
    """Handle-keyed set of live consumer connections."""

    async def register(self, connection: ConnectionPort) -> int: ...

    async def unregister(self, handle: int) -> bool: ...

    async def for_each(self, visitor: Visitor) -> list[int]: ...


__all__ = ["RegistryPort", "Visitor"]
