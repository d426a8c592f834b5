"""Lock-guarded registry of consumer connections.

Purpose
-------
Own the handle-to-connection mapping shared by the accept handlers (which
add and remove their own entry) and the broadcast engine (which removes
entries whose writes failed).

Contents
--------
* :class:`ConnectionRegistry` - implementation of :class:`RegistryPort`.

System Role
-----------
The only mutable structure touched by more than one task. Every mutation and
every fan-out traversal holds the same :class:`asyncio.Lock`; removals
requested during a traversal are deferred until the pass has finished.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from log_fanout.application.ports.connection import ConnectionPort
from log_fanout.application.ports.registry import RegistryPort, Visitor


LOGGER = logging.getLogger(__name__)


class ConnectionRegistry(RegistryPort):
    """Map monotonically increasing handles to live connections.

    Examples
    --------
    >>> import asyncio
    >>> class Quiet:
    ...     async def send_json(self, payload): ...
    ...     async def close(self): ...
    >>> async def demo():
    ...     registry = ConnectionRegistry()
    ...     return [await registry.register(Quiet()) for _ in range(2)]
    >>> asyncio.run(demo())
    [1, 2]
    """

    def __init__(self, *, diagnostic: Callable[[str, dict[str, Any]], None] | None = None) -> None:
        self._connections: dict[int, ConnectionPort] = {}
        self._counter = 0
        self._lock = asyncio.Lock()
        self._diagnostic = diagnostic

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, handle: object) -> bool:
        return handle in self._connections

    def handles(self) -> list[int]:
        """Return the currently registered handles in issue order."""

        return sorted(self._connections)

    async def register(self, connection: ConnectionPort) -> int:
        """Store ``connection`` and return its freshly issued handle."""
        async with self._lock:
            self._counter += 1
            handle = self._counter
            self._connections[handle] = connection
        LOGGER.info("Opened conn on number: %d", handle)
        self._emit_diagnostic("consumer_registered", {"handle": handle, "active": len(self._connections)})
        return handle

    async def unregister(self, handle: int) -> bool:
        """Forget and close ``handle`` under the lock; unknown handles are ignored.

        Returns ``True`` when an entry was removed.
        """
        async with self._lock:
            connection = self._connections.pop(handle, None)
            if connection is None:
                return False
            await self._close_quietly(handle, connection)
        LOGGER.info("Removed conn on number: %d", handle)
        self._emit_diagnostic("consumer_unregistered", {"handle": handle, "active": len(self._connections)})
        return True

    async def for_each(self, visitor: Visitor) -> list[int]:
        """Visit every entry under the lock and prune those that asked for removal.

        Visitors run concurrently over a snapshot of the mapping. A visitor
        requests removal of the handle it was given by returning ``True`` or
        by raising; removals are applied only after all visitors finished,
        and the removed connections are closed afterwards.

        Returns
        -------
        list[int]
            Handles removed by this pass, in ascending order.
        """
        async with self._lock:
            snapshot = list(self._connections.items())
            outcomes = await asyncio.gather(
                *(visitor(handle, connection) for handle, connection in snapshot),
                return_exceptions=True,
            )
            doomed: list[tuple[int, ConnectionPort]] = []
            for (handle, connection), outcome in zip(snapshot, outcomes):
                if isinstance(outcome, BaseException):
                    if isinstance(outcome, asyncio.CancelledError):
                        raise outcome
                    LOGGER.warning("Visitor failed for conn %d; removing", handle, exc_info=outcome)
                    doomed.append((handle, connection))
                elif outcome:
                    doomed.append((handle, connection))
            for handle, _ in doomed:
                self._connections.pop(handle, None)

        for handle, connection in doomed:
            await self._close_quietly(handle, connection)
            LOGGER.info("Removed conn on number: %d", handle)
        return sorted(handle for handle, _ in doomed)

    async def close_all(self) -> None:
        """Close and drop every registered connection."""

        async with self._lock:
            entries = list(self._connections.items())
            self._connections.clear()
        for handle, connection in entries:
            await self._close_quietly(handle, connection)

    async def _close_quietly(self, handle: int, connection: ConnectionPort) -> None:
        try:
            await connection.close()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Closing conn %d raised; ignoring", handle, exc_info=exc)

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Registry diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


__all__ = ["ConnectionRegistry"]
