"""Use case performing one fan-out pass over the consumer registry.

Purpose
-------
Write a single record to every registered consumer concurrently and prune
the consumers whose write failed or stalled.

Contents
--------
* :class:`BroadcastResult` - delivery summary of one pass.
* :func:`create_broadcast` - factory returning the ``broadcast`` coroutine.

System Role
-----------
Invoked by the dispatcher for each dequeued record. A failed write is only a
removal signal; it never aborts the pass for the remaining consumers.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from log_fanout.application.ports.connection import ConnectionPort
from log_fanout.application.ports.registry import RegistryPort
from log_fanout.domain.errors import TransportError
from log_fanout.domain.messages import Outbound

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class BroadcastResult:
    """Summary of one pass: consumers reached and handles removed."""

    delivered: int
    removed: tuple[int, ...] = ()


BroadcastCallable = Callable[[Outbound], Awaitable[BroadcastResult]]


def create_broadcast(
    *,
    registry: RegistryPort,
    send_timeout: float | None = 5.0,
    diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
) -> BroadcastCallable:
    """Build the fan-out coroutine bound to ``registry``.

    Parameters
    ----------
    registry:
        Registry whose entries receive every record.
    send_timeout:
        Seconds a single consumer write may take before that consumer is
        treated as dead. ``None`` disables the deadline.
    diagnostic:
        Optional ``(name, payload)`` hook notified for every removed consumer.
    """

    def _diagnose(name: str, payload: dict[str, Any]) -> None:
        if diagnostic is None:
            return
        try:
            diagnostic(name, payload)
        except Exception:  # noqa: BLE001
            logger.exception("Broadcast diagnostic hook raised while reporting %s", name)

    async def broadcast(item: Outbound) -> BroadcastResult:
        payload = item.to_dict()
        delivered = 0

        async def deliver(handle: int, connection: ConnectionPort) -> bool:
            nonlocal delivered
            try:
                if send_timeout is None:
                    await connection.send_json(payload)
                else:
                    await asyncio.wait_for(connection.send_json(payload), timeout=send_timeout)
            except TransportError as exc:
                logger.info("write to conn %d failed: %s", handle, exc)
                _diagnose("consumer_removed", {"handle": handle, "reason": "write_failed"})
                return True
            except asyncio.TimeoutError:
                logger.info("write to conn %d timed out after %ss", handle, send_timeout)
                _diagnose("consumer_removed", {"handle": handle, "reason": "write_timeout"})
                return True
            delivered += 1
            return False

        removed = await registry.for_each(deliver)
        return BroadcastResult(delivered=delivered, removed=tuple(removed))

    return broadcast


__all__ = ["BroadcastCallable", "BroadcastResult", "create_broadcast"]
