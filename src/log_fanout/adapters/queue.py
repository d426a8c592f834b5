"""Asyncio queue adapter decoupling producers from the broadcast dispatcher.

Purpose
-------
Buffer accepted records between the producer sessions and the single
dispatcher task, applying an explicit capacity and overflow policy.

Contents
--------
* :class:`InboundQueue` - bounded implementation of :class:`QueuePort`.

System Role
-----------
Producers never wait on consumer slowness beyond the queue's capacity: with
the ``"block"`` policy they wait at most ``timeout`` seconds for room, with
``"drop"`` they are rejected immediately. Either way a dropped record is
logged, reported through ``on_drop`` and the diagnostic hook, and never
raises into the producer session.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from log_fanout.application.ports.queue import QueuePort
from log_fanout.domain.messages import ControlMessage, Message, Outbound


LOGGER = logging.getLogger(__name__)


class InboundQueue(QueuePort):
    """Ordered channel of records awaiting broadcast.

    Examples
    --------
    >>> import asyncio
    >>> from log_fanout.domain import Message
    >>> async def demo():
    ...     queue = InboundQueue(maxsize=1, drop_policy="drop")
    ...     first = await queue.put(Message(content="a"))
    ...     second = await queue.put(Message(content="b"))
    ...     return first, second, (await queue.get()).content
    >>> asyncio.run(demo())
    (True, False, 'a')
    """

    def __init__(
        self,
        *,
        maxsize: int = 2048,
        drop_policy: str = "block",
        timeout: float | None = 1.0,
        on_drop: Callable[[Outbound], None] | None = None,
        diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
    ) -> None:
        """Create the queue.

        Parameters
        ----------
        maxsize:
            Capacity; ``0`` means unbounded.
        drop_policy:
            ``"block"`` (wait up to ``timeout`` for room, then drop) or
            ``"drop"`` (drop immediately when full).
        timeout:
            Producer wait for the blocking policy. ``None`` waits
            indefinitely.
        on_drop:
            Optional callback receiving each dropped record.
        diagnostic:
            Optional ``(name, payload)`` hook for overflow reporting.
        """
        if maxsize < 0:
            raise ValueError("maxsize must be zero (unbounded) or positive")
        policy = drop_policy.lower()
        if policy not in {"block", "drop"}:
            raise ValueError("drop_policy must be 'block' or 'drop'")
        self._queue: asyncio.Queue[Outbound] = asyncio.Queue(maxsize=maxsize)
        self._drop_policy = policy
        self._timeout = timeout
        self._on_drop = on_drop
        self._diagnostic = diagnostic
        self._dropped = 0

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    @property
    def drop_policy(self) -> str:
        return self._drop_policy

    @property
    def dropped(self) -> int:
        """Number of records discarded by the overflow policy so far."""

        return self._dropped

    def qsize(self) -> int:
        return self._queue.qsize()

    def empty(self) -> bool:
        return self._queue.empty()

    async def put(self, item: Outbound) -> bool:
        """Enqueue ``item`` for broadcast.

        Returns ``True`` when the item was accepted, ``False`` when the queue
        was full and the overflow policy discarded it.
        """
        if self._drop_policy == "drop":
            try:
                self._queue.put_nowait(item)
            except asyncio.QueueFull:
                self._handle_drop(item)
                return False
            return True

        if self._timeout is None:
            await self._queue.put(item)
            return True
        try:
            await asyncio.wait_for(self._queue.put(item), timeout=self._timeout)
        except asyncio.TimeoutError:
            self._handle_drop(item)
            return False
        return True

    async def get(self) -> Outbound:
        """Return the next record, suspending while the queue is empty."""
        item = await self._queue.get()
        self._queue.task_done()
        return item

    def _handle_drop(self, item: Outbound) -> None:
        self._dropped += 1
        LOGGER.warning("Inbound queue full (%d items); dropped %s", self._queue.maxsize, _describe(item))
        self._emit_diagnostic("queue_full_drop", {"item": _describe(item), "dropped": self._dropped, "policy": self._drop_policy})
        if self._on_drop is None:
            return
        try:
            self._on_drop(item)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Queue drop handler raised an exception; continuing", exc_info=exc)
            self._emit_diagnostic("queue_drop_callback_error", {"exception": repr(exc)})

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Queue diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


def _describe(item: Outbound) -> str:
    if isinstance(item, ControlMessage):
        return f"control:{item.signal.name.lower()}"
    if isinstance(item, Message):
        return f"message:{item.level.severity}"
    return type(item).__name__


__all__ = ["InboundQueue"]
