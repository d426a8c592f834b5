"""Single long-lived dispatch loop draining the inbound queue."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from log_fanout.application.ports.queue import QueuePort
from log_fanout.application.use_cases.broadcast import BroadcastCallable


LOGGER = logging.getLogger(__name__)


class BroadcastEngine:
    """Dequeue records one at a time and fan each out before taking the next.

    There is exactly one dispatch task per engine. It runs until
    :meth:`stop` cancels it at shutdown and can never be started again.
    """

    def __init__(
        self,
        *,
        queue: QueuePort,
        broadcast: BroadcastCallable,
        diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
    ) -> None:
        self._queue = queue
        self._broadcast = broadcast
        self._diagnostic = diagnostic
        self._task: asyncio.Task[None] | None = None
        self._processed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def processed(self) -> int:
        """Number of completed fan-out passes."""

        return self._processed

    def start(self) -> asyncio.Task[None]:
        """Schedule the dispatch loop on the running event loop.

        Raises
        ------
        RuntimeError
            When the engine was already started, even if it has since stopped.
        """
        if self._task is not None:
            raise RuntimeError("Broadcast engine is already started and cannot be restarted")
        self._task = asyncio.get_running_loop().create_task(self.run(), name="log_fanout-dispatcher")
        return self._task

    async def stop(self) -> None:
        """Cancel the dispatch loop without draining the queue."""
        task = self._task
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                result = await self._broadcast(item)
            except asyncio.CancelledError:
                raise
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Broadcast pass raised an exception; continuing", exc_info=exc)
                self._emit_diagnostic("broadcast_error", {"exception": repr(exc)})
            else:
                self._processed += 1
                if result.removed:
                    LOGGER.debug("broadcast pruned %d consumer(s): %s", len(result.removed), list(result.removed))

    def _emit_diagnostic(self, name: str, payload: dict[str, Any]) -> None:
        if self._diagnostic is None:
            return
        try:
            self._diagnostic(name, payload)
        except Exception as diagnostic_exc:  # noqa: BLE001
            LOGGER.error("Dispatcher diagnostic hook raised while reporting %s", name, exc_info=diagnostic_exc)


__all__ = ["BroadcastEngine"]
