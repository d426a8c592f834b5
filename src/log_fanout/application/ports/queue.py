"""Port describing the inbound queue between producers and the dispatcher."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from log_fanout.domain.messages import Outbound


@runtime_checkable
class QueuePort(Protocol):
    """Ordered channel of accepted records."""

    async def put(self, item: Outbound) -> bool:
        """Enqueue ``item``; return ``False`` when the overflow policy dropped it."""

    async def get(self) -> Outbound:
        """Return the next item, suspending while the queue is empty."""


__all__ = ["QueuePort"]
