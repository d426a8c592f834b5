"""Port describing an outbound consumer connection.

Purpose
-------
Let the registry and the broadcast engine push payloads without knowing
whether the consumer is a WebSocket, the local Rich console, or a test fake.

Contents
--------
* :class:`ConnectionPort` - runtime-checkable protocol with ``send_json`` and
  ``close``.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class ConnectionPort(Protocol):
    """Write side of a registered consumer."""

    async def send_json(self, payload: Mapping[str, Any]) -> None:
        """Deliver ``payload``; raise :class:`~log_fanout.domain.TransportError` on failure."""

    async def close(self) -> None:
        """Close the transport. Must be idempotent and must not raise."""


__all__ = ["ConnectionPort"]
