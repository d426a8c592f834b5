"""Starlette WebSocket wrapped as a :class:`ConnectionPort`."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from starlette.websockets import WebSocket, WebSocketDisconnect

from log_fanout.application.ports.connection import ConnectionPort
from log_fanout.domain.errors import TransportError, UpgradeError


LOGGER = logging.getLogger(__name__)


class WebSocketConnection(ConnectionPort):
    """Adapt an accepted WebSocket to the relay's connection contract.

    Send and receive failures surface as :class:`TransportError`; ``close``
    may be called any number of times from any session.
    """

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket
        self._closed = False

    @classmethod
    async def accept(cls, websocket: WebSocket) -> "WebSocketConnection":
        """Complete the handshake, raising :class:`UpgradeError` when it fails."""
        try:
            await websocket.accept()
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            raise UpgradeError(repr(exc)) from exc
        return cls(websocket)

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_json(self, payload: Mapping[str, Any]) -> None:
        await self.send_text(json.dumps(dict(payload)))

    async def send_text(self, text: str) -> None:
        if self._closed:
            raise TransportError("connection already closed")
        try:
            await self._websocket.send_text(text)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            raise TransportError(f"write: {exc!r}") from exc

    async def receive_payload(self) -> bytes | None:
        """Return the next frame as bytes, or ``None`` once the peer disconnected."""
        if self._closed:
            return None
        try:
            message = await self._websocket.receive()
        except (RuntimeError, OSError) as exc:
            raise TransportError(f"read: {exc!r}") from exc
        if message["type"] == "websocket.disconnect":
            self._closed = True
            return None
        text = message.get("text")
        if text is not None:
            return text.encode("utf-8")
        data = message.get("bytes")
        return data if data is not None else b""

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._websocket.close()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("close: %r", exc)


__all__ = ["WebSocketConnection"]
