"""FastAPI application exposing the producer and consumer WebSocket endpoints.

Purpose
-------
Bridge WebSocket sessions to the relay core: consumer sessions register and
unregister their connection, producer sessions feed every frame to
``submit``.

Contents
--------
* :data:`FORMAT_ERROR_TEXT` - error text returned to misbehaving producers.
* :func:`create_app` - application factory bound to one relay context.

System Role
-----------
Outer adapter. Per-session errors stay inside their session; nothing raised
here reaches the dispatcher or another connection.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, WebSocket
from fastapi.staticfiles import StaticFiles

from log_fanout.domain.errors import FormatError, TransportError, UpgradeError

from .connection import WebSocketConnection

if TYPE_CHECKING:
    from log_fanout.runtime import RelayContext


LOGGER = logging.getLogger(__name__)

FORMAT_ERROR_TEXT = "Message did not abide by the proper format."
CLOSE_COMMAND = b"close"
STATIC_PREFIX = "/static"


def create_app(relay: "RelayContext") -> FastAPI:
    """Return a FastAPI app serving ``/rec``, ``/send`` and optional static files.

    The lifespan starts the relay's dispatcher on startup and stops it on
    shutdown.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        await relay.start()
        try:
            yield
        finally:
            await relay.stop()

    app = FastAPI(title="log_fanout", lifespan=lifespan)
    app.include_router(_build_router(relay))
    app.state.relay = relay

    static_dir = relay.settings.static_dir
    if static_dir:
        path = Path(static_dir)
        if path.is_dir():
            app.mount(STATIC_PREFIX, StaticFiles(directory=path, html=True), name="static")
        else:
            LOGGER.warning("Static directory %s does not exist; static files are not served", path)
    return app


def _build_router(relay: "RelayContext") -> APIRouter:
    router = APIRouter()

    @router.websocket("/rec")
    async def receive(websocket: WebSocket) -> None:
        connection = await _accept(websocket)
        if connection is None:
            return
        handle = await relay.registry.register(connection)
        try:
            while True:
                try:
                    message = await connection.receive_payload()
                except TransportError as exc:
                    LOGGER.info("read: %s", exc)
                    break
                if message is None:
                    LOGGER.info("read: consumer %d disconnected", handle)
                    break
                LOGGER.debug("recv: %s", message.decode("utf-8", errors="replace"))
                if message == CLOSE_COMMAND:
                    LOGGER.info("closed")
                    break
        finally:
            await relay.registry.unregister(handle)

    @router.websocket("/send")
    async def send(websocket: WebSocket) -> None:
        connection = await _accept(websocket)
        if connection is None:
            return
        try:
            while True:
                try:
                    message = await connection.receive_payload()
                except TransportError as exc:
                    LOGGER.info("read: %s", exc)
                    break
                if message is None:
                    LOGGER.info("read: producer disconnected")
                    break
                LOGGER.debug("recv: %s", message.decode("utf-8", errors="replace"))
                try:
                    await relay.submit(message)
                except FormatError as exc:
                    reply = json.dumps({"error": FORMAT_ERROR_TEXT, "message": exc.payload_text})
                    try:
                        await connection.send_text(reply)
                    except TransportError as write_exc:
                        LOGGER.info("write: %s", write_exc)
                        break
        finally:
            await connection.close()

    return router


async def _accept(websocket: WebSocket) -> WebSocketConnection | None:
    try:
        return await WebSocketConnection.accept(websocket)
    except UpgradeError as exc:
        LOGGER.warning("upgrade: %s", exc)
        return None


__all__ = ["CLOSE_COMMAND", "FORMAT_ERROR_TEXT", "create_app"]
