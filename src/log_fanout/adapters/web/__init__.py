"""WebSocket transport built on FastAPI/Starlette."""

from __future__ import annotations

from .app import CLOSE_COMMAND, FORMAT_ERROR_TEXT, create_app
from .connection import WebSocketConnection

__all__ = ["CLOSE_COMMAND", "FORMAT_ERROR_TEXT", "WebSocketConnection", "create_app"]
