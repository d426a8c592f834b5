"""Domain entities and value objects used by the fan-out relay."""

from __future__ import annotations

from .errors import FormatError, ParseError, RelayError, TransportError, UpgradeError
from .levels import ControlSignal, LogLevel
from .messages import ControlMessage, Message, Outbound, parse_message

__all__ = [
    "ControlMessage",
    "ControlSignal",
    "FormatError",
    "LogLevel",
    "Message",
    "Outbound",
    "ParseError",
    "RelayError",
    "TransportError",
    "UpgradeError",
    "parse_message",
]
