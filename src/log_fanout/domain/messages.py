"""Wire records travelling from producers to consumers.

Purpose
-------
Decode producer payloads into immutable records, apply the field defaults,
and render the JSON payload pushed to every consumer.

Contents
--------
* :class:`Message` - a single log event.
* :class:`ControlMessage` - a clear-on-start/clear-on-finish instruction.
* :func:`parse_message` - strict JSON decoding with severity coercion.
* :data:`Outbound` - the union of everything the broadcast engine sends.

System Role
-----------
Domain layer. Records are created once per inbound frame, consumed by one
broadcast pass, and then discarded; nothing here keeps history.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from .errors import ParseError
from .levels import ControlSignal, LogLevel

WIRE_FIELDS: tuple[str, ...] = (
    "time",
    "content",
    "logger_name",
    "file_name",
    "line_num",
    "column_num",
    "level",
)
"""Keys of every payload sent to consumers, in wire order."""

_INT_FIELDS = ("time", "line_num", "column_num", "level")
_STR_FIELDS = ("content", "logger_name", "file_name")

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(slots=True, frozen=True)
class Message:
    """Immutable log event.

    Attributes
    ----------
    time:
        Producer-supplied timestamp; the unit is opaque to the relay.
    content:
        Rendered log text.
    logger_name:
        Name of the emitting logger, possibly empty.
    file_name:
        Source file, empty when unavailable.
    line_num / column_num:
        Source position, ``-1`` when unavailable.
    level:
        Severity, always one of the four :class:`LogLevel` members.
    """

    time: int = 0
    content: str = ""
    logger_name: str = ""
    file_name: str = ""
    line_num: int = -1
    column_num: int = -1
    level: LogLevel = LogLevel.DEBUG

    def __post_init__(self) -> None:
        if not isinstance(self.level, LogLevel):
            object.__setattr__(self, "level", LogLevel.from_numeric(int(self.level)))

    @property
    def has_location(self) -> bool:
        return self.file_name != "" or self.line_num != -1

    def to_dict(self) -> dict[str, Any]:
        """Return the consumer payload with the numeric level encoding."""

        return {
            "time": self.time,
            "content": self.content,
            "logger_name": self.logger_name,
            "file_name": self.file_name,
            "line_num": self.line_num,
            "column_num": self.column_num,
            "level": int(self.level),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@dataclass(slots=True, frozen=True)
class ControlMessage:
    """Zero-content instruction asking consumers to clear their display."""

    signal: ControlSignal

    def to_dict(self) -> dict[str, Any]:
        """Return the consumer payload; every field except ``level`` is zero-valued.

        Examples
        --------
        >>> ControlMessage(ControlSignal.CLEAR_ON_FINISH).to_dict()["level"]
        -1
        """
        return {
            "time": 0,
            "content": "",
            "logger_name": "",
            "file_name": "",
            "line_num": 0,
            "column_num": 0,
            "level": int(self.signal),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


Outbound = Union[Message, ControlMessage]


def parse_message(raw: bytes | str) -> Message:
    """Decode a producer payload into a :class:`Message`.

    Absent and ``null`` fields take their defaults and a bare ``null``
    document decodes like ``{}``; unknown fields are ignored. A level
    outside ``[debug, error]`` is raised to ``error`` instead of rejected.

    Raises
    ------
    ParseError
        When ``raw`` is not UTF-8 JSON, not an object, or a known field has
        the wrong JSON type or an integer outside the signed 64-bit range.

    Examples
    --------
    >>> parse_message(b'{"content": "boot", "level": 5}').level
    <LogLevel.ERROR: 3>
    >>> parse_message('{}').line_num
    -1
    """

    try:
        document = json.loads(raw)
    except (UnicodeDecodeError, ValueError) as exc:
        raise ParseError(f"payload is not valid JSON: {exc}") from exc
    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ParseError(f"payload must be a JSON object, got {type(document).__name__}")

    values: dict[str, Any] = {}
    for key in _INT_FIELDS:
        value = document.get(key)
        if value is None:
            continue
        # bool is an int subclass but never a valid number on the wire
        if isinstance(value, bool) or not isinstance(value, int):
            raise ParseError(f"field {key!r} must be an integer")
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise ParseError(f"field {key!r} is out of the signed 64-bit range")
        values[key] = value
    for key in _STR_FIELDS:
        value = document.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ParseError(f"field {key!r} must be a string")
        values[key] = value

    level = LogLevel.from_numeric(values.pop("level", int(LogLevel.DEBUG)))
    return Message(level=level, **values)


__all__ = ["ControlMessage", "Message", "Outbound", "WIRE_FIELDS", "parse_message"]
