"""Severity levels and control signals carried through the relay.

Purpose
-------
Give the four log severities and the two out-of-band control signals
distinct Python types so callers never confuse a "clear the display"
instruction with a real severity.

Contents
--------
* :class:`LogLevel` ordered severity enum with coercion helpers.
* :class:`ControlSignal` sentinel enum for the ``clears``/``clearf`` frames.

System Role
-----------
Shared by the message model, the level filter, and the console renderer.
The numeric values are the wire encoding consumers rely on.
"""

from __future__ import annotations

from enum import IntEnum


class LogLevel(IntEnum):
    """Ordered severities, ascending restrictiveness."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3

    @property
    def severity(self) -> str:
        """Return the lowercase severity name used in diagnostics."""

        return self.name.lower()

    @property
    def label(self) -> str:
        """Return the fixed-width label rendered by consoles."""

        return _LABEL_TABLE[self]

    @classmethod
    def from_numeric(cls, value: int) -> "LogLevel":
        """Return the level for ``value``, coercing anything out of range to ``ERROR``.

        Examples
        --------
        >>> LogLevel.from_numeric(1)
        <LogLevel.INFO: 1>
        >>> LogLevel.from_numeric(5)
        <LogLevel.ERROR: 3>
        >>> LogLevel.from_numeric(-7)
        <LogLevel.ERROR: 3>
        """
        try:
            return cls(value)
        except ValueError:
            return cls.ERROR

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        if normalized == "WARNING":
            normalized = "WARN"
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def parse_threshold(cls, value: "str | int | LogLevel") -> "LogLevel":
        """Strictly parse a configured minimum level.

        Unlike :meth:`from_numeric`, thresholds are validated: a name or an
        integer in ``[0, 3]`` is required.

        Examples
        --------
        >>> LogLevel.parse_threshold("2")
        <LogLevel.WARN: 2>
        >>> LogLevel.parse_threshold("info")
        <LogLevel.INFO: 1>
        """
        if isinstance(value, LogLevel):
            return value
        if isinstance(value, bool):
            raise ValueError(f"Unsupported log level threshold: {value!r}")
        if isinstance(value, int):
            numeric = value
        else:
            text = value.strip()
            try:
                numeric = int(text)
            except ValueError:
                return cls.from_name(text)
        try:
            return cls(numeric)
        except ValueError as exc:
            raise ValueError(f"Log level threshold must be within [0, 3], got {numeric}") from exc


class ControlSignal(IntEnum):
    """Out-of-band display instructions; not real severities."""

    CLEAR_ON_START = -2
    CLEAR_ON_FINISH = -1

    @property
    def literal(self) -> bytes:
        """Return the raw producer frame that triggers this signal."""

        return _LITERAL_TABLE[self]

    @classmethod
    def from_literal(cls, payload: bytes) -> "ControlSignal | None":
        """Return the signal whose literal equals ``payload`` byte for byte.

        Examples
        --------
        >>> ControlSignal.from_literal(b"clears")
        <ControlSignal.CLEAR_ON_START: -2>
        >>> ControlSignal.from_literal(b"clears ") is None
        True
        """
        for signal, literal in _LITERAL_TABLE.items():
            if payload == literal:
                return signal
        return None


_LABEL_TABLE = {
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO ",
    LogLevel.WARN: "WARN ",
    LogLevel.ERROR: "ERROR",
}

_LITERAL_TABLE = {
    ControlSignal.CLEAR_ON_START: b"clears",
    ControlSignal.CLEAR_ON_FINISH: b"clearf",
}


__all__ = ["ControlSignal", "LogLevel"]
