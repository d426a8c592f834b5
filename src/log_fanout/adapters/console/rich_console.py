"""Rich-powered console consumer implementing :class:`ConnectionPort`.

Purpose
-------
Let the relay itself act as one more consumer: every broadcast record is
rendered on the local terminal in the same layout as the browser page.

Contents
--------
* :data:`_STYLE_MAP` - default level-to-style mapping.
* :class:`RichConsoleConnection` - registered at startup when echo is enabled.

System Role
-----------
Optional human-facing sink. It goes through the same registry and fan-out
path as remote consumers, so a closed console is pruned like any dead socket.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from rich.console import Console

from log_fanout.application.ports.connection import ConnectionPort
from log_fanout.domain.errors import TransportError
from log_fanout.domain.levels import ControlSignal, LogLevel


_STYLE_MAP: Mapping[LogLevel, str] = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "cyan",
    LogLevel.WARN: "yellow",
    LogLevel.ERROR: "red",
}

#: Default Rich styles keyed by :class:`LogLevel`.

_CONTROL_TITLES: Mapping[ControlSignal, str] = {
    ControlSignal.CLEAR_ON_START: "cleared on start",
    ControlSignal.CLEAR_ON_FINISH: "cleared on finish",
}


class RichConsoleConnection(ConnectionPort):
    """Render broadcast payloads with Rich."""

    def __init__(
        self,
        *,
        console: Console | None = None,
        force_color: bool = False,
        no_color: bool = False,
        styles: MutableMapping[LogLevel | str, str] | None = None,
    ) -> None:
        if console is not None:
            self._console = console
        else:
            self._console = Console(force_terminal=force_color, no_color=no_color)
        self._no_color = no_color
        self._closed = False
        if styles:
            merged = dict(_STYLE_MAP)
            for key, value in styles.items():
                level = LogLevel.from_name(key) if isinstance(key, str) else key
                merged[level] = value
            self._style_map = merged
        else:
            self._style_map = dict(_STYLE_MAP)

    @property
    def closed(self) -> bool:
        return self._closed

    async def send_json(self, payload: Mapping[str, Any]) -> None:
        """Print ``payload``; fails with :class:`TransportError` once closed.

        Examples
        --------
        >>> import asyncio
        >>> from io import StringIO
        >>> console = Console(file=StringIO(), record=True)
        >>> sink = RichConsoleConnection(console=console)
        >>> asyncio.run(sink.send_json({"content": "hi", "level": 1, "time": 5}))
        >>> "[INFO ]" in console.export_text()
        True
        """
        if self._closed:
            raise TransportError("console consumer is closed")
        level = int(payload.get("level", LogLevel.DEBUG))
        if level in (ControlSignal.CLEAR_ON_START, ControlSignal.CLEAR_ON_FINISH):
            self._console.rule(_CONTROL_TITLES[ControlSignal(level)], style="dim")
            return
        severity = LogLevel.from_numeric(level)
        style = "" if self._no_color else self._style_map.get(severity, "")
        self._console.print(self._format_line(payload, severity), style=style, highlight=False, markup=False)

    async def close(self) -> None:
        self._closed = True

    @staticmethod
    def _format_line(payload: Mapping[str, Any], severity: LogLevel) -> str:
        """Return ``[LEVEL] <file@line:col> (time) content``.

        The location part is omitted when the producer supplied none.

        Examples
        --------
        >>> RichConsoleConnection._format_line({"content": "x", "time": 7, "file_name": "a.py", "line_num": 3, "column_num": 1}, LogLevel.WARN)
        '[WARN ] <a.py@3:1> (7) x'
        >>> RichConsoleConnection._format_line({"content": "x", "time": 0}, LogLevel.DEBUG)
        '[DEBUG] (0) x'
        """
        file_name = payload.get("file_name", "")
        line_num = payload.get("line_num", -1)
        parts = [f"[{severity.label}]"]
        if file_name != "" or line_num != -1:
            parts.append(f"<{file_name}@{line_num}:{payload.get('column_num', -1)}>")
        parts.append(f"({payload.get('time', 0)})")
        parts.append(str(payload.get("content", "")))
        return " ".join(parts)


__all__ = ["RichConsoleConnection"]
