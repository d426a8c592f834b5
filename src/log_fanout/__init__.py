"""Public package surface of the log fan-out relay.

``import log_fanout`` exposes the composition root and the domain types
producers and consumers exchange; ``python -m log_fanout`` runs the CLI.
"""

from __future__ import annotations

from .config import RelaySettings, build_settings
from .domain import ControlMessage, ControlSignal, FormatError, LogLevel, Message, parse_message
from .runtime import RelayContext, build_relay, serve


def summary_info() -> str:
    """Return the metadata banner used by the CLI ``info`` command.

    Examples
    --------
    >>> "version" in summary_info()
    True
    """
    from . import __init__conf__

    lines: list[str] = []
    __init__conf__.print_info(writer=lines.append)
    return "".join(lines)


__all__ = [
    "ControlMessage",
    "ControlSignal",
    "FormatError",
    "LogLevel",
    "Message",
    "RelayContext",
    "RelaySettings",
    "build_relay",
    "build_settings",
    "parse_message",
    "serve",
    "summary_info",
]
