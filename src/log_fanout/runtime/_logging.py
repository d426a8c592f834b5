"""Process-wide logging configuration."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_PACKAGE_LOGGER = "log_fanout"
_HANDLER_NAME = "log_fanout-console"


def configure_logging(enabled: bool, *, console: Console | None = None) -> logging.Handler:
    """Install the root console handler.

    When ``enabled`` the relay's diagnostic lines (connections opened and
    removed, frames received, filtered records) are rendered through Rich at
    DEBUG level. Otherwise only warnings and errors reach stderr. Calling it
    again replaces the previously installed handler.
    """

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)

    handler: logging.Handler
    if enabled:
        handler = RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        package_level = logging.DEBUG
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        package_level = logging.WARNING
    handler.set_name(_HANDLER_NAME)
    root.addHandler(handler)
    if root.level == logging.NOTSET or root.level > logging.INFO:
        root.setLevel(logging.INFO if enabled else logging.WARNING)
    logging.getLogger(_PACKAGE_LOGGER).setLevel(package_level)
    return handler


__all__ = ["configure_logging"]
