"""Run the relay under uvicorn."""

from __future__ import annotations

import logging
import threading
import time
import webbrowser
from typing import TYPE_CHECKING

import uvicorn

from log_fanout.adapters.web import create_app
from log_fanout.config import RelaySettings

if TYPE_CHECKING:
    from . import RelayContext

LOGGER = logging.getLogger(__name__)


def serve(settings: RelaySettings, *, relay: "RelayContext | None" = None) -> None:
    """Bind ``settings.address`` and serve until interrupted.

    A bind failure is fatal: uvicorn logs it and exits the process, there is
    no retry.
    """
    from . import build_relay

    context = relay or build_relay(settings)
    app = create_app(context)
    config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
        log_level="info" if settings.log_to_console else "warning",
        access_log=settings.log_to_console,
    )
    server = uvicorn.Server(config)

    if settings.open_browser and settings.serves_static:
        threading.Thread(
            target=_open_when_started,
            args=(server, settings.home_url),
            name="log_fanout-browser",
            daemon=True,
        ).start()

    LOGGER.info("log_fanout listening on %s (threshold %s)", settings.address, settings.min_level.severity)
    server.run()


def _open_when_started(server: uvicorn.Server, url: str, timeout: float = 10.0) -> None:
    deadline = time.monotonic() + timeout
    while not server.started:
        if time.monotonic() >= deadline or server.should_exit:
            LOGGER.warning("Server did not start within %.0fs; not opening %s", timeout, url)
            return
        time.sleep(0.05)
    LOGGER.info("Opening %s", url)
    webbrowser.open_new_tab(url)


__all__ = ["serve"]
