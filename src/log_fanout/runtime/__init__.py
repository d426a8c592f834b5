"""Relay composition root.

Purpose
-------
Assemble the registry, inbound queue, level filter, and broadcast engine into
one explicit context object that every handler receives. There are no module
level singletons, so tests can build as many isolated relays as they need.

Contents
--------
* :class:`RelayContext` - live collaborators plus lifecycle helpers.
* :func:`build_relay` - construct a context from :class:`RelaySettings`.
* :func:`configure_logging` / :func:`serve` - process-level wiring.

System Role
-----------
Outer shell between the configuration/CLI layer and the application layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from log_fanout.adapters.console import RichConsoleConnection
from log_fanout.adapters.queue import InboundQueue
from log_fanout.adapters.registry import ConnectionRegistry
from log_fanout.application.use_cases.broadcast import create_broadcast
from log_fanout.application.use_cases.submit import SubmitCallable, SubmitOutcome, create_submit
from log_fanout.config import RelaySettings

from ._dispatcher import BroadcastEngine
from ._logging import configure_logging
from ._server import serve

LOGGER = logging.getLogger(__name__)

DiagnosticHook = Callable[[str, dict[str, Any]], None]


@dataclass(slots=True)
class RelayContext:
    """Aggregate of live collaborators created by :func:`build_relay`.

    Parameters
    ----------
    settings:
        Startup configuration; ``settings.min_level`` is the read-only
        threshold used by ``submit``.
    registry:
        Consumer connections keyed by handle.
    queue:
        Inbound queue between producers and the dispatcher.
    engine:
        The single dispatch loop.
    submit_callable:
        Producer entry point produced by :func:`create_submit`.
    """

    settings: RelaySettings
    registry: ConnectionRegistry
    queue: InboundQueue
    engine: BroadcastEngine
    submit_callable: SubmitCallable
    echo: RichConsoleConnection | None = None
    echo_handle: int | None = field(default=None, init=False)

    async def submit(self, raw: bytes | str) -> SubmitOutcome:
        """Classify, filter, and enqueue one producer frame.

        Raises :class:`~log_fanout.domain.FormatError` for malformed frames.
        """
        return await self.submit_callable(raw)

    async def start(self) -> None:
        """Start the dispatcher and register the console consumer if configured."""
        self.engine.start()
        if self.echo is not None and self.echo_handle is None:
            self.echo_handle = await self.registry.register(self.echo)

    async def stop(self) -> None:
        """Stop the dispatcher and close every remaining connection."""
        await self.engine.stop()
        await self.registry.close_all()


def build_relay(settings: RelaySettings | None = None, *, diagnostic: DiagnosticHook | None = None) -> RelayContext:
    """Assemble a :class:`RelayContext` from ``settings`` (defaults when ``None``)."""

    resolved = settings or RelaySettings()
    registry = ConnectionRegistry(diagnostic=diagnostic)
    queue = InboundQueue(
        maxsize=resolved.queue_maxsize,
        drop_policy=resolved.queue_full_policy,
        timeout=resolved.queue_put_timeout,
        diagnostic=diagnostic,
    )
    broadcast = create_broadcast(registry=registry, send_timeout=resolved.send_timeout, diagnostic=diagnostic)
    engine = BroadcastEngine(queue=queue, broadcast=broadcast, diagnostic=diagnostic)
    submit = create_submit(queue=queue, min_level=resolved.min_level, diagnostic=diagnostic)
    echo = RichConsoleConnection() if resolved.echo else None
    LOGGER.debug("relay assembled: threshold=%s queue=%d/%s", resolved.min_level.severity, resolved.queue_maxsize, resolved.queue_full_policy)
    return RelayContext(
        settings=resolved,
        registry=registry,
        queue=queue,
        engine=engine,
        submit_callable=submit,
        echo=echo,
    )


__all__ = [
    "BroadcastEngine",
    "DiagnosticHook",
    "RelayContext",
    "build_relay",
    "configure_logging",
    "serve",
]
