"""Use case classifying a producer frame and enqueueing it for broadcast.

Purpose
-------
Turn one raw producer frame into at most one queued record: a control
message for the ``clears``/``clearf`` literals, otherwise a parsed
:class:`Message` that passes the configured level threshold.

Contents
--------
* :class:`SubmitOutcome` - what happened to the frame.
* :func:`accepts` - the level filter predicate.
* :func:`create_submit` - factory returning the ``submit`` coroutine.

System Role
-----------
Application layer entry point called by producer sessions. Malformed frames
raise :class:`FormatError`; filtered frames are a silent, successful drop.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from log_fanout.application.ports.queue import QueuePort
from log_fanout.domain.errors import FormatError, ParseError
from log_fanout.domain.levels import ControlSignal, LogLevel
from log_fanout.domain.messages import ControlMessage, parse_message

logger = logging.getLogger(__name__)


class SubmitOutcome(Enum):
    """Result of a successful :func:`submit` call."""

    QUEUED = "queued"
    FILTERED = "filtered"
    DROPPED = "dropped"


SubmitCallable = Callable[[bytes | str], Awaitable[SubmitOutcome]]


def accepts(level: LogLevel, threshold: LogLevel) -> bool:
    """Return ``True`` when ``level`` meets the configured ``threshold``.

    Examples
    --------
    >>> accepts(LogLevel.WARN, LogLevel.WARN)
    True
    >>> accepts(LogLevel.INFO, LogLevel.WARN)
    False
    """
    return level >= threshold


def create_submit(
    *,
    queue: QueuePort,
    min_level: LogLevel,
    diagnostic: Callable[[str, dict[str, Any]], None] | None = None,
) -> SubmitCallable:
    """Build the ``submit`` coroutine bound to ``queue`` and ``min_level``.

    The three classifications are mutually exclusive: a frame equal to
    ``clears`` or ``clearf`` is never also parsed as a log record.

    Parameters
    ----------
    queue:
        Destination for accepted records.
    min_level:
        Threshold fixed at startup; records below it are dropped silently.
    diagnostic:
        Optional ``(name, payload)`` hook notified of filtered and malformed
        frames.

    Returns
    -------
    Callable[[bytes | str], Awaitable[SubmitOutcome]]
        Coroutine function raising :class:`FormatError` for malformed frames.
    """

    def _diagnose(name: str, payload: dict[str, Any]) -> None:
        if diagnostic is None:
            return
        try:
            diagnostic(name, payload)
        except Exception:  # noqa: BLE001
            logger.exception("Submit diagnostic hook raised while reporting %s", name)

    async def _enqueue(item: Any) -> SubmitOutcome:
        if await queue.put(item):
            return SubmitOutcome.QUEUED
        return SubmitOutcome.DROPPED

    async def submit(raw: bytes | str) -> SubmitOutcome:
        payload = raw.encode("utf-8") if isinstance(raw, str) else bytes(raw)

        signal = ControlSignal.from_literal(payload)
        if signal is ControlSignal.CLEAR_ON_START:
            return await _enqueue(ControlMessage(ControlSignal.CLEAR_ON_START))
        elif signal is ControlSignal.CLEAR_ON_FINISH:
            return await _enqueue(ControlMessage(ControlSignal.CLEAR_ON_FINISH))
        else:
            try:
                message = parse_message(payload)
            except ParseError as exc:
                _diagnose("format_error", {"reason": str(exc)})
                raise FormatError(payload, str(exc)) from exc
            if not accepts(message.level, min_level):
                logger.debug("did not queue message due to log level")
                _diagnose("filtered", {"level": int(message.level), "threshold": int(min_level)})
                return SubmitOutcome.FILTERED
            return await _enqueue(message)

    return submit


__all__ = ["SubmitCallable", "SubmitOutcome", "accepts", "create_submit"]
