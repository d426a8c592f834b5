"""Application use cases: producer submission and consumer fan-out."""

from __future__ import annotations

from .broadcast import BroadcastCallable, BroadcastResult, create_broadcast
from .submit import SubmitCallable, SubmitOutcome, accepts, create_submit

__all__ = [
    "BroadcastCallable",
    "BroadcastResult",
    "SubmitCallable",
    "SubmitOutcome",
    "accepts",
    "create_broadcast",
    "create_submit",
]
