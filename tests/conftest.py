from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any, Mapping

import pytest

from log_fanout import config as relay_config
from log_fanout.domain.errors import TransportError


class RecordingConnection:
    """In-memory consumer recording every payload it receives."""

    def __init__(self, *, broken: bool = False, delay: float = 0.0) -> None:
        self.payloads: list[dict[str, Any]] = []
        self.broken = broken
        self.delay = delay
        self.closed = False
        self.close_calls = 0

    async def send_json(self, payload: Mapping[str, Any]) -> None:
        if self.broken or self.closed:
            raise TransportError("peer went away")
        if self.delay:
            await asyncio.sleep(self.delay)
        self.payloads.append(dict(payload))

    async def close(self) -> None:
        self.close_calls += 1
        self.closed = True


@pytest.fixture
def make_connection() -> Callable[..., RecordingConnection]:
    return RecordingConnection


@pytest.fixture(autouse=True)
def _reset_dotenv_state() -> None:
    relay_config._reset_dotenv_state_for_testing()
    yield
    relay_config._reset_dotenv_state_for_testing()


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def wait_until_sync(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        time.sleep(0.005)


@pytest.fixture
def eventually() -> Callable[..., Any]:
    return wait_until


@pytest.fixture
def eventually_sync() -> Callable[..., None]:
    return wait_until_sync
