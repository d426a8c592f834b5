from __future__ import annotations

import asyncio
import json

import pytest

from log_fanout.adapters.queue import InboundQueue
from log_fanout.adapters.registry import ConnectionRegistry
from log_fanout.application.use_cases.broadcast import create_broadcast
from log_fanout.application.use_cases.submit import SubmitOutcome, accepts, create_submit
from log_fanout.domain.errors import FormatError, ParseError
from log_fanout.domain.levels import ControlSignal, LogLevel
from log_fanout.domain.messages import ControlMessage, Message, Outbound
from tests.os_markers import OS_AGNOSTIC

pytestmark = [OS_AGNOSTIC]


class _RecordingQueue:
    def __init__(self, *, accept: bool = True) -> None:
        self.items: list[Outbound] = []
        self.accept = accept

    async def put(self, item: Outbound) -> bool:
        if not self.accept:
            return False
        self.items.append(item)
        return True

    async def get(self) -> Outbound:
        return self.items.pop(0)


class _Recorder:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []

    def __call__(self, name: str, payload: dict) -> None:
        self.calls.append((name, payload))

    @property
    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


def _payload(level: int, content: str = "x") -> bytes:
    return json.dumps({"content": content, "level": level}).encode()


@pytest.mark.parametrize("threshold", list(LogLevel))
@pytest.mark.parametrize("level", list(LogLevel))
def test_accepts_matches_threshold_ordering(level: LogLevel, threshold: LogLevel) -> None:
    assert accepts(level, threshold) is (int(level) >= int(threshold))


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", list(LogLevel))
@pytest.mark.parametrize("level", [0, 1, 2, 3])
async def test_submit_enqueues_iff_level_meets_threshold(level: int, threshold: LogLevel) -> None:
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=threshold)

    outcome = await submit(_payload(level))

    if level >= threshold:
        assert outcome is SubmitOutcome.QUEUED
        assert [item.level for item in queue.items] == [LogLevel(level)]
    else:
        assert outcome is SubmitOutcome.FILTERED
        assert queue.items == []


@pytest.mark.asyncio
@pytest.mark.parametrize("threshold", list(LogLevel))
@pytest.mark.parametrize(
    "raw, signal",
    [(b"clears", ControlSignal.CLEAR_ON_START), (b"clearf", ControlSignal.CLEAR_ON_FINISH), ("clears", ControlSignal.CLEAR_ON_START)],
)
async def test_control_literals_bypass_the_threshold(raw: bytes | str, signal: ControlSignal, threshold: LogLevel) -> None:
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=threshold)

    assert await submit(raw) is SubmitOutcome.QUEUED
    assert queue.items == [ControlMessage(signal)]


@pytest.mark.asyncio
async def test_control_literal_is_never_parsed_as_a_record(monkeypatch: pytest.MonkeyPatch) -> None:
    import log_fanout.application.use_cases.submit as submit_module

    def forbidden(raw: bytes) -> Message:
        raise AssertionError("control literal reached the parser")

    monkeypatch.setattr(submit_module, "parse_message", forbidden)
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=LogLevel.ERROR)

    await submit(b"clears")
    await submit(b"clearf")
    assert len(queue.items) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b"clears ", b"Clearf", b"clearfx", b'"clears"'])
async def test_near_miss_literals_go_through_normal_parsing(raw: bytes) -> None:
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=LogLevel.DEBUG)
    with pytest.raises(FormatError):
        await submit(raw)
    assert queue.items == []


@pytest.mark.asyncio
async def test_malformed_payload_raises_format_error_and_enqueues_nothing() -> None:
    queue = _RecordingQueue()
    recorder = _Recorder()
    submit = create_submit(queue=queue, min_level=LogLevel.DEBUG, diagnostic=recorder)

    with pytest.raises(FormatError) as excinfo:
        await submit(b"not json")

    assert excinfo.value.payload == b"not json"
    assert excinfo.value.payload_text == "not json"
    assert isinstance(excinfo.value.__cause__, ParseError)
    assert isinstance(excinfo.value, ParseError)
    assert queue.items == []
    assert recorder.names == ["format_error"]


@pytest.mark.asyncio
async def test_out_of_range_level_is_clamped_before_filtering() -> None:
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=LogLevel.ERROR)

    assert await submit(b'{"content":"boot","level":5}') is SubmitOutcome.QUEUED
    assert queue.items[0].level is LogLevel.ERROR


@pytest.mark.asyncio
async def test_filtered_records_are_reported_to_diagnostics() -> None:
    recorder = _Recorder()
    submit = create_submit(queue=_RecordingQueue(), min_level=LogLevel.WARN, diagnostic=recorder)
    await submit(_payload(1))
    assert recorder.calls == [("filtered", {"level": 1, "threshold": 2})]


@pytest.mark.asyncio
async def test_full_queue_reports_dropped() -> None:
    submit = create_submit(queue=_RecordingQueue(accept=False), min_level=LogLevel.DEBUG)
    assert await submit(_payload(3)) is SubmitOutcome.DROPPED
    assert await submit(b"clearf") is SubmitOutcome.DROPPED


@pytest.mark.asyncio
async def test_submit_preserves_single_producer_order() -> None:
    queue = InboundQueue()
    submit = create_submit(queue=queue, min_level=LogLevel.DEBUG)
    for index in range(10):
        await submit(json.dumps({"content": str(index)}))
    received = [(await queue.get()).content for _ in range(10)]
    assert received == [str(index) for index in range(10)]


@pytest.mark.asyncio
async def test_broadcast_delivers_one_copy_to_each_consumer(make_connection) -> None:
    registry = ConnectionRegistry()
    consumers = [make_connection() for _ in range(5)]
    for consumer in consumers:
        await registry.register(consumer)
    broadcast = create_broadcast(registry=registry)

    result = await broadcast(Message(content="fan", level=LogLevel.INFO))

    assert result.delivered == 5
    assert result.removed == ()
    for consumer in consumers:
        assert consumer.payloads == [Message(content="fan", level=LogLevel.INFO).to_dict()]


@pytest.mark.asyncio
async def test_broadcast_prunes_broken_consumers_only(make_connection) -> None:
    registry = ConnectionRegistry()
    healthy = [make_connection() for _ in range(3)]
    broken = make_connection(broken=True)
    handles = [await registry.register(connection) for connection in (healthy[0], broken, healthy[1], healthy[2])]
    recorder = _Recorder()
    broadcast = create_broadcast(registry=registry, diagnostic=recorder)

    first = await broadcast(Message(content="first"))
    second = await broadcast(Message(content="second"))

    assert first.removed == (handles[1],)
    assert first.delivered == 3
    assert second.removed == ()
    assert handles[1] not in registry
    assert broken.closed
    assert broken.payloads == []
    for connection in healthy:
        assert [payload["content"] for payload in connection.payloads] == ["first", "second"]
    assert recorder.calls == [("consumer_removed", {"handle": handles[1], "reason": "write_failed"})]


@pytest.mark.asyncio
async def test_broadcast_drops_consumers_that_stall(make_connection) -> None:
    registry = ConnectionRegistry()
    fast = make_connection()
    slow = make_connection(delay=1.0)
    await registry.register(fast)
    slow_handle = await registry.register(slow)
    broadcast = create_broadcast(registry=registry, send_timeout=0.05)

    result = await broadcast(Message(content="tick"))

    assert result.removed == (slow_handle,)
    assert fast.payloads[0]["content"] == "tick"


@pytest.mark.asyncio
async def test_broadcast_writes_are_concurrent(make_connection) -> None:
    registry = ConnectionRegistry()
    for _ in range(10):
        await registry.register(make_connection(delay=0.05))
    broadcast = create_broadcast(registry=registry, send_timeout=5.0)

    loop = asyncio.get_running_loop()
    started = loop.time()
    result = await broadcast(Message(content="parallel"))
    elapsed = loop.time() - started

    assert result.delivered == 10
    assert elapsed < 0.4


@pytest.mark.asyncio
async def test_broadcast_with_no_consumers_is_a_noop() -> None:
    broadcast = create_broadcast(registry=ConnectionRegistry())
    result = await broadcast(ControlMessage(ControlSignal.CLEAR_ON_START))
    assert result.delivered == 0
    assert result.removed == ()


@pytest.mark.asyncio
async def test_broadcast_sends_control_messages_with_sentinel_levels(make_connection) -> None:
    registry = ConnectionRegistry()
    consumer = make_connection()
    await registry.register(consumer)
    broadcast = create_broadcast(registry=registry)

    await broadcast(ControlMessage(ControlSignal.CLEAR_ON_FINISH))

    assert consumer.payloads[0]["level"] == -1


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", [b'{"content":"x","file_name":null}', b'{"content":"x","level":null}', b"null"])
async def test_null_fields_are_queued_with_defaults(raw: bytes) -> None:
    queue = _RecordingQueue()
    submit = create_submit(queue=queue, min_level=LogLevel.DEBUG)

    assert await submit(raw) is SubmitOutcome.QUEUED
    assert queue.items[0].file_name == ""
    assert queue.items[0].level is LogLevel.DEBUG
