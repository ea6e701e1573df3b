"""Unit tests for PollLoop: receive parameters, error classification, stop checks."""
from __future__ import annotations

import asyncio

import pytest

from sqs_consumer.app.application.poll_loop import PollLoop
from sqs_consumer.app.ports.queue_client import QueueClientError, QueueErrorKind
from tests.fakes import QUEUE_URL, FakeQueueClient, fast_config, make_batch, wait_until


async def _run_until(loop: PollLoop, sink, done) -> None:
    stop = asyncio.Event()
    task = asyncio.create_task(loop.run(sink, stop.is_set))
    try:
        await wait_until(done)
    finally:
        stop.set()
        await asyncio.wait_for(task, timeout=5)


@pytest.mark.asyncio
async def test_receive_uses_long_poll_and_attribute_names():
    client = FakeQueueClient()
    loop = PollLoop(client, fast_config())
    received = []

    async def sink(message):
        received.append(message)

    await _run_until(loop, sink, lambda: client.receive_calls >= 1)

    assert client.receive_requests[0] == {
        "queue_url": QUEUE_URL,
        "attribute_names": ("SentTimestamp", "ApproximateReceiveCount"),
        "message_attribute_names": ("All",),
        "wait_seconds": 15,
    }


@pytest.mark.asyncio
async def test_messages_forwarded_to_sink_in_receive_order():
    client = FakeQueueClient([make_batch(0, 3), make_batch(3, 2)])
    loop = PollLoop(client, fast_config())
    received = []

    async def sink(message):
        received.append(message.message_id)

    await _run_until(loop, sink, lambda: len(received) == 5)

    assert received == ["m-0", "m-1", "m-2", "m-3", "m-4"]


@pytest.mark.asyncio
async def test_transient_receive_errors_are_not_logged(error_logs):
    client = FakeQueueClient(
        [
            QueueClientError("throttled", kind=QueueErrorKind.THROTTLED),
            QueueClientError("unavailable", kind=QueueErrorKind.RETRYABLE),
        ]
    )
    loop = PollLoop(client, fast_config())

    async def sink(message):
        return None

    await _run_until(loop, sink, lambda: client.receive_calls >= 3)

    assert error_logs == []


@pytest.mark.asyncio
async def test_permanent_receive_error_logged_once_then_polling_continues(error_logs):
    client = FakeQueueClient(
        [
            QueueClientError("throttled", kind=QueueErrorKind.THROTTLED),
            QueueClientError("canceled", kind=QueueErrorKind.PERMANENT),
            make_batch(0, 1),
        ]
    )
    loop = PollLoop(client, fast_config())
    received = []

    async def sink(message):
        received.append(message)

    await _run_until(loop, sink, lambda: len(received) == 1 and client.receive_calls >= 4)

    assert len(error_logs) == 1
    assert error_logs[0]["extra"]["event"] == "receive_failed"


@pytest.mark.asyncio
async def test_backoff_attempt_resets_after_success():
    attempts: list[int] = []

    def _delay(attempt: int) -> float:
        attempts.append(attempt)
        return 0.0

    from sqs_consumer.app.core.backoff import BackoffPolicy

    throttled = QueueClientError("throttled", kind=QueueErrorKind.THROTTLED)
    client = FakeQueueClient([throttled, throttled, [], throttled])
    loop = PollLoop(client, fast_config(receive_backoff=BackoffPolicy(delay_fn=_delay)))

    async def sink(message):
        return None

    await _run_until(loop, sink, lambda: client.receive_calls >= 5)

    assert attempts == [1, 2, 1]


@pytest.mark.asyncio
async def test_stop_checked_before_first_receive():
    client = FakeQueueClient()
    loop = PollLoop(client, fast_config())

    async def sink(message):
        return None

    await asyncio.wait_for(loop.run(sink, lambda: True), timeout=1)

    assert client.receive_calls == 0
    assert loop.receive_calls == 0
