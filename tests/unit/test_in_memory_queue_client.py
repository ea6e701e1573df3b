"""Unit tests for the in-memory queue client used in local mode."""
from __future__ import annotations

import asyncio

import pytest

from sqs_consumer.app.application.pooled_consumer import PooledQueueConsumer
from sqs_consumer.app.constants import RECEIVE_ATTRIBUTE_NAMES, RECEIVE_MESSAGE_ATTRIBUTE_NAMES
from sqs_consumer.app.infrastructure.messaging.inmemory.in_memory_queue_client import InMemoryQueueClient
from sqs_consumer.app.ports.message_handler import RetryableConsumerError
from sqs_consumer.app.ports.queue_client import QueueClient, QueueClientError
from tests.fakes import QUEUE_URL, RecordingHandler, fast_config, wait_until


async def _receive(client: InMemoryQueueClient, wait_seconds: int = 0):
    return await client.receive_messages(
        QUEUE_URL,
        attribute_names=RECEIVE_ATTRIBUTE_NAMES,
        message_attribute_names=RECEIVE_MESSAGE_ATTRIBUTE_NAMES,
        wait_seconds=wait_seconds,
    )


def test_implements_queue_client_port():
    assert isinstance(InMemoryQueueClient(), QueueClient)


@pytest.mark.asyncio
async def test_received_message_is_invisible_until_timeout():
    client = InMemoryQueueClient(visibility_timeout=30)
    message_id = client.send("hello", {"trace": {"StringValue": "t-1", "DataType": "String"}})

    first = await _receive(client)
    second = await _receive(client)

    assert [m.message_id for m in first] == [message_id]
    assert first[0].body == b"hello"
    assert first[0].receive_count == 1
    assert first[0].message_attributes["trace"]["StringValue"] == "t-1"
    assert second == []
    assert client.size == 1


@pytest.mark.asyncio
async def test_max_messages_caps_a_receive():
    client = InMemoryQueueClient(max_messages=3)
    for i in range(5):
        client.send(f"m{i}")

    assert len(await _receive(client)) == 3
    assert len(await _receive(client)) == 2


@pytest.mark.asyncio
async def test_zero_visibility_change_redelivers_with_new_receipt():
    client = InMemoryQueueClient(visibility_timeout=30)
    client.send(b"payload")
    [first] = await _receive(client)

    await client.change_message_visibility(QUEUE_URL, first.receipt_handle, 0)
    [second] = await _receive(client)

    assert second.message_id == first.message_id
    assert second.receipt_handle != first.receipt_handle
    assert second.receive_count == 2


@pytest.mark.asyncio
async def test_delete_removes_message_and_repeat_delete_is_a_no_op():
    client = InMemoryQueueClient()
    client.send(b"payload")
    [message] = await _receive(client)

    await client.delete_message(QUEUE_URL, message.receipt_handle)
    await client.delete_message(QUEUE_URL, message.receipt_handle)

    assert client.size == 0


@pytest.mark.asyncio
async def test_unknown_receipt_is_rejected():
    client = InMemoryQueueClient()

    with pytest.raises(QueueClientError) as excinfo:
        await client.delete_message(QUEUE_URL, "nope")

    assert excinfo.value.code == "ReceiptHandleIsInvalid"
    assert not excinfo.value.transient


@pytest.mark.asyncio
async def test_long_poll_returns_message_sent_while_waiting():
    client = InMemoryQueueClient()
    receive = asyncio.create_task(_receive(client, wait_seconds=5))
    await asyncio.sleep(0.01)
    client.send(b"late")

    messages = await asyncio.wait_for(receive, timeout=2)

    assert [m.body for m in messages] == [b"late"]


@pytest.mark.asyncio
async def test_closed_client_rejects_calls():
    client = InMemoryQueueClient()
    await client.close()

    with pytest.raises(QueueClientError):
        await _receive(client)


@pytest.mark.asyncio
async def test_pooled_consumer_drains_in_memory_queue():
    client = InMemoryQueueClient(visibility_timeout=30)
    for i in range(25):
        client.send(f"message-{i}")
    handler = RecordingHandler()
    consumer = PooledQueueConsumer(
        client, handler, fast_config(num_workers=3, message_pool_size=5, wait_time_seconds=0)
    )

    task = asyncio.create_task(consumer.start_consuming())
    await wait_until(lambda: client.size == 0)
    consumer.stop_consuming()
    await asyncio.wait_for(task, timeout=5)

    assert sorted(body for _, body in handler.calls) == sorted(f"message-{i}".encode() for i in range(25))


@pytest.mark.asyncio
async def test_retry_later_message_is_still_deleted_by_pooled_consumer():
    client = InMemoryQueueClient(visibility_timeout=30)
    client.send(b"retry me")
    handler = RecordingHandler(raises=RetryableConsumerError(visibility_timeout=0))
    consumer = PooledQueueConsumer(client, handler, fast_config(num_workers=1, message_pool_size=1, wait_time_seconds=0))

    task = asyncio.create_task(consumer.start_consuming())
    await wait_until(lambda: client.size == 0)
    consumer.stop_consuming()
    await asyncio.wait_for(task, timeout=5)

    assert len(handler.calls) == 1


@pytest.mark.asyncio
async def test_deleted_receipt_memory_is_bounded():
    client = InMemoryQueueClient(deleted_receipt_memory=2)
    for i in range(3):
        client.send(f"m{i}")
    messages = await _receive(client)
    for message in messages:
        await client.delete_message(QUEUE_URL, message.receipt_handle)

    await client.delete_message(QUEUE_URL, messages[-1].receipt_handle)
    with pytest.raises(QueueClientError) as excinfo:
        await client.delete_message(QUEUE_URL, messages[0].receipt_handle)

    assert excinfo.value.code == "ReceiptHandleIsInvalid"
    assert client.size == 0
