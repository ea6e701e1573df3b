"""Messaging factories: select queue client and consumer implementations from config.

Only place that imports concrete queue clients and consumers.
"""
from __future__ import annotations

from sqs_consumer.app.application.pooled_consumer import PooledQueueConsumer
from sqs_consumer.app.application.sequential_consumer import SequentialQueueConsumer
from sqs_consumer.app.config.settings import Settings
from sqs_consumer.app.constants import CONSUMER_STRATEGY, QUEUE_BACKEND
from sqs_consumer.app.domain.models import ConsumerConfig
from sqs_consumer.app.infrastructure.messaging.inmemory.in_memory_queue_client import InMemoryQueueClient
from sqs_consumer.app.infrastructure.messaging.sqs.sqs_queue_client import SQSQueueClient, create_sqs_client
from sqs_consumer.app.ports.message_consumer import MessageConsumer
from sqs_consumer.app.ports.message_handler import MessageHandler
from sqs_consumer.app.ports.queue_client import QueueClient


def create_queue_client(settings: Settings) -> QueueClient:
    backend = settings.queue_backend.strip().lower()

    if backend == QUEUE_BACKEND.SQS:
        return SQSQueueClient(create_sqs_client(settings), max_messages=settings.receive_max_messages)
    if backend == QUEUE_BACKEND.INMEMORY:
        return InMemoryQueueClient(
            visibility_timeout=settings.inmemory_visibility_timeout,
            max_messages=settings.receive_max_messages,
        )

    raise ValueError(f"Unsupported queue backend: {backend}")


def create_message_consumer(
    settings: Settings,
    queue_client: QueueClient,
    handler: MessageHandler,
    config: ConsumerConfig,
) -> MessageConsumer:
    strategy = settings.consumer_strategy.strip().lower()

    if strategy == CONSUMER_STRATEGY.POOLED:
        return PooledQueueConsumer(queue_client, handler, config)
    if strategy == CONSUMER_STRATEGY.SEQUENTIAL:
        return SequentialQueueConsumer(queue_client, handler, config)

    raise ValueError(f"Unsupported consumer strategy: {strategy}")
