"""Sequential consumer: poll, handle, delete; one message at a time."""
from __future__ import annotations

from typing import Callable

from sqs_consumer.app.application.base_consumer import BaseQueueConsumer
from sqs_consumer.app.constants import CONSUMER_STRATEGY
from sqs_consumer.app.domain.models import QueueMessage


class SequentialQueueConsumer(BaseQueueConsumer):
    """
    Single-task consumer without retry support.

    Every message is deleted after its handler returns or raises; a
    RetryableConsumerError is recorded but not honored. Use the pooled
    consumer when handlers need RETRY_LATER semantics or concurrency.
    """

    strategy = CONSUMER_STRATEGY.SEQUENTIAL

    async def _consume(self, should_stop: Callable[[], bool]) -> None:
        await self._poll_loop.run(self._handle, should_stop)

    async def _handle(self, message: QueueMessage) -> None:
        await self._processing_service.consume_and_delete(message)
