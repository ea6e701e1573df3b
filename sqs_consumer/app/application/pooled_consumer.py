"""
Pooled consumer: one poll loop feeding a bounded buffer drained by N workers.

Backpressure:
  The buffer is an asyncio.Queue(maxsize=message_pool_size). When it is full
  the poll loop blocks in put(), so receives are paced by the workers.

Shutdown:
  When the poll loop returns, one close marker per worker is queued behind the
  messages already buffered. Workers finish every buffered message before they
  reach a marker, so nothing already received is abandoned. If the task running
  start_consuming() is cancelled instead, at any point including while the
  close markers are queued, workers are cancelled with it.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable

from loguru import logger

from sqs_consumer.app.application.base_consumer import BaseQueueConsumer
from sqs_consumer.app.constants import CONSUMER_STRATEGY, SERVICE_NAME
from sqs_consumer.app.domain.models import ConsumerConfig, QueueMessage
from sqs_consumer.app.ports.message_handler import MessageHandler
from sqs_consumer.app.ports.queue_client import QueueClient

_POOL_CLOSED = None


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class PooledQueueConsumer(BaseQueueConsumer):
    """MessageConsumer with a fixed worker pool. Completion order across workers is unspecified."""

    strategy = CONSUMER_STRATEGY.POOLED

    def __init__(
        self,
        queue_client: QueueClient,
        handler: MessageHandler,
        config: ConsumerConfig,
    ) -> None:
        super().__init__(queue_client, handler, config)
        self._pool: asyncio.Queue[QueueMessage | None] | None = None

    @property
    def pool_capacity(self) -> int:
        return self._config.message_pool_size

    @property
    def pending_messages(self) -> int:
        """Messages buffered and not yet picked up by a worker."""
        if self._pool is None:
            return 0
        return self._pool.qsize()

    async def _consume(self, should_stop: Callable[[], bool]) -> None:
        pool: asyncio.Queue[QueueMessage | None] = asyncio.Queue(maxsize=self._config.message_pool_size)
        self._pool = pool
        workers = [
            asyncio.create_task(self._worker(pool, index), name=f"sqs-consumer-worker-{index}")
            for index in range(self._config.num_workers)
        ]
        try:
            await self._poll_loop.run(pool.put, should_stop)
            _log("message_pool_closing", pending=pool.qsize(), workers=len(workers))
            for _ in workers:
                await pool.put(_POOL_CLOSED)
            await asyncio.gather(*workers)
        except asyncio.CancelledError:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            raise

    async def _worker(self, pool: asyncio.Queue[QueueMessage | None], index: int) -> None:
        while True:
            message = await pool.get()
            try:
                if message is _POOL_CLOSED:
                    return
                await self._processing_service.consume_and_acknowledge(message)
            except Exception as exc:
                logger.bind(service_name=SERVICE_NAME, event="worker_error", worker=index).error(
                    "worker failed to process message: {}", exc
                )
            finally:
                pool.task_done()
