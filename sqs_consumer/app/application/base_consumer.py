"""Shared start/stop plumbing for the sequential and pooled consumers."""
from __future__ import annotations

import asyncio
from typing import Any, Callable

from loguru import logger

from sqs_consumer.app.application.ack_retrier import AckRetrier
from sqs_consumer.app.application.lifecycle import LifecycleController
from sqs_consumer.app.application.poll_loop import PollLoop
from sqs_consumer.app.application.processing_service import ProcessingService
from sqs_consumer.app.constants import ConsumerState, SERVICE_NAME
from sqs_consumer.app.domain.models import ConsumerConfig
from sqs_consumer.app.ports.message_handler import MessageHandler
from sqs_consumer.app.ports.queue_client import QueueClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class BaseQueueConsumer:
    """MessageConsumer skeleton; subclasses implement _consume()."""

    strategy = "base"

    def __init__(
        self,
        queue_client: QueueClient,
        handler: MessageHandler,
        config: ConsumerConfig,
    ) -> None:
        self._queue_client = queue_client
        self._config = config
        self._lifecycle = LifecycleController()
        self._poll_loop = PollLoop(queue_client, config)
        self._processing_service = ProcessingService(
            handler,
            AckRetrier(queue_client, config.queue_url, config.ack_backoff),
            queue_url=config.queue_url,
        )

    @property
    def config(self) -> ConsumerConfig:
        return self._config

    @property
    def state(self) -> ConsumerState:
        return self._lifecycle.state

    @property
    def receive_calls(self) -> int:
        return self._poll_loop.receive_calls

    async def start_consuming(self, cancel_event: asyncio.Event | None = None) -> None:
        """Block until cancel_event is set or stop_consuming() is called, then return."""
        self._lifecycle.start()
        _log("consumer_started", queue_url=self._config.queue_url, strategy=self.strategy)
        try:
            await self._consume(lambda: self._lifecycle.should_stop(cancel_event))
        finally:
            self._lifecycle.finish()
            _log("consumer_stopped", queue_url=self._config.queue_url, strategy=self.strategy)

    def stop_consuming(self) -> None:
        if self._lifecycle.stop():
            _log("consumer_stop_requested", queue_url=self._config.queue_url, strategy=self.strategy)

    async def _consume(self, should_stop: Callable[[], bool]) -> None:
        raise NotImplementedError
