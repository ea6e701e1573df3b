"""Poll loop: long-poll the queue and feed each message to a downstream sink.

The loop stops only when should_stop() reports true at the top of an
iteration. Receive failures never end it: transient ones are retried quietly,
anything else is logged once per occurrence and retried after the same delay.
"""
from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger

from sqs_consumer.app.constants import RECEIVE_ATTRIBUTE_NAMES, RECEIVE_MESSAGE_ATTRIBUTE_NAMES, SERVICE_NAME
from sqs_consumer.app.domain.models import ConsumerConfig, QueueMessage
from sqs_consumer.app.ports.queue_client import QueueClient, is_transient

MessageSink = Callable[[QueueMessage], Awaitable[None]]


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class PollLoop:
    def __init__(self, queue_client: QueueClient, config: ConsumerConfig) -> None:
        self._queue_client = queue_client
        self._config = config
        self._receive_calls = 0

    @property
    def receive_calls(self) -> int:
        return self._receive_calls

    async def run(self, sink: MessageSink, should_stop: Callable[[], bool]) -> None:
        failures = 0
        while not should_stop():
            self._receive_calls += 1
            try:
                messages = await self._queue_client.receive_messages(
                    self._config.queue_url,
                    attribute_names=RECEIVE_ATTRIBUTE_NAMES,
                    message_attribute_names=RECEIVE_MESSAGE_ATTRIBUTE_NAMES,
                    wait_seconds=self._config.wait_time_seconds,
                )
            except Exception as exc:
                failures += 1
                if not is_transient(exc):
                    logger.bind(
                        service_name=SERVICE_NAME,
                        event="receive_failed",
                        queue_url=self._config.queue_url,
                    ).error("receive failed: {}", exc)
                await asyncio.sleep(self._config.receive_backoff.delay_for(failures))
                continue

            failures = 0
            if messages:
                _log("messages_received", queue_url=self._config.queue_url, count=len(messages))
            for message in messages:
                await sink(message)
            await asyncio.sleep(self._config.poll_interval_seconds)
