from __future__ import annotations

import time
from typing import Any

from loguru import logger

from sqs_consumer.app.application.ack_retrier import AckRetrier
from sqs_consumer.app.constants import SERVICE_NAME
from sqs_consumer.app.domain.consume_context import ConsumeContext
from sqs_consumer.app.domain.models import ConsumeOutcome, ConsumeResult, DeleteMessage, QueueMessage
from sqs_consumer.app.ports.message_handler import MessageHandler, RetryableConsumerError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class ProcessingService:
    """
    Runs the handler for one message and acknowledges it.

    Outcome mapping: a normal return is SUCCESS (delete), RetryableConsumerError
    is RETRY_LATER (change visibility to the requested timeout), any other
    exception is FAILURE (delete, never retried). Handler errors stop here;
    they are recorded as events and never reach the caller.
    """

    def __init__(self, handler: MessageHandler, ack_retrier: AckRetrier, *, queue_url: str) -> None:
        self._handler = handler
        self._ack_retrier = ack_retrier
        self._queue_url = queue_url

    @property
    def handler(self) -> MessageHandler:
        return self._handler

    async def consume(self, message: QueueMessage) -> ConsumeResult:
        ctx = ConsumeContext.for_message(self._queue_url, message)
        started = time.monotonic()
        try:
            await self._handler.consume_message(ctx, message.body)
        except RetryableConsumerError as exc:
            _log(
                "message_retry_later",
                message_id=message.message_id,
                visibility_timeout=exc.visibility_timeout,
                error=str(exc),
            )
            return ConsumeResult(
                ConsumeOutcome.RETRY_LATER,
                visibility_timeout=exc.visibility_timeout,
                error=exc,
            )
        except Exception as exc:
            _log(
                "message_failed",
                message_id=message.message_id,
                receive_count=message.receive_count,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return ConsumeResult(ConsumeOutcome.FAILURE, error=exc)
        logger.debug("message {} consumed in {:.3f}s", message.message_id, time.monotonic() - started)
        return ConsumeResult(ConsumeOutcome.SUCCESS)

    async def consume_and_delete(self, message: QueueMessage) -> ConsumeResult:
        """Sequential path: every message is deleted after the handler ran, whatever the outcome."""
        result = await self.consume(message)
        await self._ack_retrier.acknowledge(message, DeleteMessage())
        return result

    async def consume_and_acknowledge(self, message: QueueMessage) -> ConsumeResult:
        """
        Pooled path: issue the ack action the outcome maps to.

        When the handler did not succeed, the decided action is followed by an
        unconditional delete, so a RETRY_LATER visibility change is superseded
        by deletion. tests/unit/test_pooled_consumer.py pins this behavior.
        """
        result = await self.consume(message)
        if result.succeeded:
            await self._ack_retrier.acknowledge(message, DeleteMessage())
            return result
        try:
            await self._ack_retrier.acknowledge(message, result.ack_action())
        finally:
            await self._ack_retrier.acknowledge(message, DeleteMessage())
        return result
