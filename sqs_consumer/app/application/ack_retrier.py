"""Ack retrier: perform an ack action until it succeeds or fails permanently."""
from __future__ import annotations

import asyncio
from typing import Any

from loguru import logger

from sqs_consumer.app.constants import SERVICE_NAME
from sqs_consumer.app.core.backoff import BackoffPolicy
from sqs_consumer.app.domain.models import AckAction, ChangeVisibility, DeleteMessage, QueueMessage
from sqs_consumer.app.ports.queue_client import QueueClient, is_transient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


class AckRetrier:
    """
    Executes DeleteMessage / ChangeVisibility against the queue client.

    Transient failures are retried after policy.delay_for(attempt) until the
    policy is exhausted (never, by default). A permanent failure is logged once
    and the action is abandoned: the message stays in flight and the backend
    redelivers it when its visibility timeout expires.
    """

    def __init__(self, queue_client: QueueClient, queue_url: str, policy: BackoffPolicy) -> None:
        self._queue_client = queue_client
        self._queue_url = queue_url
        self._policy = policy

    async def acknowledge(self, message: QueueMessage, action: AckAction) -> bool:
        """Return True once the action completed, False if it was abandoned."""
        attempt = 0
        while True:
            attempt += 1
            try:
                await self._perform(message, action)
                return True
            except Exception as exc:
                if not is_transient(exc):
                    logger.bind(
                        service_name=SERVICE_NAME,
                        event="ack_failed",
                        message_id=message.message_id,
                        action=type(action).__name__,
                    ).error("ack failed: {}", exc)
                    return False
                if self._policy.exhausted(attempt):
                    logger.bind(
                        service_name=SERVICE_NAME,
                        event="ack_retries_exhausted",
                        message_id=message.message_id,
                        action=type(action).__name__,
                        attempt=attempt,
                    ).error("ack retries exhausted: {}", exc)
                    return False
                delay = self._policy.delay_for(attempt)
                _log("ack_retry", message_id=message.message_id, attempt=attempt, delay=delay)
                await asyncio.sleep(delay)

    async def _perform(self, message: QueueMessage, action: AckAction) -> None:
        if isinstance(action, DeleteMessage):
            await self._queue_client.delete_message(self._queue_url, message.receipt_handle)
        elif isinstance(action, ChangeVisibility):
            await self._queue_client.change_message_visibility(
                self._queue_url,
                message.receipt_handle,
                action.visibility_timeout,
            )
        else:
            raise TypeError(f"unsupported ack action: {action!r}")
