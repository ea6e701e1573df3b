"""QueueClient implementation on top of a boto3 SQS client.

boto3 is blocking; every call runs in the default executor via
asyncio.to_thread so a 15-second long poll never stalls the event loop.
"""
from __future__ import annotations

import asyncio
from typing import Any, Callable, Sequence

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sqs_consumer.app.config.settings import Settings
from sqs_consumer.app.domain.models import QueueMessage
from sqs_consumer.app.infrastructure.messaging.sqs.errors import to_queue_error

# SQS hard limits.
SQS_MAX_MESSAGES_PER_RECEIVE = 10
SQS_MAX_VISIBILITY_TIMEOUT = 43_200


def create_sqs_client(settings: Settings) -> BaseClient:
    """Build the boto3 client. Read timeout must outlast the long-poll wait."""
    read_timeout = max(settings.sqs_read_timeout_seconds, settings.receive_wait_seconds + 5)
    return boto3.client(
        "sqs",
        region_name=settings.aws_region,
        endpoint_url=settings.sqs_endpoint_url or None,
        config=Config(
            retries={"max_attempts": settings.sqs_client_max_attempts, "mode": "standard"},
            read_timeout=read_timeout,
            connect_timeout=settings.sqs_connect_timeout_seconds,
        ),
    )


def _to_queue_message(raw: dict[str, Any]) -> QueueMessage:
    body = raw.get("Body") or ""
    return QueueMessage(
        message_id=str(raw.get("MessageId", "")),
        body=body.encode("utf-8"),
        receipt_handle=str(raw["ReceiptHandle"]),
        attributes=dict(raw.get("Attributes") or {}),
        message_attributes=dict(raw.get("MessageAttributes") or {}),
    )


class SQSQueueClient:
    """QueueClient adapter around boto3's SQS client."""

    def __init__(self, client: BaseClient, *, max_messages: int = SQS_MAX_MESSAGES_PER_RECEIVE) -> None:
        self._client = client
        self._max_messages = max(1, min(int(max_messages), SQS_MAX_MESSAGES_PER_RECEIVE))

    async def _call(self, operation: str, func: Callable[..., Any], **params: Any) -> Any:
        try:
            return await asyncio.to_thread(func, **params)
        except (ClientError, BotoCoreError) as exc:
            raise to_queue_error(operation, exc) from exc

    async def receive_messages(
        self,
        queue_url: str,
        *,
        attribute_names: Sequence[str],
        message_attribute_names: Sequence[str],
        wait_seconds: int,
    ) -> list[QueueMessage]:
        response = await self._call(
            "receive_message",
            self._client.receive_message,
            QueueUrl=queue_url,
            MaxNumberOfMessages=self._max_messages,
            WaitTimeSeconds=int(wait_seconds),
            MessageSystemAttributeNames=list(attribute_names),
            MessageAttributeNames=list(message_attribute_names),
        )
        return [_to_queue_message(raw) for raw in response.get("Messages", [])]

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        await self._call(
            "delete_message",
            self._client.delete_message,
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
        )

    async def change_message_visibility(
        self,
        queue_url: str,
        receipt_handle: str,
        visibility_timeout: int,
    ) -> None:
        await self._call(
            "change_message_visibility",
            self._client.change_message_visibility,
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
            VisibilityTimeout=min(int(visibility_timeout), SQS_MAX_VISIBILITY_TIMEOUT),
        )

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if callable(close):
            await asyncio.to_thread(close)
