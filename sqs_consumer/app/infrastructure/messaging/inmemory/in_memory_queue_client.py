"""In-memory queue client for local mode and tests.

Mimics the SQS visibility model closely enough to exercise the consumer:
received messages become invisible for `visibility_timeout` seconds and are
redelivered (with a fresh receipt handle) if not deleted in time.
"""
from __future__ import annotations

import asyncio
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Sequence

from sqs_consumer.app.domain.models import QueueMessage
from sqs_consumer.app.ports.queue_client import QueueClientError, QueueErrorKind

_RECEIVE_POLL_SECONDS = 0.05
# Deleted receipt handles remembered so a repeated delete stays a no-op.
_DELETED_RECEIPT_MEMORY = 10_000


@dataclass
class _StoredMessage:
    message_id: str
    body: bytes
    sent_at_ms: int
    message_attributes: dict[str, Any] = field(default_factory=dict)
    receive_count: int = 0
    visible_at: float = 0.0
    receipt_handle: str | None = None


class InMemoryQueueClient:
    def __init__(
        self,
        *,
        visibility_timeout: int = 30,
        max_messages: int = 10,
        deleted_receipt_memory: int = _DELETED_RECEIPT_MEMORY,
    ) -> None:
        self._visibility_timeout = visibility_timeout
        self._max_messages = max_messages
        self._messages: dict[str, _StoredMessage] = {}
        self._deleted_receipts: OrderedDict[str, None] = OrderedDict()
        self._deleted_receipt_memory = max(0, deleted_receipt_memory)
        self._closed = False

    def send(self, body: bytes | str, message_attributes: dict[str, Any] | None = None) -> str:
        if isinstance(body, str):
            body = body.encode("utf-8")
        message_id = uuid.uuid4().hex
        self._messages[message_id] = _StoredMessage(
            message_id=message_id,
            body=body,
            sent_at_ms=int(time.time() * 1000),
            message_attributes=dict(message_attributes or {}),
        )
        return message_id

    @property
    def size(self) -> int:
        """Messages not yet deleted, visible or in flight."""
        return len(self._messages)

    def _take_visible(self) -> list[QueueMessage]:
        now = time.monotonic()
        taken: list[QueueMessage] = []
        for stored in self._messages.values():
            if len(taken) >= self._max_messages:
                break
            if stored.visible_at > now:
                continue
            stored.receive_count += 1
            stored.receipt_handle = uuid.uuid4().hex
            stored.visible_at = now + self._visibility_timeout
            taken.append(
                QueueMessage(
                    message_id=stored.message_id,
                    body=stored.body,
                    receipt_handle=stored.receipt_handle,
                    attributes={
                        "SentTimestamp": str(stored.sent_at_ms),
                        "ApproximateReceiveCount": str(stored.receive_count),
                    },
                    message_attributes=dict(stored.message_attributes),
                )
            )
        return taken

    def _find(self, receipt_handle: str) -> _StoredMessage:
        for stored in self._messages.values():
            if stored.receipt_handle == receipt_handle:
                return stored
        raise QueueClientError(
            f"receipt handle is invalid: {receipt_handle}",
            kind=QueueErrorKind.PERMANENT,
            code="ReceiptHandleIsInvalid",
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise QueueClientError("queue client is closed", kind=QueueErrorKind.PERMANENT)

    async def receive_messages(
        self,
        queue_url: str,
        *,
        attribute_names: Sequence[str],
        message_attribute_names: Sequence[str],
        wait_seconds: int,
    ) -> list[QueueMessage]:
        self._ensure_open()
        deadline = time.monotonic() + wait_seconds
        while True:
            taken = self._take_visible()
            if taken or time.monotonic() >= deadline:
                return taken
            await asyncio.sleep(_RECEIVE_POLL_SECONDS)

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None:
        self._ensure_open()
        # SQS accepts a repeated delete for a receipt handle it already honored.
        if receipt_handle in self._deleted_receipts:
            return
        stored = self._find(receipt_handle)
        del self._messages[stored.message_id]
        self._remember_deleted(receipt_handle)

    def _remember_deleted(self, receipt_handle: str) -> None:
        if self._deleted_receipt_memory == 0:
            return
        self._deleted_receipts[receipt_handle] = None
        while len(self._deleted_receipts) > self._deleted_receipt_memory:
            self._deleted_receipts.popitem(last=False)

    async def change_message_visibility(
        self,
        queue_url: str,
        receipt_handle: str,
        visibility_timeout: int,
    ) -> None:
        self._ensure_open()
        stored = self._find(receipt_handle)
        stored.visible_at = time.monotonic() + visibility_timeout

    async def close(self) -> None:
        self._closed = True
