"""Queue client port: receive, delete and change-visibility primitives.

Application code depends on this port; infrastructure (boto3, in-memory)
implements it. Implementations classify their own failures by raising
QueueClientError with a QueueErrorKind, so the engine never inspects
provider-specific exceptions.
"""
from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence, runtime_checkable

from sqs_consumer.app.domain.models import QueueMessage


class QueueErrorKind(str, Enum):
    RETRYABLE = "RETRYABLE"
    THROTTLED = "THROTTLED"
    PERMANENT = "PERMANENT"


class QueueClientError(Exception):
    """Base for queue backend failures, tagged with their retry classification."""

    def __init__(
        self,
        message: str,
        *,
        kind: QueueErrorKind = QueueErrorKind.PERMANENT,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.code = code

    @property
    def transient(self) -> bool:
        return self.kind in (QueueErrorKind.RETRYABLE, QueueErrorKind.THROTTLED)


def is_transient(exc: BaseException) -> bool:
    """True when exc is a classified queue error worth a blind retry."""
    return isinstance(exc, QueueClientError) and exc.transient


@runtime_checkable
class QueueClient(Protocol):
    """Port: queue backend operations used by the consumer."""

    async def receive_messages(
        self,
        queue_url: str,
        *,
        attribute_names: Sequence[str],
        message_attribute_names: Sequence[str],
        wait_seconds: int,
    ) -> list[QueueMessage]:
        """Long-poll for messages; raise QueueClientError on failure."""
        ...

    async def delete_message(self, queue_url: str, receipt_handle: str) -> None: ...

    async def change_message_visibility(
        self,
        queue_url: str,
        receipt_handle: str,
        visibility_timeout: int,
    ) -> None: ...

    async def close(self) -> None:
        """Release resources. No-op allowed if nothing to close."""
        ...
