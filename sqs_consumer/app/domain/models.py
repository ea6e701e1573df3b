"""Domain models."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Union

from sqs_consumer.app.core.backoff import BackoffPolicy

# SQS long polling accepts 0..20 seconds.
MAX_WAIT_TIME_SECONDS = 20
DEFAULT_WAIT_TIME_SECONDS = 15
DEFAULT_POLL_INTERVAL_SECONDS = 0.001


@dataclass(frozen=True)
class QueueMessage:
    """A message as delivered by the queue backend."""

    message_id: str
    body: bytes
    receipt_handle: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def sent_at(self) -> datetime | None:
        raw = self.attributes.get("SentTimestamp")
        if not raw:
            return None
        return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)

    @property
    def receive_count(self) -> int:
        return int(self.attributes.get("ApproximateReceiveCount", 1))


class ConsumeOutcome(str, Enum):
    SUCCESS = "SUCCESS"
    RETRY_LATER = "RETRY_LATER"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class DeleteMessage:
    """Ack action: remove the message from the queue."""


@dataclass(frozen=True)
class ChangeVisibility:
    """Ack action: hide the message for `visibility_timeout` seconds, then redeliver."""

    visibility_timeout: int

    def __post_init__(self) -> None:
        if not isinstance(self.visibility_timeout, int) or self.visibility_timeout < 0:
            raise ValueError("visibility_timeout must be a non-negative int")


AckAction = Union[DeleteMessage, ChangeVisibility]


@dataclass(frozen=True)
class ConsumeResult:
    """What the handler did with one message."""

    outcome: ConsumeOutcome
    visibility_timeout: int | None = None
    error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.outcome is ConsumeOutcome.RETRY_LATER and self.visibility_timeout is None:
            raise ValueError("RETRY_LATER requires a visibility_timeout")

    @property
    def succeeded(self) -> bool:
        return self.outcome is ConsumeOutcome.SUCCESS

    def ack_action(self) -> AckAction:
        if self.outcome is ConsumeOutcome.RETRY_LATER:
            return ChangeVisibility(int(self.visibility_timeout))  # type: ignore[arg-type]
        return DeleteMessage()


@dataclass(frozen=True)
class ConsumerConfig:
    """Immutable engine configuration, fixed for the lifetime of a consumer."""

    queue_url: str
    num_workers: int = 1
    message_pool_size: int = 1
    wait_time_seconds: int = DEFAULT_WAIT_TIME_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    receive_backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    ack_backoff: BackoffPolicy = field(default_factory=BackoffPolicy)

    def __post_init__(self) -> None:
        if not isinstance(self.queue_url, str) or not self.queue_url.strip():
            raise ValueError("queue_url must be a non-empty str")
        if not isinstance(self.num_workers, int) or self.num_workers < 1:
            raise ValueError("num_workers must be a positive int")
        if not isinstance(self.message_pool_size, int) or self.message_pool_size < 1:
            raise ValueError("message_pool_size must be a positive int")
        if not 0 <= self.wait_time_seconds <= MAX_WAIT_TIME_SECONDS:
            raise ValueError(f"wait_time_seconds must be within 0..{MAX_WAIT_TIME_SECONDS}")
        if self.poll_interval_seconds < 0:
            raise ValueError("poll_interval_seconds must be >= 0")
