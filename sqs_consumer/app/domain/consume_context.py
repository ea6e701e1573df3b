"""Domain value object for per-message consume context. Passed to every handler."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqs_consumer.app.domain.models import QueueMessage


@dataclass(frozen=True)
class ConsumeContext:
    """Per-message consume context."""

    queue_url: str
    message_id: str
    receipt_handle: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, Any] = field(default_factory=dict)
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_message(cls, queue_url: str, message: QueueMessage) -> "ConsumeContext":
        return cls(
            queue_url=queue_url,
            message_id=message.message_id,
            receipt_handle=message.receipt_handle,
            attributes=dict(message.attributes),
            message_attributes=dict(message.message_attributes),
        )
