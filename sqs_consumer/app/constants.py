"""Consumer-level constants shared across modules."""
from __future__ import annotations

from enum import Enum

SERVICE_NAME = "sqs-consumer"

RECEIVE_ATTRIBUTE_NAMES: tuple[str, ...] = ("SentTimestamp", "ApproximateReceiveCount")
RECEIVE_MESSAGE_ATTRIBUTE_NAMES: tuple[str, ...] = ("All",)


class ConsumerState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"


class CONSUMER_STRATEGY:
    SEQUENTIAL = "sequential"
    POOLED = "pooled"


class QUEUE_BACKEND:
    SQS = "sqs"
    INMEMORY = "inmemory"
