"""Stock handler decorators for logging, outcome statistics and retry policy.

Each factory returns a Decorator (MessageHandler -> MessageHandler) meant to be
listed in a Chain.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from sqs_consumer.app.constants import SERVICE_NAME
from sqs_consumer.app.domain.consume_context import ConsumeContext
from sqs_consumer.app.domain.models import ConsumeOutcome
from sqs_consumer.app.ports.message_handler import Decorator, MessageHandler, RetryableConsumerError


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def _outcome_of(exc: BaseException | None) -> ConsumeOutcome:
    if exc is None:
        return ConsumeOutcome.SUCCESS
    if isinstance(exc, RetryableConsumerError):
        return ConsumeOutcome.RETRY_LATER
    return ConsumeOutcome.FAILURE


class LoggingHandler:
    """Logs one event per message with its outcome and duration; re-raises unchanged."""

    def __init__(self, inner: MessageHandler) -> None:
        self._inner = inner

    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None:
        started = time.monotonic()
        try:
            await self._inner.consume_message(ctx, body)
        except Exception as exc:
            outcome = _outcome_of(exc)
            event = "message_retry_later" if outcome is ConsumeOutcome.RETRY_LATER else "message_failed"
            _log(
                event,
                message_id=ctx.message_id,
                duration_seconds=round(time.monotonic() - started, 6),
                error=str(exc),
            )
            raise
        _log(
            "message_consumed",
            message_id=ctx.message_id,
            duration_seconds=round(time.monotonic() - started, 6),
        )


def with_logging() -> Decorator:
    return LoggingHandler


@dataclass
class ConsumeStats:
    """Outcome counters and cumulative handler time."""

    counts: dict[ConsumeOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in ConsumeOutcome}
    )
    handler_seconds: float = 0.0

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def record(self, outcome: ConsumeOutcome, seconds: float) -> None:
        self.counts[outcome] = self.counts.get(outcome, 0) + 1
        self.handler_seconds += seconds

    def snapshot(self) -> dict[str, Any]:
        return {
            "total": self.total,
            **{outcome.value.lower(): count for outcome, count in self.counts.items()},
            "handler_seconds": round(self.handler_seconds, 6),
        }


class StatsHandler:
    def __init__(self, inner: MessageHandler, stats: ConsumeStats) -> None:
        self._inner = inner
        self._stats = stats

    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None:
        started = time.monotonic()
        error: BaseException | None = None
        try:
            await self._inner.consume_message(ctx, body)
        except Exception as exc:
            error = exc
            raise
        finally:
            self._stats.record(_outcome_of(error), time.monotonic() - started)


def with_stats(stats: ConsumeStats) -> Decorator:
    def decorate(inner: MessageHandler) -> MessageHandler:
        return StatsHandler(inner, stats)

    return decorate


class RetryOnHandler:
    """Turns selected exception types into RetryableConsumerError."""

    def __init__(
        self,
        inner: MessageHandler,
        exc_types: tuple[type[BaseException], ...],
        visibility_timeout: int,
    ) -> None:
        self._inner = inner
        self._exc_types = exc_types
        self._visibility_timeout = visibility_timeout

    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None:
        try:
            await self._inner.consume_message(ctx, body)
        except RetryableConsumerError:
            raise
        except self._exc_types as exc:
            raise RetryableConsumerError(
                str(exc),
                visibility_timeout=self._visibility_timeout,
            ) from exc


def retry_on(*exc_types: type[BaseException], visibility_timeout: int) -> Decorator:
    if not exc_types:
        raise ValueError("retry_on needs at least one exception type")
    if visibility_timeout < 0:
        raise ValueError("visibility_timeout must be >= 0")

    def decorate(inner: MessageHandler) -> MessageHandler:
        return RetryOnHandler(inner, exc_types, visibility_timeout)

    return decorate
