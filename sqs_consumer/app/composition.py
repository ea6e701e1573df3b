"""Consumer composition root: build and lifecycle-manage concrete dependencies.

Composition may: import concrete classes, call factories, resolve the handler
and decorator chain from configuration, manage high-level lifecycle.
"""
from __future__ import annotations

import importlib
import inspect
from typing import Any, Sequence

from loguru import logger

from sqs_consumer.app.application.chain import Chain
from sqs_consumer.app.config.settings import Settings
from sqs_consumer.app.constants import SERVICE_NAME
from sqs_consumer.app.core.backoff import BackoffPolicy
from sqs_consumer.app.domain.models import ConsumerConfig
from sqs_consumer.app.infrastructure.messaging.factory import create_message_consumer, create_queue_client
from sqs_consumer.app.ports.message_consumer import MessageConsumer
from sqs_consumer.app.ports.message_handler import Decorator, FunctionHandler, MessageHandler
from sqs_consumer.app.ports.queue_client import QueueClient


def _log(event: str, **kwargs: Any) -> None:
    logger.bind(service_name=SERVICE_NAME, event=event, **kwargs).info("")


def import_object(path: str) -> Any:
    """Resolve "package.module:attr" or "package.module.attr"."""
    path = path.strip()
    if ":" in path:
        module_name, _, attr = path.partition(":")
    else:
        module_name, _, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Invalid object path: {path!r}")
    return getattr(importlib.import_module(module_name), attr)


def load_handler(path: str) -> MessageHandler:
    if not path.strip():
        raise ValueError("HANDLER_PATH is required when no handler is supplied")
    target = import_object(path)
    if inspect.isclass(target):
        target = target()
    if isinstance(target, MessageHandler):
        return target
    if inspect.iscoroutinefunction(target):
        return FunctionHandler(target)
    raise TypeError(f"{path} is neither a MessageHandler nor a coroutine function")


def load_decorators(paths: str) -> list[Decorator]:
    """Comma-separated decorator paths, outermost first."""
    return [import_object(p) for p in paths.split(",") if p.strip()]


def build_consumer_config(settings: Settings) -> ConsumerConfig:
    backoff_kwargs: dict[str, Any] = {
        "delay_seconds": settings.retry_delay_seconds,
        "multiplier": settings.retry_backoff_multiplier,
        "max_delay_seconds": settings.max_retry_delay_seconds,
    }
    return ConsumerConfig(
        queue_url=settings.queue_url,
        num_workers=settings.num_workers,
        message_pool_size=settings.message_pool_size,
        wait_time_seconds=settings.receive_wait_seconds,
        poll_interval_seconds=settings.poll_interval_seconds,
        receive_backoff=BackoffPolicy(**backoff_kwargs),
        ack_backoff=BackoffPolicy(max_attempts=settings.max_ack_attempts or None, **backoff_kwargs),
    )


class ConsumerDependencies:
    """Holds wired consumer dependencies and their lifecycle."""

    def __init__(
        self,
        *,
        settings: Settings,
        handler: MessageHandler | None = None,
        decorators: Sequence[Decorator] | None = None,
        queue_client: QueueClient | None = None,
    ) -> None:
        self._settings = settings
        self._handler = handler
        self._decorators = decorators
        self._queue_client = queue_client
        self._consumer: MessageConsumer | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def queue_client(self) -> QueueClient:
        if self._queue_client is None:
            raise RuntimeError("queue_client is not initialized")
        return self._queue_client

    @property
    def consumer(self) -> MessageConsumer:
        if self._consumer is None:
            raise RuntimeError("consumer is not initialized")
        return self._consumer

    async def connect(self) -> None:
        if self._queue_client is None:
            self._queue_client = create_queue_client(self._settings)

        handler = self._handler or load_handler(self._settings.handler_path)
        decorators = self._decorators
        if decorators is None:
            decorators = load_decorators(self._settings.handler_decorators)
        handler = Chain(decorators).apply(handler)

        self._consumer = create_message_consumer(
            self._settings,
            self._queue_client,
            handler,
            build_consumer_config(self._settings),
        )
        _log(
            "consumer_wired",
            queue_backend=self._settings.queue_backend,
            strategy=self._settings.consumer_strategy,
            decorators=len(decorators),
        )

    async def close(self) -> None:
        if self._consumer is not None:
            self._consumer.stop_consuming()
            self._consumer = None

        if self._queue_client is not None:
            try:
                await self._queue_client.close()
            except Exception as exc:
                logger.warning("queue client close failed: {}", exc)
            self._queue_client = None


def create_consumer_dependencies(settings: Settings | None = None, **kwargs: Any) -> ConsumerDependencies:
    return ConsumerDependencies(settings=settings or Settings(), **kwargs)
