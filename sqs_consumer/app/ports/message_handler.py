"""Port: application-supplied message handler.

A handler signals its outcome the Python way: returning means success,
raising RetryableConsumerError asks for redelivery after a visibility timeout,
and any other exception is a terminal failure.
"""
from __future__ import annotations

from typing import Awaitable, Callable, Protocol, runtime_checkable

from sqs_consumer.app.domain.consume_context import ConsumeContext


class RetryableConsumerError(Exception):
    """Raised by a handler to have the message redelivered after visibility_timeout seconds."""

    def __init__(self, message: str = "", *, visibility_timeout: int) -> None:
        if int(visibility_timeout) < 0:
            raise ValueError("visibility_timeout must be >= 0")
        super().__init__(message or f"retry after {visibility_timeout}s")
        self.visibility_timeout = int(visibility_timeout)


@runtime_checkable
class MessageHandler(Protocol):
    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None: ...


HandlerFunc = Callable[[ConsumeContext, bytes], Awaitable[None]]
Decorator = Callable[[MessageHandler], MessageHandler]


class FunctionHandler:
    """Adapts a plain coroutine function to the MessageHandler port."""

    def __init__(self, func: HandlerFunc) -> None:
        self._func = func

    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None:
        await self._func(ctx, body)

    def __repr__(self) -> str:
        return f"FunctionHandler({getattr(self._func, '__qualname__', self._func)!r})"
