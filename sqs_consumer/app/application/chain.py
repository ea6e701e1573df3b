"""Handler chain: layer decorators around a base handler."""
from __future__ import annotations

from functools import reduce
from typing import Iterable

from sqs_consumer.app.ports.message_handler import Decorator, MessageHandler


class Chain:
    """
    Ordered decorators, listed outermost first.

    apply() folds right to left: the last decorator wraps the base handler
    first and the first decorator is applied last, so its result is the
    handler callers see.
    """

    def __init__(self, decorators: Iterable[Decorator] = ()) -> None:
        self._decorators: tuple[Decorator, ...] = tuple(decorators)

    @property
    def decorators(self) -> tuple[Decorator, ...]:
        return self._decorators

    def __len__(self) -> int:
        return len(self._decorators)

    def apply(self, base: MessageHandler) -> MessageHandler:
        return reduce(lambda handler, decorate: decorate(handler), reversed(self._decorators), base)
