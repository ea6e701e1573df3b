"""Handlers referenced by dotted path from the composition tests."""
from __future__ import annotations

from sqs_consumer.app.domain.consume_context import ConsumeContext

RECEIVED: list[bytes] = []


async def record_body(ctx: ConsumeContext, body: bytes) -> None:
    RECEIVED.append(body)


class EchoHandler:
    async def consume_message(self, ctx: ConsumeContext, body: bytes) -> None:
        RECEIVED.append(body)


def not_a_handler(ctx: ConsumeContext, body: bytes) -> None:
    return None
