"""Port: consumption engine. Implementations live in application."""
from __future__ import annotations

import asyncio
from typing import Protocol


class MessageConsumer(Protocol):
    async def start_consuming(self, cancel_event: asyncio.Event | None = None) -> None:
        """Consume until cancel_event is set or stop_consuming() is called, then return."""
        ...

    def stop_consuming(self) -> None:
        """Signal termination. No-op when not running; safe to call repeatedly."""
        ...
