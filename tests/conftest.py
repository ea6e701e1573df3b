from __future__ import annotations

from typing import Any

import pytest
from loguru import logger


@pytest.fixture()
def error_logs() -> Any:
    """Collects loguru records at ERROR and above for the duration of a test."""
    records: list[dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="ERROR")
    yield records
    logger.remove(handler_id)


@pytest.fixture()
def event_logs() -> Any:
    """Collects the `event` extra of every loguru record."""
    events: list[str] = []
    handler_id = logger.add(
        lambda message: events.append(message.record["extra"].get("event", "")),
        level="DEBUG",
    )
    yield events
    logger.remove(handler_id)
