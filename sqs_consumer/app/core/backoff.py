"""Backoff policy.

A `BackoffPolicy` answers two questions for a retry loop: how long to wait
before the next attempt (`delay_for`) and whether the caller should give up
(`exhausted`). The defaults describe a fixed one-second delay with no attempt
cap, which is how receive and ack failures are retried unless configured
otherwise.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

# Exponent cap keeps `multiplier ** n` finite for long failure streaks.
_MAX_EXPONENT = 64


@dataclass(frozen=True)
class BackoffPolicy:
    """Delay schedule for retrying a failed queue call.

    attempt numbers are 1-based: `delay_for(1)` is the wait after the first
    failure. `max_attempts=None` retries forever.
    """

    delay_seconds: float = 1.0
    multiplier: float = 1.0
    max_delay_seconds: float = 30.0
    max_attempts: int | None = None
    delay_fn: Callable[[int], float] | None = None

    def __post_init__(self) -> None:
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if self.max_delay_seconds < 0:
            raise ValueError("max_delay_seconds must be >= 0")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1 or None")

    def delay_for(self, attempt: int) -> float:
        if self.delay_fn is not None:
            return max(0.0, float(self.delay_fn(attempt)))
        exponent = min(max(attempt - 1, 0), _MAX_EXPONENT)
        delay = self.delay_seconds * (self.multiplier ** exponent)
        return min(delay, self.max_delay_seconds)

    def exhausted(self, attempt: int) -> bool:
        return self.max_attempts is not None and attempt >= self.max_attempts


FIXED_ONE_SECOND = BackoffPolicy()
