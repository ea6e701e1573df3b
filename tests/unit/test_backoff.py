"""Unit tests for BackoffPolicy delay schedule and attempt cap."""
from __future__ import annotations

import pytest

from sqs_consumer.app.core.backoff import FIXED_ONE_SECOND, BackoffPolicy


def test_default_policy_is_fixed_one_second_without_cap():
    assert FIXED_ONE_SECOND.delay_for(1) == 1.0
    assert FIXED_ONE_SECOND.delay_for(50) == 1.0
    assert FIXED_ONE_SECOND.exhausted(10_000) is False


def test_multiplier_grows_delay_until_capped():
    policy = BackoffPolicy(delay_seconds=0.5, multiplier=2.0, max_delay_seconds=3.0)

    assert [policy.delay_for(n) for n in range(1, 6)] == [0.5, 1.0, 2.0, 3.0, 3.0]


def test_long_failure_streak_does_not_overflow():
    policy = BackoffPolicy(delay_seconds=1.0, multiplier=10.0, max_delay_seconds=30.0)

    assert policy.delay_for(100_000) == 30.0


def test_max_attempts_marks_exhaustion():
    policy = BackoffPolicy(delay_seconds=0.0, max_attempts=3)

    assert policy.exhausted(2) is False
    assert policy.exhausted(3) is True


def test_delay_fn_overrides_computed_delay():
    policy = BackoffPolicy(delay_fn=lambda attempt: attempt * 0.1)

    assert policy.delay_for(3) == pytest.approx(0.3)


def test_delay_fn_negative_result_clamped_to_zero():
    policy = BackoffPolicy(delay_fn=lambda attempt: -5)

    assert policy.delay_for(1) == 0.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"delay_seconds": -1.0},
        {"multiplier": 0.5},
        {"max_delay_seconds": -1.0},
        {"max_attempts": 0},
    ],
)
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ValueError):
        BackoffPolicy(**kwargs)
