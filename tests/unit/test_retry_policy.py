from __future__ import annotations

import random

import pytest

from ngrok_mgmt.errors import DecodeError, NotFoundError, RequestDetails, ServerError, TransportError
from ngrok_mgmt.retry import NO_RETRY, ExponentialBackoff, RetryPolicy


def _details(status_code: int) -> RequestDetails:
    return RequestDetails(operation="x", method="GET", path="/x", status_code=status_code)


def test_default_backoff_satisfies_protocol() -> None:
    assert isinstance(ExponentialBackoff(), RetryPolicy)


@pytest.mark.parametrize("seed", [0, 1, 42, 1234])
def test_delays_strictly_increase_until_cap(seed: int) -> None:
    policy = ExponentialBackoff(max_attempts=8, rng=random.Random(seed))

    delays = [policy.next_delay_seconds(attempt=attempt) for attempt in range(1, 8)]

    assert delays == sorted(delays)
    assert len(set(delays)) == len(delays)
    assert 0.5 <= delays[0] < 0.625
    assert all(delay <= 30.0 for delay in delays)


def test_delays_are_capped() -> None:
    policy = ExponentialBackoff(max_backoff_seconds=3.0, rng=random.Random(3))

    assert policy.next_delay_seconds(attempt=10) == 3.0


def test_should_retry_classifies_failures() -> None:
    policy = ExponentialBackoff(max_attempts=3)

    assert policy.should_retry(attempt=1, error=TransportError("reset"), status_code=None) is True
    assert policy.should_retry(attempt=1, error=ServerError("x", details=_details(503), retryable=True), status_code=503)
    assert not policy.should_retry(attempt=1, error=NotFoundError("x", details=_details(404)), status_code=404)
    assert not policy.should_retry(
        attempt=1,
        error=DecodeError(operation="x", model_name="Ref", errors=[]),
        status_code=200,
    )
    assert not policy.should_retry(attempt=3, error=TransportError("reset"), status_code=None)


def test_retryable_statuses() -> None:
    policy = ExponentialBackoff()

    assert [status for status in (400, 404, 429, 500, 501, 502, 503, 504) if policy.is_retryable_status(status)] == [
        429,
        500,
        502,
        503,
        504,
    ]


def test_no_retry_policy_gives_up_immediately() -> None:
    assert NO_RETRY.should_retry(attempt=1, error=TransportError("reset"), status_code=None) is False


@pytest.mark.parametrize(
    "kwargs",
    [
        {"max_attempts": 0},
        {"backoff_base_seconds": -1.0},
        {"backoff_factor": 0.5},
        {"jitter_ratio": 1.0},
        {"jitter_ratio": -0.1},
    ],
)
def test_invalid_settings_are_rejected(kwargs: dict[str, float]) -> None:
    with pytest.raises(ValueError):
        ExponentialBackoff(**kwargs)
