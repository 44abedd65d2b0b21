"""Retry policy contract and the default exponential backoff."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .errors import ApiError, TransportError

DEFAULT_RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@runtime_checkable
class RetryPolicy(Protocol):
    def is_retryable_status(self, status_code: int) -> bool: ...

    def should_retry(
        self,
        *,
        attempt: int,
        error: Exception | None,
        status_code: int | None,
    ) -> bool: ...

    def next_delay_seconds(self, *, attempt: int) -> float: ...


@dataclass(frozen=True, slots=True)
class ExponentialBackoff:
    """Bounded retries with exponential backoff and proportional jitter.

    ``attempt`` is 1-based: the delay after the first failed attempt is
    ``backoff_base_seconds`` (plus jitter). Jitter is drawn from
    ``[0, jitter_ratio)`` of the un-jittered delay, so as long as
    ``jitter_ratio < backoff_factor - 1`` each delay is strictly longer than
    the one before until ``max_backoff_seconds`` is reached.
    """

    max_attempts: int = 4
    backoff_base_seconds: float = 0.5
    backoff_factor: float = 2.0
    max_backoff_seconds: float = 30.0
    jitter_ratio: float = 0.25
    retry_statuses: frozenset[int] = DEFAULT_RETRY_STATUSES
    rng: random.Random = field(default_factory=random.Random, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must be >= 0")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if not 0 <= self.jitter_ratio < max(self.backoff_factor - 1, 1e-9):
            raise ValueError("jitter_ratio must be >= 0 and smaller than backoff_factor - 1")

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses

    def should_retry(
        self,
        *,
        attempt: int,
        error: Exception | None,
        status_code: int | None,
    ) -> bool:
        if attempt >= self.max_attempts:
            return False
        if isinstance(error, TransportError):
            return True
        if isinstance(error, ApiError):
            return error.retryable
        return False

    def next_delay_seconds(self, *, attempt: int) -> float:
        delay = self.backoff_base_seconds * (self.backoff_factor ** max(0, attempt - 1))
        delay += delay * self.rng.uniform(0.0, self.jitter_ratio)
        return min(delay, self.max_backoff_seconds)


NO_RETRY = ExponentialBackoff(max_attempts=1)
