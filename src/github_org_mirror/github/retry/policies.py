"""Retry strategies combined by the request executor.

``BackoffPolicy`` handles transient failures with exponential backoff;
``RateLimitPolicy`` recognizes rate-limit failures and computes how long to
wait. Each keeps its own budget and is usable on its own.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from github_org_mirror.github.exceptions import GitHubClientError

from .classify import is_rate_limit_error, is_retryable_error
from .wait import DEFAULT_RATE_LIMIT_WAIT_MS, compute_rate_limit_wait_ms

if TYPE_CHECKING:
    from datetime import datetime

    from github_org_mirror.config import RetryConfig


@dataclass(frozen=True)
class BackoffPolicy:
    """Exponential backoff for transient failures."""

    max_attempts: int = 3
    """Total attempts, including the first one."""

    base_delay_ms: int = 500
    """Delay before the second attempt."""

    factor: float = 2.0
    """Multiplier applied to the delay after every retry."""

    @classmethod
    def from_config(cls, config: RetryConfig) -> BackoffPolicy:
        """Build a policy from the retry settings."""
        return cls(
            max_attempts=config.max_attempts,
            base_delay_ms=config.base_delay_ms,
            factor=config.backoff_factor,
        )

    def should_retry(self, error: BaseException, attempt: int, max_attempts: int | None = None) -> bool:
        """Decide whether a failed attempt gets another try.

        Args:
            error: The failure
            attempt: Zero-based index of the attempt that failed
            max_attempts: Per-call override of the attempt budget

        Returns:
            True if the error is retryable and attempts remain
        """
        budget = max_attempts if max_attempts is not None else self.max_attempts
        if attempt >= budget - 1:
            return False
        return is_retryable_error(error)

    def delay_ms(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return self.base_delay_ms * (self.factor**attempt)


@dataclass(frozen=True)
class RateLimitPolicy:
    """Wait-and-retry for rate-limit failures."""

    max_retries: int = 10
    """Rate-limit waits allowed for a single request."""

    default_wait_ms: int = DEFAULT_RATE_LIMIT_WAIT_MS
    """Wait without a signal, and the floor for every computed wait."""

    @classmethod
    def from_config(cls, config: RetryConfig) -> RateLimitPolicy:
        """Build a policy from the retry settings."""
        return cls(
            max_retries=config.max_rate_limit_retries,
            default_wait_ms=config.default_rate_limit_wait_ms,
        )

    def matches(self, error: BaseException) -> bool:
        """Check if the failure is a rate limit."""
        return is_rate_limit_error(error)

    def can_retry(self, retry_count: int) -> bool:
        """Check if the one-based ``retry_count`` is still within budget."""
        return retry_count <= self.max_retries

    def wait_ms(self, error: BaseException, now: datetime | None = None) -> int:
        """Compute the wait for a rate-limit failure."""
        if isinstance(error, GitHubClientError):
            return compute_rate_limit_wait_ms(
                error.headers,
                error.errors,
                default_ms=self.default_wait_ms,
                now=now,
            )
        return self.default_wait_ms
