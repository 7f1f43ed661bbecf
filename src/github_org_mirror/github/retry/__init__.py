"""Retry strategies and the request executor that combines them."""

from .classify import (
    RATE_LIMIT_ERROR_CODES,
    RETRYABLE_STATUS_CODES,
    describe_error,
    is_not_found_error,
    is_rate_limit_error,
    is_retryable_error,
)
from .executor import RequestExecutor
from .policies import BackoffPolicy, RateLimitPolicy
from .wait import DEFAULT_RATE_LIMIT_WAIT_MS, compute_rate_limit_wait_ms

__all__ = [
    "DEFAULT_RATE_LIMIT_WAIT_MS",
    "RATE_LIMIT_ERROR_CODES",
    "RETRYABLE_STATUS_CODES",
    "BackoffPolicy",
    "RateLimitPolicy",
    "RequestExecutor",
    "compute_rate_limit_wait_ms",
    "describe_error",
    "is_not_found_error",
    "is_rate_limit_error",
    "is_retryable_error",
]
