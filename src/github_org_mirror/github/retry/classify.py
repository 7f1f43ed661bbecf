"""Classification of GraphQL request failures.

Failures fall into three buckets: rate limited (waited out), transient
(retried with backoff) and fatal (propagated). Not-found is a fatal
failure that sub-collections treat as "parent deleted upstream".
"""

from __future__ import annotations

import re
from typing import Any

from github_org_mirror.github.exceptions import (
    ConfigurationError,
    GitHubClientError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubTransientError,
)

RETRYABLE_STATUS_CODES = frozenset({500, 502, 503, 504})

RATE_LIMIT_ERROR_CODES = frozenset(
    {
        "RATE_LIMIT",
        "RATE_LIMITED",
        "GRAPHQL_RATE_LIMIT",
        "graphql_rate_limit",
    }
)

NOT_FOUND_ERROR_CODE = "NOT_FOUND"

_RATE_LIMIT_MESSAGE = re.compile(r"rate limit", re.IGNORECASE)


def error_markers(record: dict[str, Any]) -> list[str]:
    """Collect type/code markers from a GraphQL error record.

    Looks at the top-level ``type``/``code`` keys and the same keys inside
    ``extensions``.
    """
    markers: list[str] = []
    for key in ("type", "code"):
        value = record.get(key)
        if isinstance(value, str):
            markers.append(value)

    extensions = record.get("extensions")
    if isinstance(extensions, dict):
        for key in ("type", "code"):
            value = extensions.get(key)
            if isinstance(value, str):
                markers.append(value)

    return markers


def has_rate_limit_marker(errors: list[dict[str, Any]]) -> bool:
    """Check whether any GraphQL error record carries a rate-limit code."""
    return any(
        marker in RATE_LIMIT_ERROR_CODES
        for record in errors
        if isinstance(record, dict)
        for marker in error_markers(record)
    )


def has_not_found_marker(errors: list[dict[str, Any]]) -> bool:
    """Check whether any GraphQL error record reports NOT_FOUND."""
    return any(
        NOT_FOUND_ERROR_CODE in error_markers(record)
        for record in errors
        if isinstance(record, dict)
    )


def mentions_rate_limit(message: str) -> bool:
    """Case-insensitive "rate limit" match on an error message."""
    return bool(_RATE_LIMIT_MESSAGE.search(message or ""))


def is_rate_limit_error(error: BaseException) -> bool:
    """Check if a failure should be waited out as a rate limit."""
    if isinstance(error, GitHubRateLimitError):
        return True
    if not isinstance(error, GitHubClientError):
        return False
    if has_rate_limit_marker(error.errors):
        return True
    return mentions_rate_limit(str(error))


def is_not_found_error(error: BaseException) -> bool:
    """Check if a failure means the requested node no longer exists."""
    if isinstance(error, GitHubNotFoundError):
        return True
    if isinstance(error, GitHubClientError):
        return has_not_found_marker(error.errors)
    return False


def is_retryable_error(error: BaseException) -> bool:
    """Check if a non-rate-limit failure should be retried with backoff.

    Upstream errors are retried only for 5xx gateway-class statuses and
    transport failures. Anything unclassified is retried too and becomes
    fatal once attempts run out.
    """
    if isinstance(error, GitHubTransientError):
        return True
    if isinstance(error, GitHubClientError):
        return error.status_code in RETRYABLE_STATUS_CODES
    if isinstance(error, ConfigurationError):
        return False
    return isinstance(error, Exception)


def describe_error(error: BaseException) -> str:
    """Short description used in retry log lines."""
    if isinstance(error, GitHubClientError) and error.status_code is not None:
        return f"status {error.status_code}"
    if isinstance(error, GitHubClientError):
        return "status unknown"
    return str(error) or type(error).__name__
