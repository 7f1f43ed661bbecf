"""GitHub client exceptions."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any


class GitHubClientError(Exception):
    """Base exception for GitHub client errors.

    Carries whatever the upstream response exposed so retry policies can
    classify the failure without re-parsing it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.headers: Mapping[str, str] = headers or {}
        self.errors: list[dict[str, Any]] = errors or []


class GitHubAuthenticationError(GitHubClientError):
    """Raised when authentication fails (401)."""

    pass


class GitHubRetryableError(GitHubClientError):
    """Base class for errors that the request executor retries."""

    pass


class GitHubTransientError(GitHubRetryableError):
    """Raised for 5xx responses and transport failures."""

    pass


class GitHubRateLimitError(GitHubRetryableError):
    """Raised when a primary or secondary rate limit is hit."""

    def __init__(
        self,
        message: str,
        *,
        reset_at: datetime | None = None,
        status_code: int | None = None,
        headers: Mapping[str, str] | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, headers=headers, errors=errors)
        self.reset_at = reset_at


class GitHubNotFoundError(GitHubClientError):
    """Raised when a node no longer exists upstream (404 or NOT_FOUND)."""

    pass


class GitHubGraphQLError(GitHubClientError):
    """Raised for GraphQL-level errors that are not worth retrying."""

    pass


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""

    pass


class NodeResyncError(Exception):
    """Raised when a targeted node resync fails.

    The message always names the node so the failure can be traced back
    to the request that triggered it.
    """

    def __init__(self, node_id: str, message: str) -> None:
        super().__init__(f"Failed to resync node {node_id}: {message}")
        self.node_id = node_id
