"""Async GitHub GraphQL client wrapper using githubkit.

This module provides the single upstream entry point: post a GraphQL
document, get back the ``data`` object, or get an exception from the
client taxonomy with the response headers and GraphQL errors attached.
Retries are owned by ``RequestExecutor``, so githubkit's own retry
behavior is turned off.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from githubkit import GitHub
from githubkit.exception import RequestError, RequestFailed

from github_org_mirror.config import get_settings
from github_org_mirror.logging import get_logger

from .exceptions import (
    GitHubAuthenticationError,
    GitHubClientError,
    GitHubGraphQLError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubTransientError,
)
from .retry.classify import (
    RETRYABLE_STATUS_CODES,
    has_not_found_marker,
    has_rate_limit_marker,
    mentions_rate_limit,
)

logger = get_logger(__name__)

GRAPHQL_PATH = "/graphql"


class GitHubClient:
    """Posts GraphQL documents for one token.

    Usage:
        async with GitHubClient(token) as client:
            data = await client.graphql(NODE_QUERY, {"id": node_id})
    """

    def __init__(self, token: str | None = None) -> None:
        # falls back to GITHUB_TOKEN
        self._token = token or get_settings().github_token
        if not self._token:
            raise GitHubAuthenticationError("GitHub token is not configured. Set GITHUB_TOKEN.")
        self._client: GitHub[Any] | None = None

    @property
    def _github(self) -> GitHub[Any]:
        if self._client is None:
            self._client = GitHub(self._token, auto_retry=False)
        return self._client

    async def close(self) -> None:
        """Drop the githubkit instance; the next request builds a new one."""
        self._client = None

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Execute a GraphQL document.

        Args:
            query: GraphQL document
            variables: Query variables

        Returns:
            The ``data`` object of the response

        Raises:
            GitHubClientError: Or one of its subclasses, on any failure
        """
        try:
            response = await self._github.arequest(
                "POST",
                GRAPHQL_PATH,
                json={"query": query, "variables": variables},
            )
        except RequestFailed as e:
            raise self._handle_error(e) from e
        except RequestError as e:
            raise GitHubTransientError(f"GitHub request failed: {e}") from e

        headers = _header_dict(response.headers)
        try:
            payload = response.json()
        except ValueError as e:
            raise GitHubTransientError(
                "GitHub returned a non-JSON GraphQL response",
                status_code=response.status_code,
                headers=headers,
            ) from e

        errors = _error_records(payload.get("errors") if isinstance(payload, dict) else None)
        if errors:
            raise self._graphql_error(errors, headers, response.status_code)

        data = payload.get("data") if isinstance(payload, dict) else None
        return data if isinstance(data, dict) else {}

    def _graphql_error(
        self,
        errors: list[dict[str, Any]],
        headers: dict[str, str],
        status_code: int | None,
    ) -> GitHubClientError:
        """Convert a GraphQL ``errors`` array into a client exception."""
        messages = "; ".join(
            str(record.get("message")) for record in errors if record.get("message")
        )
        message = messages or "GraphQL request returned errors"

        if has_rate_limit_marker(errors) or mentions_rate_limit(message):
            return GitHubRateLimitError(
                message,
                reset_at=_reset_at(headers),
                status_code=status_code,
                headers=headers,
                errors=errors,
            )
        if has_not_found_marker(errors):
            return GitHubNotFoundError(
                message, status_code=status_code, headers=headers, errors=errors
            )
        return GitHubGraphQLError(
            message, status_code=status_code, headers=headers, errors=errors
        )

    def _handle_error(self, error: RequestFailed) -> GitHubClientError:
        """Convert githubkit exceptions to our custom exceptions."""
        response = error.response
        status = response.status_code
        headers = _header_dict(response.headers)
        errors = _response_errors(response)
        message = "; ".join(
            str(record.get("message")) for record in errors if record.get("message")
        ) or str(error)

        if status == 401:
            return GitHubAuthenticationError(
                "Invalid GitHub token", status_code=status, headers=headers, errors=errors
            )
        if status in (403, 429):
            if (
                status == 429
                or headers.get("x-ratelimit-remaining") == "0"
                or "retry-after" in headers
                or has_rate_limit_marker(errors)
                or mentions_rate_limit(message)
            ):
                return GitHubRateLimitError(
                    f"GitHub rate limit exceeded: {message}",
                    reset_at=_reset_at(headers),
                    status_code=status,
                    headers=headers,
                    errors=errors,
                )
            return GitHubClientError(
                f"Access forbidden: {message}", status_code=status, headers=headers, errors=errors
            )
        if status == 404:
            return GitHubNotFoundError(message, status_code=status, headers=headers, errors=errors)
        if status in RETRYABLE_STATUS_CODES:
            return GitHubTransientError(
                f"GitHub API error ({status}): {message}",
                status_code=status,
                headers=headers,
                errors=errors,
            )
        return GitHubClientError(
            f"GitHub API error ({status}): {message}",
            status_code=status,
            headers=headers,
            errors=errors,
        )


def _header_dict(headers: Mapping[str, str] | None) -> dict[str, str]:
    """Lower-case header names into a plain dict."""
    if headers is None:
        return {}
    return {str(key).lower(): str(value) for key, value in headers.items()}


def _error_records(errors: object) -> list[dict[str, Any]]:
    if not isinstance(errors, list):
        return []
    return [record for record in errors if isinstance(record, dict)]


def _response_errors(response: Any) -> list[dict[str, Any]]:
    """Best-effort extraction of GraphQL errors from a failed response body."""
    try:
        payload = response.json()
    except Exception:
        logger.debug("Failed response body is not JSON")
        return []
    if isinstance(payload, dict):
        return _error_records(payload.get("errors"))
    return []


def _reset_at(headers: Mapping[str, str]) -> datetime | None:
    reset = headers.get("x-ratelimit-reset")
    if not reset:
        return None
    try:
        return datetime.fromtimestamp(int(reset), tz=UTC)
    except ValueError:
        return None
