"""Request executor - one GraphQL call with retries.

Drives the two retry strategies around a single ``GitHubClient.graphql``
call. Rate-limit waits do not consume transient-failure attempts.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from github_org_mirror.logging import get_logger

from .classify import describe_error
from .policies import BackoffPolicy, RateLimitPolicy

if TYPE_CHECKING:
    from github_org_mirror.config import RetryConfig
    from github_org_mirror.github.client import GitHubClient

logger = get_logger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]


class RequestExecutor:
    """Execute GraphQL documents with backoff and rate-limit handling.

    Usage:
        async with GitHubClient() as client:
            executor = RequestExecutor(client)
            data = await executor.execute(
                REPOSITORY_ISSUES_QUERY,
                {"owner": "prebid", "name": "Prebid.js", "cursor": None},
                context="issues prebid/Prebid.js",
            )
    """

    def __init__(
        self,
        client: GitHubClient,
        backoff: BackoffPolicy | None = None,
        rate_limit: RateLimitPolicy | None = None,
        *,
        sleep: SleepFunc | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            client: GitHub GraphQL client
            backoff: Transient-failure strategy (defaults to 3 attempts from 500ms)
            rate_limit: Rate-limit strategy (defaults to 10 waits, 60s floor)
            sleep: Awaitable sleep taking seconds (injectable for tests)
        """
        self._client = client
        self._backoff = backoff or BackoffPolicy()
        self._rate_limit = rate_limit or RateLimitPolicy()
        self._sleep: SleepFunc = sleep or asyncio.sleep

    @classmethod
    def from_config(
        cls,
        client: GitHubClient,
        config: RetryConfig,
        *,
        sleep: SleepFunc | None = None,
    ) -> RequestExecutor:
        """Build an executor from the retry settings."""
        return cls(
            client,
            BackoffPolicy.from_config(config),
            RateLimitPolicy.from_config(config),
            sleep=sleep,
        )

    @property
    def backoff(self) -> BackoffPolicy:
        """Transient-failure strategy."""
        return self._backoff

    @property
    def rate_limit(self) -> RateLimitPolicy:
        """Rate-limit strategy."""
        return self._rate_limit

    async def execute(
        self,
        query: str,
        variables: dict[str, Any],
        *,
        context: str | None = None,
        max_attempts: int | None = None,
    ) -> dict[str, Any]:
        """Run one GraphQL request until it succeeds or a budget is exhausted.

        Args:
            query: GraphQL document
            variables: Query variables
            context: Label for log lines (e.g. "issues owner/repo")
            max_attempts: Override for the transient-failure attempt budget

        Returns:
            The response ``data`` object

        Raises:
            GitHubClientError: Non-retryable failure, or a budget ran out
        """
        label = context or "request"
        budget = max_attempts if max_attempts is not None else self._backoff.max_attempts
        attempt = 0
        rate_limit_retries = 0

        while True:
            try:
                return await self._client.graphql(query, variables)
            except Exception as error:
                if self._rate_limit.matches(error):
                    rate_limit_retries += 1
                    if not self._rate_limit.can_retry(rate_limit_retries):
                        raise

                    wait_ms = self._rate_limit.wait_ms(error)
                    logger.warning(
                        "Rate limit reached for {}. Waiting {}s before retrying ({}/{}).",
                        label,
                        math.ceil(wait_ms / 1000),
                        rate_limit_retries,
                        self._rate_limit.max_retries,
                    )
                    await self._sleep(wait_ms / 1000)
                    continue

                if not self._backoff.should_retry(error, attempt, budget):
                    raise

                delay_ms = self._backoff.delay_ms(attempt)
                logger.info(
                    "Retrying {} ({}/{}) after {}...",
                    label,
                    attempt + 1,
                    budget,
                    describe_error(error),
                )
                await self._sleep(delay_ms / 1000)
                attempt += 1
