"""Tests for the request executor."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from github_org_mirror.config import RetryConfig
from github_org_mirror.github.exceptions import (
    GitHubGraphQLError,
    GitHubRateLimitError,
    GitHubTransientError,
)
from github_org_mirror.github.retry import BackoffPolicy, RateLimitPolicy, RequestExecutor

QUERY = "query { viewer { login } }"


@pytest.fixture
def sleeps() -> list[float]:
    """Seconds passed to the injected sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


def _client(*outcomes) -> MagicMock:
    client = MagicMock()
    client.graphql = AsyncMock(side_effect=list(outcomes))
    return client


class TestSuccess:
    @pytest.mark.asyncio
    async def test_returns_data_without_sleeping(self, fake_sleep, sleeps):
        client = _client({"viewer": {"login": "alice"}})
        executor = RequestExecutor(client, sleep=fake_sleep)

        data = await executor.execute(QUERY, {"cursor": None})

        assert data == {"viewer": {"login": "alice"}}
        client.graphql.assert_awaited_once_with(QUERY, {"cursor": None})
        assert sleeps == []


class TestTransientRetries:
    """Backoff behavior for transient failures."""

    @pytest.mark.asyncio
    async def test_retries_with_exponential_backoff(self, fake_sleep, sleeps):
        client = _client(
            GitHubTransientError("bad gateway", status_code=502),
            GitHubTransientError("unavailable", status_code=503),
            {"ok": True},
        )
        executor = RequestExecutor(client, BackoffPolicy(3, 500, 2.0), sleep=fake_sleep)

        assert await executor.execute(QUERY, {}) == {"ok": True}
        assert sleeps == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_last_error_propagates_when_attempts_run_out(self, fake_sleep, sleeps):
        last = GitHubTransientError("still down", status_code=503)
        client = _client(GitHubTransientError("down", status_code=503), last)
        executor = RequestExecutor(client, BackoffPolicy(max_attempts=2), sleep=fake_sleep)

        with pytest.raises(GitHubTransientError) as exc_info:
            await executor.execute(QUERY, {})

        assert exc_info.value is last
        assert client.graphql.await_count == 2
        assert len(sleeps) == 1

    @pytest.mark.asyncio
    async def test_fatal_errors_are_not_retried(self, fake_sleep, sleeps):
        client = _client(GitHubGraphQLError("Field 'nope' doesn't exist"))
        executor = RequestExecutor(client, sleep=fake_sleep)

        with pytest.raises(GitHubGraphQLError):
            await executor.execute(QUERY, {})

        assert client.graphql.await_count == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_max_attempts_override(self, fake_sleep):
        client = _client(GitHubTransientError("down", status_code=500))
        executor = RequestExecutor(client, BackoffPolicy(max_attempts=5), sleep=fake_sleep)

        with pytest.raises(GitHubTransientError):
            await executor.execute(QUERY, {}, max_attempts=1)

        assert client.graphql.await_count == 1


class TestRateLimitRetries:
    """Rate-limit waits."""

    @pytest.mark.asyncio
    async def test_waits_for_computed_time(self, fake_sleep, sleeps):
        client = _client(
            GitHubRateLimitError("limited", status_code=403, headers={"retry-after": "120"}),
            {"ok": True},
        )
        executor = RequestExecutor(client, sleep=fake_sleep)

        assert await executor.execute(QUERY, {}) == {"ok": True}
        assert sleeps == [120.0]

    @pytest.mark.asyncio
    async def test_waits_default_without_signal(self, fake_sleep, sleeps):
        client = _client(
            GitHubGraphQLError("limited", errors=[{"type": "RATE_LIMITED"}]),
            {"ok": True},
        )
        executor = RequestExecutor(client, sleep=fake_sleep)

        await executor.execute(QUERY, {})

        assert sleeps == [60.0]

    @pytest.mark.asyncio
    async def test_rate_limits_do_not_consume_attempts(self, fake_sleep, sleeps):
        """One transient attempt budget survives any number of rate-limit waits."""
        client = _client(
            GitHubRateLimitError("limited"),
            GitHubRateLimitError("limited"),
            GitHubRateLimitError("limited"),
            {"ok": True},
        )
        executor = RequestExecutor(
            client,
            BackoffPolicy(max_attempts=1),
            RateLimitPolicy(max_retries=3, default_wait_ms=1000),
            sleep=fake_sleep,
        )

        assert await executor.execute(QUERY, {}) == {"ok": True}
        assert sleeps == [1.0, 1.0, 1.0]

    @pytest.mark.asyncio
    async def test_rate_limit_budget_exhausted(self, fake_sleep, sleeps):
        client = _client(
            GitHubRateLimitError("limited"),
            GitHubRateLimitError("limited"),
            GitHubRateLimitError("limited"),
        )
        executor = RequestExecutor(
            client,
            rate_limit=RateLimitPolicy(max_retries=2, default_wait_ms=0),
            sleep=fake_sleep,
        )

        with pytest.raises(GitHubRateLimitError):
            await executor.execute(QUERY, {})

        assert client.graphql.await_count == 3
        assert len(sleeps) == 2

    @pytest.mark.asyncio
    async def test_mixed_failures(self, fake_sleep, sleeps):
        client = _client(
            GitHubTransientError("down", status_code=502),
            GitHubRateLimitError("limited"),
            GitHubTransientError("down", status_code=502),
            {"ok": True},
        )
        executor = RequestExecutor(
            client,
            BackoffPolicy(max_attempts=3, base_delay_ms=100, factor=2.0),
            RateLimitPolicy(default_wait_ms=5000),
            sleep=fake_sleep,
        )

        assert await executor.execute(QUERY, {}) == {"ok": True}
        assert sleeps == [0.1, 5.0, 0.2]


class TestFromConfig:
    def test_builds_policies_from_settings(self):
        config = RetryConfig(max_attempts=4, max_rate_limit_retries=2)
        executor = RequestExecutor.from_config(MagicMock(), config)

        assert executor.backoff.max_attempts == 4
        assert executor.rate_limit.max_retries == 2
