"""Tests for rate-limit wait computation."""

from datetime import UTC, datetime, timedelta

from github_org_mirror.github.retry.wait import (
    DEFAULT_RATE_LIMIT_WAIT_MS,
    compute_rate_limit_wait_ms,
    get_header_value,
    parse_retry_after,
)

NOW = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)


def _epoch(delta: timedelta) -> str:
    return str(int((NOW + delta).timestamp()))


def _iso(delta: timedelta) -> str:
    return (NOW + delta).isoformat().replace("+00:00", "Z")


class TestHeaderSignals:
    """Waits derived from response headers."""

    def test_retry_after_seconds(self):
        assert compute_rate_limit_wait_ms({"retry-after": "120"}, None, now=NOW) == 120_000

    def test_retry_after_below_floor_is_raised_to_default(self):
        assert compute_rate_limit_wait_ms({"Retry-After": "10"}, None, now=NOW) == 60_000

    def test_retry_after_http_date(self):
        headers = {"Retry-After": "Wed, 10 Jan 2024 09:03:00 GMT"}
        assert compute_rate_limit_wait_ms(headers, None, now=NOW) == 180_000

    def test_reset_header_epoch_seconds(self):
        headers = {"X-RateLimit-Reset": _epoch(timedelta(minutes=5))}
        assert compute_rate_limit_wait_ms(headers, None, now=NOW) == 300_000

    def test_reset_in_the_past_uses_floor(self):
        headers = {"x-ratelimit-reset": _epoch(timedelta(minutes=-5))}
        assert compute_rate_limit_wait_ms(headers, None, now=NOW) == 60_000

    def test_retry_after_takes_precedence_over_reset(self):
        headers = {
            "retry-after": "120",
            "x-ratelimit-reset": _epoch(timedelta(minutes=10)),
        }
        assert compute_rate_limit_wait_ms(headers, None, now=NOW) == 120_000

    def test_unparseable_retry_after_falls_through_to_reset(self):
        headers = {
            "retry-after": "soon",
            "x-ratelimit-reset": _epoch(timedelta(minutes=2)),
        }
        assert compute_rate_limit_wait_ms(headers, None, now=NOW) == 120_000


class TestExtensionSignals:
    """Waits derived from GraphQL error extensions."""

    def test_extension_delay_seconds(self):
        errors = [{"message": "slow down", "extensions": {"retryAfter": 90}}]
        assert compute_rate_limit_wait_ms({}, errors, now=NOW) == 90_000

    def test_extension_delay_string_seconds(self):
        errors = [{"extensions": {"retry_after_seconds": "150"}}]
        assert compute_rate_limit_wait_ms({}, errors, now=NOW) == 150_000

    def test_extension_reset_date(self):
        errors = [{"extensions": {"resetAt": _iso(timedelta(minutes=4))}}]
        assert compute_rate_limit_wait_ms({}, errors, now=NOW) == 240_000

    def test_delay_keys_win_over_reset_keys(self):
        errors = [
            {
                "extensions": {
                    "resetAt": _iso(timedelta(minutes=10)),
                    "wait": 75,
                }
            }
        ]
        assert compute_rate_limit_wait_ms({}, errors, now=NOW) == 75_000

    def test_headers_win_over_extensions(self):
        errors = [{"extensions": {"retryAfter": 300}}]
        assert compute_rate_limit_wait_ms({"retry-after": "90"}, errors, now=NOW) == 90_000


class TestDefaults:
    """Behavior without a usable signal."""

    def test_no_signal_uses_default(self):
        assert compute_rate_limit_wait_ms(None, None, now=NOW) == DEFAULT_RATE_LIMIT_WAIT_MS
        assert compute_rate_limit_wait_ms({}, [{"message": "rate limited"}], now=NOW) == 60_000

    def test_custom_default_is_also_the_floor(self):
        assert compute_rate_limit_wait_ms({"retry-after": "10"}, None, default_ms=0, now=NOW) == (
            10_000
        )
        assert compute_rate_limit_wait_ms({"retry-after": "10"}, None, default_ms=30_000) == 30_000


class TestHelpers:
    """Tests for header and value parsing helpers."""

    def test_header_lookup_is_case_insensitive(self):
        assert get_header_value({"Retry-After": "5"}, "retry-after") == "5"
        assert get_header_value({"RETRY-AFTER": ["7"]}, "retry-after") == "7"
        assert get_header_value({}, "retry-after") is None

    def test_parse_retry_after_negative_is_zero(self):
        assert parse_retry_after("-5", NOW) == 0.0

    def test_parse_retry_after_blank(self):
        assert parse_retry_after("   ", NOW) is None
