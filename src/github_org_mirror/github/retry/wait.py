"""Rate-limit wait computation.

The wait is derived from the first signal found, in this order:

1. ``Retry-After`` header (seconds, or an HTTP date)
2. ``X-RateLimit-Reset`` header (epoch seconds, or a date)
3. GraphQL error extension delay keys (seconds, or a date)
4. GraphQL error extension reset keys (a date, or epoch seconds)

Every computed wait is floored at the default wait; with no signal at all
the default is used as-is.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import datetime
from typing import Any

from github_org_mirror.timestamps import parse_timestamp, utc_now

DEFAULT_RATE_LIMIT_WAIT_MS = 60_000

EXTENSION_DELAY_KEYS = (
    "retryAfter",
    "retry_after",
    "retryAfterSeconds",
    "retry_after_seconds",
    "wait",
    "seconds",
    "resetAfter",
    "reset_after",
)

EXTENSION_RESET_KEYS = ("resetAt", "reset_at", "resetTime", "reset_time")


# -----------------------------------------------------------------------------
# Value Parsing
# -----------------------------------------------------------------------------
def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _ms_until(moment: datetime, now: datetime) -> float:
    wait_ms = (moment - now).total_seconds() * 1000
    return wait_ms if wait_ms > 0 else 0.0


def get_header_value(headers: Mapping[str, Any] | None, key: str) -> str | None:
    """Case-insensitive header lookup.

    Accepts ``httpx.Headers`` as well as plain dicts whose values may be
    strings or lists of strings.
    """
    if not headers:
        return None

    direct = headers.get(key)
    if direct is None:
        direct = headers.get(key.lower())
    if isinstance(direct, str) and direct:
        return direct

    wanted = key.lower()
    for raw_key, value in headers.items():
        if str(raw_key).lower() != wanted:
            continue
        if isinstance(value, str):
            return value
        if isinstance(value, list | tuple):
            for item in value:
                if isinstance(item, str):
                    return item
        if value is not None:
            return str(value)
    return None


def parse_retry_after(value: str, now: datetime | None = None) -> float | None:
    """Parse a Retry-After header into milliseconds."""
    text = value.strip()
    if not text:
        return None

    number = _as_number(text)
    if number is not None:
        return number * 1000 if number > 0 else 0.0

    moment = parse_timestamp(text)
    if moment is None:
        return None
    return _ms_until(moment, now or utc_now())


def parse_reset_header(value: str, now: datetime | None = None) -> float | None:
    """Parse an X-RateLimit-Reset header (epoch seconds or date) into milliseconds."""
    text = value.strip()
    if not text:
        return None

    current = now or utc_now()
    number = _as_number(text)
    if number is not None:
        wait_ms = number * 1000 - current.timestamp() * 1000
        return wait_ms if wait_ms > 0 else 0.0

    moment = parse_timestamp(text)
    if moment is None:
        return None
    return _ms_until(moment, current)


def parse_extension_delay(value: object, now: datetime | None = None) -> float | None:
    """Parse a relative delay extension value (seconds or date) into milliseconds."""
    if value is None:
        return None

    number = _as_number(value)
    if number is not None:
        return number * 1000 if number > 0 else 0.0

    if isinstance(value, str) and value.strip():
        moment = parse_timestamp(value)
        if moment is not None:
            return _ms_until(moment, now or utc_now())
    return None


def parse_extension_reset(value: object, now: datetime | None = None) -> float | None:
    """Parse an absolute reset extension value (date or epoch seconds) into milliseconds."""
    if value is None:
        return None

    current = now or utc_now()
    if isinstance(value, str) and value.strip():
        moment = parse_timestamp(value)
        if moment is not None:
            return _ms_until(moment, current)

    if isinstance(value, int | float) and not isinstance(value, bool) and math.isfinite(value):
        wait_ms = value * 1000 - current.timestamp() * 1000
        return wait_ms if wait_ms > 0 else 0.0
    return None


# -----------------------------------------------------------------------------
# Wait Computation
# -----------------------------------------------------------------------------
def compute_rate_limit_wait_ms(
    headers: Mapping[str, Any] | None,
    errors: list[dict[str, Any]] | None,
    *,
    default_ms: int = DEFAULT_RATE_LIMIT_WAIT_MS,
    now: datetime | None = None,
) -> int:
    """Compute how long to wait before retrying a rate-limited request.

    Args:
        headers: Response headers (may be empty)
        errors: GraphQL error records (may be empty)
        default_ms: Wait used without a signal, and the floor for any signal
        now: Reference time for absolute signals (defaults to now)

    Returns:
        Wait in whole milliseconds, never below ``default_ms``
    """

    def floored(wait_ms: float) -> int:
        return math.ceil(max(wait_ms, default_ms))

    retry_after = get_header_value(headers, "retry-after")
    if retry_after is not None:
        wait_ms = parse_retry_after(retry_after, now)
        if wait_ms is not None:
            return floored(wait_ms)

    reset = get_header_value(headers, "x-ratelimit-reset")
    if reset is not None:
        wait_ms = parse_reset_header(reset, now)
        if wait_ms is not None:
            return floored(wait_ms)

    for record in errors or []:
        if not isinstance(record, dict):
            continue
        extensions = record.get("extensions")
        if not isinstance(extensions, dict):
            continue

        for key in EXTENSION_DELAY_KEYS:
            wait_ms = parse_extension_delay(extensions.get(key), now)
            if wait_ms is not None:
                return floored(wait_ms)

        for key in EXTENSION_RESET_KEYS:
            wait_ms = parse_extension_reset(extensions.get(key), now)
            if wait_ms is not None:
                return floored(wait_ms)

    return default_ms
