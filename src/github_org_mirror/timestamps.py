"""Timestamp helpers shared by the client, the window evaluator and the store.

GitHub returns ISO 8601 strings; stored values come back from SQLite as
naive datetimes. Everything is normalized to timezone-aware UTC here.
"""

from __future__ import annotations

from datetime import UTC, datetime
from email.utils import parsedate_to_datetime


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO 8601 or RFC 2822 timestamp.

    Args:
        value: String, datetime, or anything else

    Returns:
        Aware UTC datetime, or None if the value is missing or unparseable
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return ensure_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    try:
        return ensure_utc(parsedate_to_datetime(text))
    except (TypeError, ValueError, IndexError):
        return None


def to_iso(value: datetime | None) -> str | None:
    """Format a datetime as an ISO 8601 UTC string with a Z suffix."""
    if value is None:
        return None
    return ensure_utc(value).isoformat().replace("+00:00", "Z")


def max_timestamp(current: str | None, candidate: str | None) -> str | None:
    """Return whichever of two ISO timestamps is later.

    Unparseable candidates never replace a current value.
    """
    if not candidate:
        return current
    if not current:
        return candidate

    current_dt = parse_timestamp(current)
    candidate_dt = parse_timestamp(candidate)
    if candidate_dt is None:
        return current
    if current_dt is None or candidate_dt > current_dt:
        return candidate
    return current
