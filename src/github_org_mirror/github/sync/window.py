"""Time-window evaluation for incremental sync.

A node is in the window iff ``since <= timestamp < until``; a missing
bound is unbounded. Nodes with missing or unparseable timestamps are
never in the window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from github_org_mirror.timestamps import ensure_utc, parse_timestamp


@dataclass(frozen=True)
class TimeBounds:
    """Half-open ``[since, until)`` window."""

    since: datetime | None = None
    """Inclusive lower bound (None = unbounded)."""

    until: datetime | None = None
    """Exclusive upper bound (None = unbounded)."""

    @classmethod
    def create(cls, since: object = None, until: object = None) -> TimeBounds:
        """Build bounds from datetimes or timestamp strings.

        Unparseable values are treated as absent bounds.
        """
        return cls(since=parse_timestamp(since), until=parse_timestamp(until))

    def with_since(self, since: datetime | None) -> TimeBounds:
        """Copy with a different lower bound."""
        return TimeBounds(since=since, until=self.until)


@dataclass(frozen=True)
class WindowDecision:
    """Where a timestamp falls relative to a window."""

    include: bool
    """The node is inside the window."""

    after_upper_bound: bool = False
    """The node is at or past ``until``: skip it, keep paging."""

    before_lower_bound: bool = False
    """The node is older than ``since``: on a newest-first connection every
    later node is older still, so paging can stop."""


_EXCLUDED = WindowDecision(include=False)
_INCLUDED = WindowDecision(include=True)


def evaluate(timestamp: object, bounds: TimeBounds) -> WindowDecision:
    """Classify a timestamp against a window.

    Args:
        timestamp: ISO 8601 string or datetime (anything else is excluded)
        bounds: The sync window

    Returns:
        The window decision
    """
    value = parse_timestamp(timestamp)
    if value is None:
        return _EXCLUDED

    if bounds.since is not None and value < ensure_utc(bounds.since):
        return WindowDecision(include=False, before_lower_bound=True)

    if bounds.until is not None and value >= ensure_utc(bounds.until):
        return WindowDecision(include=False, after_upper_bound=True)

    return _INCLUDED
