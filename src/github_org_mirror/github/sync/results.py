"""Result objects for sync operations.

Structured results provide consistent interfaces for watermark
bookkeeping, run summaries, and CLI output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from github_org_mirror.timestamps import max_timestamp

from .enums import ResourceKey


@dataclass
class CollectionResult:
    """Outcome of paging one connection (or a set of them)."""

    latest: str | None = None
    """Latest timestamp among included nodes (watermark candidate)."""

    count: int = 0
    """Number of nodes upserted."""

    def observe(self, timestamp: str | None) -> None:
        """Record one upserted node."""
        self.latest = max_timestamp(self.latest, timestamp)
        self.count += 1

    def merge(self, other: CollectionResult) -> CollectionResult:
        """Fold another result into this one."""
        self.latest = max_timestamp(self.latest, other.latest)
        self.count += other.count
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"latest": self.latest, "count": self.count}


@dataclass
class CommentAccumulator:
    """Comments gathered across the issue, discussion and pull request passes.

    Comments have a single watermark and sync log entry, but they are
    collected by three different passes. Each pass adds into this object;
    the orchestrator finalizes it once all passes have succeeded.
    """

    result: CollectionResult = field(default_factory=CollectionResult)
    """Combined comment result."""

    log_id: int | None = None
    """Sync log entry tracking the comments resource."""

    def add(self, result: CollectionResult) -> None:
        """Add one pass's comment result."""
        self.result.merge(result)

    @property
    def latest(self) -> str | None:
        return self.result.latest

    @property
    def count(self) -> int:
        return self.result.count


@dataclass
class PullRequestPassResult:
    """Outcome of the pull request pass for one repository."""

    pull_requests: CollectionResult = field(default_factory=CollectionResult)
    reviews: CollectionResult = field(default_factory=CollectionResult)
    comments: CollectionResult = field(default_factory=CollectionResult)

    def merge(self, other: PullRequestPassResult) -> PullRequestPassResult:
        self.pull_requests.merge(other.pull_requests)
        self.reviews.merge(other.reviews)
        self.comments.merge(other.comments)
        return self


@dataclass
class ParentPassResult:
    """Outcome of the issue or discussion pass for one repository."""

    items: CollectionResult = field(default_factory=CollectionResult)
    comments: CollectionResult = field(default_factory=CollectionResult)

    def merge(self, other: ParentPassResult) -> ParentPassResult:
        self.items.merge(other.items)
        self.comments.merge(other.comments)
        return self


@dataclass
class OpenItemsResult:
    """Outcome of the open issue/pull request metadata refresh."""

    issues: int = 0
    """Open issues whose assignees were refreshed."""

    pull_requests: int = 0
    """Open pull requests refreshed and reconciled."""

    review_requests_added: int = 0
    review_requests_removed: int = 0

    def merge(self, other: OpenItemsResult) -> OpenItemsResult:
        self.issues += other.issues
        self.pull_requests += other.pull_requests
        self.review_requests_added += other.review_requests_added
        self.review_requests_removed += other.review_requests_removed
        return self


@dataclass
class SyncSummary:
    """Summary of one orchestrator run.

    Only produced when every resource type succeeded.
    """

    repositories_processed: int = 0
    """Repositories listed for the organization."""

    counts: dict[str, int] = field(default_factory=dict)
    """Upserted nodes per resource (issues, discussions, pull_requests, reviews, comments)."""

    timestamps: dict[str, str | None] = field(default_factory=dict)
    """Latest observed timestamp per resource."""

    @property
    def latest_timestamp(self) -> str | None:
        """Latest timestamp across all resources."""
        latest: str | None = None
        for value in self.timestamps.values():
            latest = max_timestamp(latest, value)
        return latest

    def count(self, resource: ResourceKey) -> int:
        return self.counts.get(resource.value, 0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "repositories_processed": self.repositories_processed,
            "counts": dict(self.counts),
            "timestamps": dict(self.timestamps),
        }
