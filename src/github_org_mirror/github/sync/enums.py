"""Enums for sync operations."""

from enum import Enum


class ResourceKey(str, Enum):
    """Resource types tracked by watermarks and sync logs."""

    REPOSITORIES = "repositories"
    ISSUES = "issues"
    DISCUSSIONS = "discussions"
    PULL_REQUESTS = "pull_requests"
    REVIEWS = "reviews"
    COMMENTS = "comments"
    OPEN_ITEMS = "open_items"
    """Open issue/PR metadata refresh. Logged, but has no watermark."""


WATERMARK_RESOURCES: tuple[ResourceKey, ...] = (
    ResourceKey.REPOSITORIES,
    ResourceKey.ISSUES,
    ResourceKey.DISCUSSIONS,
    ResourceKey.PULL_REQUESTS,
    ResourceKey.REVIEWS,
    ResourceKey.COMMENTS,
)


class NodeKind(str, Enum):
    """Kinds of top-level activity nodes the mirror understands."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    DISCUSSION = "discussion"
    UNSUPPORTED = "unsupported"


class SubjectType(str, Enum):
    """Subject a reaction is attached to."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    DISCUSSION = "discussion"
    COMMENT = "comment"


class OutputFormat(str, Enum):
    """Output format for CLI commands."""

    TEXT = "text"
    """Human-readable text output."""

    JSON = "json"
    """Machine-readable JSON output."""
