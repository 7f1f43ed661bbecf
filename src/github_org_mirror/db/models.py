"""SQLAlchemy ORM models for GitHub Org Mirror.

Mirrored entities use the GitHub global node id as their primary key and
keep the full GraphQL node in a JSON ``data`` column. Bookkeeping tables
(sync runs, logs, watermarks) use integer keys.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import JSON


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SyncStatus(str, Enum):
    """Status of a sync run or a per-resource sync log entry."""

    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class RunType(str, Enum):
    """What started a sync run."""

    AUTOMATIC = "automatic"
    MANUAL = "manual"
    BACKFILL = "backfill"


class RunStrategy(str, Enum):
    """How a sync run selects its window."""

    INCREMENTAL = "incremental"
    BACKFILL = "backfill"


# ------------------------------------------------------------------------------
# Actors & Repositories
# ------------------------------------------------------------------------------
class User(Base):
    """Any GitHub actor with a node id (user, bot, organization, mannequin)."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    login: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    typename: Mapped[str | None] = mapped_column(String(50), nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', login='{self.login}')>"


class Repository(Base):
    """Repository of the mirrored organization."""

    __tablename__ = "repositories"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))  # e.g., "prebid-server"
    name_with_owner: Mapped[str] = mapped_column(String(200), unique=True)  # "prebid/prebid-server"
    owner_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_private: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Repository(id='{self.id}', name_with_owner='{self.name_with_owner}')>"


# ------------------------------------------------------------------------------
# Issues, Pull Requests, Discussions
# ------------------------------------------------------------------------------
class Issue(Base):
    """GitHub issue. ``data`` carries the reconciled ``projectStatusHistory``."""

    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    repository_id: Mapped[str] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), index=True
    )
    number: Mapped[int] = mapped_column(Integer)
    author_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    state: Mapped[str | None] = mapped_column(String(20), nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("repository_id", "number", name="uq_repo_issue_number"),)

    def __repr__(self) -> str:
        return f"<Issue(id='{self.id}', repo='{self.repository_id}', number={self.number})>"


class PullRequest(Base):
    """GitHub pull request."""

    __tablename__ = "pull_requests"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    repository_id: Mapped[str] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), index=True
    )
    number: Mapped[int] = mapped_column(Integer)
    author_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    merged_by_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    state: Mapped[str | None] = mapped_column(String(20), nullable=True)
    merged: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_merged_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("repository_id", "number", name="uq_repo_pr_number"),)

    def __repr__(self) -> str:
        return f"<PullRequest(id='{self.id}', repo='{self.repository_id}', number={self.number})>"


class Discussion(Base):
    """GitHub discussion."""

    __tablename__ = "discussions"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    repository_id: Mapped[str] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), index=True
    )
    number: Mapped[int] = mapped_column(Integer)
    author_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    title: Mapped[str | None] = mapped_column(String(500), nullable=True)
    closed: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    category: Mapped[str | None] = mapped_column(String(200), nullable=True)
    answer_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_closed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("repository_id", "number", name="uq_repo_discussion_number"),
    )

    def __repr__(self) -> str:
        return f"<Discussion(id='{self.id}', repo='{self.repository_id}', number={self.number})>"


# ------------------------------------------------------------------------------
# Reviews, Comments, Reactions
# ------------------------------------------------------------------------------
class Review(Base):
    """Pull request review."""

    __tablename__ = "reviews"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    pull_request_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id", ondelete="CASCADE"), index=True
    )
    author_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(30), nullable=True)
    github_submitted_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Review(id='{self.id}', pull_request='{self.pull_request_id}')>"


class Comment(Base):
    """Comment on an issue, pull request, review or discussion.

    Parent columns are not foreign keys: a review comment can be stored
    before its review is known.
    """

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    issue_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    pull_request_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    discussion_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    review_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    author_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    github_updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    def __repr__(self) -> str:
        return f"<Comment(id='{self.id}')>"


class Reaction(Base):
    """Emoji reaction on an issue, pull request, discussion or comment."""

    __tablename__ = "reactions"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    subject_type: Mapped[str] = mapped_column(String(20))
    subject_id: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    content: Mapped[str | None] = mapped_column(String(30), nullable=True)
    github_created_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())

    __table_args__ = (Index("ix_reactions_subject", "subject_type", "subject_id"),)

    def __repr__(self) -> str:
        return f"<Reaction(id='{self.id}', subject='{self.subject_type}:{self.subject_id}')>"


# ------------------------------------------------------------------------------
# Review Requests
# ------------------------------------------------------------------------------
class ReviewRequest(Base):
    """A reviewer requested on a pull request.

    Active while ``removed_at`` is null. Removal is either observed from a
    timeline event or inferred when the reviewer stops appearing live.
    """

    __tablename__ = "review_requests"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    pull_request_id: Mapped[str] = mapped_column(
        ForeignKey("pull_requests.id", ondelete="CASCADE")
    )
    reviewer_id: Mapped[str] = mapped_column(String(100))
    requested_at: Mapped[datetime] = mapped_column(DateTime)
    removed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    removed_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_review_requests_pr_reviewer", "pull_request_id", "reviewer_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<ReviewRequest(id='{self.id}', pr='{self.pull_request_id}', "
            f"reviewer='{self.reviewer_id}')>"
        )


# ------------------------------------------------------------------------------
# Derived Activity Rows (owned by downstream consumers)
# ------------------------------------------------------------------------------
class ActivityStatus(Base):
    """Cached activity status computed for an issue."""

    __tablename__ = "activity_statuses"

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[str] = mapped_column(String(100), index=True)
    status: Mapped[str] = mapped_column(String(100))
    data: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


class ProjectFieldOverride(Base):
    """Manual override of a project field for an issue."""

    __tablename__ = "project_field_overrides"

    id: Mapped[int] = mapped_column(primary_key=True)
    issue_id: Mapped[str] = mapped_column(String(100), index=True)
    field: Mapped[str] = mapped_column(String(100))
    value: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())


# ------------------------------------------------------------------------------
# Sync Bookkeeping
# ------------------------------------------------------------------------------
class SyncRun(Base):
    """One orchestrator invocation (incremental sync or one backfill chunk)."""

    __tablename__ = "sync_runs"

    id: Mapped[int] = mapped_column(primary_key=True)
    run_type: Mapped[RunType] = mapped_column(default=RunType.MANUAL)
    strategy: Mapped[RunStrategy] = mapped_column(default=RunStrategy.INCREMENTAL)
    status: Mapped[SyncStatus] = mapped_column(default=SyncStatus.RUNNING)
    since: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    until: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncRun(id={self.id}, strategy={self.strategy.value}, status={self.status.value})>"


class SyncLog(Base):
    """Per-resource progress of a sync run."""

    __tablename__ = "sync_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    run_id: Mapped[int | None] = mapped_column(
        ForeignKey("sync_runs.id", ondelete="SET NULL"), nullable=True, index=True
    )
    resource: Mapped[str] = mapped_column(String(50))
    status: Mapped[SyncStatus] = mapped_column(default=SyncStatus.RUNNING)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=func.now())
    finished_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncLog(id={self.id}, resource='{self.resource}', status={self.status.value})>"


class SyncState(Base):
    """Per-resource watermark: the latest updated timestamp seen."""

    __tablename__ = "sync_state"

    id: Mapped[int] = mapped_column(primary_key=True)
    resource: Mapped[str] = mapped_column(String(50))
    scope_key: Mapped[str] = mapped_column(String(200), default="")
    last_item_timestamp: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (UniqueConstraint("resource", "scope_key", name="uq_sync_state_resource"),)

    def __repr__(self) -> str:
        return f"<SyncState(resource='{self.resource}', scope='{self.scope_key}')>"


class SyncConfig(Base):
    """Singleton row with the last sync timestamps."""

    __tablename__ = "sync_config"

    id: Mapped[str] = mapped_column(String(20), primary_key=True, default="default")
    last_sync_started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_sync_completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    last_successful_sync_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
