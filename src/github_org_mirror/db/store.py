"""Mirror store - the persistence interface used by the sync engine.

Aggregates the per-table repositories behind one object bound to a single
session. Entity upserts only flush; commit boundaries for them belong to the
caller's ``CommitManager``. Bookkeeping writes (sync logs, runs, watermarks,
sync config) commit immediately so failure records and completed
watermarks survive a later crash.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection
from datetime import datetime
from typing import TYPE_CHECKING, Any

from github_org_mirror.logging import get_logger

from .models import RunStrategy, RunType, SyncLog, SyncRun, SyncState, SyncStatus
from .repositories import (
    ActivityRepository,
    CommentRepository,
    DiscussionRepository,
    IssueRepository,
    PullRequestRepository,
    ReactionRepository,
    RepositoryRepository,
    ReviewRepository,
    ReviewRequestRepository,
    SyncConfigRepository,
    SyncLogRepository,
    SyncRunRepository,
    SyncStateRepository,
    UserRepository,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from github_org_mirror.db.models import ReviewRequest
    from github_org_mirror.schemas import (
        CommentUpsert,
        DiscussionUpsert,
        IssueUpsert,
        PullRequestUpsert,
        ReactionUpsert,
        RepositoryUpsert,
        ReviewRequestUpsert,
        ReviewUpsert,
        UserUpsert,
    )

logger = get_logger(__name__)


class MirrorStore:
    """Persistence facade for one sync session.

    Usage:
        async with get_session(auto_commit=False) as session:
            store = MirrorStore(session)
            await store.upsert_user(actor.to_upsert())
            log_id = await store.record_sync_log("issues", SyncStatus.RUNNING)
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            session: Async SQLAlchemy session (caller manages lifecycle)
            write_lock: Lock shared by flushes and commits
        """
        self._session = session
        self._write_lock = write_lock or asyncio.Lock()

        self.users = UserRepository(session, self._write_lock)
        self.repositories = RepositoryRepository(session, self._write_lock)
        self.issues = IssueRepository(session, self._write_lock)
        self.pull_requests = PullRequestRepository(session, self._write_lock)
        self.discussions = DiscussionRepository(session, self._write_lock)
        self.reviews = ReviewRepository(session, self._write_lock)
        self.comments = CommentRepository(session, self._write_lock)
        self.reactions = ReactionRepository(session, self._write_lock)
        self.review_requests = ReviewRequestRepository(session, self._write_lock)
        self.activity = ActivityRepository(session, self._write_lock)
        self.sync_runs = SyncRunRepository(session, self._write_lock)
        self.sync_logs = SyncLogRepository(session, self._write_lock)
        self.sync_state = SyncStateRepository(session, self._write_lock)
        self.sync_config = SyncConfigRepository(session, self._write_lock)

    # -------------------------------------------------------------------------
    # Transaction Control
    # -------------------------------------------------------------------------

    async def commit(self) -> None:
        """Commit everything flushed so far."""
        async with self._write_lock:
            await self._session.commit()

    async def rollback(self) -> None:
        """Discard everything not yet committed."""
        async with self._write_lock:
            await self._session.rollback()

    # -------------------------------------------------------------------------
    # Entity Upserts
    # -------------------------------------------------------------------------

    async def upsert_user(self, user: UserUpsert) -> None:
        await self.users.upsert(user)

    async def upsert_repository(self, repository: RepositoryUpsert) -> None:
        await self.repositories.upsert(repository)

    async def upsert_issue(self, issue: IssueUpsert) -> None:
        await self.issues.upsert(issue)

    async def upsert_pull_request(self, pull_request: PullRequestUpsert) -> None:
        await self.pull_requests.upsert(pull_request)

    async def upsert_discussion(self, discussion: DiscussionUpsert) -> None:
        await self.discussions.upsert(discussion)

    async def upsert_review(self, review: ReviewUpsert) -> None:
        await self.reviews.upsert(review)

    async def upsert_comment(self, comment: CommentUpsert) -> None:
        await self.comments.upsert(comment)

    async def upsert_reaction(self, reaction: ReactionUpsert) -> None:
        await self.reactions.upsert(reaction)

    async def upsert_review_request(self, request: ReviewRequestUpsert) -> None:
        await self.review_requests.upsert(request)

    async def mark_review_request_removed(
        self,
        pull_request_id: str,
        reviewer_id: str,
        removed_at: datetime,
        raw: dict[str, Any] | None = None,
    ) -> bool:
        """Mark the matching review request removed.

        Returns:
            True if a request was updated
        """
        request = await self.review_requests.mark_removed(
            pull_request_id, reviewer_id, removed_at, raw
        )
        return request is not None

    async def update_issue_data(self, issue_id: str, patch: dict[str, Any]) -> bool:
        """Merge keys into a stored issue payload (False if the issue is unknown)."""
        return await self.issues.update_data(issue_id, patch) is not None

    async def update_pull_request_data(self, pull_request_id: str, patch: dict[str, Any]) -> bool:
        """Merge keys into a stored pull request payload (False if unknown)."""
        return await self.pull_requests.update_data(pull_request_id, patch) is not None

    # -------------------------------------------------------------------------
    # Reconciliation Reads
    # -------------------------------------------------------------------------

    async def fetch_issue_raw_map(self, ids: Collection[str]) -> dict[str, dict[str, Any]]:
        """Get stored raw payloads for the given issue ids."""
        return await self.issues.fetch_raw_map(ids)

    async def list_pending_review_requests_by_pull_request_ids(
        self,
        ids: Collection[str],
    ) -> dict[str, list[ReviewRequest]]:
        """Get active review requests grouped by pull request id."""
        return await self.review_requests.list_pending_by_pull_request_ids(ids)

    async def review_exists(self, review_id: str) -> bool:
        """Check if a review is stored."""
        return await self.reviews.exists(review_id)

    # -------------------------------------------------------------------------
    # Derived Row Hooks
    # -------------------------------------------------------------------------

    async def clear_activity_statuses(self, issue_id: str) -> None:
        deleted = await self.activity.clear_activity_statuses(issue_id)
        logger.debug("Cleared {} activity statuses for issue {}", deleted, issue_id)

    async def clear_project_field_overrides(self, issue_id: str) -> None:
        deleted = await self.activity.clear_project_field_overrides(issue_id)
        logger.debug("Cleared {} project field overrides for issue {}", deleted, issue_id)

    # -------------------------------------------------------------------------
    # Sync Bookkeeping (committed immediately)
    # -------------------------------------------------------------------------

    async def start_sync_run(
        self,
        run_type: RunType,
        strategy: RunStrategy,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int:
        """Create a running sync run and return its id."""
        run = await self.sync_runs.start(run_type, strategy, since, until)
        await self.commit()
        return run.id

    async def finish_sync_run(
        self,
        run_id: int,
        status: SyncStatus,
        message: str | None = None,
    ) -> None:
        await self.sync_runs.finish(run_id, status, message)
        await self.commit()

    async def record_sync_log(
        self,
        resource: str,
        status: SyncStatus,
        message: str | None = None,
        run_id: int | None = None,
    ) -> int:
        """Create a sync log entry and return its id."""
        entry = await self.sync_logs.record(resource, status, message, run_id)
        await self.commit()
        return entry.id

    async def update_sync_log(
        self,
        log_id: int,
        status: SyncStatus,
        message: str | None = None,
    ) -> None:
        await self.sync_logs.finish(log_id, status, message)
        await self.commit()

    async def update_sync_state(
        self,
        resource: str,
        scope_key: str,
        timestamp: datetime,
    ) -> None:
        """Advance a resource watermark (never moves backward)."""
        await self.sync_state.advance(resource, timestamp, scope_key)
        await self.commit()

    async def get_watermark(self, resource: str, scope_key: str = "") -> datetime | None:
        return await self.sync_state.get_watermark(resource, scope_key)

    async def list_watermarks(self) -> list[SyncState]:
        return await self.sync_state.list_all()

    async def list_recent_runs(self, limit: int = 10) -> list[SyncRun]:
        return await self.sync_runs.list_recent(limit)

    async def list_run_logs(self, run_id: int) -> list[SyncLog]:
        return await self.sync_logs.list_for_run(run_id)

    async def last_successful_sync_at(self) -> datetime | None:
        return await self.sync_config.last_successful_sync_at()

    async def update_sync_config(
        self,
        *,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        successful_at: datetime | None = None,
    ) -> None:
        await self.sync_config.update(
            started_at=started_at,
            completed_at=completed_at,
            successful_at=successful_at,
        )
        await self.commit()

    async def cleanup_running(self, message: str) -> tuple[int, int]:
        """Fail every run and log entry stuck in ``running``.

        Returns:
            (runs updated, log entries updated)
        """
        runs = await self.sync_runs.fail_running(message)
        logs = await self.sync_logs.fail_running(message)
        await self.commit()
        return runs, logs
