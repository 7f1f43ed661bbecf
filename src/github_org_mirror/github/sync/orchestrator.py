"""Sync Orchestrator - run every collector for one organization.

Resource types are collected in a fixed order: repositories, issues,
discussions, pull requests (with reviews), then open item metadata. Each
resource type has its own sync log entry and watermark; a watermark
advances only when its resource type's whole pass succeeded. Comments are
gathered by three passes and finalized once all of them are done.

The first failure marks its own log entry, and the still-running comments
entry, as failed and is re-raised. Resource types completed earlier keep
their success records and watermarks.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable
from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from github_org_mirror.db.models import SyncStatus
from github_org_mirror.logging import get_logger
from github_org_mirror.timestamps import parse_timestamp

from .collectors import (
    CommentCollector,
    DiscussionCollector,
    IssueCollector,
    OpenItemsCollector,
    PullRequestCollector,
    RepositoryCollector,
)
from .enums import ResourceKey
from .results import (
    CollectionResult,
    CommentAccumulator,
    OpenItemsResult,
    ParentPassResult,
    PullRequestPassResult,
    SyncSummary,
)

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import RepositoryNode

    from .collectors import SyncContext

logger = get_logger(__name__)

T = TypeVar("T")


def failure_message(error: BaseException) -> str:
    """Readable message for a sync log entry."""
    return str(error) or error.__class__.__name__


class SyncOrchestrator:
    """Runs one full collection for an organization.

    Usage:
        ctx = SyncContext(executor=executor, store=store, commits=commits,
                          org="acme", bounds=TimeBounds.create(since, until))
        summary = await SyncOrchestrator(ctx, run_id=run_id).run()
    """

    def __init__(self, ctx: SyncContext, run_id: int | None = None) -> None:
        """Initialize the orchestrator.

        Args:
            ctx: Sync context shared by every collector
            run_id: Parent sync run recorded on each log entry
        """
        self._ctx = ctx
        self._run_id = run_id

        comments = CommentCollector(ctx)
        self.repositories = RepositoryCollector(ctx)
        self.issues = IssueCollector(ctx, comments)
        self.discussions = DiscussionCollector(ctx, comments)
        self.pull_requests = PullRequestCollector(ctx, comments)
        self.open_items = OpenItemsCollector(ctx)

    async def run(self) -> SyncSummary:
        """Collect everything and return the run summary.

        Raises:
            Exception: The first collector or store failure (after bookkeeping)
        """
        store = self._ctx.store
        summary = SyncSummary()

        # Repositories
        repo_log = await self._start(ResourceKey.REPOSITORIES)
        repo_result = await self._guard(
            [repo_log], self.repositories.collect, ResourceKey.REPOSITORIES
        )
        repositories = repo_result.repositories
        await self._complete(
            ResourceKey.REPOSITORIES,
            repo_log,
            repo_result,
            f"Processed {len(repositories)} repositories for {self._ctx.org}.",
        )
        summary.repositories_processed = len(repositories)
        summary.timestamps[ResourceKey.REPOSITORIES.value] = repo_result.latest

        comments = CommentAccumulator()
        comments.log_id = await self._start(ResourceKey.COMMENTS)

        # Issues
        issues_log = await self._start(ResourceKey.ISSUES)
        issues = await self._guard(
            [issues_log, comments.log_id],
            lambda: self._each(repositories, self.issues.collect, ParentPassResult()),
            ResourceKey.ISSUES,
        )
        comments.add(issues.comments)
        await self._complete(
            ResourceKey.ISSUES,
            issues_log,
            issues.items,
            f"Upserted {issues.items.count} issues across {len(repositories)} repositories.",
        )

        # Discussions
        discussions_log = await self._start(ResourceKey.DISCUSSIONS)
        discussions = await self._guard(
            [discussions_log, comments.log_id],
            lambda: self._each(repositories, self.discussions.collect, ParentPassResult()),
            ResourceKey.DISCUSSIONS,
        )
        comments.add(discussions.comments)
        await self._complete(
            ResourceKey.DISCUSSIONS,
            discussions_log,
            discussions.items,
            f"Upserted {discussions.items.count} discussions across "
            f"{len(repositories)} repositories.",
        )

        # Pull requests and reviews
        pull_requests_log = await self._start(ResourceKey.PULL_REQUESTS)
        reviews_log = await self._start(ResourceKey.REVIEWS)
        pull_requests = await self._guard(
            [pull_requests_log, reviews_log, comments.log_id],
            lambda: self._each(repositories, self.pull_requests.collect, PullRequestPassResult()),
            ResourceKey.PULL_REQUESTS,
        )
        comments.add(pull_requests.comments)
        await self._complete(
            ResourceKey.PULL_REQUESTS,
            pull_requests_log,
            pull_requests.pull_requests,
            f"Upserted {pull_requests.pull_requests.count} pull requests across "
            f"{len(repositories)} repositories.",
        )
        await self._complete(
            ResourceKey.REVIEWS,
            reviews_log,
            pull_requests.reviews,
            f"Recorded {pull_requests.reviews.count} pull request reviews.",
        )

        # Open item metadata (no watermark)
        open_items_log = await self._start(ResourceKey.OPEN_ITEMS)
        open_items = await self._guard(
            [open_items_log, comments.log_id],
            lambda: self._each(repositories, self.open_items.collect, OpenItemsResult()),
            ResourceKey.OPEN_ITEMS,
        )
        await store.update_sync_log(
            open_items_log,
            SyncStatus.SUCCESS,
            f"Refreshed {open_items.issues} open issues and {open_items.pull_requests} "
            f"open pull requests ({open_items.review_requests_added} review requests added, "
            f"{open_items.review_requests_removed} removed).",
        )

        # Comments
        await self._complete(
            ResourceKey.COMMENTS,
            comments.log_id,
            comments.result,
            f"Captured {comments.count} comments from issues, discussions, "
            "pull requests, and reviews.",
        )

        summary.counts = {
            ResourceKey.ISSUES.value: issues.items.count,
            ResourceKey.DISCUSSIONS.value: discussions.items.count,
            ResourceKey.PULL_REQUESTS.value: pull_requests.pull_requests.count,
            ResourceKey.REVIEWS.value: pull_requests.reviews.count,
            ResourceKey.COMMENTS.value: comments.count,
        }
        summary.timestamps.update(
            {
                ResourceKey.ISSUES.value: issues.items.latest,
                ResourceKey.DISCUSSIONS.value: discussions.items.latest,
                ResourceKey.PULL_REQUESTS.value: pull_requests.pull_requests.latest,
                ResourceKey.REVIEWS.value: pull_requests.reviews.latest,
                ResourceKey.COMMENTS.value: comments.latest,
            }
        )

        logger.info(
            "Sync for {} complete: {} repositories, {}",
            self._ctx.org,
            summary.repositories_processed,
            ", ".join(f"{count} {name}" for name, count in summary.counts.items()),
        )
        return summary

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _each(
        self,
        repositories: Iterable[RepositoryNode],
        collect: Callable[[RepositoryNode], Awaitable[T]],
        total: T,
    ) -> T:
        """Run a per-repository collector over every repository in listing order."""
        for repository in repositories:
            result = await collect(repository)
            total.merge(result)  # type: ignore[attr-defined]
        return total

    async def _start(self, resource: ResourceKey) -> int:
        return await self._ctx.store.record_sync_log(
            resource.value, SyncStatus.RUNNING, run_id=self._run_id
        )

    async def _guard(
        self,
        log_ids: list[int | None],
        work: Callable[[], Awaitable[T]],
        resource: ResourceKey,
    ) -> T:
        """Run one resource pass, recording a failure on every listed log entry."""
        try:
            result = await work()
            await self._ctx.commits.finalize()
        except Exception as e:
            message = failure_message(e)
            logger.error("Sync of {} for {} failed: {}", resource.value, self._ctx.org, message)
            await self._record_failure(log_ids, message, rollback=isinstance(e, SQLAlchemyError))
            raise
        return result

    async def _record_failure(
        self,
        log_ids: list[int | None],
        message: str,
        *,
        rollback: bool,
    ) -> None:
        store = self._ctx.store
        try:
            if rollback:
                await store.rollback()
                self._ctx.commits.discard()
            else:
                await self._ctx.commits.finalize()
            for log_id in log_ids:
                if log_id is not None:
                    await store.update_sync_log(log_id, SyncStatus.FAILED, message)
        except SQLAlchemyError:
            logger.exception("Could not record sync failure for {}", self._ctx.org)

    async def _complete(
        self,
        resource: ResourceKey,
        log_id: int | None,
        result: CollectionResult,
        message: str,
    ) -> None:
        """Advance the resource watermark (if anything was seen) and mark its log entry done."""
        store = self._ctx.store
        latest = parse_timestamp(result.latest)
        if latest is not None:
            await store.update_sync_state(resource.value, "", latest)
        if log_id is not None:
            await store.update_sync_log(log_id, SyncStatus.SUCCESS, message)
        logger.info("{}", message)
