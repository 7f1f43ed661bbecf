"""Open issue and pull request metadata refresh.

Assignees and pending reviewers can change without touching an item's
``updatedAt`` in a way the incremental window notices, so every still-open
item is re-read on each sync. The pass is not windowed. Items the mirror
has never stored are skipped; they are picked up by the next issue or
pull request pass that includes them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from github_org_mirror.github.queries import OPEN_ISSUES_QUERY, OPEN_PULL_REQUESTS_QUERY
from github_org_mirror.logging import bind_repo
from github_org_mirror.schemas.graphql import IssueNode, PullRequestNode, connection_items

from ..reconcile import ReviewRequestReconciler
from ..results import OpenItemsResult
from .base import Pager, SyncContext

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import RepositoryNode


class OpenItemsCollector:
    """Refreshes assignee snapshots and reconciles pending review requests."""

    def __init__(self, ctx: SyncContext, reconciler: ReviewRequestReconciler | None = None) -> None:
        self._ctx = ctx
        self._reconciler = reconciler or ReviewRequestReconciler(ctx.store)

    async def collect(self, repository: RepositoryNode) -> OpenItemsResult:
        """Refresh every open issue and pull request of one repository."""
        result = OpenItemsResult()
        result.issues = await self.refresh_issues(repository)
        result.merge(await self.refresh_pull_requests(repository))

        bind_repo(repository.name_with_owner).info(
            "Refreshed {} open issues and {} open pull requests for {} "
            "(review requests: +{} -{})",
            result.issues,
            result.pull_requests,
            repository.name_with_owner,
            result.review_requests_added,
            result.review_requests_removed,
        )
        return result

    async def refresh_issues(self, repository: RepositoryNode) -> int:
        """Store the live assignees of each open issue.

        Returns:
            Number of stored issues refreshed
        """
        refreshed = 0
        owner, name = repository.owner_and_name
        pager = Pager(
            self._ctx.executor,
            OPEN_ISSUES_QUERY,
            {"owner": owner, "name": name, "pageSize": self._ctx.page_size},
            ("repository", "issues"),
            IssueNode,
            context=f"open issues {repository.name_with_owner}",
        )
        async for page in pager:
            for issue in page.items():
                for assignee in connection_items(issue.assignees):
                    await self._ctx.upsert_actor(assignee)
                updated = await self._ctx.store.update_issue_data(
                    issue.id, {"assignees": issue.raw().get("assignees")}
                )
                if updated:
                    await self._ctx.commits.record_success()
                    refreshed += 1
        return refreshed

    async def refresh_pull_requests(self, repository: RepositoryNode) -> OpenItemsResult:
        """Store live assignees and reconcile review requests of each open pull request."""
        result = OpenItemsResult()
        owner, name = repository.owner_and_name
        pager = Pager(
            self._ctx.executor,
            OPEN_PULL_REQUESTS_QUERY,
            {"owner": owner, "name": name, "pageSize": self._ctx.page_size},
            ("repository", "pullRequests"),
            PullRequestNode,
            context=f"open pull requests {repository.name_with_owner}",
        )
        async for page in pager:
            pull_requests = page.items()
            pending = await self._ctx.store.list_pending_review_requests_by_pull_request_ids(
                [pull_request.id for pull_request in pull_requests]
            )
            for pull_request in pull_requests:
                for assignee in connection_items(pull_request.assignees):
                    await self._ctx.upsert_actor(assignee)

                raw = pull_request.raw()
                updated = await self._ctx.store.update_pull_request_data(
                    pull_request.id,
                    {"assignees": raw.get("assignees"), "reviewRequests": raw.get("reviewRequests")},
                )
                if not updated:
                    continue

                reconciliation = await self._reconciler.reconcile(
                    pull_request.id,
                    connection_items(pull_request.review_requests),
                    pending.get(pull_request.id, []),
                )
                await self._ctx.commits.record_success()

                result.pull_requests += 1
                result.review_requests_added += reconciliation.added
                result.review_requests_removed += reconciliation.removed
        return result
