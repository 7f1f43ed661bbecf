"""Issue collection with project status history and comments.

Issues are listed newest-first by ``UPDATED_AT``. The first issue older
than the window's lower bound ends the pass for the repository: every
later issue, on this page and the next, is older still.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from github_org_mirror.github.queries import REPOSITORY_ISSUES_QUERY
from github_org_mirror.logging import bind_repo
from github_org_mirror.schemas.graphql import IssueNode, connection_items

from ..enums import ResourceKey, SubjectType
from ..reconcile import ProjectHistoryResult, reconcile_project_history
from ..results import ParentPassResult
from ..window import evaluate
from .base import Pager, SyncContext
from .comments import CommentCollector

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import RepositoryNode


class IssueCollector:
    """Collects a repository's issues and their comments."""

    def __init__(self, ctx: SyncContext, comments: CommentCollector | None = None) -> None:
        self._ctx = ctx
        self._comments = comments or CommentCollector(ctx)

    async def collect(self, repository: RepositoryNode) -> ParentPassResult:
        """Run the issue pass for one repository.

        Returns:
            Issue and comment results for the repository
        """
        bounds = self._ctx.bounds_for(ResourceKey.ISSUES)
        result = ParentPassResult()
        owner, name = repository.owner_and_name
        log = bind_repo(repository.name_with_owner)

        pager = Pager(
            self._ctx.executor,
            REPOSITORY_ISSUES_QUERY,
            {"owner": owner, "name": name, "pageSize": self._ctx.page_size},
            ("repository", "issues"),
            IssueNode,
            context=f"issues {repository.name_with_owner}",
        )
        async for page in pager:
            issues = page.items()
            previous = await self._ctx.store.fetch_issue_raw_map([issue.id for issue in issues])

            reached_lower_bound = False
            for issue in issues:
                decision = evaluate(issue.updated_at, bounds)
                if decision.before_lower_bound:
                    reached_lower_bound = True
                    break
                if not decision.include:
                    continue

                await self.store(repository, issue, previous.get(issue.id))
                result.items.observe(issue.updated_at)
                result.comments.merge(await self._comments.collect_for_issue(repository, issue))

            if reached_lower_bound:
                log.debug("Reached issues older than the window in {}", repository.name_with_owner)
                break

        log.info(
            "Synced {} issues and {} comments for {}",
            result.items.count,
            result.comments.count,
            repository.name_with_owner,
        )
        return result

    async def store(
        self,
        repository: RepositoryNode,
        issue: IssueNode,
        previous_raw: dict[str, Any] | None,
    ) -> ProjectHistoryResult:
        """Reconcile project history and upsert one issue with its reactions.

        Args:
            repository: Owning repository
            issue: Freshly fetched issue
            previous_raw: Payload stored by the previous sync

        Returns:
            The project history reconciliation
        """
        author_id = await self._ctx.upsert_actor(issue.author)
        for assignee in connection_items(issue.assignees):
            await self._ctx.upsert_actor(assignee)

        history = reconcile_project_history(issue, previous_raw, self._ctx.target_project)
        if history.entered_target:
            await self._ctx.store.clear_activity_statuses(issue.id)
            await self._ctx.store.clear_project_field_overrides(issue.id)

        await self._ctx.store.upsert_issue(
            issue.to_upsert(repository.id, author_id, raw=history.apply_to(issue.raw()))
        )
        await self._ctx.upsert_reactions(issue.reactions, SubjectType.ISSUE, issue.id)
        await self._ctx.commits.record_success()
        return history
