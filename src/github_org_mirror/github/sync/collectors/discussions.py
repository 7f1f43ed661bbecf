"""Discussion collection with comments, replies and accepted answers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from github_org_mirror.github.queries import REPOSITORY_DISCUSSIONS_QUERY
from github_org_mirror.logging import bind_repo
from github_org_mirror.schemas.graphql import DiscussionNode

from ..enums import ResourceKey, SubjectType
from ..results import ParentPassResult
from ..window import evaluate
from .base import Pager, SyncContext
from .comments import CommentCollector

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import RepositoryNode


class DiscussionCollector:
    """Collects a repository's discussions (newest-first) and their comments."""

    def __init__(self, ctx: SyncContext, comments: CommentCollector | None = None) -> None:
        self._ctx = ctx
        self._comments = comments or CommentCollector(ctx)

    async def collect(self, repository: RepositoryNode) -> ParentPassResult:
        """Run the discussion pass for one repository."""
        bounds = self._ctx.bounds_for(ResourceKey.DISCUSSIONS)
        result = ParentPassResult()
        owner, name = repository.owner_and_name
        log = bind_repo(repository.name_with_owner)

        pager = Pager(
            self._ctx.executor,
            REPOSITORY_DISCUSSIONS_QUERY,
            {"owner": owner, "name": name, "pageSize": self._ctx.page_size},
            ("repository", "discussions"),
            DiscussionNode,
            context=f"discussions {repository.name_with_owner}",
        )
        async for page in pager:
            reached_lower_bound = False
            for discussion in page.items():
                decision = evaluate(discussion.updated_at, bounds)
                if decision.before_lower_bound:
                    reached_lower_bound = True
                    break
                if not decision.include:
                    continue

                await self.store(repository, discussion)
                result.items.observe(discussion.updated_at)
                result.comments.merge(
                    await self._comments.collect_for_discussion(repository, discussion)
                )

            if reached_lower_bound:
                log.debug(
                    "Reached discussions older than the window in {}",
                    repository.name_with_owner,
                )
                break

        if pager.missing:
            # discussions disabled on the repository
            log.debug("No discussions connection for {}", repository.name_with_owner)

        log.info(
            "Synced {} discussions and {} comments for {}",
            result.items.count,
            result.comments.count,
            repository.name_with_owner,
        )
        return result

    async def store(self, repository: RepositoryNode, discussion: DiscussionNode) -> None:
        """Upsert one discussion, its author and its reactions."""
        author_id = await self._ctx.upsert_actor(discussion.author)
        await self._ctx.store.upsert_discussion(discussion.to_upsert(repository.id, author_id))
        await self._ctx.upsert_reactions(
            discussion.reactions, SubjectType.DISCUSSION, discussion.id
        )
        await self._ctx.commits.record_success()
