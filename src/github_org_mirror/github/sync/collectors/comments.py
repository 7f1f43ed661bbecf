"""Comment collection for issues, pull requests, discussions and review threads.

Child connections come back oldest-first by creation, while the window is
applied to the last edit time, so out-of-window comments are skipped and
paging continues. A parent that disappears upstream mid-sync ends its
comment collection early instead of failing the run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from github_org_mirror.github.exceptions import GitHubNotFoundError
from github_org_mirror.github.queries import (
    DISCUSSION_COMMENTS_QUERY,
    ISSUE_COMMENTS_QUERY,
    PULL_REQUEST_COMMENTS_QUERY,
    PULL_REQUEST_REVIEW_COMMENTS_QUERY,
)
from github_org_mirror.logging import bind_repo, get_logger
from github_org_mirror.schemas.graphql import CommentNode, ReviewThreadNode, connection_items

from ..enums import ResourceKey, SubjectType
from ..nodes import reaction_subject_type
from ..results import CollectionResult
from ..window import TimeBounds, evaluate
from .base import Pager, SyncContext

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import (
        DiscussionNode,
        IssueNode,
        PullRequestNode,
        RepositoryNode,
    )

logger = get_logger(__name__)


class CommentCollector:
    """Collects comments for one parent at a time.

    Each ``collect_*`` call is one comment-collection pass with its own
    dedup set.
    """

    def __init__(self, ctx: SyncContext) -> None:
        self._ctx = ctx

    # -------------------------------------------------------------------------
    # Parents
    # -------------------------------------------------------------------------

    async def collect_for_issue(self, repository: RepositoryNode, issue: IssueNode) -> CollectionResult:
        """Collect an issue's comments."""
        return await self._collect_parent(
            repository,
            number=issue.number,
            query=ISSUE_COMMENTS_QUERY,
            path=("repository", "issue", "comments"),
            label="Issue",
            context=f"issue comments {repository.name_with_owner}#{issue.number}",
            parent={"issue_id": issue.id},
        )

    async def collect_for_pull_request(
        self,
        repository: RepositoryNode,
        pull_request: PullRequestNode,
    ) -> CollectionResult:
        """Collect a pull request's conversation comments."""
        return await self._collect_parent(
            repository,
            number=pull_request.number,
            query=PULL_REQUEST_COMMENTS_QUERY,
            path=("repository", "pullRequest", "comments"),
            label="Pull request",
            context=f"pull request comments {repository.name_with_owner}#{pull_request.number}",
            parent={"pull_request_id": pull_request.id},
        )

    async def collect_for_discussion(
        self,
        repository: RepositoryNode,
        discussion: DiscussionNode,
    ) -> CollectionResult:
        """Collect a discussion's comments, their replies, and the accepted answer.

        The answer is usually also in the comment connection; it is stored once.
        """
        seen: set[str] = set()
        result = await self._collect_parent(
            repository,
            number=discussion.number,
            query=DISCUSSION_COMMENTS_QUERY,
            path=("repository", "discussion", "comments"),
            label="Discussion",
            context=f"discussion comments {repository.name_with_owner}#{discussion.number}",
            parent={"discussion_id": discussion.id},
            seen=seen,
        )
        if discussion.answer is not None:
            await self._store_comment(
                discussion.answer,
                self._ctx.bounds_for(ResourceKey.COMMENTS),
                result,
                seen,
                parent={"discussion_id": discussion.id},
            )
        return result

    async def collect_review_comments(
        self,
        repository: RepositoryNode,
        pull_request: PullRequestNode,
        review_cache: set[str],
    ) -> CollectionResult:
        """Collect inline review comments from a pull request's review threads.

        Args:
            repository: Owning repository
            pull_request: Pull request whose threads are read
            review_cache: Review ids known to be stored (grows as reviews are confirmed)

        Returns:
            Latest comment timestamp and count
        """
        bounds = self._ctx.bounds_for(ResourceKey.COMMENTS)
        result = CollectionResult()
        seen: set[str] = set()
        owner, name = repository.owner_and_name
        log = bind_repo(repository.name_with_owner)

        pager = Pager(
            self._ctx.executor,
            PULL_REQUEST_REVIEW_COMMENTS_QUERY,
            {"owner": owner, "name": name, "number": pull_request.number},
            ("repository", "pullRequest", "reviewThreads"),
            ReviewThreadNode,
            context=f"review threads {repository.name_with_owner}#{pull_request.number}",
        )
        try:
            async for page in pager:
                for thread in page.items():
                    for comment in connection_items(thread.comments):
                        if not evaluate(comment.activity_timestamp, bounds).include:
                            continue
                        review_id = await self._resolve_review_id(comment, review_cache)
                        await self._store_comment(
                            comment,
                            bounds,
                            result,
                            seen,
                            parent={"pull_request_id": pull_request.id},
                            review_id=review_id,
                        )
        except GitHubNotFoundError:
            log.info(
                "Pull request {} #{} no longer exists. Skipping review comment collection.",
                repository.name_with_owner,
                pull_request.number,
            )
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _collect_parent(
        self,
        repository: RepositoryNode,
        *,
        number: int,
        query: str,
        path: tuple[str, ...],
        label: str,
        context: str,
        parent: dict[str, str],
        seen: set[str] | None = None,
    ) -> CollectionResult:
        bounds = self._ctx.bounds_for(ResourceKey.COMMENTS)
        result = CollectionResult()
        seen = seen if seen is not None else set()
        owner, name = repository.owner_and_name
        log = bind_repo(repository.name_with_owner)

        pager = Pager(
            self._ctx.executor,
            query,
            {"owner": owner, "name": name, "number": number},
            path,
            CommentNode,
            context=context,
        )
        try:
            async for page in pager:
                for comment in page.items():
                    await self._store_comment(comment, bounds, result, seen, parent=parent)
                    for reply in connection_items(comment.replies):
                        await self._store_comment(reply, bounds, result, seen, parent=parent)
        except GitHubNotFoundError:
            log.info(
                "{} {} #{} no longer exists. Skipping comment collection.",
                label,
                repository.name_with_owner,
                number,
            )
            return result

        if pager.missing:
            log.info(
                "{} {} #{} was not found. Skipping comment collection.",
                label,
                repository.name_with_owner,
                number,
            )
        return result

    async def _resolve_review_id(self, comment: CommentNode, review_cache: set[str]) -> str | None:
        review_id = comment.pull_request_review.id if comment.pull_request_review else None
        if not review_id:
            return None
        if review_id in review_cache:
            return review_id
        if await self._ctx.store.review_exists(review_id):
            review_cache.add(review_id)
            return review_id
        logger.info(
            "Review {} referenced by comment {} was not found. Saving without review reference.",
            review_id,
            comment.id,
        )
        return None

    async def _store_comment(
        self,
        comment: CommentNode,
        bounds: TimeBounds,
        result: CollectionResult,
        seen: set[str],
        *,
        parent: dict[str, str],
        review_id: str | None = None,
    ) -> bool:
        """Upsert one comment if it is new to this pass and inside the window."""
        if comment.id in seen:
            return False
        timestamp = comment.activity_timestamp
        if not evaluate(timestamp, bounds).include:
            return False
        seen.add(comment.id)

        author_id = await self._ctx.upsert_actor(comment.author)
        await self._ctx.store.upsert_comment(
            comment.to_upsert(author_id=author_id, review_id=review_id, **parent)
        )
        await self._ctx.upsert_reactions(
            comment.reactions,
            reaction_subject_type(comment.typename, SubjectType.COMMENT),
            comment.id,
        )
        await self._ctx.commits.record_success()
        result.observe(timestamp)
        return True
