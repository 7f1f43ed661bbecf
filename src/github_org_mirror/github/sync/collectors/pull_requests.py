"""Pull request collection with reviews, comments and review requests."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from github_org_mirror.github.queries import REPOSITORY_PULL_REQUESTS_QUERY
from github_org_mirror.logging import bind_repo, get_logger
from github_org_mirror.schemas import ReviewRequestUpsert
from github_org_mirror.schemas.graphql import PullRequestNode, TimelineEvent, connection_items
from github_org_mirror.timestamps import parse_timestamp

from ..enums import ResourceKey, SubjectType
from ..nodes import is_team
from ..results import PullRequestPassResult
from ..window import evaluate
from .base import Pager, SyncContext
from .comments import CommentCollector
from .reviews import ReviewCollector

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import RepositoryNode

logger = get_logger(__name__)

REVIEW_REQUESTED_EVENT = "ReviewRequestedEvent"
REVIEW_REQUEST_REMOVED_EVENT = "ReviewRequestRemovedEvent"

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


def _event_time(event: TimelineEvent) -> datetime:
    return parse_timestamp(event.created_at) or _EPOCH


class PullRequestCollector:
    """Collects a repository's pull requests (newest-first).

    For each included pull request: its author and merger, the pull
    request row, review request timeline events, reactions, conversation
    comments, reviews, and inline review comments, in that order.
    """

    def __init__(
        self,
        ctx: SyncContext,
        comments: CommentCollector | None = None,
        reviews: ReviewCollector | None = None,
    ) -> None:
        self._ctx = ctx
        self._comments = comments or CommentCollector(ctx)
        self._reviews = reviews or ReviewCollector(ctx)

    async def collect(self, repository: RepositoryNode) -> PullRequestPassResult:
        """Run the pull request pass for one repository."""
        bounds = self._ctx.bounds_for(ResourceKey.PULL_REQUESTS)
        result = PullRequestPassResult()
        owner, name = repository.owner_and_name
        log = bind_repo(repository.name_with_owner)

        pager = Pager(
            self._ctx.executor,
            REPOSITORY_PULL_REQUESTS_QUERY,
            {"owner": owner, "name": name, "pageSize": self._ctx.page_size},
            ("repository", "pullRequests"),
            PullRequestNode,
            context=f"pull requests {repository.name_with_owner}",
        )
        async for page in pager:
            reached_lower_bound = False
            for pull_request in page.items():
                decision = evaluate(pull_request.updated_at, bounds)
                if decision.before_lower_bound:
                    reached_lower_bound = True
                    break
                if not decision.include:
                    continue

                await self.store(repository, pull_request)
                result.pull_requests.observe(pull_request.updated_at)
                result.merge(await self.collect_children(repository, pull_request))

            if reached_lower_bound:
                log.debug(
                    "Reached pull requests older than the window in {}",
                    repository.name_with_owner,
                )
                break

        log.info(
            "Synced {} pull requests, {} reviews and {} comments for {}",
            result.pull_requests.count,
            result.reviews.count,
            result.comments.count,
            repository.name_with_owner,
        )
        return result

    async def store(self, repository: RepositoryNode, pull_request: PullRequestNode) -> None:
        """Upsert one pull request, its actors, timeline events and reactions."""
        author_id = await self._ctx.upsert_actor(pull_request.author)
        merged_by_id = await self._ctx.upsert_actor(pull_request.merged_by)
        for assignee in connection_items(pull_request.assignees):
            await self._ctx.upsert_actor(assignee)

        await self._ctx.store.upsert_pull_request(
            pull_request.to_pull_request_upsert(repository.id, author_id, merged_by_id)
        )
        await self.apply_timeline(pull_request)
        await self._ctx.upsert_reactions(
            pull_request.reactions, SubjectType.PULL_REQUEST, pull_request.id
        )
        await self._ctx.commits.record_success()

    async def collect_children(
        self,
        repository: RepositoryNode,
        pull_request: PullRequestNode,
    ) -> PullRequestPassResult:
        """Collect comments, reviews and review comments of one pull request.

        Reviews are collected before review comments so comments can be
        linked to reviews stored in the same pass.
        """
        result = PullRequestPassResult()
        result.comments.merge(
            await self._comments.collect_for_pull_request(repository, pull_request)
        )

        reviews = await self._reviews.collect(repository, pull_request)
        result.reviews.merge(reviews)

        review_cache = set(reviews.review_ids)
        result.comments.merge(
            await self._comments.collect_review_comments(repository, pull_request, review_cache)
        )
        return result

    async def apply_timeline(self, pull_request: PullRequestNode) -> None:
        """Apply review request events oldest-first.

        Team reviewers and events without an id or time are ignored.
        """
        events = sorted(connection_items(pull_request.timeline_items), key=_event_time)
        for event in events:
            reviewer = event.requested_reviewer
            if reviewer is None or is_team(reviewer.typename):
                continue
            occurred_at = parse_timestamp(event.created_at)
            if occurred_at is None:
                continue

            if event.typename == REVIEW_REQUESTED_EVENT:
                if not event.id:
                    continue
                reviewer_id = await self._ctx.upsert_actor(reviewer)
                if reviewer_id is None:
                    continue
                await self._ctx.store.upsert_review_request(
                    ReviewRequestUpsert(
                        id=event.id,
                        pull_request_id=pull_request.id,
                        reviewer_id=reviewer_id,
                        requested_at=occurred_at,
                        data=event.raw(),
                    )
                )
            elif event.typename == REVIEW_REQUEST_REMOVED_EVENT:
                reviewer_id = await self._ctx.upsert_actor(reviewer)
                if reviewer_id is None:
                    continue
                removed = await self._ctx.store.mark_review_request_removed(
                    pull_request.id, reviewer_id, occurred_at, event.raw()
                )
                if not removed:
                    logger.debug(
                        "No active review request for {} on {} to remove",
                        reviewer_id,
                        pull_request.id,
                    )
