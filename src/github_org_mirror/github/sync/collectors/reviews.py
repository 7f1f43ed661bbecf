"""Pull request review collection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from github_org_mirror.github.queries import PULL_REQUEST_REVIEWS_QUERY
from github_org_mirror.schemas.graphql import ReviewNode

from ..enums import ResourceKey
from ..results import CollectionResult
from ..window import evaluate
from .base import Pager, SyncContext

if TYPE_CHECKING:
    from github_org_mirror.schemas.graphql import PullRequestNode, RepositoryNode


@dataclass
class ReviewCollectionResult(CollectionResult):
    """Review result plus the ids stored by this pass."""

    review_ids: set[str] = field(default_factory=set)


class ReviewCollector:
    """Collects submitted reviews of one pull request."""

    def __init__(self, ctx: SyncContext) -> None:
        self._ctx = ctx

    async def collect(
        self,
        repository: RepositoryNode,
        pull_request: PullRequestNode,
    ) -> ReviewCollectionResult:
        """Upsert in-window reviews (windowed on ``submittedAt``).

        Pending reviews have no submission time and are never stored.
        """
        bounds = self._ctx.bounds_for(ResourceKey.REVIEWS)
        result = ReviewCollectionResult()
        owner, name = repository.owner_and_name

        pager = Pager(
            self._ctx.executor,
            PULL_REQUEST_REVIEWS_QUERY,
            {"owner": owner, "name": name, "number": pull_request.number},
            ("repository", "pullRequest", "reviews"),
            ReviewNode,
            context=f"reviews {repository.name_with_owner}#{pull_request.number}",
        )
        async for page in pager:
            for review in page.items():
                if not evaluate(review.submitted_at, bounds).include:
                    continue

                author_id = await self._ctx.upsert_actor(review.author)
                await self._ctx.store.upsert_review(review.to_upsert(pull_request.id, author_id))
                await self._ctx.commits.record_success()

                result.review_ids.add(review.id)
                result.observe(review.submitted_at)

        return result
