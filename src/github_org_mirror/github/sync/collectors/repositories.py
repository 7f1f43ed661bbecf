"""Organization repository collection."""

from __future__ import annotations

from dataclasses import dataclass, field

from github_org_mirror.github.queries import ORGANIZATION_REPOSITORIES_QUERY
from github_org_mirror.logging import get_logger
from github_org_mirror.schemas.graphql import RepositoryNode

from ..results import CollectionResult
from .base import Pager, SyncContext

logger = get_logger(__name__)


@dataclass
class RepositoryCollectionResult(CollectionResult):
    """Repository result plus the repositories in listing order."""

    repositories: list[RepositoryNode] = field(default_factory=list)


class RepositoryCollector:
    """Lists and upserts every repository of the organization.

    Repositories are not windowed: every later pass needs the full list.
    """

    def __init__(self, ctx: SyncContext) -> None:
        self._ctx = ctx

    async def collect(self) -> RepositoryCollectionResult:
        """Page through the organization's repositories."""
        result = RepositoryCollectionResult()
        pager = Pager(
            self._ctx.executor,
            ORGANIZATION_REPOSITORIES_QUERY,
            {"login": self._ctx.org, "pageSize": self._ctx.page_size},
            ("organization", "repositories"),
            RepositoryNode,
            context=f"repositories for {self._ctx.org}",
        )
        async for page in pager:
            for repository in page.items():
                await self.store(repository)
                result.repositories.append(repository)
                result.observe(repository.updated_at)

        if pager.missing:
            logger.warning("Organization {} returned no repository connection", self._ctx.org)
        return result

    async def store(self, repository: RepositoryNode) -> None:
        """Upsert a repository and its owner."""
        owner_id = await self._ctx.upsert_actor(repository.owner)
        await self._ctx.store.upsert_repository(repository.to_upsert(owner_id))
        await self._ctx.commits.record_success()
