"""Repository for PullRequest model operations."""

import asyncio
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import PullRequest
from github_org_mirror.schemas import PullRequestUpsert

from .base import BaseRepository


class PullRequestRepository(BaseRepository[PullRequest]):
    """Repository for GitHub pull requests."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        """Initialize the repository.

        Args:
            session: Async SQLAlchemy session
            write_lock: Store lock that orders flushes against commits on the shared session
        """
        super().__init__(session, PullRequest, write_lock)

    async def get_by_number(self, repository_id: str, number: int) -> PullRequest | None:
        """Get a pull request by repository and number."""
        stmt = select(PullRequest).where(
            PullRequest.repository_id == repository_id,
            PullRequest.number == number,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, pull_request: PullRequestUpsert) -> PullRequest:
        """Create or update a pull request."""
        return await self._upsert(pull_request.model_dump())

    async def update_data(self, pull_request_id: str, patch: dict[str, Any]) -> PullRequest | None:
        """Merge keys into a pull request's stored raw payload."""
        pull_request = await self.get_by_id(pull_request_id)
        if pull_request is None:
            return None
        pull_request.data = {**(pull_request.data or {}), **patch}
        await self.flush()
        return pull_request
