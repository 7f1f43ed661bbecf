"""Repository for Discussion model operations."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Discussion
from github_org_mirror.schemas import DiscussionUpsert

from .base import BaseRepository


class DiscussionRepository(BaseRepository[Discussion]):
    """Repository for GitHub discussions."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Discussion, write_lock)

    async def upsert(self, discussion: DiscussionUpsert) -> Discussion:
        """Create or update a discussion."""
        return await self._upsert(discussion.model_dump())
