"""Repository for Review model operations."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Review
from github_org_mirror.schemas import ReviewUpsert

from .base import BaseRepository


class ReviewRepository(BaseRepository[Review]):
    """Repository for pull request reviews."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Review, write_lock)

    async def upsert(self, review: ReviewUpsert) -> Review:
        """Create or update a review."""
        return await self._upsert(review.model_dump())
