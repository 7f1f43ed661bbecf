"""Repository for Reaction model operations."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Reaction
from github_org_mirror.schemas import ReactionUpsert

from .base import BaseRepository


class ReactionRepository(BaseRepository[Reaction]):
    """Repository for reactions."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Reaction, write_lock)

    async def list_for_subject(self, subject_type: str, subject_id: str) -> list[Reaction]:
        """Get reactions on one subject."""
        stmt = select(Reaction).where(
            Reaction.subject_type == subject_type,
            Reaction.subject_id == subject_id,
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def upsert(self, reaction: ReactionUpsert) -> Reaction:
        """Create or update a reaction."""
        return await self._upsert(reaction.model_dump())
