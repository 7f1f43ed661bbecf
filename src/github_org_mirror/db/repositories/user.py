"""Repository for User model operations."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import User
from github_org_mirror.schemas import UserUpsert

from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for GitHub actors."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, User, write_lock)

    async def upsert(self, user: UserUpsert) -> User:
        """Create or update a user from a GraphQL actor."""
        return await self._upsert(user.model_dump())
