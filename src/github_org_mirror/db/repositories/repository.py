"""Repository for GitHub Repository model operations."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Repository
from github_org_mirror.schemas import RepositoryUpsert

from .base import BaseRepository


class RepositoryRepository(BaseRepository[Repository]):
    """Repository for GitHub Repository entities.

    Handles upserts and lookups for the organization's repositories.
    """

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
        super().__init__(session, Repository, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def get_by_name_with_owner(self, name_with_owner: str) -> Repository | None:
        """Get a repository by its owner/name.

        Args:
            name_with_owner: Full repository name (e.g., "prebid/prebid-server")

        Returns:
            Repository or None if not found
        """
        return await self._get_by_field("name_with_owner", name_with_owner)

    async def list_all(self) -> list[Repository]:
        """Get all mirrored repositories ordered by name."""
        stmt = select(Repository).order_by(Repository.name_with_owner)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    # -------------------------------------------------------------------------
    # Create/Update Methods
    # -------------------------------------------------------------------------

    async def upsert(self, repository: RepositoryUpsert) -> Repository:
        """Create or update a repository.

        Args:
            repository: Validated repository data

        Returns:
            The stored repository
        """
        return await self._upsert(repository.model_dump())
