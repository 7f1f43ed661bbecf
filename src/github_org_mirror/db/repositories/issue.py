"""Repository for Issue model operations."""

import asyncio
from collections.abc import Collection
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Issue
from github_org_mirror.schemas import IssueUpsert

from .base import BaseRepository


class IssueRepository(BaseRepository[Issue]):
    """Repository for GitHub issues."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Issue, write_lock)

    async def get_by_number(self, repository_id: str, number: int) -> Issue | None:
        """Get an issue by repository and number.

        Args:
            repository_id: Repository node id
            number: Issue number

        Returns:
            Issue or None if not found
        """
        stmt = select(Issue).where(
            Issue.repository_id == repository_id,
            Issue.number == number,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def fetch_raw_map(self, ids: Collection[str]) -> dict[str, dict[str, Any]]:
        """Get the stored raw payload for each known issue id.

        Unknown ids are absent from the result.
        """
        return {issue.id: dict(issue.data or {}) for issue in await self.get_many(ids)}

    async def upsert(self, issue: IssueUpsert) -> Issue:
        """Create or update an issue (raw payload included)."""
        return await self._upsert(issue.model_dump())

    async def update_data(self, issue_id: str, patch: dict[str, Any]) -> Issue | None:
        """Merge keys into an issue's stored raw payload.

        Args:
            issue_id: Issue node id
            patch: Keys to set on the payload

        Returns:
            Updated issue, or None if the issue is not stored
        """
        issue = await self.get_by_id(issue_id)
        if issue is None:
            return None
        issue.data = {**(issue.data or {}), **patch}
        await self.flush()
        return issue
