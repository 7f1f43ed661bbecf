"""Repository for derived per-issue activity rows.

Activity statuses and project field overrides are computed by downstream
consumers. The sync only clears them when an issue re-enters the tracked
project.
"""

import asyncio

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import ActivityStatus, ProjectFieldOverride

from .base import BaseRepository


class ActivityRepository(BaseRepository[ActivityStatus]):
    """Repository for activity statuses and project field overrides."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, ActivityStatus, write_lock)

    async def clear_activity_statuses(self, issue_id: str) -> int:
        """Delete cached activity statuses for an issue.

        Returns:
            Number of deleted rows
        """
        stmt = delete(ActivityStatus).where(ActivityStatus.issue_id == issue_id)
        cursor_result = await self._session.execute(stmt)
        # CursorResult has rowcount attribute for DELETE/UPDATE statements
        row_count: int = getattr(cursor_result, "rowcount", 0) or 0
        return row_count

    async def clear_project_field_overrides(self, issue_id: str) -> int:
        """Delete project field overrides for an issue.

        Returns:
            Number of deleted rows
        """
        stmt = delete(ProjectFieldOverride).where(ProjectFieldOverride.issue_id == issue_id)
        cursor_result = await self._session.execute(stmt)
        row_count: int = getattr(cursor_result, "rowcount", 0) or 0
        return row_count
