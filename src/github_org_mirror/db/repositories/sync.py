"""Repositories for sync bookkeeping: runs, per-resource logs, watermarks."""

import asyncio
from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import (
    RunStrategy,
    RunType,
    SyncConfig,
    SyncLog,
    SyncRun,
    SyncState,
    SyncStatus,
)
from github_org_mirror.timestamps import ensure_utc, utc_now

from .base import BaseRepository

DEFAULT_CONFIG_ID = "default"


class SyncRunRepository(BaseRepository[SyncRun]):
    """Repository for top-level sync runs."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, SyncRun, write_lock)

    async def start(
        self,
        run_type: RunType,
        strategy: RunStrategy,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> SyncRun:
        """Create a running sync run.

        Args:
            run_type: What started the run
            strategy: Incremental or backfill
            since: Lower bound of the run window
            until: Upper bound of the run window

        Returns:
            The new run (id assigned)
        """
        run = SyncRun(
            run_type=run_type,
            strategy=strategy,
            status=SyncStatus.RUNNING,
            since=since,
            until=until,
            started_at=utc_now(),
        )
        self.add(run)
        await self.flush()
        return run

    async def finish(
        self, run_id: int, status: SyncStatus, message: str | None = None
    ) -> SyncRun | None:
        """Set a run's final status."""
        run = await self.get_by_id(run_id)
        if run is None:
            return None
        run.status = status
        run.message = message
        run.completed_at = utc_now()
        await self.flush()
        return run

    async def list_recent(self, limit: int = 10) -> list[SyncRun]:
        """Get the most recent runs, newest first."""
        stmt = select(SyncRun).order_by(SyncRun.id.desc()).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def fail_running(self, message: str) -> int:
        """Mark every run still in ``running`` as failed.

        Returns:
            Number of runs updated
        """
        stmt = (
            update(SyncRun)
            .where(SyncRun.status == SyncStatus.RUNNING)
            .values(status=SyncStatus.FAILED, message=message, completed_at=utc_now())
        )
        cursor_result = await self._session.execute(stmt)
        row_count: int = getattr(cursor_result, "rowcount", 0) or 0
        return row_count


class SyncLogRepository(BaseRepository[SyncLog]):
    """Repository for per-resource sync log entries."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, SyncLog, write_lock)

    async def record(
        self,
        resource: str,
        status: SyncStatus,
        message: str | None = None,
        run_id: int | None = None,
    ) -> SyncLog:
        """Create a log entry for one resource of a run."""
        entry = SyncLog(
            resource=resource,
            status=status,
            message=message,
            run_id=run_id,
            started_at=utc_now(),
        )
        self.add(entry)
        await self.flush()
        return entry

    async def finish(
        self, log_id: int, status: SyncStatus, message: str | None = None
    ) -> SyncLog | None:
        """Set a log entry's final status and finish time."""
        entry = await self.get_by_id(log_id)
        if entry is None:
            return None
        entry.status = status
        entry.message = message
        entry.finished_at = utc_now()
        await self.flush()
        return entry

    async def list_for_run(self, run_id: int) -> list[SyncLog]:
        """Get a run's log entries in creation order."""
        stmt = select(SyncLog).where(SyncLog.run_id == run_id).order_by(SyncLog.id)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def fail_running(self, message: str) -> int:
        """Mark every entry still in ``running`` as failed.

        Returns:
            Number of entries updated
        """
        stmt = (
            update(SyncLog)
            .where(SyncLog.status == SyncStatus.RUNNING)
            .values(status=SyncStatus.FAILED, message=message, finished_at=utc_now())
        )
        cursor_result = await self._session.execute(stmt)
        row_count: int = getattr(cursor_result, "rowcount", 0) or 0
        return row_count


class SyncStateRepository(BaseRepository[SyncState]):
    """Repository for per-resource watermarks.

    Watermarks only move forward.
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, SyncState, write_lock)

    async def get(self, resource: str, scope_key: str = "") -> SyncState | None:
        """Get the watermark row for a resource and scope."""
        stmt = select(SyncState).where(
            SyncState.resource == resource,
            SyncState.scope_key == scope_key,
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_watermark(self, resource: str, scope_key: str = "") -> datetime | None:
        """Get a resource's watermark as an aware UTC datetime."""
        state = await self.get(resource, scope_key)
        if state is None or state.last_item_timestamp is None:
            return None
        return ensure_utc(state.last_item_timestamp)

    async def list_all(self) -> list[SyncState]:
        """Get every watermark row."""
        stmt = select(SyncState).order_by(SyncState.resource, SyncState.scope_key)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def advance(self, resource: str, timestamp: datetime, scope_key: str = "") -> SyncState:
        """Move a watermark forward to ``timestamp`` (never backward).

        Args:
            resource: Resource key (e.g. "issues")
            timestamp: Newly observed latest timestamp
            scope_key: Optional scope within the resource

        Returns:
            The stored watermark row
        """
        state = await self.get(resource, scope_key)
        if state is None:
            state = self.add(
                SyncState(resource=resource, scope_key=scope_key, last_item_timestamp=timestamp)
            )
        elif state.last_item_timestamp is None or ensure_utc(timestamp) > ensure_utc(
            state.last_item_timestamp
        ):
            state.last_item_timestamp = timestamp
        await self.flush()
        return state


class SyncConfigRepository(BaseRepository[SyncConfig]):
    """Repository for the singleton sync configuration row."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, SyncConfig, write_lock)

    async def get_or_create(self) -> SyncConfig:
        """Get the default row, creating it on first use."""
        config = await self.get_by_id(DEFAULT_CONFIG_ID)
        if config is None:
            config = self.add(SyncConfig(id=DEFAULT_CONFIG_ID))
            await self.flush()
        return config

    async def last_successful_sync_at(self) -> datetime | None:
        """Get the end of the last successful sync."""
        config = await self.get_by_id(DEFAULT_CONFIG_ID)
        if config is None or config.last_successful_sync_at is None:
            return None
        return ensure_utc(config.last_successful_sync_at)

    async def update(
        self,
        *,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        successful_at: datetime | None = None,
    ) -> SyncConfig:
        """Set whichever timestamps are given."""
        config = await self.get_or_create()
        if started_at is not None:
            config.last_sync_started_at = started_at
        if completed_at is not None:
            config.last_sync_completed_at = completed_at
        if successful_at is not None:
            config.last_successful_sync_at = successful_at
        await self.flush()
        return config
