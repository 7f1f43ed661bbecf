"""Sync Service - incremental runs, day-chunked backfills and run bookkeeping.

Wraps the orchestrator with everything around a run: resolving the window
and per-resource lower bounds, the parent ``sync_runs`` row, the
``sync_config`` timestamps, and serializing runs within one process.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from github_org_mirror.config import SyncConfig, get_settings
from github_org_mirror.db.models import RunStrategy, RunType, SyncStatus
from github_org_mirror.github.exceptions import ConfigurationError
from github_org_mirror.logging import LogContext, get_logger
from github_org_mirror.timestamps import ensure_utc, parse_timestamp, to_iso, utc_now

from .collectors import SyncContext
from .commit_manager import CommitManager
from .enums import WATERMARK_RESOURCES, ResourceKey
from .orchestrator import SyncOrchestrator, failure_message
from .results import SyncSummary
from .window import TimeBounds

if TYPE_CHECKING:
    from github_org_mirror.db.store import MirrorStore
    from github_org_mirror.github.retry import RequestExecutor

logger = get_logger(__name__)

COUNTED_RESOURCES: tuple[ResourceKey, ...] = (
    ResourceKey.ISSUES,
    ResourceKey.DISCUSSIONS,
    ResourceKey.PULL_REQUESTS,
    ResourceKey.REVIEWS,
    ResourceKey.COMMENTS,
)


@dataclass
class SyncRunResult:
    """Outcome of one successful sync run."""

    run_id: int
    since: datetime | None
    until: datetime | None
    started_at: datetime
    completed_at: datetime
    summary: SyncSummary

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "run_id": self.run_id,
            "since": to_iso(self.since),
            "until": to_iso(self.until),
            "started_at": to_iso(self.started_at),
            "completed_at": to_iso(self.completed_at),
            "summary": self.summary.to_dict(),
        }


@dataclass
class BackfillResult:
    """Outcome of a backfill (stops at the first failed chunk)."""

    start_date: datetime
    end_date: datetime
    totals: dict[str, int] = field(default_factory=lambda: dict.fromkeys(
        (resource.value for resource in COUNTED_RESOURCES), 0
    ))
    chunks: list[dict[str, Any]] = field(default_factory=list)

    @property
    def chunk_count(self) -> int:
        return len(self.chunks)

    @property
    def failed(self) -> bool:
        """True if a chunk failed."""
        return any(chunk["status"] == SyncStatus.FAILED.value for chunk in self.chunks)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "start_date": to_iso(self.start_date),
            "end_date": to_iso(self.end_date),
            "chunk_count": self.chunk_count,
            "totals": dict(self.totals),
            "chunks": list(self.chunks),
        }


def start_of_day(value: date | datetime) -> datetime:
    """UTC midnight of the given day."""
    if isinstance(value, datetime):
        value = ensure_utc(value).date()
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


class SyncService:
    """Runs incremental syncs and backfills for one organization.

    Usage:
        async with GitHubClient() as client:
            async with get_session(auto_commit=False) as session:
                service = SyncService(RequestExecutor(client), MirrorStore(session))
                result = await service.run_incremental()
    """

    def __init__(
        self,
        executor: RequestExecutor,
        store: MirrorStore,
        *,
        org: str | None = None,
        target_project: str | None = None,
        config: SyncConfig | None = None,
        lock: asyncio.Lock | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            executor: Request executor for GitHub calls
            store: Mirror store bound to the session used for the run
            org: Organization login (defaults to settings)
            target_project: Tracked project board title (defaults to settings)
            config: Sync behavior settings (defaults to settings)
            lock: Lock serializing runs (one per process)
        """
        settings = get_settings()
        self._executor = executor
        self._store = store
        self._org = (org if org is not None else settings.github_org).strip()
        target = target_project if target_project is not None else settings.target_project_name
        self._target_project = target.strip() or None
        self._config = config or settings.sync
        self._lock = lock or asyncio.Lock()

    @property
    def org(self) -> str:
        return self._org

    def _require_org(self) -> str:
        if not self._org:
            raise ConfigurationError(
                "GitHub organization is not configured. Set GITHUB_ORG."
            )
        return self._org

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    async def run_incremental(
        self,
        since: datetime | None = None,
        until: datetime | None = None,
        run_type: RunType = RunType.AUTOMATIC,
    ) -> SyncRunResult:
        """Sync everything updated since the last successful sync.

        Args:
            since: Lower bound (defaults to ``last_successful_sync_at``)
            until: Exclusive upper bound (None = now)
            run_type: How the run was triggered

        Returns:
            The run result with the orchestrator summary
        """
        self._require_org()
        if since is None:
            since = await self._store.last_successful_sync_at()
        return await self._execute(since, until, RunStrategy.INCREMENTAL, run_type)

    async def run_backfill(self, start_date: date | datetime | str) -> BackfillResult:
        """Re-sync from ``start_date`` to now in consecutive chunks.

        Each chunk is one backfill-strategy run. The first failed chunk is
        recorded and ends the backfill.

        Raises:
            ConfigurationError: If the start date is invalid or in the future
        """
        self._require_org()
        start = self._parse_start_date(start_date)
        now = utc_now()
        if start > now:
            raise ConfigurationError("Backfill start date must be in the past.")

        result = BackfillResult(start_date=start, end_date=now)
        step = self._config.backfill_chunk
        cursor = start
        while cursor < now:
            chunk_end = min(cursor + step, now)
            try:
                run = await self._execute(cursor, chunk_end, RunStrategy.BACKFILL, RunType.BACKFILL)
            except Exception as e:
                logger.error(
                    "Backfill chunk [{} - {}) failed: {}",
                    to_iso(cursor),
                    to_iso(chunk_end),
                    failure_message(e),
                )
                result.chunks.append(
                    {
                        "status": SyncStatus.FAILED.value,
                        "since": to_iso(cursor),
                        "until": to_iso(chunk_end),
                        "error": failure_message(e),
                    }
                )
                break

            result.chunks.append({"status": SyncStatus.SUCCESS.value, **run.to_dict()})
            for resource in COUNTED_RESOURCES:
                result.totals[resource.value] += run.summary.count(resource)
            cursor = chunk_end

        logger.info(
            "Backfill from {} finished after {} chunks{}",
            to_iso(start),
            result.chunk_count,
            " (stopped at a failed chunk)" if result.failed else "",
        )
        return result

    async def cleanup_running_runs(self, message: str = "Marked as failed by cleanup.") -> tuple[int, int]:
        """Fail runs and log entries left ``running`` by an interrupted process.

        Returns:
            (runs updated, log entries updated)
        """
        runs, logs = await self._store.cleanup_running(message)
        logger.info("Cleaned up {} running sync runs and {} log entries", runs, logs)
        return runs, logs

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_start_date(value: date | datetime | str) -> datetime:
        if isinstance(value, date):
            return start_of_day(value)
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ConfigurationError(f"Invalid backfill start date: {value!r}")
        return start_of_day(parsed)

    async def _since_by_resource(
        self,
        since: datetime | None,
        strategy: RunStrategy,
    ) -> dict[ResourceKey, datetime | None]:
        """Lower bound per resource: the later of ``since`` and its watermark.

        Backfill chunks keep their own lower bound.
        """
        if strategy == RunStrategy.BACKFILL:
            return dict.fromkeys(WATERMARK_RESOURCES, since)

        bounds: dict[ResourceKey, datetime | None] = {}
        for resource in WATERMARK_RESOURCES:
            watermark = await self._store.get_watermark(resource.value)
            candidates = [ensure_utc(value) for value in (since, watermark) if value is not None]
            bounds[resource] = max(candidates) if candidates else None
        return bounds

    async def _execute(
        self,
        since: datetime | None,
        until: datetime | None,
        strategy: RunStrategy,
        run_type: RunType,
    ) -> SyncRunResult:
        org = self._require_org()
        async with self._lock:
            started_at = utc_now()
            await self._store.update_sync_config(started_at=started_at)
            run_id = await self._store.start_sync_run(run_type, strategy, since, until)
            logger.info(
                "Starting {} sync {} for {} (since {}, until {})",
                strategy.value,
                run_id,
                org,
                to_iso(since) or "the beginning",
                to_iso(until) or "now",
            )

            ctx = SyncContext(
                executor=self._executor,
                store=self._store,
                commits=CommitManager(self._store, self._config.commit_batch_size),
                org=org,
                bounds=TimeBounds(since=since, until=until),
                since_by_resource=await self._since_by_resource(since, strategy),
                target_project=self._target_project,
                page_size=self._config.page_size,
            )

            try:
                with LogContext(run_id=run_id):
                    summary = await SyncOrchestrator(ctx, run_id=run_id).run()
            except Exception as e:
                completed_at = utc_now()
                await self._store.finish_sync_run(run_id, SyncStatus.FAILED, failure_message(e))
                await self._store.update_sync_config(completed_at=completed_at)
                logger.error("Sync {} for {} failed: {}", run_id, org, failure_message(e))
                raise

            completed_at = utc_now()
            latest = parse_timestamp(summary.latest_timestamp)
            await self._store.update_sync_config(
                completed_at=completed_at,
                successful_at=latest or completed_at,
            )
            await self._store.finish_sync_run(run_id, SyncStatus.SUCCESS)
            logger.info("Sync {} for {} succeeded", run_id, org)

            return SyncRunResult(
                run_id=run_id,
                since=since,
                until=until,
                started_at=started_at,
                completed_at=completed_at,
                summary=summary,
            )
