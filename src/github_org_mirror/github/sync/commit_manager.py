"""Commit Manager - batch commit boundaries for mirror upserts.

Entity upserts are flushed one by one and committed every ``batch_size``
nodes, so an interrupted sync keeps everything up to the last full batch.
The next incremental run re-reads whatever was lost from the last persisted
watermark.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from github_org_mirror.logging import get_logger

if TYPE_CHECKING:
    from github_org_mirror.db.store import MirrorStore

logger = get_logger(__name__)


class CommitManager:
    """Counts upserted nodes and commits the store in batches.

    Usage:
        async with get_session(auto_commit=False) as session:
            store = MirrorStore(session)
            commits = CommitManager(store, batch_size=25)

            await store.upsert_issue(issue)
            await commits.record_success()  # Auto-commits at batch_size

            await commits.finalize()  # Commit remaining

    Attributes:
        uncommitted_count: Number of nodes pending commit.
        total_committed: Total nodes committed across all batches.
    """

    def __init__(self, store: MirrorStore, batch_size: int = 25) -> None:
        """Initialize the commit manager.

        Args:
            store: Store whose session is committed (its write lock
                serializes commits with flushes).
            batch_size: Number of upserted nodes before auto-commit.
        """
        self._store = store
        self._batch_size = batch_size
        self._uncommitted_count = 0
        self._total_committed = 0

    @property
    def uncommitted_count(self) -> int:
        """Number of nodes pending commit."""
        return self._uncommitted_count

    @property
    def total_committed(self) -> int:
        """Total nodes committed across all batches."""
        return self._total_committed

    @property
    def batch_size(self) -> int:
        """Configured batch size."""
        return self._batch_size

    async def record_success(self) -> int:
        """Record one upserted node, commit if the batch is full.

        Returns:
            Number of nodes committed (0 if the batch is not full yet).
        """
        self._uncommitted_count += 1
        if self._uncommitted_count >= self._batch_size:
            return await self.commit()
        return 0

    async def commit(self) -> int:
        """Force commit of pending nodes.

        Returns:
            Number of nodes committed (0 if nothing to commit).
        """
        if self._uncommitted_count == 0:
            return 0

        await self._store.commit()

        committed = self._uncommitted_count
        self._total_committed += committed
        self._uncommitted_count = 0

        logger.debug(
            "Committed batch of {} nodes (total: {})",
            committed,
            self._total_committed,
        )
        return committed

    async def finalize(self) -> int:
        """Commit any remaining nodes at the end of a pass.

        Returns:
            Number of nodes committed (0 if nothing pending).
        """
        return await self.commit()

    def discard(self) -> int:
        """Forget pending nodes after the session was rolled back.

        Returns:
            Number of nodes that were lost.
        """
        lost = self._uncommitted_count
        self._uncommitted_count = 0
        if lost:
            logger.warning("Discarded {} uncommitted nodes after rollback", lost)
        return lost
