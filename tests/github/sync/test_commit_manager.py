"""Unit tests for CommitManager batch commit functionality."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from github_org_mirror.github.sync.commit_manager import CommitManager


@pytest.fixture
def mock_store() -> MagicMock:
    store = MagicMock()
    store.commit = AsyncMock()
    return store


class TestCommitManagerRecordSuccess:
    """Test record_success tracking and batch triggering."""

    @pytest.mark.asyncio
    async def test_record_success_increments_count(self, mock_store):
        """Verify record_success increments uncommitted_count."""
        # Arrange
        manager = CommitManager(mock_store, batch_size=5)

        # Act
        await manager.record_success()

        # Assert
        assert manager.uncommitted_count == 1
        assert manager.total_committed == 0
        mock_store.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_record_success_triggers_commit_at_batch_size(self, mock_store):
        """Verify commit triggers exactly at batch_size."""
        # Arrange
        manager = CommitManager(mock_store, batch_size=5)

        # Act
        for _ in range(4):
            assert await manager.record_success() == 0
        result = await manager.record_success()  # 5th call

        # Assert
        assert result == 5
        assert manager.uncommitted_count == 0
        assert manager.total_committed == 5
        mock_store.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_multiple_batches(self, mock_store):
        manager = CommitManager(mock_store, batch_size=3)

        for _ in range(7):
            await manager.record_success()

        assert mock_store.commit.await_count == 2
        assert manager.total_committed == 6
        assert manager.uncommitted_count == 1


class TestCommitManagerFinalize:
    """Test finalize and commit behavior."""

    @pytest.mark.asyncio
    async def test_finalize_commits_partial_batch(self, mock_store):
        manager = CommitManager(mock_store, batch_size=10)
        for _ in range(7):
            await manager.record_success()

        result = await manager.finalize()

        assert result == 7
        assert manager.total_committed == 7
        mock_store.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_noop_when_empty(self, mock_store):
        """Verify commit does nothing when no pending changes."""
        manager = CommitManager(mock_store, batch_size=10)

        assert await manager.commit() == 0
        mock_store.commit.assert_not_awaited()


class TestCommitManagerDiscard:
    """Test discard after rollback."""

    @pytest.mark.asyncio
    async def test_discard_forgets_pending_nodes(self, mock_store):
        manager = CommitManager(mock_store, batch_size=10)
        for _ in range(3):
            await manager.record_success()

        lost = manager.discard()

        assert lost == 3
        assert manager.uncommitted_count == 0
        assert await manager.finalize() == 0
        mock_store.commit.assert_not_awaited()
