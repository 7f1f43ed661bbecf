"""Tests for sync CLI commands."""

import json
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from typer.testing import CliRunner

from github_org_mirror import __version__
from github_org_mirror.cli.app import app
from github_org_mirror.db.models import RunType
from github_org_mirror.logging import reset_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def clean_logging():
    """Drop the sinks each invocation binds to the runner's streams."""
    yield
    reset_logging()


@pytest.fixture
def mock_store() -> MagicMock:
    store = MagicMock()
    store.list_watermarks = AsyncMock(return_value=[])
    store.list_recent_runs = AsyncMock(return_value=[])
    store.list_run_logs = AsyncMock(return_value=[])
    store.last_successful_sync_at = AsyncMock(return_value=None)
    store.cleanup_running = AsyncMock(return_value=(0, 0))
    return store


@pytest.fixture
def patched_mirror(mock_store):
    """Replace the executor/store factories so no database or GitHub is touched."""

    @asynccontextmanager
    async def fake_mirror():
        yield MagicMock(), mock_store

    @asynccontextmanager
    async def fake_store():
        yield mock_store

    with (
        patch("github_org_mirror.cli.sync._open_mirror", fake_mirror),
        patch("github_org_mirror.cli.sync._open_store", fake_store),
    ):
        yield mock_store


def _run_result() -> dict:
    return {
        "run_id": 7,
        "since": "2024-01-01T00:00:00Z",
        "until": None,
        "started_at": "2024-01-20T16:00:00Z",
        "completed_at": "2024-01-20T16:05:00Z",
        "summary": {
            "repositories_processed": 2,
            "counts": {"issues": 3, "discussions": 0, "pull_requests": 1, "reviews": 2, "comments": 5},
            "timestamps": {"issues": "2024-01-15T10:00:00Z"},
        },
    }


class TestGlobalFlags:
    """Tests for global CLI flags."""

    def test_global_help_shows_verbose_and_quiet(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "--verbose" in result.stdout
        assert "--quiet" in result.stdout

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout

    def test_log_file_option_adds_file_sink(self, patched_mirror, tmp_path):
        log_file = tmp_path / "logs" / "orgmirror.log"

        result = runner.invoke(app, ["--log-file", str(log_file), "sync", "status"])

        assert result.exit_code == 0
        assert log_file.exists()

    def test_sync_commands_registered(self):
        result = runner.invoke(app, ["sync", "--help"])
        assert result.exit_code == 0
        for command in ("run", "backfill", "node", "status", "cleanup"):
            assert command in result.stdout


class TestSyncRunCommand:
    """Tests for 'sync run'."""

    def test_invalid_since_rejected(self):
        result = runner.invoke(app, ["sync", "run", "--since", "yesterday"])
        assert result.exit_code == 1
        assert "Invalid date format" in result.stdout

    def test_missing_token_fails(self):
        settings = SimpleNamespace(github_token="", github_org="prebid")
        with patch("github_org_mirror.cli.sync.get_settings", return_value=settings):
            result = runner.invoke(app, ["sync", "run"])
        assert result.exit_code == 1
        assert "GitHub token is not configured" in result.stdout

    def test_format_json_outputs_json(self, patched_mirror):
        service = MagicMock()
        service.run_incremental = AsyncMock(
            return_value=MagicMock(to_dict=MagicMock(return_value=_run_result()))
        )
        with patch("github_org_mirror.cli.sync.SyncService", return_value=service):
            result = runner.invoke(
                app, ["sync", "run", "--since", "2024-01-01", "--format", "json"]
            )

        assert result.exit_code == 0
        assert json.loads(result.stdout)["run_id"] == 7
        since, until, run_type = service.run_incremental.await_args.args
        assert since.isoformat() == "2024-01-01T00:00:00+00:00"
        assert until is None
        assert run_type == RunType.MANUAL

    def test_text_output_shows_counts(self, patched_mirror):
        service = MagicMock()
        service.run_incremental = AsyncMock(
            return_value=MagicMock(to_dict=MagicMock(return_value=_run_result()))
        )
        with patch("github_org_mirror.cli.sync.SyncService", return_value=service):
            result = runner.invoke(app, ["sync", "run"])

        assert result.exit_code == 0
        assert "Sync Complete" in result.stdout
        assert "Pull Requests:" in result.stdout

    def test_sync_failure_exits_nonzero(self, patched_mirror):
        service = MagicMock()
        service.run_incremental = AsyncMock(side_effect=RuntimeError("database is locked"))
        with patch("github_org_mirror.cli.sync.SyncService", return_value=service):
            result = runner.invoke(app, ["sync", "run"])

        assert result.exit_code == 1
        assert "Sync failed" in result.stdout
        assert "database is locked" in result.stdout


class TestSyncBackfillCommand:
    """Tests for 'sync backfill'."""

    def test_requires_start_date(self):
        result = runner.invoke(app, ["sync", "backfill"])
        assert result.exit_code != 0

    def test_failed_chunk_exits_nonzero(self, patched_mirror):
        backfill = {
            "start_date": "2024-01-01T00:00:00Z",
            "end_date": "2024-01-03T00:00:00Z",
            "chunk_count": 2,
            "totals": {"issues": 1},
            "chunks": [
                {"status": "success"},
                {
                    "status": "failed",
                    "since": "2024-01-02T00:00:00Z",
                    "until": "2024-01-03T00:00:00Z",
                    "error": "boom",
                },
            ],
        }
        service = MagicMock()
        service.run_backfill = AsyncMock(
            return_value=MagicMock(to_dict=MagicMock(return_value=backfill))
        )
        with patch("github_org_mirror.cli.sync.SyncService", return_value=service):
            result = runner.invoke(app, ["sync", "backfill", "2024-01-01"])

        assert result.exit_code == 1
        assert "boom" in result.stdout
        service.run_backfill.assert_awaited_once_with("2024-01-01")


class TestSyncNodeCommand:
    """Tests for 'sync node'."""

    def test_json_output(self, patched_mirror):
        resync = MagicMock()
        resync.resync = AsyncMock(
            return_value=MagicMock(
                to_dict=MagicMock(
                    return_value={
                        "node_id": "PR_1",
                        "type": "pull_request",
                        "repository": "prebid/prebid-server",
                        "comments": 2,
                        "reviews": 1,
                        "review_requests_added": 1,
                        "review_requests_removed": 0,
                    }
                )
            )
        )
        with patch("github_org_mirror.cli.sync.NodeResync", return_value=resync):
            result = runner.invoke(app, ["sync", "node", "PR_1", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["type"] == "pull_request"
        resync.resync.assert_awaited_once_with("PR_1")


class TestSyncStatusAndCleanup:
    """Tests for 'sync status' and 'sync cleanup'."""

    def test_status_with_no_runs(self, patched_mirror):
        result = runner.invoke(app, ["sync", "status"])

        assert result.exit_code == 0
        assert "Last successful sync: never" in result.stdout
        assert "No sync runs recorded" in result.stdout

    def test_status_json(self, patched_mirror):
        result = runner.invoke(app, ["sync", "status", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "last_successful_sync_at": None,
            "watermarks": {},
            "runs": [],
        }

    def test_cleanup_reports_counts(self, patched_mirror):
        patched_mirror.cleanup_running = AsyncMock(return_value=(2, 3))

        result = runner.invoke(app, ["sync", "cleanup"])

        assert result.exit_code == 0
        assert "Marked 2 runs and 3 log entries" in result.stdout

    def test_cleanup_nothing_running(self, patched_mirror):
        result = runner.invoke(app, ["sync", "cleanup"])

        assert result.exit_code == 0
        assert "No running syncs to clean up" in result.stdout
