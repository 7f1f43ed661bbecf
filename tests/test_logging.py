"""Tests for logging configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
from loguru import logger

from github_org_mirror.logging import (
    LogContext,
    bind_node,
    bind_repo,
    get_logger,
    is_configured,
    reset_logging,
    setup_logging,
)

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def _reset_logging_state() -> Generator[None, None, None]:
    """Reset loguru state before and after each test."""
    reset_logging()
    yield
    reset_logging()


def _capture() -> tuple[list[dict], int]:
    records: list[dict] = []
    handler_id = logger.add(lambda msg: records.append(msg.record), level="TRACE")
    return records, handler_id


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_marks_configured(self) -> None:
        setup_logging(level="INFO")
        assert is_configured()

    def test_reset_logging_clears_configured(self) -> None:
        setup_logging(level="INFO")
        reset_logging()
        assert not is_configured()

    def test_quiet_sets_warning_level_for_libraries(self) -> None:
        """Quiet mode keeps SQLAlchemy and httpx at WARNING."""
        setup_logging(level="INFO", quiet=True)
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_verbose_enables_library_debug(self) -> None:
        """Verbose mode takes precedence over quiet."""
        setup_logging(level="WARNING", verbose=True, quiet=True)
        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_file_logging(self, tmp_path) -> None:
        log_file = tmp_path / "mirror.log"
        setup_logging(level="INFO", log_file=log_file)

        get_logger("test").info("written to file")
        logger.complete()

        assert "written to file" in log_file.read_text()


class TestContextBinding:
    """Tests for bound loggers."""

    def test_get_logger_binds_name(self) -> None:
        records, handler_id = _capture()
        try:
            get_logger("github_org_mirror.test").info("hello")
        finally:
            logger.remove(handler_id)

        assert records[0]["extra"]["name"] == "github_org_mirror.test"

    def test_bind_repo(self) -> None:
        records, handler_id = _capture()
        try:
            bind_repo("prebid/prebid-server").info("syncing")
        finally:
            logger.remove(handler_id)

        assert records[0]["extra"]["repo"] == "prebid/prebid-server"

    def test_bind_node(self) -> None:
        records, handler_id = _capture()
        try:
            bind_node("I_kwDOAbc123").info("resyncing")
        finally:
            logger.remove(handler_id)

        assert records[0]["extra"]["node"] == "I_kwDOAbc123"

    def test_log_context_is_temporary(self) -> None:
        records, handler_id = _capture()
        try:
            with LogContext(run_id=12):
                logger.info("inside")
            logger.info("outside")
        finally:
            logger.remove(handler_id)

        assert records[0]["extra"]["run_id"] == 12
        assert "run_id" not in records[1]["extra"]
