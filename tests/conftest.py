"""Pytest configuration and shared fixtures.

Usage Guide:
- For ORM model tests: import factories from tests.factories
- For GraphQL node parsing and collector tests: import node builders from
  tests.fixtures.graphql_responses
- For collector/orchestrator tests: use the ``store`` and ``make_ctx`` fixtures with
  a ``ScriptedExecutor``
"""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from github_org_mirror.db.models import Base
from github_org_mirror.db.store import MirrorStore
from github_org_mirror.github.sync.collectors import SyncContext
from github_org_mirror.github.sync.commit_manager import CommitManager
from github_org_mirror.github.sync.window import TimeBounds

# -----------------------------------------------------------------------------
# Test Timeline Constants
#
# Define a consistent "test epoch" for deterministic window matching across
# tests. All hardcoded dates should reference these constants.
# -----------------------------------------------------------------------------

# Base dates (datetime objects for bounds/ORM)
JAN_01 = datetime(2024, 1, 1, 0, 0, 0, tzinfo=UTC)  # Window lower bound
JAN_05 = datetime(2024, 1, 5, 12, 0, 0, tzinfo=UTC)  # Older than the window
JAN_10 = datetime(2024, 1, 10, 9, 0, 0, tzinfo=UTC)  # Inside the window
JAN_15 = datetime(2024, 1, 15, 10, 0, 0, tzinfo=UTC)  # Inside the window
JAN_16 = datetime(2024, 1, 16, 14, 0, 0, tzinfo=UTC)  # Inside the window
JAN_20 = datetime(2024, 1, 20, 16, 0, 0, tzinfo=UTC)  # Window upper bound
JAN_25 = datetime(2024, 1, 25, 8, 0, 0, tzinfo=UTC)  # Past the window

# ISO 8601 strings (for GraphQL mocks)
DEC_20_ISO = "2023-12-20T10:00:00Z"
JAN_01_ISO = "2024-01-01T00:00:00Z"
JAN_05_ISO = "2024-01-05T12:00:00Z"
JAN_10_ISO = "2024-01-10T09:00:00Z"
JAN_12_ISO = "2024-01-12T16:00:00Z"
JAN_15_ISO = "2024-01-15T10:00:00Z"
JAN_16_ISO = "2024-01-16T14:00:00Z"
JAN_20_ISO = "2024-01-20T16:00:00Z"
JAN_25_ISO = "2024-01-25T08:00:00Z"


# -----------------------------------------------------------------------------
# Database Fixtures
# -----------------------------------------------------------------------------
@pytest.fixture
async def test_engine():
    """Create an in-memory SQLite engine for tests.

    Each test gets a fresh database with all tables created.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Create an async session with auto-rollback.

    Changes are rolled back after each test to ensure isolation.
    """
    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def store(db_session) -> MirrorStore:
    """Mirror store bound to the test session."""
    return MirrorStore(db_session)


@pytest.fixture
def window() -> TimeBounds:
    """The standard test window: [JAN_01, JAN_20)."""
    return TimeBounds(since=JAN_01, until=JAN_20)


@pytest.fixture
def make_ctx(store, window):
    """Factory for a SyncContext over the test store.

    Usage:
        ctx = make_ctx(ScriptedExecutor({...}))
        ctx = make_ctx(executor, bounds=TimeBounds(), target_project="Roadmap")
    """

    def _make(executor, **overrides) -> SyncContext:
        values = {
            "executor": executor,
            "store": store,
            "commits": CommitManager(store, batch_size=25),
            "org": "prebid",
            "bounds": window,
            "page_size": 2,
        }
        values.update(overrides)
        return SyncContext(**values)

    return _make

