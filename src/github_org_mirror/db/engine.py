"""Async SQLAlchemy engine and session management for the mirror database.

The engine is created lazily from ``Settings.database_url``. SQLite file
databases get their parent directory created and a busy timeout, so a
``status`` command can read while a sync holds the write lock.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import event, pool
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from github_org_mirror.config import get_settings
from github_org_mirror.db.models import Base
from github_org_mirror.logging import get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 30_000

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def sqlite_file_path(database_url: str) -> Path | None:
    """Path of a file-backed SQLite database (None for memory or other backends)."""
    url = make_url(database_url)
    if not url.get_backend_name() == "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def _on_sqlite_connect(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
    cursor.close()


def get_engine() -> AsyncEngine:
    """Get or create the async engine for the configured database."""
    global _engine
    if _engine is None:
        database_url = get_settings().database_url
        path = sqlite_file_path(database_url)
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)

        # NullPool: each session opens its own SQLite connection
        _engine = create_async_engine(database_url, poolclass=pool.NullPool)
        if path is not None:
            event.listen(_engine.sync_engine, "connect", _on_sqlite_connect)
        logger.debug("Created database engine for {}", make_url(database_url).render_as_string())
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the session factory.

    Objects stay loaded after commit so the sync engine can keep using
    rows it flushed in an earlier batch.
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_session(auto_commit: bool = True) -> AsyncGenerator[AsyncSession, None]:
    """Open a session, rolling back on error.

    Usage:
        async with get_session(auto_commit=False) as session:
            store = MirrorStore(session)

    Args:
        auto_commit: Commit on clean exit. Pass False when a CommitManager
            owns commit boundaries.
    """
    async with get_session_factory()() as session:
        try:
            yield session
            if auto_commit:
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_tables() -> None:
    """Create the mirror tables that do not exist yet."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close every connection and forget the engine."""
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
