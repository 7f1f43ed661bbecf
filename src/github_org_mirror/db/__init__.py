"""Database module for GitHub Org Mirror."""

from github_org_mirror.db.engine import (
    create_tables,
    dispose_engine,
    get_engine,
    get_session,
    get_session_factory,
)
from github_org_mirror.db.models import (
    ActivityStatus,
    Base,
    Comment,
    Discussion,
    Issue,
    ProjectFieldOverride,
    PullRequest,
    Reaction,
    Repository,
    Review,
    ReviewRequest,
    RunStrategy,
    RunType,
    SyncConfig,
    SyncLog,
    SyncRun,
    SyncState,
    SyncStatus,
    User,
)
from github_org_mirror.db.repositories import BaseRepository
from github_org_mirror.db.store import MirrorStore

__all__ = [
    # Models
    "ActivityStatus",
    "Base",
    "Comment",
    "Discussion",
    "Issue",
    "ProjectFieldOverride",
    "PullRequest",
    "Reaction",
    "Repository",
    "Review",
    "ReviewRequest",
    "RunStrategy",
    "RunType",
    "SyncConfig",
    "SyncLog",
    "SyncRun",
    "SyncState",
    "SyncStatus",
    "User",
    # Engine
    "create_tables",
    "dispose_engine",
    "get_engine",
    "get_session",
    "get_session_factory",
    # Store
    "BaseRepository",
    "MirrorStore",
]
