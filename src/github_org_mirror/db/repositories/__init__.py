"""Repository pattern implementation for database access.

This module provides repository classes that encapsulate all database
access logic, providing a clean abstraction over SQLAlchemy models.
"""

from .activity import ActivityRepository
from .base import BaseRepository
from .comment import CommentRepository
from .discussion import DiscussionRepository
from .issue import IssueRepository
from .pull_request import PullRequestRepository
from .reaction import ReactionRepository
from .repository import RepositoryRepository
from .review import ReviewRepository
from .review_request import ReviewRequestRepository
from .sync import (
    SyncConfigRepository,
    SyncLogRepository,
    SyncRunRepository,
    SyncStateRepository,
)
from .user import UserRepository

__all__ = [
    "ActivityRepository",
    "BaseRepository",
    "CommentRepository",
    "DiscussionRepository",
    "IssueRepository",
    "PullRequestRepository",
    "ReactionRepository",
    "RepositoryRepository",
    "ReviewRepository",
    "ReviewRequestRepository",
    "SyncConfigRepository",
    "SyncLogRepository",
    "SyncRunRepository",
    "SyncStateRepository",
    "UserRepository",
]
