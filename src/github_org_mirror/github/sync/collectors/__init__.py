"""Per-resource collectors.

Each collector pages one kind of connection for a repository, applies the
sync window, upserts what it keeps, and reports the latest timestamp seen.
"""

from .base import Pager, SyncContext, dig
from .comments import CommentCollector
from .discussions import DiscussionCollector
from .issues import IssueCollector
from .open_items import OpenItemsCollector
from .pull_requests import PullRequestCollector
from .repositories import RepositoryCollectionResult, RepositoryCollector
from .reviews import ReviewCollectionResult, ReviewCollector

__all__ = [
    "CommentCollector",
    "DiscussionCollector",
    "IssueCollector",
    "OpenItemsCollector",
    "Pager",
    "PullRequestCollector",
    "RepositoryCollectionResult",
    "RepositoryCollector",
    "ReviewCollectionResult",
    "ReviewCollector",
    "SyncContext",
    "dig",
]
