"""Repository for Comment model operations."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import Comment
from github_org_mirror.schemas import CommentUpsert

from .base import BaseRepository

# A comment seen through a side channel (e.g. a discussion answer) arrives
# without the parent it was first stored under.
PARENT_FIELDS = ("issue_id", "pull_request_id", "discussion_id", "review_id")


class CommentRepository(BaseRepository[Comment]):
    """Repository for comments on any parent type."""

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, Comment, write_lock)

    async def upsert(self, comment: CommentUpsert) -> Comment:
        """Create or update a comment.

        A null parent column never clears a parent stored earlier.
        """
        return await self._upsert(comment.model_dump(), keep_existing=PARENT_FIELDS)
