"""Repository for ReviewRequest model operations."""

import asyncio
from collections.abc import Collection
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from github_org_mirror.db.models import ReviewRequest
from github_org_mirror.schemas import ReviewRequestUpsert

from .base import BaseRepository

SUPERSEDED_REASON = "superseded_by_newer_request"


class ReviewRequestRepository(BaseRepository[ReviewRequest]):
    """Repository for pull request review requests.

    Manages the lifecycle of a request:
    - Upserting a request (one active request per reviewer and pull request)
    - Listing still-pending requests per pull request
    - Marking the matching request removed
    """

    def __init__(
        self,
        session: AsyncSession,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        super().__init__(session, ReviewRequest, write_lock)

    # -------------------------------------------------------------------------
    # Query Methods
    # -------------------------------------------------------------------------

    async def list_pending_by_pull_request_ids(
        self,
        pull_request_ids: Collection[str],
    ) -> dict[str, list[ReviewRequest]]:
        """Get active requests grouped by pull request.

        Args:
            pull_request_ids: Pull request node ids

        Returns:
            Map of pull request id to its active requests (oldest first).
            Pull requests without active requests map to an empty list.
        """
        pending: dict[str, list[ReviewRequest]] = {pr_id: [] for pr_id in pull_request_ids}
        if not pending:
            return pending

        stmt = (
            select(ReviewRequest)
            .where(
                ReviewRequest.pull_request_id.in_(list(pending)),
                ReviewRequest.removed_at.is_(None),
            )
            .order_by(ReviewRequest.requested_at)
        )
        result = await self._session.execute(stmt)
        for request in result.scalars().all():
            pending[request.pull_request_id].append(request)
        return pending

    # -------------------------------------------------------------------------
    # Create/Update Methods
    # -------------------------------------------------------------------------

    async def upsert(self, request: ReviewRequestUpsert) -> ReviewRequest:
        """Create or update a review request.

        A new row starts active. An existing row keeps its removal state,
        so replaying the event that created it never reopens it. Once the
        row is active, older active requests for the same reviewer on the
        same pull request are closed at the newest request time.
        """
        values = request.model_dump()
        if not await self.exists(values["id"]):
            values["removed_at"] = None
            values["removed_data"] = None
        entity = await self._upsert(values)
        if entity.removed_at is None:
            await self._supersede_older(entity.pull_request_id, entity.reviewer_id)
        return entity

    async def _supersede_older(self, pull_request_id: str, reviewer_id: str) -> int:
        """Keep only the newest active request for one reviewer on one pull request."""
        stmt = (
            select(ReviewRequest)
            .where(
                ReviewRequest.pull_request_id == pull_request_id,
                ReviewRequest.reviewer_id == reviewer_id,
                ReviewRequest.removed_at.is_(None),
            )
            .order_by(ReviewRequest.requested_at.desc(), ReviewRequest.id.desc())
        )
        newest, *older = (await self._session.scalars(stmt)).all()
        for request in older:
            request.removed_at = newest.requested_at
            request.removed_data = {
                "reason": SUPERSEDED_REASON,
                "requestId": request.id,
                "supersededBy": newest.id,
            }
        if older:
            await self.flush()
        return len(older)

    async def mark_removed(
        self,
        pull_request_id: str,
        reviewer_id: str,
        removed_at: datetime,
        raw: dict[str, Any] | None = None,
    ) -> ReviewRequest | None:
        """Mark the request a removal applies to as removed.

        Targets the most recent request for the pair that was made at or
        before ``removed_at`` and is still active, or was removed after
        ``removed_at`` (an out-of-order replay moves the removal earlier).

        Args:
            pull_request_id: Pull request node id
            reviewer_id: Reviewer node id
            removed_at: When the request was withdrawn
            raw: Payload describing the removal

        Returns:
            Updated request, or None if no request matches
        """
        stmt = (
            select(ReviewRequest)
            .where(
                ReviewRequest.pull_request_id == pull_request_id,
                ReviewRequest.reviewer_id == reviewer_id,
                ReviewRequest.requested_at <= removed_at,
                or_(
                    ReviewRequest.removed_at.is_(None),
                    ReviewRequest.removed_at > removed_at,
                ),
            )
            .order_by(ReviewRequest.requested_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        request = result.scalar_one_or_none()
        if request is None:
            return None

        request.removed_at = removed_at
        request.removed_data = raw or {}
        await self.flush()
        return request
