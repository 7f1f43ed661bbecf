"""Review request reconciliation.

GitHub's ``reviewRequests`` connection lists who is currently requested on
a pull request; it does not say when a request was withdrawn. Comparing it
with the requests the store still holds as pending reveals withdrawals the
timeline window missed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from github_org_mirror.logging import get_logger
from github_org_mirror.schemas import ReviewRequestUpsert
from github_org_mirror.timestamps import ensure_utc, to_iso, utc_now

from ..nodes import is_team

if TYPE_CHECKING:
    from github_org_mirror.db.models import ReviewRequest
    from github_org_mirror.db.store import MirrorStore
    from github_org_mirror.schemas import ReviewRequestNode

logger = get_logger(__name__)

REMOVAL_REASON = "missing_from_live_review_requests"


@dataclass
class ReviewRequestReconciliation:
    """Counts from reconciling one pull request."""

    added: int = 0
    """Requests stored for reviewers that had no pending request."""

    removed: int = 0
    """Pending requests marked removed."""


class ReviewRequestReconciler:
    """Bring stored pending review requests in line with the live snapshot.

    Usage:
        reconciler = ReviewRequestReconciler(store)
        pending = await store.list_pending_review_requests_by_pull_request_ids([pr.id])
        result = await reconciler.reconcile(pr.id, live_requests, pending[pr.id])
    """

    def __init__(self, store: MirrorStore) -> None:
        self._store = store

    async def reconcile(
        self,
        pull_request_id: str,
        live: list[ReviewRequestNode],
        pending: list[ReviewRequest],
        now: datetime | None = None,
    ) -> ReviewRequestReconciliation:
        """Reconcile one pull request.

        Team requests are ignored. Store failures propagate.

        Args:
            pull_request_id: Pull request node id
            live: Current ``reviewRequests`` nodes
            pending: Stored requests with no removal time
            now: Reconciliation time (request time of new requests,
                removal time of withdrawn ones)

        Returns:
            Added/removed counts
        """
        now = ensure_utc(now) if now is not None else utc_now()
        result = ReviewRequestReconciliation()
        pending_by_reviewer: dict[str, ReviewRequest] = {}
        for request in pending:
            # pending is oldest first; the newest request per reviewer is reused
            pending_by_reviewer[request.reviewer_id] = request

        active: set[str] = set()
        for node in live:
            reviewer = node.requested_reviewer
            if reviewer is None or is_team(reviewer.typename):
                continue
            user = reviewer.to_upsert()
            if user is None:
                continue

            await self._store.upsert_user(user)

            existing = pending_by_reviewer.get(user.id)
            if existing is not None:
                # keep the stored row so the pair has a single active request
                request_id = existing.id
                requested_at = ensure_utc(existing.requested_at)
                data: dict[str, Any] = existing.data or node.raw()
            else:
                request_id = node.id or f"{pull_request_id}:{user.id}"
                requested_at = now
                data = node.raw()
                result.added += 1

            await self._store.upsert_review_request(
                ReviewRequestUpsert(
                    id=request_id,
                    pull_request_id=pull_request_id,
                    reviewer_id=user.id,
                    requested_at=requested_at,
                    data=data,
                )
            )
            active.add(user.id)

        for request in pending:
            if request.reviewer_id in active:
                continue
            removed = await self._store.mark_review_request_removed(
                pull_request_id,
                request.reviewer_id,
                now,
                {
                    "reason": REMOVAL_REASON,
                    "requestId": request.id,
                    "detectedAt": to_iso(now),
                },
            )
            if removed:
                result.removed += 1
                logger.debug(
                    "Review request {} for {} no longer pending on {}",
                    request.id,
                    request.reviewer_id,
                    pull_request_id,
                )

        return result
