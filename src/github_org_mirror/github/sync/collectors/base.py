"""Shared plumbing for the per-resource collectors.

``SyncContext`` is the handle every collector receives: the request
executor, the store, the commit manager, and the sync window. Per-resource
lower bounds live in ``since_by_resource`` rather than in module state.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import BaseModel

from github_org_mirror.logging import get_logger
from github_org_mirror.schemas.graphql import Actor, Connection, ReactionNode, connection_items

from ..enums import ResourceKey, SubjectType
from ..window import TimeBounds

if TYPE_CHECKING:
    from github_org_mirror.db.store import MirrorStore
    from github_org_mirror.github.retry import RequestExecutor

    from ..commit_manager import CommitManager

logger = get_logger(__name__)

NodeT = TypeVar("NodeT", bound=BaseModel)


@dataclass
class SyncContext:
    """Everything a collector needs for one sync run."""

    executor: RequestExecutor
    store: MirrorStore
    commits: CommitManager
    org: str = ""
    """Organization login."""

    bounds: TimeBounds = field(default_factory=TimeBounds)
    """Global window (``since`` is the default lower bound)."""

    since_by_resource: dict[ResourceKey, datetime | None] = field(default_factory=dict)
    """Per-resource lower bound overrides."""

    target_project: str | None = None
    """Project board whose statuses are tracked."""

    page_size: int = 50
    """Nodes per top-level connection page."""

    def bounds_for(self, resource: ResourceKey) -> TimeBounds:
        """Window for one resource (its override, else the global since)."""
        since = self.since_by_resource.get(resource)
        return self.bounds.with_since(since if since is not None else self.bounds.since)

    # -------------------------------------------------------------------------
    # Shared Upserts
    # -------------------------------------------------------------------------

    async def upsert_actor(self, actor: Actor | None) -> str | None:
        """Upsert an actor and return its id (None for ghosts and teams without ids)."""
        if actor is None:
            return None
        user = actor.to_upsert()
        if user is None:
            return None
        await self.store.upsert_user(user)
        return user.id

    async def upsert_reactions(
        self,
        reactions: Connection[ReactionNode] | None,
        subject_type: SubjectType,
        subject_id: str,
    ) -> int:
        """Upsert the reactions on one subject.

        Returns:
            Number of reactions stored
        """
        stored = 0
        for reaction in connection_items(reactions):
            if not reaction.id:
                continue
            user_id = await self.upsert_actor(reaction.user)
            await self.store.upsert_reaction(
                reaction.to_upsert(subject_type.value, subject_id, user_id)
            )
            stored += 1
        return stored


# -----------------------------------------------------------------------------
# Pagination
# -----------------------------------------------------------------------------
def dig(data: Any, path: Sequence[str]) -> Any:
    """Follow keys into a response, returning None at the first gap."""
    current = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


@dataclass
class Pager(Generic[NodeT]):
    """Cursor pagination over one connection.

    Usage:
        pager = Pager(ctx.executor, REPOSITORY_ISSUES_QUERY, variables,
                      ("repository", "issues"), IssueNode, context="issues o/r")
        async for page in pager:
            ...

    Iteration ends after the last page, or early when the response has no
    connection at ``path`` (``pager.missing`` is then True).
    """

    executor: RequestExecutor
    query: str
    variables: dict[str, Any]
    path: Sequence[str]
    node_type: type[NodeT]
    context: str = "request"
    pages_fetched: int = 0
    missing: bool = False

    async def __aiter__(self) -> AsyncIterator[Connection[NodeT]]:
        cursor: str | None = None
        while True:
            logger.debug(
                "Fetching {}{}",
                self.context,
                f" (cursor {cursor})" if cursor else "",
            )
            data = await self.executor.execute(
                self.query,
                {**self.variables, "cursor": cursor},
                context=self.context,
            )
            self.pages_fetched += 1

            raw = dig(data, self.path)
            if raw is None:
                self.missing = True
                return

            page = Connection[self.node_type].model_validate(raw)
            yield page

            if not page.has_next_page or not page.end_cursor:
                return
            cursor = page.end_cursor
