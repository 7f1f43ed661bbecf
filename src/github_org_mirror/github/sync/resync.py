"""Targeted Node Resync - re-import one issue, pull request or discussion.

The node is fetched directly by its global id, outside any sync window,
and goes through the same upserts, reconciliation and child collection as
the bulk passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy.exc import SQLAlchemyError

from github_org_mirror.github.exceptions import NodeResyncError
from github_org_mirror.github.queries import NODE_QUERY
from github_org_mirror.logging import bind_node
from github_org_mirror.schemas.graphql import (
    DiscussionNode,
    IssueNode,
    PullRequestNode,
    RepositoryNode,
    connection_items,
)

from .collectors import (
    CommentCollector,
    DiscussionCollector,
    IssueCollector,
    PullRequestCollector,
    RepositoryCollector,
    SyncContext,
)
from .commit_manager import CommitManager
from .enums import NodeKind
from .nodes import classify_node
from .orchestrator import failure_message
from .reconcile import ReviewRequestReconciler
from .results import CollectionResult
from .window import TimeBounds

if TYPE_CHECKING:
    from github_org_mirror.db.store import MirrorStore
    from github_org_mirror.github.retry import RequestExecutor


@dataclass
class NodeResyncResult:
    """Outcome of one node resync."""

    node_id: str
    kind: NodeKind
    repository: str
    """``owner/name`` of the node's repository."""

    comments: CollectionResult = field(default_factory=CollectionResult)
    reviews: CollectionResult = field(default_factory=CollectionResult)
    review_requests_added: int = 0
    review_requests_removed: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "node_id": self.node_id,
            "type": self.kind.value,
            "repository": self.repository,
            "comments": self.comments.count,
            "reviews": self.reviews.count,
            "review_requests_added": self.review_requests_added,
            "review_requests_removed": self.review_requests_removed,
        }


class NodeResync:
    """Re-imports single nodes by global id.

    Usage:
        resync = NodeResync(executor, store, target_project="Roadmap")
        result = await resync.resync("I_kwDOAbc123")
    """

    def __init__(
        self,
        executor: RequestExecutor,
        store: MirrorStore,
        *,
        target_project: str | None = None,
        commit_batch_size: int = 25,
    ) -> None:
        self._executor = executor
        self._store = store
        self._target_project = target_project
        self._commit_batch_size = commit_batch_size

    async def resync(self, node_id: str) -> NodeResyncResult:
        """Fetch one node and re-import it with its children.

        Args:
            node_id: Global node id of an issue, pull request or discussion

        Returns:
            What was re-imported

        Raises:
            NodeResyncError: On any failure, naming the node
        """
        trimmed = node_id.strip()
        if not trimmed:
            raise NodeResyncError(node_id, "Activity id is required.")

        log = bind_node(trimmed)
        log.info("Starting re-import of {}", trimmed)

        ctx = SyncContext(
            executor=self._executor,
            store=self._store,
            commits=CommitManager(self._store, self._commit_batch_size),
            bounds=TimeBounds(),
            target_project=self._target_project,
        )
        try:
            result = await self._resync(ctx, trimmed)
            await ctx.commits.finalize()
        except NodeResyncError as e:
            log.error("{}", e)
            raise
        except Exception as e:
            log.error("Re-import of {} failed: {}", trimmed, failure_message(e))
            if isinstance(e, SQLAlchemyError):
                await self._store.rollback()
                ctx.commits.discard()
            raise NodeResyncError(trimmed, failure_message(e)) from e

        log.info("Completed re-import of {} {} in {}", result.kind.value, trimmed, result.repository)
        return result

    async def _resync(self, ctx: SyncContext, node_id: str) -> NodeResyncResult:
        data = await ctx.executor.execute(NODE_QUERY, {"id": node_id}, context=f"node {node_id}")
        node = data.get("node") if isinstance(data, dict) else None
        if not isinstance(node, dict):
            raise NodeResyncError(node_id, "Node was not found.")

        typename = node.get("__typename")
        kind = classify_node(typename)
        if kind == NodeKind.UNSUPPORTED:
            raise NodeResyncError(node_id, f"Unsupported node type {typename or 'unknown'}.")

        raw_repository = node.get("repository")
        if not isinstance(raw_repository, dict):
            raise NodeResyncError(node_id, "Node has no repository.")
        repository = RepositoryNode.model_validate(raw_repository)
        await RepositoryCollector(ctx).store(repository)

        result = NodeResyncResult(
            node_id=node_id,
            kind=kind,
            repository=repository.name_with_owner,
        )
        comments = CommentCollector(ctx)

        if kind == NodeKind.ISSUE:
            issue = IssueNode.model_validate(node)
            previous = await ctx.store.fetch_issue_raw_map([issue.id])
            await IssueCollector(ctx, comments).store(repository, issue, previous.get(issue.id))
            result.comments = await comments.collect_for_issue(repository, issue)

        elif kind == NodeKind.PULL_REQUEST:
            pull_request = PullRequestNode.model_validate(node)
            collector = PullRequestCollector(ctx, comments)
            await collector.store(repository, pull_request)

            pending = await ctx.store.list_pending_review_requests_by_pull_request_ids(
                [pull_request.id]
            )
            reconciliation = await ReviewRequestReconciler(ctx.store).reconcile(
                pull_request.id,
                connection_items(pull_request.review_requests),
                pending.get(pull_request.id, []),
            )
            result.review_requests_added = reconciliation.added
            result.review_requests_removed = reconciliation.removed

            children = await collector.collect_children(repository, pull_request)
            result.comments = children.comments
            result.reviews = children.reviews

        else:
            discussion = DiscussionNode.model_validate(node)
            await DiscussionCollector(ctx, comments).store(repository, discussion)
            result.comments = await comments.collect_for_discussion(repository, discussion)

        return result
