"""Pydantic schemas for parsing GitHub GraphQL responses.

These schemas map to the documents in ``github_org_mirror.github.queries``.
Timestamps stay as strings: an unparseable timestamp excludes a node from
the sync window instead of failing the whole page.
See: https://docs.github.com/en/graphql/reference/objects
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import Field

from github_org_mirror.timestamps import parse_timestamp

from .base import GraphQLModel
from .mirror import (
    CommentUpsert,
    DiscussionUpsert,
    IssueUpsert,
    PullRequestUpsert,
    ReactionUpsert,
    RepositoryUpsert,
    ReviewUpsert,
    UserUpsert,
)

NodeT = TypeVar("NodeT")


# -----------------------------------------------------------------------------
# Connections
# -----------------------------------------------------------------------------
class PageInfo(GraphQLModel):
    """Cursor pagination info."""

    has_next_page: bool = False
    end_cursor: str | None = None


class Connection(GraphQLModel, Generic[NodeT]):
    """A cursor-paginated list of nodes."""

    page_info: PageInfo | None = None
    nodes: list[NodeT | None] | None = None
    total_count: int | None = None

    def items(self) -> list[NodeT]:
        """Non-null nodes in page order."""
        return [node for node in self.nodes or [] if node is not None]

    @property
    def has_next_page(self) -> bool:
        """True if the connection reports another page."""
        return bool(self.page_info and self.page_info.has_next_page)

    @property
    def end_cursor(self) -> str | None:
        """Cursor for the next page."""
        return self.page_info.end_cursor if self.page_info else None


def connection_items(connection: Connection[NodeT] | None) -> list[NodeT]:
    """Items of an optional connection."""
    return connection.items() if connection is not None else []


class NodeRef(GraphQLModel):
    """Reference to another node by id."""

    id: str | None = None


# -----------------------------------------------------------------------------
# Actors & Reactions
# -----------------------------------------------------------------------------
class Actor(GraphQLModel):
    """User, Organization, Bot, Mannequin or Team reference."""

    id: str | None = None
    login: str | None = None
    name: str | None = None
    avatar_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def to_upsert(self) -> UserUpsert | None:
        """Convert to a user upsert, or None for actors without an id."""
        if not self.id:
            return None
        return UserUpsert(
            id=self.id,
            login=self.login,
            name=self.name,
            avatar_url=self.avatar_url,
            typename=self.typename,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            data=self.raw(),
        )


class ReactionNode(GraphQLModel):
    """Emoji reaction on an issue, pull request, discussion or comment."""

    id: str | None = None
    content: str | None = None
    created_at: str | None = None
    user: Actor | None = None

    def to_upsert(self, subject_type: str, subject_id: str, user_id: str | None) -> ReactionUpsert:
        """Convert to a reaction upsert for the given subject."""
        return ReactionUpsert(
            id=self.id or "",
            subject_type=subject_type,
            subject_id=subject_id,
            user_id=user_id,
            content=self.content,
            github_created_at=parse_timestamp(self.created_at),
            data=self.raw(),
        )


# -----------------------------------------------------------------------------
# Projects
# -----------------------------------------------------------------------------
class ProjectRef(GraphQLModel):
    """Project (v2) reference."""

    id: str | None = None
    title: str | None = None


class ProjectFieldValue(GraphQLModel):
    """Value of a project item's status field.

    Only one of the label-bearing fields is set, depending on the field
    type (single select, iteration, text, number, date).
    """

    name: str | None = None
    title: str | None = None
    text: str | None = None
    number: float | None = None
    date: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ProjectItemNode(GraphQLModel):
    """Membership of an issue or pull request in a project board."""

    id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    project: ProjectRef | None = None
    status: ProjectFieldValue | None = None


# -----------------------------------------------------------------------------
# Repository
# -----------------------------------------------------------------------------
class RepositoryNode(GraphQLModel):
    """Repository of the mirrored organization."""

    id: str
    database_id: int | None = None
    name: str
    name_with_owner: str
    url: str | None = None
    is_private: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None
    owner: Actor | None = None

    @property
    def owner_and_name(self) -> tuple[str, str]:
        """Split ``nameWithOwner`` into (owner, name)."""
        owner, _, name = self.name_with_owner.partition("/")
        return owner, name or self.name

    def to_upsert(self, owner_id: str | None) -> RepositoryUpsert:
        """Convert to a repository upsert."""
        return RepositoryUpsert(
            id=self.id,
            name=self.name,
            name_with_owner=self.name_with_owner,
            owner_id=owner_id,
            url=self.url,
            is_private=self.is_private,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            data=self.raw(),
        )


# -----------------------------------------------------------------------------
# Comments & Reviews
# -----------------------------------------------------------------------------
class CommentNode(GraphQLModel):
    """Issue, pull request, review or discussion comment."""

    id: str
    author: Actor | None = None
    created_at: str | None = None
    updated_at: str | None = None
    url: str | None = None
    body: str | None = None
    reactions: Connection[ReactionNode] | None = None
    pull_request_review: NodeRef | None = None
    replies: Connection[CommentNode] | None = None

    @property
    def activity_timestamp(self) -> str | None:
        """Timestamp used for the sync window (last edit, else creation)."""
        return self.updated_at or self.created_at

    def to_upsert(
        self,
        *,
        author_id: str | None,
        issue_id: str | None = None,
        pull_request_id: str | None = None,
        discussion_id: str | None = None,
        review_id: str | None = None,
    ) -> CommentUpsert:
        """Convert to a comment upsert attached to one parent."""
        return CommentUpsert(
            id=self.id,
            issue_id=issue_id,
            pull_request_id=pull_request_id,
            discussion_id=discussion_id,
            review_id=review_id,
            author_id=author_id,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            data=self.raw(),
        )


class ReviewNode(GraphQLModel):
    """Pull request review."""

    id: str
    author: Actor | None = None
    submitted_at: str | None = None
    state: str | None = None
    body: str | None = None
    url: str | None = None

    def to_upsert(self, pull_request_id: str, author_id: str | None) -> ReviewUpsert:
        """Convert to a review upsert."""
        return ReviewUpsert(
            id=self.id,
            pull_request_id=pull_request_id,
            author_id=author_id,
            state=self.state,
            github_submitted_at=parse_timestamp(self.submitted_at),
            data=self.raw(),
        )


class ReviewThreadNode(GraphQLModel):
    """Review thread holding inline review comments."""

    id: str | None = None
    comments: Connection[CommentNode] | None = None


# -----------------------------------------------------------------------------
# Review Requests
# -----------------------------------------------------------------------------
class TimelineEvent(GraphQLModel):
    """Pull request timeline item (review request events are the ones used)."""

    id: str | None = None
    created_at: str | None = None
    requested_reviewer: Actor | None = None


class ReviewRequestNode(GraphQLModel):
    """Currently pending review request."""

    id: str | None = None
    requested_reviewer: Actor | None = None


# -----------------------------------------------------------------------------
# Issues, Pull Requests, Discussions
# -----------------------------------------------------------------------------
class IssueNode(GraphQLModel):
    """Issue with its project memberships and reactions."""

    id: str
    number: int
    title: str | None = None
    state: str | None = None
    url: str | None = None
    body: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    author: Actor | None = None
    assignees: Connection[Actor] | None = None
    reactions: Connection[ReactionNode] | None = None
    project_items: Connection[ProjectItemNode] | None = None
    repository: RepositoryNode | None = None

    def to_upsert(
        self,
        repository_id: str,
        author_id: str | None,
        raw: dict[str, Any] | None = None,
    ) -> IssueUpsert:
        """Convert to an issue upsert.

        Args:
            repository_id: Owning repository node id
            author_id: Author node id (None for ghost authors)
            raw: Payload to store (defaults to the node itself)
        """
        return IssueUpsert(
            id=self.id,
            number=self.number,
            repository_id=repository_id,
            author_id=author_id,
            title=self.title,
            state=self.state,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            github_closed_at=parse_timestamp(self.closed_at),
            data=raw if raw is not None else self.raw(),
        )


class PullRequestNode(IssueNode):
    """Pull request with merge info, timeline events and pending reviewers."""

    merged: bool | None = None
    merged_at: str | None = None
    merged_by: Actor | None = None
    is_draft: bool | None = None
    timeline_items: Connection[TimelineEvent] | None = None
    review_requests: Connection[ReviewRequestNode] | None = None

    def to_pull_request_upsert(
        self,
        repository_id: str,
        author_id: str | None,
        merged_by_id: str | None,
    ) -> PullRequestUpsert:
        """Convert to a pull request upsert."""
        return PullRequestUpsert(
            id=self.id,
            number=self.number,
            repository_id=repository_id,
            author_id=author_id,
            merged_by_id=merged_by_id,
            title=self.title,
            state=self.state,
            merged=self.merged,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            github_closed_at=parse_timestamp(self.closed_at),
            github_merged_at=parse_timestamp(self.merged_at),
            data=self.raw(),
        )


class DiscussionCategory(GraphQLModel):
    """Discussion category."""

    id: str | None = None
    name: str | None = None


class DiscussionNode(GraphQLModel):
    """Repository discussion with its accepted answer."""

    id: str
    number: int
    title: str | None = None
    url: str | None = None
    body: str | None = None
    closed: bool | None = None
    created_at: str | None = None
    updated_at: str | None = None
    closed_at: str | None = None
    answer_chosen_at: str | None = None
    author: Actor | None = None
    category: DiscussionCategory | None = None
    reactions: Connection[ReactionNode] | None = None
    answer: CommentNode | None = None
    repository: RepositoryNode | None = None

    def to_upsert(self, repository_id: str, author_id: str | None) -> DiscussionUpsert:
        """Convert to a discussion upsert."""
        return DiscussionUpsert(
            id=self.id,
            number=self.number,
            repository_id=repository_id,
            author_id=author_id,
            title=self.title,
            closed=self.closed,
            category=self.category.name if self.category else None,
            answer_id=self.answer.id if self.answer else None,
            github_created_at=parse_timestamp(self.created_at),
            github_updated_at=parse_timestamp(self.updated_at),
            github_closed_at=parse_timestamp(self.closed_at),
            data=self.raw(),
        )


CommentNode.model_rebuild()
