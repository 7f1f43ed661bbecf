"""Pydantic schemas for GitHub Org Mirror.

- ``graphql``: parsed GitHub GraphQL nodes (response side)
- ``mirror``: validated upsert inputs for the store (write side)
"""

from .base import GraphQLModel, SchemaBase
from .graphql import (
    Actor,
    CommentNode,
    Connection,
    DiscussionCategory,
    DiscussionNode,
    IssueNode,
    NodeRef,
    PageInfo,
    ProjectFieldValue,
    ProjectItemNode,
    ProjectRef,
    PullRequestNode,
    ReactionNode,
    RepositoryNode,
    ReviewNode,
    ReviewRequestNode,
    ReviewThreadNode,
    TimelineEvent,
    connection_items,
)
from .mirror import (
    CommentUpsert,
    DiscussionUpsert,
    IssueUpsert,
    PullRequestUpsert,
    ReactionUpsert,
    RepositoryUpsert,
    ReviewRequestUpsert,
    ReviewUpsert,
    UserUpsert,
)

__all__ = [
    # Base
    "GraphQLModel",
    "SchemaBase",
    # GraphQL nodes
    "Actor",
    "CommentNode",
    "Connection",
    "DiscussionCategory",
    "DiscussionNode",
    "IssueNode",
    "NodeRef",
    "PageInfo",
    "ProjectFieldValue",
    "ProjectItemNode",
    "ProjectRef",
    "PullRequestNode",
    "ReactionNode",
    "RepositoryNode",
    "ReviewNode",
    "ReviewRequestNode",
    "ReviewThreadNode",
    "TimelineEvent",
    "connection_items",
    # Upserts
    "CommentUpsert",
    "DiscussionUpsert",
    "IssueUpsert",
    "PullRequestUpsert",
    "ReactionUpsert",
    "RepositoryUpsert",
    "ReviewRequestUpsert",
    "ReviewUpsert",
    "UserUpsert",
]
