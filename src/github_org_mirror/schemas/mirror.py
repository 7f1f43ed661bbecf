"""Pydantic schemas for store upserts.

One schema per mirrored table. Every schema carries the raw ``data``
payload that is written alongside the typed columns.
"""

from datetime import datetime
from typing import Any

from pydantic import Field

from .base import SchemaBase


class UserUpsert(SchemaBase):
    """Schema for users (any actor type with a node id)."""

    id: str = Field(min_length=1, description="Global node id")
    login: str | None = Field(default=None, description="Login handle")
    name: str | None = Field(default=None, description="Display name")
    avatar_url: str | None = Field(default=None, description="Avatar URL")
    typename: str | None = Field(default=None, description="GraphQL type (User, Bot, ...)")
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict, description="Raw actor payload")


class RepositoryUpsert(SchemaBase):
    """Schema for repositories."""

    id: str = Field(min_length=1, description="Global node id")
    name: str = Field(description="Repository name")
    name_with_owner: str = Field(description="owner/name")
    owner_id: str | None = None
    url: str | None = None
    is_private: bool | None = None
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class IssueUpsert(SchemaBase):
    """Schema for issues."""

    id: str = Field(min_length=1, description="Global node id")
    number: int = Field(gt=0, description="Issue number")
    repository_id: str
    author_id: str | None = None
    title: str | None = None
    state: str | None = None
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    github_closed_at: datetime | None = None
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Raw issue payload including projectStatusHistory",
    )


class PullRequestUpsert(SchemaBase):
    """Schema for pull requests."""

    id: str = Field(min_length=1, description="Global node id")
    number: int = Field(gt=0, description="Pull request number")
    repository_id: str
    author_id: str | None = None
    merged_by_id: str | None = None
    title: str | None = None
    state: str | None = None
    merged: bool | None = None
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    github_closed_at: datetime | None = None
    github_merged_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class DiscussionUpsert(SchemaBase):
    """Schema for discussions."""

    id: str = Field(min_length=1, description="Global node id")
    number: int = Field(gt=0, description="Discussion number")
    repository_id: str
    author_id: str | None = None
    title: str | None = None
    closed: bool | None = None
    category: str | None = None
    answer_id: str | None = Field(default=None, description="Accepted answer comment id")
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    github_closed_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ReviewUpsert(SchemaBase):
    """Schema for pull request reviews."""

    id: str = Field(min_length=1, description="Global node id")
    pull_request_id: str
    author_id: str | None = None
    state: str | None = None
    github_submitted_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class CommentUpsert(SchemaBase):
    """Schema for comments.

    Exactly one parent is normally set; a null parent never clears a
    parent recorded by an earlier upsert.
    """

    id: str = Field(min_length=1, description="Global node id")
    issue_id: str | None = None
    pull_request_id: str | None = None
    discussion_id: str | None = None
    review_id: str | None = None
    author_id: str | None = None
    github_created_at: datetime | None = None
    github_updated_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ReactionUpsert(SchemaBase):
    """Schema for reactions."""

    id: str = Field(min_length=1, description="Global node id")
    subject_type: str = Field(description="issue, pull_request, discussion or comment")
    subject_id: str
    user_id: str | None = None
    content: str | None = None
    github_created_at: datetime | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class ReviewRequestUpsert(SchemaBase):
    """Schema for review requests."""

    id: str = Field(min_length=1, description="Review request or event id")
    pull_request_id: str
    reviewer_id: str
    requested_at: datetime
    data: dict[str, Any] = Field(default_factory=dict)
