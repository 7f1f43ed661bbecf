"""Typename discrimination for GraphQL nodes."""

from .enums import NodeKind, SubjectType

_NODE_KINDS: dict[str, NodeKind] = {
    "Issue": NodeKind.ISSUE,
    "PullRequest": NodeKind.PULL_REQUEST,
    "Discussion": NodeKind.DISCUSSION,
}

_SUBJECT_TYPES: dict[str, SubjectType] = {
    "Issue": SubjectType.ISSUE,
    "PullRequest": SubjectType.PULL_REQUEST,
    "Discussion": SubjectType.DISCUSSION,
    "IssueComment": SubjectType.COMMENT,
    "PullRequestReviewComment": SubjectType.COMMENT,
    "DiscussionComment": SubjectType.COMMENT,
    "CommitComment": SubjectType.COMMENT,
}


def classify_node(typename: str | None) -> NodeKind:
    """Map a ``__typename`` to the node kind (UNSUPPORTED if unknown)."""
    if not typename:
        return NodeKind.UNSUPPORTED
    return _NODE_KINDS.get(typename, NodeKind.UNSUPPORTED)


def reaction_subject_type(typename: str | None, default: SubjectType) -> SubjectType:
    """Resolve the reaction subject type for a node.

    Args:
        typename: The node's ``__typename`` when the response carries it
        default: Subject type implied by where the node was fetched

    Returns:
        Subject type for the node's reactions
    """
    if typename and typename in _SUBJECT_TYPES:
        return _SUBJECT_TYPES[typename]
    return default


def is_team(typename: str | None) -> bool:
    """Check if a requested reviewer is a team (team requests are ignored)."""
    return typename == "Team"
