"""GraphQL response builders and a scripted request executor.

Builders return dicts in the camelCase shape GitHub's GraphQL API returns,
ready for ``model_validate`` or for feeding collectors through a
``ScriptedExecutor``.
"""

from collections.abc import Callable
from typing import Any

from tests.conftest import JAN_05_ISO, JAN_10_ISO


# -----------------------------------------------------------------------------
# Scripted Executor
# -----------------------------------------------------------------------------
class ScriptedExecutor:
    """Stand-in for RequestExecutor that replays canned responses.

    Each query document maps to either a list of responses (returned in
    order, one per call) or a callable taking the variables. Exceptions in
    a response list are raised instead of returned. A query with no script
    left returns an empty ``data`` object.

    Usage:
        executor = ScriptedExecutor({
            REPOSITORY_ISSUES_QUERY: [issues_page_1, issues_page_2],
            ISSUE_COMMENTS_QUERY: lambda variables: comments_for(variables["number"]),
        })
    """

    def __init__(self, script: dict[str, Any] | None = None) -> None:
        self._script: dict[str, Any] = {
            query: list(value) if isinstance(value, list) else value
            for query, value in (script or {}).items()
        }
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def execute(
        self,
        query: str,
        variables: dict[str, Any],
        *,
        context: str | None = None,
        max_attempts: int | None = None,
    ) -> dict[str, Any]:
        self.calls.append((query, dict(variables)))
        entry = self._script.get(query)
        if entry is None:
            return {}
        if callable(entry):
            response = entry(variables)
        elif entry:
            response = entry.pop(0)
        else:
            return {}
        if isinstance(response, BaseException):
            raise response
        return response

    def calls_for(self, query: str) -> list[dict[str, Any]]:
        """Variables of every call made with one query document."""
        return [variables for called, variables in self.calls if called == query]


def by_number(responses: dict[int, Any]) -> Callable[[dict[str, Any]], Any]:
    """Script entry that answers per parent ``number`` (empty data for others)."""

    def _respond(variables: dict[str, Any]) -> Any:
        response = responses.get(variables.get("number"), {})
        if isinstance(response, BaseException):
            raise response
        return response

    return _respond


# -----------------------------------------------------------------------------
# Connections & Wrappers
# -----------------------------------------------------------------------------
def connection(
    nodes: list[dict[str, Any] | None],
    *,
    has_next_page: bool = False,
    end_cursor: str | None = None,
) -> dict[str, Any]:
    """A connection page."""
    return {
        "pageInfo": {"hasNextPage": has_next_page, "endCursor": end_cursor},
        "nodes": nodes,
    }


def organization_response(page: dict[str, Any]) -> dict[str, Any]:
    """``data`` for the organization repositories query."""
    return {"organization": {"repositories": page}}


def repository_response(field: str, page: dict[str, Any]) -> dict[str, Any]:
    """``data`` for a repository-level connection (issues, pullRequests, discussions)."""
    return {"repository": {field: page}}


def child_response(parent: str, field: str, page: dict[str, Any]) -> dict[str, Any]:
    """``data`` for a child connection, e.g. ("pullRequest", "reviews")."""
    return {"repository": {parent: {field: page}}}


# -----------------------------------------------------------------------------
# Nodes
# -----------------------------------------------------------------------------
def actor(id: str = "U_alice", login: str = "alice", typename: str = "User") -> dict[str, Any]:
    return {"__typename": typename, "id": id, "login": login}


def team(id: str = "T_core", name: str = "core") -> dict[str, Any]:
    return {"__typename": "Team", "id": id, "name": name}


def repository_node(
    id: str = "R_server",
    name: str = "prebid-server",
    owner: str = "prebid",
    updated_at: str = JAN_10_ISO,
) -> dict[str, Any]:
    return {
        "id": id,
        "name": name,
        "nameWithOwner": f"{owner}/{name}",
        "url": f"https://github.com/{owner}/{name}",
        "isPrivate": False,
        "createdAt": JAN_05_ISO,
        "updatedAt": updated_at,
        "owner": {"__typename": "Organization", "id": f"O_{owner}", "login": owner},
    }


def reaction(id: str, user: dict[str, Any] | None = None, content: str = "THUMBS_UP") -> dict[str, Any]:
    return {"id": id, "content": content, "createdAt": JAN_10_ISO, "user": user or actor()}


def project_item(
    id: str = "PVTI_1",
    title: str = "Roadmap",
    status: str | None = "In Progress",
    status_updated_at: str | None = JAN_10_ISO,
) -> dict[str, Any]:
    value = None
    if status is not None:
        value = {
            "__typename": "ProjectV2ItemFieldSingleSelectValue",
            "name": status,
            "updatedAt": status_updated_at,
        }
    return {
        "id": id,
        "createdAt": JAN_05_ISO,
        "updatedAt": status_updated_at,
        "project": {"id": "PVT_1", "title": title},
        "status": value,
    }


def issue_node(
    id: str = "I_1",
    number: int = 1,
    updated_at: str | None = JAN_10_ISO,
    *,
    author: dict[str, Any] | None = None,
    assignees: list[dict[str, Any]] | None = None,
    reactions: list[dict[str, Any]] | None = None,
    project_items: list[dict[str, Any]] | None = None,
    repository: dict[str, Any] | None = None,
    typename: str | None = None,
) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": id,
        "number": number,
        "title": f"Issue {number}",
        "state": "OPEN",
        "url": f"https://github.com/prebid/prebid-server/issues/{number}",
        "createdAt": JAN_05_ISO,
        "updatedAt": updated_at,
        "closedAt": None,
        "author": author if author is not None else actor(),
        "assignees": {"nodes": assignees or []},
        "reactions": {"nodes": reactions or []},
        "projectItems": {"nodes": project_items or []},
    }
    if repository is not None:
        node["repository"] = repository
    if typename is not None:
        node["__typename"] = typename
    return node


def timeline_event(
    typename: str,
    id: str | None,
    created_at: str | None,
    reviewer: dict[str, Any] | None,
) -> dict[str, Any]:
    return {
        "__typename": typename,
        "id": id,
        "createdAt": created_at,
        "requestedReviewer": reviewer,
    }


def review_request_node(id: str | None, reviewer: dict[str, Any] | None) -> dict[str, Any]:
    return {"id": id, "requestedReviewer": reviewer}


def pull_request_node(
    id: str = "PR_1",
    number: int = 100,
    updated_at: str | None = JAN_10_ISO,
    *,
    timeline: list[dict[str, Any]] | None = None,
    review_requests: list[dict[str, Any]] | None = None,
    assignees: list[dict[str, Any]] | None = None,
    merged_by: dict[str, Any] | None = None,
    repository: dict[str, Any] | None = None,
    typename: str | None = None,
) -> dict[str, Any]:
    node = issue_node(
        id,
        number,
        updated_at,
        assignees=assignees,
        repository=repository,
        typename=typename,
    )
    node.pop("projectItems")
    node.update(
        {
            "url": f"https://github.com/prebid/prebid-server/pull/{number}",
            "merged": merged_by is not None,
            "mergedAt": JAN_10_ISO if merged_by is not None else None,
            "mergedBy": merged_by,
            "isDraft": False,
            "timelineItems": {"nodes": timeline or []},
            "reviewRequests": {"nodes": review_requests or []},
        }
    )
    return node


def discussion_node(
    id: str = "D_1",
    number: int = 7,
    updated_at: str | None = JAN_10_ISO,
    *,
    answer: dict[str, Any] | None = None,
    repository: dict[str, Any] | None = None,
    typename: str | None = None,
) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": id,
        "number": number,
        "title": f"Discussion {number}",
        "closed": False,
        "createdAt": JAN_05_ISO,
        "updatedAt": updated_at,
        "author": actor(),
        "category": {"id": "DIC_1", "name": "Q&A"},
        "reactions": {"nodes": []},
        "answer": answer,
    }
    if repository is not None:
        node["repository"] = repository
    if typename is not None:
        node["__typename"] = typename
    return node


def comment_node(
    id: str,
    updated_at: str | None = JAN_10_ISO,
    *,
    created_at: str | None = JAN_05_ISO,
    author: dict[str, Any] | None = None,
    replies: list[dict[str, Any]] | None = None,
    review_id: str | None = None,
    reactions: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    node: dict[str, Any] = {
        "id": id,
        "author": author if author is not None else actor("U_bob", "bob"),
        "createdAt": created_at,
        "updatedAt": updated_at,
        "body": f"comment {id}",
        "reactions": {"nodes": reactions or []},
    }
    if replies is not None:
        node["replies"] = {"nodes": replies}
    if review_id is not None:
        node["pullRequestReview"] = {"id": review_id}
    return node


def review_node(
    id: str,
    submitted_at: str | None = JAN_10_ISO,
    state: str = "APPROVED",
) -> dict[str, Any]:
    return {
        "id": id,
        "author": actor("U_carol", "carol"),
        "submittedAt": submitted_at,
        "state": state,
        "body": "",
    }


def review_thread(id: str, comments: list[dict[str, Any]]) -> dict[str, Any]:
    return {"id": id, "comments": {"nodes": comments}}
