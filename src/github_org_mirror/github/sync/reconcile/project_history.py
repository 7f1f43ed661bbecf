"""Project status history reconciliation.

GitHub reports an issue's current project board memberships, never the
moment it left a board. Each sync turns the live memberships of the
tracked project into status snapshots and merges them into the history
stored on the issue's raw payload (``projectStatusHistory``). A project
item that was in the stored history but is no longer live gets a
synthetic entry with the ``__PROJECT_REMOVED__`` status.

History is append-only: entries are deduplicated by
(project item id, status, occurred at) and never dropped.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from github_org_mirror.schemas.graphql import connection_items
from github_org_mirror.timestamps import parse_timestamp, to_iso, utc_now

if TYPE_CHECKING:
    from datetime import datetime

    from github_org_mirror.schemas.graphql import IssueNode, ProjectFieldValue, ProjectItemNode

PROJECT_REMOVED_STATUS = "__PROJECT_REMOVED__"
HISTORY_KEY = "projectStatusHistory"


@dataclass
class ProjectStatusEntry:
    """One status observation of a project item."""

    project_item_id: str
    project_title: str | None
    status: str
    occurred_at: str

    @property
    def key(self) -> tuple[str, str, str]:
        """Deduplication key."""
        return (self.project_item_id, self.status, self.occurred_at)

    @property
    def is_removal(self) -> bool:
        return self.status == PROJECT_REMOVED_STATUS

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the raw payload's camelCase shape."""
        return {
            "projectItemId": self.project_item_id,
            "projectTitle": self.project_title,
            "status": self.status,
            "occurredAt": self.occurred_at,
        }

    @classmethod
    def from_dict(cls, data: object) -> ProjectStatusEntry | None:
        """Parse a stored entry, or None if it is malformed."""
        if not isinstance(data, Mapping):
            return None
        item_id = data.get("projectItemId")
        status = data.get("status")
        occurred_at = data.get("occurredAt")
        if not (isinstance(item_id, str) and item_id):
            return None
        if not (isinstance(status, str) and status):
            return None
        if not (isinstance(occurred_at, str) and occurred_at):
            return None
        title = data.get("projectTitle")
        return cls(
            project_item_id=item_id,
            project_title=title if isinstance(title, str) else None,
            status=status,
            occurred_at=occurred_at,
        )


@dataclass
class ProjectHistoryResult:
    """Outcome of reconciling one issue."""

    history: list[ProjectStatusEntry] = field(default_factory=list)
    """Merged history, ascending by occurrence."""

    snapshots: list[ProjectStatusEntry] = field(default_factory=list)
    """Live snapshots of the tracked project."""

    removals: list[ProjectStatusEntry] = field(default_factory=list)
    """Synthetic removal entries added by this reconciliation."""

    entered_target: bool = False
    """A new live status in the tracked project was recorded."""

    def apply_to(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Fold the history into an issue's raw payload."""
        if not self.history:
            return raw
        return {**raw, HISTORY_KEY: [entry.to_dict() for entry in self.history]}


# -----------------------------------------------------------------------------
# Snapshot Extraction
# -----------------------------------------------------------------------------
def normalize_project_name(value: str | None) -> str | None:
    """Trim and lower-case a project title (None if empty)."""
    if not value:
        return None
    normalized = value.strip().lower()
    return normalized or None


def is_target_project(title: str | None, target: str | None) -> bool:
    """Check a project title against the normalized target name."""
    normalized_target = normalize_project_name(target)
    if normalized_target is None:
        return False
    return normalize_project_name(title) == normalized_target


def status_label(value: ProjectFieldValue | None) -> str | None:
    """Label of a status field value.

    The first non-empty of name, title, text, number, date wins.
    """
    if value is None:
        return None
    for text in (value.name, value.title, value.text):
        if text and text.strip():
            return text.strip()
    if value.number is not None:
        number = value.number
        return str(int(number)) if float(number).is_integer() else str(number)
    if value.date and value.date.strip():
        return value.date.strip()
    return None


def status_timestamp(item: ProjectItemNode) -> str | None:
    """When the item's status was last set.

    Prefers the status value's own timestamps over the item's.
    """
    candidates: list[str | None] = []
    if item.status is not None:
        candidates.extend([item.status.updated_at, item.status.created_at])
    candidates.extend([item.updated_at, item.created_at])
    for candidate in candidates:
        if candidate:
            return candidate
    return None


def collect_snapshots(issue: IssueNode, target_project: str | None) -> list[ProjectStatusEntry]:
    """Live status snapshots of the issue in the tracked project."""
    snapshots: list[ProjectStatusEntry] = []
    for item in connection_items(issue.project_items):
        if not item.id:
            continue
        title = item.project.title if item.project else None
        if not is_target_project(title, target_project):
            continue

        label = status_label(item.status)
        occurred_at = status_timestamp(item)
        if not label or not occurred_at:
            continue

        snapshots.append(
            ProjectStatusEntry(
                project_item_id=item.id,
                project_title=title,
                status=label,
                occurred_at=occurred_at,
            )
        )
    return snapshots


def extract_history(raw: object) -> list[ProjectStatusEntry]:
    """Stored history from an issue's raw payload (malformed entries dropped)."""
    if not isinstance(raw, Mapping):
        return []
    stored = raw.get(HISTORY_KEY)
    if not isinstance(stored, list):
        return []
    entries = (ProjectStatusEntry.from_dict(item) for item in stored)
    return [entry for entry in entries if entry is not None]


# -----------------------------------------------------------------------------
# Merge & Removal Detection
# -----------------------------------------------------------------------------
def _compare_occurrence(left: ProjectStatusEntry, right: ProjectStatusEntry) -> int:
    left_time = parse_timestamp(left.occurred_at)
    right_time = parse_timestamp(right.occurred_at)
    if left_time is not None and right_time is not None:
        return (left_time > right_time) - (left_time < right_time)
    return (left.occurred_at > right.occurred_at) - (left.occurred_at < right.occurred_at)


def _compare_for_latest(left: ProjectStatusEntry, right: ProjectStatusEntry) -> int:
    # unparseable timestamps sort first, so they never count as the latest entry
    left_time = parse_timestamp(left.occurred_at)
    right_time = parse_timestamp(right.occurred_at)
    if left_time is None and right_time is None:
        return 0
    if left_time is None:
        return -1
    if right_time is None:
        return 1
    return (left_time > right_time) - (left_time < right_time)


def merge_history(
    existing: Iterable[ProjectStatusEntry],
    additions: Iterable[ProjectStatusEntry],
) -> list[ProjectStatusEntry]:
    """Merge entries into history.

    Duplicates keep the first entry seen, gaining a project title if it
    had none. The result is sorted ascending by occurrence.
    """
    merged: dict[tuple[str, str, str], ProjectStatusEntry] = {}
    for entry in existing:
        merged[entry.key] = ProjectStatusEntry(**vars(entry))

    for entry in additions:
        current = merged.get(entry.key)
        if current is None:
            merged[entry.key] = ProjectStatusEntry(**vars(entry))
        elif not current.project_title and entry.project_title:
            current.project_title = entry.project_title

    return sorted(merged.values(), key=functools.cmp_to_key(_compare_occurrence))


def removal_entries(
    previous: list[ProjectStatusEntry],
    snapshots: list[ProjectStatusEntry],
    detected_at: str | None,
    now: datetime | None = None,
) -> list[ProjectStatusEntry]:
    """Synthetic removals for project items no longer live.

    Args:
        previous: Stored history
        snapshots: Live snapshots
        detected_at: Timestamp of the triggering update (the issue's updatedAt)
        now: Fallback time when ``detected_at`` is missing

    Returns:
        One removal per item that is neither live nor already removed
    """
    if not previous:
        return []

    live_ids = {entry.project_item_id for entry in snapshots}
    occurred_at = detected_at or to_iso(now or utc_now()) or ""

    grouped: dict[str, list[ProjectStatusEntry]] = {}
    for entry in previous:
        grouped.setdefault(entry.project_item_id, []).append(entry)

    removals: list[ProjectStatusEntry] = []
    for item_id, entries in grouped.items():
        if item_id in live_ids:
            continue
        if any(entry.is_removal for entry in entries):
            continue
        latest = sorted(entries, key=functools.cmp_to_key(_compare_for_latest))[-1]
        removals.append(
            ProjectStatusEntry(
                project_item_id=item_id,
                project_title=latest.project_title,
                status=PROJECT_REMOVED_STATUS,
                occurred_at=occurred_at,
            )
        )
    return removals


def reconcile_project_history(
    issue: IssueNode,
    previous_raw: object,
    target_project: str | None,
    now: datetime | None = None,
) -> ProjectHistoryResult:
    """Reconcile an issue's live project memberships with its stored history.

    With no target project configured, the stored history is kept as is.

    Args:
        issue: Freshly fetched issue
        previous_raw: Raw payload stored by the previous sync (or None)
        target_project: Title of the tracked project board
        now: Current time (for removals on issues without updatedAt)

    Returns:
        Merged history, the snapshots and removals it was built from, and
        whether the issue entered a new status in the tracked project
    """
    previous = extract_history(previous_raw)
    if normalize_project_name(target_project) is None:
        return ProjectHistoryResult(history=merge_history(previous, []))

    snapshots = collect_snapshots(issue, target_project)
    removals = removal_entries(previous, snapshots, issue.updated_at, now)
    history = merge_history(previous, [*snapshots, *removals])

    previous_keys = {entry.key for entry in previous}
    entered_target = any(
        entry.key not in previous_keys and not entry.is_removal for entry in snapshots
    )

    return ProjectHistoryResult(
        history=history,
        snapshots=snapshots,
        removals=removals,
        entered_target=entered_target,
    )
