"""Tests for project status history reconciliation."""

from github_org_mirror.github.sync.reconcile import (
    PROJECT_REMOVED_STATUS,
    ProjectStatusEntry,
    merge_history,
    reconcile_project_history,
    removal_entries,
)
from github_org_mirror.github.sync.reconcile.project_history import (
    HISTORY_KEY,
    extract_history,
    status_label,
)
from github_org_mirror.schemas import IssueNode, ProjectFieldValue
from tests.conftest import JAN_05_ISO, JAN_10_ISO, JAN_12_ISO, JAN_15_ISO
from tests.fixtures.graphql_responses import issue_node, project_item


def _issue(*items, updated_at: str = JAN_15_ISO) -> IssueNode:
    return IssueNode.model_validate(issue_node(updated_at=updated_at, project_items=list(items)))


def _stored(*entries: ProjectStatusEntry) -> dict:
    return {HISTORY_KEY: [entry.to_dict() for entry in entries]}


class TestSnapshots:
    """Live memberships of the tracked project."""

    def test_new_status_enters_target(self):
        result = reconcile_project_history(_issue(project_item()), None, "Roadmap")

        assert result.entered_target
        assert [entry.to_dict() for entry in result.history] == [
            {
                "projectItemId": "PVTI_1",
                "projectTitle": "Roadmap",
                "status": "In Progress",
                "occurredAt": JAN_10_ISO,
            }
        ]

    def test_project_name_match_is_trimmed_and_case_insensitive(self):
        result = reconcile_project_history(_issue(project_item()), None, "  roadmap ")
        assert len(result.snapshots) == 1

    def test_other_projects_are_ignored(self):
        result = reconcile_project_history(
            _issue(project_item(title="Triage")), None, "Roadmap"
        )
        assert result.snapshots == []
        assert result.history == []
        assert not result.entered_target

    def test_items_without_status_are_ignored(self):
        result = reconcile_project_history(_issue(project_item(status=None)), None, "Roadmap")
        assert result.snapshots == []

    def test_no_target_keeps_stored_history(self):
        stored = _stored(ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO))

        result = reconcile_project_history(_issue(), stored, None)

        assert [entry.status for entry in result.history] == ["Todo"]
        assert result.removals == []
        assert not result.entered_target


class TestIdempotency:
    """Re-running reconciliation on its own output changes nothing."""

    def test_second_pass_is_a_no_op(self):
        issue = _issue(project_item())
        first = reconcile_project_history(issue, None, "Roadmap")
        stored = first.apply_to(issue.raw())

        second = reconcile_project_history(issue, stored, "Roadmap")

        assert second.history == first.history
        assert second.removals == []
        assert not second.entered_target

    def test_status_change_appends(self):
        issue = _issue(project_item(status="Todo", status_updated_at=JAN_05_ISO))
        stored = reconcile_project_history(issue, None, "Roadmap").apply_to(issue.raw())

        moved = _issue(project_item(status="Done", status_updated_at=JAN_12_ISO))
        result = reconcile_project_history(moved, stored, "Roadmap")

        assert [entry.status for entry in result.history] == ["Todo", "Done"]
        assert result.entered_target


class TestRemovals:
    """Synthetic removal entries."""

    def test_item_no_longer_live_gets_removal(self):
        stored = _stored(ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO))

        result = reconcile_project_history(_issue(updated_at=JAN_15_ISO), stored, "Roadmap")

        assert len(result.removals) == 1
        removal = result.removals[0]
        assert removal.status == PROJECT_REMOVED_STATUS
        assert removal.occurred_at == JAN_15_ISO
        assert removal.project_title == "Roadmap"
        assert [entry.status for entry in result.history] == ["Todo", PROJECT_REMOVED_STATUS]
        assert not result.entered_target

    def test_removal_is_recorded_once(self):
        stored = _stored(
            ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO),
            ProjectStatusEntry("PVTI_1", "Roadmap", PROJECT_REMOVED_STATUS, JAN_10_ISO),
        )

        result = reconcile_project_history(_issue(), stored, "Roadmap")

        assert result.removals == []
        assert len(result.history) == 2

    def test_live_items_are_not_removed(self):
        previous = [ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO)]
        live = [ProjectStatusEntry("PVTI_1", "Roadmap", "Done", JAN_10_ISO)]
        assert removal_entries(previous, live, JAN_15_ISO) == []

    def test_removal_title_comes_from_latest_entry(self):
        previous = [
            ProjectStatusEntry("PVTI_1", "Old name", "Todo", JAN_05_ISO),
            ProjectStatusEntry("PVTI_1", "Roadmap", "Done", JAN_10_ISO),
        ]
        removals = removal_entries(previous, [], JAN_15_ISO)
        assert removals[0].project_title == "Roadmap"

    def test_re_entering_after_removal(self):
        stored = _stored(
            ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO),
            ProjectStatusEntry("PVTI_1", "Roadmap", PROJECT_REMOVED_STATUS, JAN_10_ISO),
        )
        issue = _issue(project_item(id="PVTI_2", status="Todo", status_updated_at=JAN_12_ISO))

        result = reconcile_project_history(issue, stored, "Roadmap")

        assert result.entered_target
        assert [entry.project_item_id for entry in result.history] == ["PVTI_1", "PVTI_1", "PVTI_2"]


class TestMergeHistory:
    def test_duplicates_keep_first_and_gain_title(self):
        existing = [ProjectStatusEntry("PVTI_1", None, "Todo", JAN_05_ISO)]
        additions = [ProjectStatusEntry("PVTI_1", "Roadmap", "Todo", JAN_05_ISO)]

        merged = merge_history(existing, additions)

        assert len(merged) == 1
        assert merged[0].project_title == "Roadmap"
        assert existing[0].project_title is None

    def test_sorted_by_occurrence(self):
        merged = merge_history(
            [ProjectStatusEntry("A", None, "Done", JAN_12_ISO)],
            [ProjectStatusEntry("A", None, "Todo", JAN_05_ISO)],
        )
        assert [entry.status for entry in merged] == ["Todo", "Done"]

    def test_malformed_stored_entries_are_dropped(self):
        stored = {
            HISTORY_KEY: [
                {"projectItemId": "A", "status": "Todo", "occurredAt": JAN_05_ISO},
                {"projectItemId": "", "status": "Todo", "occurredAt": JAN_05_ISO},
                {"status": "Todo"},
                "garbage",
            ]
        }
        assert [entry.project_item_id for entry in extract_history(stored)] == ["A"]
        assert extract_history(None) == []


class TestStatusLabel:
    def test_first_non_empty_label_wins(self):
        assert status_label(ProjectFieldValue(name="  ", title="Sprint 4")) == "Sprint 4"

    def test_numbers(self):
        assert status_label(ProjectFieldValue(number=3.0)) == "3"
        assert status_label(ProjectFieldValue(number=2.5)) == "2.5"

    def test_dates_and_empty(self):
        assert status_label(ProjectFieldValue(date="2024-01-10")) == "2024-01-10"
        assert status_label(ProjectFieldValue()) is None
        assert status_label(None) is None
