"""Reconcilers that infer state changes GitHub does not report directly."""

from .project_history import (
    PROJECT_REMOVED_STATUS,
    ProjectHistoryResult,
    ProjectStatusEntry,
    merge_history,
    reconcile_project_history,
    removal_entries,
)
from .review_requests import ReviewRequestReconciler, ReviewRequestReconciliation

__all__ = [
    "PROJECT_REMOVED_STATUS",
    "ProjectHistoryResult",
    "ProjectStatusEntry",
    "ReviewRequestReconciler",
    "ReviewRequestReconciliation",
    "merge_history",
    "reconcile_project_history",
    "removal_entries",
]
