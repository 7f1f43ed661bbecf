"""Sync engine: collectors, reconcilers, the orchestrator and its service.

This module provides:
- SyncService: incremental runs, backfills, stale run cleanup
- SyncOrchestrator: one full collection across every resource type
- NodeResync: re-import of a single node by global id
- evaluate / TimeBounds: the sync window
"""

from .collectors import SyncContext
from .commit_manager import CommitManager
from .enums import NodeKind, OutputFormat, ResourceKey, SubjectType
from .nodes import classify_node
from .orchestrator import SyncOrchestrator
from .reconcile import ReviewRequestReconciler, reconcile_project_history
from .results import CollectionResult, CommentAccumulator, OpenItemsResult, SyncSummary
from .resync import NodeResync, NodeResyncResult
from .service import BackfillResult, SyncRunResult, SyncService
from .window import TimeBounds, WindowDecision, evaluate

__all__ = [
    # Service
    "BackfillResult",
    "NodeResync",
    "NodeResyncResult",
    "SyncOrchestrator",
    "SyncRunResult",
    "SyncService",
    # Plumbing
    "CommitManager",
    "SyncContext",
    # Window
    "TimeBounds",
    "WindowDecision",
    "evaluate",
    # Reconciliation
    "ReviewRequestReconciler",
    "reconcile_project_history",
    # Results
    "CollectionResult",
    "CommentAccumulator",
    "OpenItemsResult",
    "SyncSummary",
    # Enums
    "NodeKind",
    "OutputFormat",
    "ResourceKey",
    "SubjectType",
    "classify_node",
]
