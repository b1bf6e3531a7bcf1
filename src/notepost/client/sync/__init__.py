"""Draft synchronization with the WordPress site.

Architecture:
    ReconcileRunner → Reconciler → (LocalDraftStore, DraftGateway)
    PublishCoordinator → (LocalDraftStore, DraftGateway)

Components:
- **Reconciler**: Three-phase prune/pull/push reconciliation of drafts
- **ReconcileRunner**: Runs reconciliation in the background, one run at a time
- **PublishCoordinator**: Publishes notes, saves drafts, never loses content

The reconciler and the publish coordinator never call each other.
"""

from notepost.client.sync.publisher import PublishCoordinator
from notepost.client.sync.reconciler import SKEW_TOLERANCE_MS, Reconciler
from notepost.client.sync.runner import CompletionCallback, ReconcileRunner
from notepost.client.sync.types import (
    CancelCheck,
    ConfirmDeleteCallback,
    Published,
    PublishOutcome,
    ReconcileCancelled,
    ReconcileError,
    ReconcileResult,
    SavedAsDraft,
    SaveReason,
    SyncError,
)

__all__ = [
    # Constants
    "SKEW_TOLERANCE_MS",
    # Types and dataclasses
    "CancelCheck",
    "CompletionCallback",
    "ConfirmDeleteCallback",
    "Published",
    "PublishOutcome",
    "ReconcileCancelled",
    "ReconcileError",
    "ReconcileResult",
    "SavedAsDraft",
    "SaveReason",
    "SyncError",
    # Classes
    "PublishCoordinator",
    "ReconcileRunner",
    "Reconciler",
]
