"""Shared types and dataclasses for draft synchronization.

This module provides:
- SyncError, ReconcileError, ReconcileCancelled: Exception classes
- ReconcileResult: Outcome counters of one reconciliation run
- Published, SavedAsDraft: Publish outcomes
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from notepost.client.api import RemoteDraft
    from notepost.client.state import DraftRecord


class SyncError(Exception):
    """Base exception for sync errors."""


class ReconcileError(SyncError):
    """Reconciliation could not start (the draft listing failed)."""


class ReconcileCancelled(SyncError):
    """Reconciliation stopped because its host went away."""


@dataclass
class ReconcileResult:
    """Counters for one reconciliation run.

    Attributes:
        pruned: Local drafts deleted after the site confirmed they are gone.
        kept: Local drafts missing from the listing that the site still has.
        pulled: Remote drafts inserted locally.
        correlated: Local-only drafts linked to a remote draft by content.
        refreshed: Local drafts overwritten by a newer remote copy.
        created: Local-only drafts uploaded as new remote drafts.
        pushed: Remote drafts updated from newer local content.
        skipped: Remote updates deferred because timestamps are within tolerance.
        errors: Per-draft failures ("<what>: <error>").
    """

    pruned: int = 0
    kept: int = 0
    pulled: int = 0
    correlated: int = 0
    refreshed: int = 0
    created: int = 0
    pushed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if the run mutated the local store or the site."""
        return any(
            (self.pruned, self.pulled, self.correlated, self.refreshed, self.created, self.pushed)
        )

    def summary(self) -> str:
        parts = [
            f"{self.pulled} pulled",
            f"{self.refreshed} refreshed",
            f"{self.correlated} linked",
            f"{self.created} uploaded",
            f"{self.pushed} pushed",
            f"{self.pruned} removed",
        ]
        if self.errors:
            parts.append(f"{len(self.errors)} failed")
        return ", ".join(parts)


class SaveReason(str, Enum):
    """Why a publish attempt fell back to a local draft."""

    OFFLINE = "offline"
    SERVER_ERROR = "server_error"


@dataclass(frozen=True)
class Published:
    """The note was published."""

    remote: RemoteDraft
    draft_deleted: bool = False


@dataclass(frozen=True)
class SavedAsDraft:
    """Publishing failed; the content was saved as a local draft."""

    reason: SaveReason
    draft: DraftRecord
    status_code: int | None = None

    @property
    def message(self) -> str:
        """Short user-facing message."""
        if self.reason is SaveReason.SERVER_ERROR:
            return f"Server error ({self.status_code}). Saved to drafts."
        return "Offline. Saved to drafts."


PublishOutcome = Published | SavedAsDraft

# Asked whether to delete the original draft after an edited version was published
ConfirmDeleteCallback = Callable[["DraftRecord"], bool]

# Returns True when the run should stop
CancelCheck = Callable[[], bool]
