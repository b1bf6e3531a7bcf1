"""Bidirectional draft reconciliation.

This module provides:
- Reconciler: Converges the local draft store and the site's drafts
- SKEW_TOLERANCE_MS: Margin before a local draft counts as newer

A run has three phases. Each phase starts from a fresh list_all() so it
sees the writes of the phase before it:

    1. Prune   - local drafts whose remote draft is gone are deleted, but
                 only after get_draft() confirms the absence.
    2. Pull    - remote drafts are inserted locally, linked to a local-only
                 draft with identical content, or refresh an older local copy.
    3. Push    - local-only drafts are created remotely; local drafts newer
                 than their remote copy (beyond the tolerance) are uploaded.

Conflicts are last-write-wins on modification time. A failure on one draft
is logged and the run moves on; only a failed listing aborts the run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Iterable
from typing import TYPE_CHECKING

from notepost.client.api import APIError
from notepost.client.api import NotFoundError as RemoteNotFoundError
from notepost.client.state import DraftRecord, StoreError, now_ms
from notepost.client.sync.types import (
    CancelCheck,
    ReconcileCancelled,
    ReconcileError,
    ReconcileResult,
)

if TYPE_CHECKING:
    from notepost.client.api import DraftGateway, RemoteDraft
    from notepost.client.state import LocalDraftStore

logger = logging.getLogger(__name__)

# Local edits within this margin of the remote timestamp are not pushed
SKEW_TOLERANCE_MS = 1000


class Reconciler:
    """Reconciles local drafts with the site's drafts."""

    def __init__(
        self,
        store: LocalDraftStore,
        gateway: DraftGateway,
        skew_tolerance_ms: int = SKEW_TOLERANCE_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the reconciler.

        Args:
            store: Local draft store.
            gateway: Site gateway.
            skew_tolerance_ms: Margin absorbing clock and rounding skew.
            clock: Millisecond clock, used for the listing freshness token.
        """
        self._store = store
        self._gateway = gateway
        self._skew_tolerance_ms = skew_tolerance_ms
        self._clock = clock
        self._cancel_check: CancelCheck = lambda: False

    def reconcile(self, cancel_check: CancelCheck | None = None) -> ReconcileResult:
        """Run one full reconciliation.

        Args:
            cancel_check: Called between drafts; returning True stops the run.

        Returns:
            ReconcileResult with per-phase counters and per-draft errors.

        Raises:
            ReconcileError: If the draft listing failed (nothing was changed).
            ReconcileCancelled: If cancel_check asked to stop.
        """
        self._cancel_check = cancel_check or (lambda: False)
        result = ReconcileResult()

        try:
            remote = self._gateway.list_drafts(self._clock())
        except APIError as e:
            logger.warning(f"Draft listing failed, skipping sync: {e}")
            raise ReconcileError(f"Could not list remote drafts: {e}") from e

        remote_by_id = {draft.remote_id: draft for draft in remote}
        logger.debug(f"Listing returned {len(remote)} remote drafts")

        self._prune(self._store.list_all(), remote_by_id.keys(), result)
        self._pull(self._store.list_all(), remote, result)
        self._push(self._store.list_all(), remote_by_id, result)

        logger.info(f"Sync complete: {result.summary()}")
        return result

    def _check_cancelled(self) -> None:
        if self._cancel_check():
            logger.info("Sync cancelled")
            raise ReconcileCancelled("Sync cancelled")

    # === Phase 1 ===

    def _prune(
        self,
        local: Iterable[DraftRecord],
        remote_ids: Collection[int],
        result: ReconcileResult,
    ) -> None:
        """Delete local drafts whose remote draft no longer exists.

        A draft missing from the listing is only deleted when a direct
        fetch answers not-found; any other answer keeps it.
        """
        for draft in local:
            if draft.remote_id is None or draft.remote_id in remote_ids:
                continue
            self._check_cancelled()

            try:
                self._gateway.get_draft(draft.remote_id)
            except RemoteNotFoundError:
                try:
                    self._store.delete(draft)
                except StoreError as e:
                    result.errors.append(f"delete {draft.local_id}: {e}")
                    logger.error(f"Failed to delete orphaned draft {draft.local_id}: {e}")
                    continue
                result.pruned += 1
                logger.debug(f"Deleted orphaned local draft (remote {draft.remote_id})")
                continue
            except APIError as e:
                result.errors.append(f"verify {draft.remote_id}: {e}")
                logger.warning(f"Could not verify remote draft {draft.remote_id}, keeping it: {e}")
                continue

            result.kept += 1
            logger.debug(f"Remote draft {draft.remote_id} missing from listing but still exists")

    # === Phase 2 ===

    def _pull(
        self,
        local: list[DraftRecord],
        remote: Iterable[RemoteDraft],
        result: ReconcileResult,
    ) -> None:
        """Bring remote drafts into the local store."""
        by_remote_id = {d.remote_id: d for d in local if d.remote_id is not None}
        # Local-only drafts linked earlier in this run are not candidates again
        claimed: set[int | None] = set()

        for remote_draft in remote:
            self._check_cancelled()
            content = remote_draft.content
            local_match = by_remote_id.get(remote_draft.remote_id)

            try:
                if local_match is None:
                    content_match = next(
                        (
                            d
                            for d in local
                            if d.remote_id is None
                            and d.local_id not in claimed
                            and d.content == content
                        ),
                        None,
                    )
                    if content_match is not None:
                        self._store.update(
                            content_match.with_changes(
                                remote_id=remote_draft.remote_id,
                                last_modified=remote_draft.modified_at,
                            )
                        )
                        claimed.add(content_match.local_id)
                        result.correlated += 1
                        logger.debug(
                            f"Linked local draft {content_match.local_id} "
                            f"to remote {remote_draft.remote_id}"
                        )
                    else:
                        self._store.insert(
                            self._record_from_remote(remote_draft, content)
                        )
                        result.pulled += 1
                        logger.debug(f"Pulled remote draft {remote_draft.remote_id}")
                elif remote_draft.modified_at > local_match.last_modified:
                    self._store.update(
                        local_match.with_changes(
                            content=content,
                            last_modified=remote_draft.modified_at,
                        )
                    )
                    result.refreshed += 1
                    logger.debug(f"Refreshed local draft {local_match.local_id} from remote")
            except StoreError as e:
                result.errors.append(f"pull {remote_draft.remote_id}: {e}")
                logger.error(f"Failed to pull remote draft {remote_draft.remote_id}: {e}")

    @staticmethod
    def _record_from_remote(remote_draft: RemoteDraft, content: str) -> DraftRecord:
        return DraftRecord(
            remote_id=remote_draft.remote_id,
            content=content,
            last_modified=remote_draft.modified_at,
        )

    # === Phase 3 ===

    def _push(
        self,
        local: Iterable[DraftRecord],
        remote_by_id: dict[int, RemoteDraft],
        result: ReconcileResult,
    ) -> None:
        """Upload local drafts the site doesn't have or has older copies of."""
        for draft in local:
            self._check_cancelled()

            if draft.remote_id is None:
                self._create_remote(draft, result)
                continue

            remote_match = remote_by_id.get(draft.remote_id)
            if remote_match is None:
                continue
            if draft.last_modified > remote_match.modified_at + self._skew_tolerance_ms:
                try:
                    self._gateway.update_draft(draft.remote_id, draft.content)
                except APIError as e:
                    result.errors.append(f"update {draft.remote_id}: {e}")
                    logger.warning(f"Failed to update remote draft {draft.remote_id}: {e}")
                    continue
                result.pushed += 1
                logger.debug(f"Updated remote draft {draft.remote_id}")
            elif draft.last_modified > remote_match.modified_at:
                result.skipped += 1

    def _create_remote(self, draft: DraftRecord, result: ReconcileResult) -> None:
        try:
            created = self._gateway.create_draft(draft.content)
        except APIError as e:
            result.errors.append(f"create {draft.local_id}: {e}")
            logger.warning(f"Failed to upload local draft {draft.local_id}: {e}")
            return

        try:
            self._store.update(
                draft.with_changes(
                    remote_id=created.remote_id,
                    last_modified=created.modified_at,
                )
            )
        except StoreError as e:
            result.errors.append(f"link {draft.local_id}: {e}")
            logger.error(f"Uploaded draft {draft.local_id} but could not record it: {e}")
            return
        result.created += 1
        logger.debug(f"Uploaded local draft {draft.local_id} as remote {created.remote_id}")
