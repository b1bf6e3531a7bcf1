"""Publishing and draft bookkeeping.

This module provides:
- PublishCoordinator: Publishes notes and saves/deletes drafts

The coordinator owns the "current draft": the draft the composer was
opened from, if any. It never runs a full reconciliation; it only touches
the one draft involved, and it never lets a failed publish lose content.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from notepost.client.api import APIError, NetworkError, ServerError
from notepost.client.state import DraftRecord, NotFoundError, now_ms
from notepost.client.sync.types import (
    ConfirmDeleteCallback,
    Published,
    PublishOutcome,
    SaveReason,
    SavedAsDraft,
)

if TYPE_CHECKING:
    from notepost.client.api import DraftGateway
    from notepost.client.state import LocalDraftStore

logger = logging.getLogger(__name__)


class PublishCoordinator:
    """Publishes notes and keeps the related local draft consistent.

    Usage:
        coordinator = PublishCoordinator(store, gateway, confirm_delete=ask_user)
        coordinator.open_draft(draft)
        outcome = coordinator.publish("edited text")
    """

    def __init__(
        self,
        store: LocalDraftStore,
        gateway: DraftGateway,
        confirm_delete: ConfirmDeleteCallback | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """Initialize the coordinator.

        Args:
            store: Local draft store.
            gateway: Site gateway.
            confirm_delete: Asked whether to delete the original draft after
                an edited version of it was published. Drafts are kept when
                no callback is given.
            clock: Millisecond clock for local modification times.
        """
        self._store = store
        self._gateway = gateway
        self._confirm_delete = confirm_delete
        self._clock = clock
        self.current_draft: DraftRecord | None = None

    # === Composer state ===

    def open_draft(self, draft: DraftRecord) -> None:
        """Make a draft the one being edited."""
        self.current_draft = draft

    def new_note(self) -> None:
        """Start a note that isn't backed by a draft."""
        self.current_draft = None

    # === Publish ===

    def publish(self, content: str, current_draft: DraftRecord | None = None) -> PublishOutcome:
        """Publish a note.

        Args:
            content: Note body.
            current_draft: Draft the note was edited from; defaults to the
                coordinator's current draft.

        Returns:
            Published on success, SavedAsDraft when the site could not be
            reached or rejected the note.
        """
        draft = current_draft if current_draft is not None else self.current_draft
        existing_remote_id = draft.remote_id if draft is not None else None

        try:
            remote = self._gateway.publish(content, existing_remote_id)
        except NetworkError as e:
            logger.warning(f"Publish failed, offline: {e}")
            return self._save_on_error(content, draft, SaveReason.OFFLINE, None)
        except ServerError as e:
            logger.warning(f"Publish failed with code {e.status_code}: {e}")
            return self._save_on_error(content, draft, SaveReason.SERVER_ERROR, e.status_code)
        except APIError as e:
            # Not configured yet; nothing went over the wire
            logger.warning(f"Publish not attempted: {e}")
            return self._save_on_error(content, draft, SaveReason.OFFLINE, None)

        logger.info(f"Published note {remote.remote_id}")
        self.current_draft = None

        if draft is None:
            return Published(remote=remote)

        if content == draft.content:
            self.delete_draft(draft, skip_remote_id=remote.remote_id)
            return Published(remote=remote, draft_deleted=True)

        if self._confirm_delete is not None and self._confirm_delete(draft):
            self.delete_draft(draft, skip_remote_id=remote.remote_id)
            return Published(remote=remote, draft_deleted=True)

        if draft.remote_id is not None and draft.remote_id == remote.remote_id:
            # The remote draft became the published note; the kept draft is local-only again
            try:
                self._store.update(draft.with_changes(remote_id=None))
            except NotFoundError:
                logger.debug(f"Draft {draft.local_id} vanished before it could be unlinked")
        logger.debug(f"Kept original draft {draft.local_id} after publishing an edit")
        return Published(remote=remote)

    def _save_on_error(
        self,
        content: str,
        draft: DraftRecord | None,
        reason: SaveReason,
        status_code: int | None,
    ) -> SavedAsDraft:
        """Keep the content as exactly one local draft."""
        saved = self._save_locally(content, draft)
        self.current_draft = saved
        return SavedAsDraft(reason=reason, draft=saved, status_code=status_code)

    def _save_locally(self, content: str, draft: DraftRecord | None) -> DraftRecord:
        now = self._clock()
        if draft is not None and draft.local_id is not None:
            try:
                return self._store.update(draft.with_changes(content=content, last_modified=now))
            except NotFoundError:
                logger.debug(f"Draft {draft.local_id} vanished, saving a new one")
                return self._store.insert(DraftRecord(content=content, last_modified=now))
        return self._store.insert(DraftRecord(content=content, last_modified=now))

    # === Drafts ===

    def save_or_update(self, content: str, current_draft: DraftRecord | None = None) -> DraftRecord:
        """Save the composer content as a draft.

        The draft is written locally first, then pushed to the site on a
        best-effort basis. A failed push leaves the local draft for the
        next reconciliation to upload.

        Args:
            content: Note body.
            current_draft: Draft being edited; defaults to the current draft.

        Returns:
            The stored draft (with remote_id when the push succeeded).
        """
        draft = current_draft if current_draft is not None else self.current_draft
        saved = self._save_locally(content, draft)
        self.current_draft = saved

        try:
            if saved.remote_id is not None:
                self._gateway.update_draft(saved.remote_id, content)
                logger.debug(f"Updated remote draft {saved.remote_id}")
            else:
                created = self._gateway.create_draft(content)
                saved = self._store.update(
                    saved.with_changes(remote_id=created.remote_id, last_modified=created.modified_at)
                )
                self.current_draft = saved
                logger.debug(f"Created remote draft {created.remote_id}")
        except APIError as e:
            logger.warning(f"Draft saved locally, push failed: {e}")
        except NotFoundError:
            logger.warning(f"Draft {saved.local_id} was deleted while saving")

        return saved

    def delete_draft(self, draft: DraftRecord, skip_remote_id: int | None = None) -> None:
        """Delete a draft locally and, best effort, on the site.

        Args:
            draft: Draft to delete.
            skip_remote_id: Remote id that must not be deleted (the note that
                was just published from this draft).
        """
        self._store.delete(draft)
        if self.current_draft is not None and self.current_draft.local_id == draft.local_id:
            self.current_draft = None

        if draft.remote_id is None or draft.remote_id == skip_remote_id:
            return
        try:
            self._gateway.delete_draft(draft.remote_id)
        except APIError as e:
            logger.error(f"Failed to delete remote draft {draft.remote_id}: {e}")
