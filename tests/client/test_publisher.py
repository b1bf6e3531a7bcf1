"""Tests for publishing and draft bookkeeping."""

from __future__ import annotations

from unittest.mock import MagicMock

from notepost.client.api import NetworkError, NotConfiguredError, ServerError
from notepost.client.state import DraftRecord, LocalDraftStore
from notepost.client.sync import Published, PublishCoordinator, SavedAsDraft, SaveReason
from tests.fakes import FakeGateway


def make_coordinator(
    store: LocalDraftStore,
    gateway: FakeGateway,
    confirm_delete: MagicMock | None = None,
) -> PublishCoordinator:
    return PublishCoordinator(store, gateway, confirm_delete=confirm_delete, clock=lambda: 5000)  # type: ignore[arg-type]


class TestPublishSuccess:
    """Tests for successful publishing."""

    def test_publish_new_note(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        """Publishing without a draft should create a published note."""
        outcome = make_coordinator(store, gateway).publish("hello world")

        assert isinstance(outcome, Published)
        assert outcome.remote.status == "publish"
        assert gateway.calls == [("publish", "hello world", None)]
        assert store.list_all() == []

    def test_publish_unchanged_draft_deletes_it(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        """Publishing a draft's exact content should consume the draft."""
        gateway.add(9, "ready", 1000)
        draft = store.insert(DraftRecord(content="ready", last_modified=1000, remote_id=9))
        confirm = MagicMock()

        outcome = make_coordinator(store, gateway, confirm).publish("ready", draft)

        assert isinstance(outcome, Published)
        assert outcome.draft_deleted is True
        assert store.list_all() == []
        confirm.assert_not_called()
        # Promoted in place, and the published note is not deleted afterwards
        assert ("publish", "ready", 9) in gateway.calls
        assert not any(c[0] == "delete_draft" for c in gateway.calls)
        assert 9 in gateway.published

    def test_edited_draft_prompts_and_keeps_on_no(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        """Publishing edited content should ask before deleting the original."""
        draft = store.insert(DraftRecord(content="first take", last_modified=1000))
        confirm = MagicMock(return_value=False)

        outcome = make_coordinator(store, gateway, confirm).publish("second take", draft)

        assert isinstance(outcome, Published)
        assert outcome.draft_deleted is False
        confirm.assert_called_once_with(draft)
        assert store.list_all() == [draft]

    def test_edited_draft_deleted_on_yes(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        draft = store.insert(DraftRecord(content="first take", last_modified=1000))
        confirm = MagicMock(return_value=True)

        outcome = make_coordinator(store, gateway, confirm).publish("second take", draft)

        assert isinstance(outcome, Published)
        assert outcome.draft_deleted is True
        assert store.list_all() == []

    def test_edited_draft_kept_without_callback(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        draft = store.insert(DraftRecord(content="first take", last_modified=1000))

        make_coordinator(store, gateway).publish("second take", draft)

        assert store.list_all() == [draft]

    def test_kept_draft_unlinked_from_published_note(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        """A kept draft must not stay linked to the note it was published as."""
        gateway.add(9, "first take", 1000)
        draft = store.insert(DraftRecord(content="first take", last_modified=1000, remote_id=9))
        confirm = MagicMock(return_value=False)
        coordinator = make_coordinator(store, gateway, confirm)

        outcome = coordinator.publish("second take", draft)

        assert isinstance(outcome, Published)
        assert outcome.draft_deleted is False
        kept = store.get(draft.local_id)  # type: ignore[arg-type]
        assert kept is not None
        assert kept.remote_id is None
        assert kept.content == "first take"

        saved = coordinator.save_or_update("third take", kept)

        assert ("update_draft", 9, "third take") not in gateway.calls
        assert gateway.published[9].content == "second take"
        assert 9 not in gateway.drafts
        assert saved.remote_id is not None
        assert saved.remote_id != 9

    def test_uses_current_draft(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        """The coordinator's current draft should be used when none is passed."""
        gateway.add(9, "ready", 1000)
        draft = store.insert(DraftRecord(content="ready", last_modified=1000, remote_id=9))
        coordinator = make_coordinator(store, gateway)
        coordinator.open_draft(draft)

        coordinator.publish("ready")

        assert store.list_all() == []
        assert coordinator.current_draft is None

    def test_new_note_clears_current_draft(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        draft = store.insert(DraftRecord(content="ready", last_modified=1000))
        coordinator = make_coordinator(store, gateway)
        coordinator.open_draft(draft)

        coordinator.new_note()

        assert coordinator.current_draft is None


class TestPublishFailure:
    """Tests for the never-lose-content rule."""

    def test_network_failure_saves_one_draft(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        """An offline publish should leave exactly one draft with the content."""
        gateway.failures[("publish", None)] = NetworkError("ConnectError")

        outcome = make_coordinator(store, gateway).publish("don't lose me")

        assert isinstance(outcome, SavedAsDraft)
        assert outcome.reason is SaveReason.OFFLINE
        assert outcome.message == "Offline. Saved to drafts."
        drafts = store.list_all()
        assert [d.content for d in drafts] == ["don't lose me"]
        assert drafts[0].remote_id is None
        assert drafts[0].last_modified == 5000

    def test_server_error_message_has_code(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        gateway.failures[("publish", None)] = ServerError("Bad gateway", 502)

        outcome = make_coordinator(store, gateway).publish("note")

        assert isinstance(outcome, SavedAsDraft)
        assert outcome.reason is SaveReason.SERVER_ERROR
        assert outcome.status_code == 502
        assert outcome.message == "Server error (502). Saved to drafts."

    def test_failure_updates_current_draft_in_place(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        """Failing to publish an edited draft should not create a second record."""
        draft = store.insert(DraftRecord(content="v1", last_modified=1000, remote_id=9))
        gateway.failures[("publish", 9)] = NetworkError("timeout")

        outcome = make_coordinator(store, gateway).publish("v2", draft)

        assert isinstance(outcome, SavedAsDraft)
        drafts = store.list_all()
        assert len(drafts) == 1
        assert drafts[0].local_id == draft.local_id
        assert drafts[0].content == "v2"
        assert drafts[0].remote_id == 9
        assert drafts[0].last_modified == 5000

    def test_failure_keeps_saved_draft_as_current(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        """Retrying after a failure should reuse the saved draft."""
        gateway.failures[("publish", None)] = NetworkError("offline")
        coordinator = make_coordinator(store, gateway)

        outcome = coordinator.publish("retry me")

        assert isinstance(outcome, SavedAsDraft)
        assert coordinator.current_draft == outcome.draft

    def test_not_configured_saves_draft(self, store: LocalDraftStore) -> None:
        gateway = MagicMock()
        gateway.publish.side_effect = NotConfiguredError("No credentials configured")

        outcome = PublishCoordinator(store, gateway).publish("before setup")

        assert isinstance(outcome, SavedAsDraft)
        assert [d.content for d in store.list_all()] == ["before setup"]


class TestSaveOrUpdate:
    """Tests for saving drafts from the composer."""

    def test_new_draft_saved_and_uploaded(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        coordinator = make_coordinator(store, gateway)

        saved = coordinator.save_or_update("idea")

        assert saved.remote_id == gateway.next_id
        assert saved.last_modified == gateway.drafts[gateway.next_id].modified_at
        assert store.list_all() == [saved]
        assert coordinator.current_draft == saved

    def test_existing_draft_updated_remotely(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        gateway.add(9, "idea", 1000)
        draft = store.insert(DraftRecord(content="idea", last_modified=1000, remote_id=9))

        saved = make_coordinator(store, gateway).save_or_update("better idea", draft)

        assert saved.local_id == draft.local_id
        assert saved.content == "better idea"
        assert saved.last_modified == 5000
        assert ("update_draft", 9, "better idea") in gateway.calls
        assert len(store.list_all()) == 1

    def test_offline_save_stays_local(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        """A failed upload should keep the draft local for the next sync."""
        gateway.failures[("create_draft", None)] = NetworkError("offline")

        saved = make_coordinator(store, gateway).save_or_update("offline idea")

        assert saved.remote_id is None
        assert store.list_all() == [saved]

    def test_draft_deleted_meanwhile_is_recreated(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        draft = store.insert(DraftRecord(content="idea", last_modified=1000))
        store.delete(draft)

        saved = make_coordinator(store, gateway).save_or_update("idea v2", draft)

        assert saved.local_id != draft.local_id
        assert [d.content for d in store.list_all()] == ["idea v2"]


class TestDeleteDraft:
    """Tests for deleting drafts everywhere."""

    def test_deletes_locally_and_remotely(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        gateway.add(9, "bye", 1000)
        draft = store.insert(DraftRecord(content="bye", last_modified=1000, remote_id=9))

        make_coordinator(store, gateway).delete_draft(draft)

        assert store.list_all() == []
        assert 9 not in gateway.drafts

    def test_remote_failure_still_deletes_locally(
        self, store: LocalDraftStore, gateway: FakeGateway
    ) -> None:
        draft = store.insert(DraftRecord(content="bye", last_modified=1000, remote_id=9))
        gateway.failures[("delete_draft", 9)] = NetworkError("offline")

        make_coordinator(store, gateway).delete_draft(draft)

        assert store.list_all() == []

    def test_local_only_draft_makes_no_call(self, store: LocalDraftStore, gateway: FakeGateway) -> None:
        draft = store.insert(DraftRecord(content="bye", last_modified=1000))

        make_coordinator(store, gateway).delete_draft(draft)

        assert gateway.calls == []
