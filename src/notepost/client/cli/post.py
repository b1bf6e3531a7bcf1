"""Post command for notepost CLI.

Commands:
- post: Publish a note, falling back to a local draft on failure
"""

from __future__ import annotations

import sys

import click

from notepost.client.cli.config import get_credential_store, open_gateway, open_store
from notepost.client.content import MAX_NOTE_LENGTH, count_characters
from notepost.client.state import DraftRecord
from notepost.client.sync import PublishCoordinator, SavedAsDraft


def confirm_delete_original(draft: DraftRecord) -> bool:
    """Ask whether to delete a draft whose edited version was published."""
    return click.confirm(
        "You posted an edited version of a draft. Do you want to delete the original?",
        default=False,
    )


@click.command()
@click.argument("text", required=False)
@click.option("--draft", "draft_id", type=int, default=None, help="Publish from this draft (see 'notepost drafts list').")
@click.option("--stdin", "from_stdin", is_flag=True, help="Read the note from standard input.")
def post(text: str | None, draft_id: int | None, from_stdin: bool) -> None:
    """Publish a note.

    TEXT is the note body. With --draft and no TEXT, the draft is
    published as is. If the site can't be reached or rejects the note,
    it is saved to drafts instead.
    """
    if from_stdin:
        text = sys.stdin.read()

    with open_store() as store, open_gateway() as gateway:
        draft: DraftRecord | None = None
        if draft_id is not None:
            draft = store.get(draft_id)
            if draft is None:
                click.echo(f"Error: no draft with id {draft_id}.", err=True)
                sys.exit(1)
            if text is None:
                text = draft.content

        if not text or not text.strip():
            click.echo("Error: nothing to post.", err=True)
            sys.exit(1)

        length = count_characters(text)
        if length > MAX_NOTE_LENGTH:
            click.echo(f"Warning: note is {length} / {MAX_NOTE_LENGTH} characters.", err=True)

        if not get_credential_store().has_credentials():
            click.echo("Not set up. Run 'notepost setup' to connect a site.", err=True)

        coordinator = PublishCoordinator(store, gateway, confirm_delete=confirm_delete_original)
        if draft is not None:
            coordinator.open_draft(draft)

        click.echo("Posting...")
        outcome = coordinator.publish(text)

    if isinstance(outcome, SavedAsDraft):
        click.echo(outcome.message, err=True)
        sys.exit(1)

    click.echo("Published!")
    if outcome.draft_deleted:
        click.echo("Draft removed.")
