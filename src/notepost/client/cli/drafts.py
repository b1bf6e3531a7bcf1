"""Draft management commands for notepost CLI.

Commands:
- drafts list: Show local drafts, most recent first
- drafts show: Print one draft
- drafts save: Save a new draft or update an existing one
- drafts delete: Delete a draft locally and on the site
"""

from __future__ import annotations

import sys
from datetime import datetime

import click

from notepost.client.cli.config import open_gateway, open_store
from notepost.client.sync import PublishCoordinator

PREVIEW_WIDTH = 60


def _preview(content: str) -> str:
    first_line = content.strip().splitlines()[0] if content.strip() else ""
    if len(first_line) > PREVIEW_WIDTH:
        return first_line[: PREVIEW_WIDTH - 3] + "..."
    return first_line


@click.group()
def drafts() -> None:
    """Manage unpublished drafts."""


@drafts.command("list")
def list_drafts() -> None:
    """List local drafts, most recent first."""
    with open_store() as store:
        records = store.list_all()

    if not records:
        click.echo("No drafts.")
        return

    for record in records:
        when = datetime.fromtimestamp(record.last_modified / 1000).strftime("%Y-%m-%d %H:%M")
        marker = " " if record.remote_id is not None else "*"
        click.echo(f"{record.local_id:>4} {marker} {when}  {_preview(record.content)}")
    if any(r.remote_id is None for r in records):
        click.echo("\n* not yet on the site")


@drafts.command("show")
@click.argument("draft_id", type=int)
def show_draft(draft_id: int) -> None:
    """Print a draft's full content."""
    with open_store() as store:
        record = store.get(draft_id)
    if record is None:
        click.echo(f"Error: no draft with id {draft_id}.", err=True)
        sys.exit(1)
    click.echo(record.content)


@drafts.command("save")
@click.argument("text")
@click.option("--draft", "draft_id", type=int, default=None, help="Update this draft instead of creating one.")
def save_draft(text: str, draft_id: int | None) -> None:
    """Save TEXT as a draft.

    The draft is stored locally and uploaded when the site is reachable.
    """
    if not text.strip():
        click.echo("Nothing to save.", err=True)
        sys.exit(1)

    with open_store() as store, open_gateway() as gateway:
        current = None
        if draft_id is not None:
            current = store.get(draft_id)
            if current is None:
                click.echo(f"Error: no draft with id {draft_id}.", err=True)
                sys.exit(1)

        coordinator = PublishCoordinator(store, gateway)
        saved = coordinator.save_or_update(text, current)

    if current is not None:
        click.echo(f"Draft {saved.local_id} updated.")
    else:
        click.echo(f"Draft {saved.local_id} saved.")


@drafts.command("delete")
@click.argument("draft_id", type=int)
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
def delete_draft(draft_id: int, yes: bool) -> None:
    """Delete a draft here and on the site."""
    with open_store() as store, open_gateway() as gateway:
        record = store.get(draft_id)
        if record is None:
            click.echo(f"Error: no draft with id {draft_id}.", err=True)
            sys.exit(1)

        if not yes and not click.confirm("Are you sure you want to delete this draft?"):
            click.echo("Cancelled.")
            return

        PublishCoordinator(store, gateway).delete_draft(record)

    click.echo(f"Draft {draft_id} deleted.")
