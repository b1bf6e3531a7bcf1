"""Sync command for notepost CLI.

Commands:
- sync: Reconcile local drafts with the site
"""

from __future__ import annotations

import sys

import click

from notepost.client.cli.config import get_credential_store, open_gateway, open_store
from notepost.client.sync import ReconcileResult, Reconciler, ReconcileRunner


def reconcile_drafts(quiet: bool = False) -> ReconcileResult | None:
    """Run one reconciliation in the background and wait for it.

    Ctrl-C cancels the run; whatever it was doing is discarded and the
    next sync starts over.

    Args:
        quiet: Only report failures.

    Returns:
        The result, or None if the run failed or was interrupted.
    """
    outcome: dict[str, object] = {}

    def on_complete(result: ReconcileResult | None, error: Exception | None) -> None:
        outcome["result"] = result
        outcome["error"] = error

    with open_store() as store, open_gateway() as gateway:
        runner = ReconcileRunner(Reconciler(store, gateway))
        if not quiet:
            click.echo("Syncing drafts...")
        runner.trigger(on_complete=on_complete)
        try:
            while not runner.wait(timeout=0.2):
                pass
        except KeyboardInterrupt:
            runner.cancel()
            click.echo("\nSync interrupted.", err=True)
            runner.wait()
            return None

    error = outcome.get("error")
    if error is not None:
        click.echo(f"Sync failed: {error}", err=True)
        return None

    result = outcome.get("result")
    if not isinstance(result, ReconcileResult):
        return None
    if not quiet:
        click.echo(f"Sync complete: {result.summary()}")
    for failure in result.errors:
        click.echo(f"  ! {failure}", err=True)
    return result


@click.command()
@click.option("--quiet", "-q", is_flag=True, help="Only report failures.")
def sync(quiet: bool) -> None:
    """Synchronize drafts with the site.

    Pulls drafts created elsewhere, uploads drafts saved offline, and
    removes local drafts that were deleted on the site.
    """
    if not get_credential_store().has_credentials():
        click.echo("Error: Not set up. Run 'notepost setup' first.", err=True)
        sys.exit(1)

    if reconcile_drafts(quiet=quiet) is None:
        sys.exit(1)
