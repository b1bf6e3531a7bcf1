"""Site setup commands for notepost CLI.

Commands:
- setup: Store site URL, username and application password
- logout: Forget stored credentials
"""

from __future__ import annotations

import sys

import click

from notepost.client.cli.config import get_credential_store
from notepost.client.cli.sync import reconcile_drafts
from notepost.client.credentials import CredentialError


@click.command()
@click.option("--url", help="Site URL (e.g., https://blog.example.com).")
@click.option("--username", help="WordPress username.")
@click.option(
    "--app-password",
    help="Application password (Users > Profile > Application Passwords).",
)
@click.option("--no-sync", is_flag=True, help="Don't sync drafts after saving.")
def setup(url: str | None, username: str | None, app_password: str | None, no_sync: bool) -> None:
    """Connect notepost to a WordPress site.

    Credentials not given as options are prompted for. The application
    password is kept in the system keyring.
    """
    store = get_credential_store()

    if store.has_credentials():
        click.echo("Warning: credentials are already stored.", err=True)
        if not click.confirm("Do you want to replace them?"):
            sys.exit(0)

    if url is None:
        url = click.prompt("Site URL")
    if username is None:
        username = click.prompt("Username")
    if app_password is None:
        app_password = click.prompt("Application password", hide_input=True)

    try:
        credentials = store.save(url, username, app_password)
    except CredentialError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Setup complete! Posting to {credentials.url} as {credentials.username}.")

    if not no_sync:
        reconcile_drafts()


@click.command()
def logout() -> None:
    """Forget the stored site credentials.

    Local drafts are kept.
    """
    store = get_credential_store()
    try:
        store.clear()
    except CredentialError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo("Credentials removed.")
