"""Command-line interface for notepost.

This module provides the main CLI entry point and assembles all commands.

Commands:
- setup: Connect to a WordPress site
- logout: Forget stored credentials
- sync: Reconcile drafts with the site
- post: Publish a note
- drafts: List, show, save and delete drafts
"""

from __future__ import annotations

import click

from notepost.client.cli.config import (
    configure_logging,
    get_config_dir,
    get_credential_store,
    get_db_path,
    open_gateway,
    open_store,
)
from notepost.client.cli.drafts import drafts
from notepost.client.cli.post import post
from notepost.client.cli.setup import logout, setup
from notepost.client.cli.sync import reconcile_drafts, sync


@click.group()
@click.version_option(package_name="notepost")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """notepost - Post short notes to WordPress, with drafts kept in sync."""
    configure_logging(verbose)


# Setup commands
cli.add_command(setup)
cli.add_command(logout)

# Sync commands
cli.add_command(sync)

# Compose commands
cli.add_command(post)
cli.add_command(drafts)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "configure_logging",
    "get_config_dir",
    "get_credential_store",
    "get_db_path",
    "open_gateway",
    "open_store",
    "reconcile_drafts",
]
