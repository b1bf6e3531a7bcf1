"""Configuration utilities for notepost CLI.

This module provides shared configuration and wiring used across CLI commands.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from notepost.client.api import DraftGateway
from notepost.client.credentials import CredentialStore
from notepost.client.state import LocalDraftStore

CONFIG_DIR_ENV = "NOTEPOST_CONFIG_DIR"
DB_NAME = "drafts.db"


def get_config_dir() -> Path:
    """Get the configuration directory for notepost.

    Returns:
        Path from NOTEPOST_CONFIG_DIR, or ~/.notepost.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".notepost"


def get_db_path() -> Path:
    """Get the path to the local drafts database."""
    return get_config_dir() / DB_NAME


def open_store() -> LocalDraftStore:
    """Open the local drafts database."""
    return LocalDraftStore(get_db_path())


def get_credential_store() -> CredentialStore:
    """Get the credential store for the configured directory."""
    return CredentialStore(get_config_dir())


def open_gateway() -> DraftGateway:
    """Build a gateway from stored credentials (placeholder if none)."""
    return DraftGateway(get_credential_store().server_config())


def configure_logging(verbose: bool) -> None:
    """Send notepost log records to stderr.

    Args:
        verbose: Show debug records instead of warnings and errors only.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    notepost_logger = logging.getLogger("notepost")
    for existing in list(notepost_logger.handlers):
        notepost_logger.removeHandler(existing)
    notepost_logger.addHandler(handler)
    notepost_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    notepost_logger.propagate = False
