"""Core module - Shared config and types."""

from notepost.core.config import PLACEHOLDER_URL, ServerConfig
from notepost.core.types import SyncState

__all__ = [
    # Config
    "PLACEHOLDER_URL",
    "ServerConfig",
    # Types
    "SyncState",
]
