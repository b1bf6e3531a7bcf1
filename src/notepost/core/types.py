"""Shared types for notepost."""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """State of the draft reconciliation runner."""

    IDLE = "idle"
    SYNCING = "syncing"
    ERROR = "error"
    OFFLINE = "offline"
