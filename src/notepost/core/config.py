"""Shared configuration classes for notepost.

This module defines the connection settings used by the draft gateway.
"""

from __future__ import annotations

from dataclasses import dataclass

# Base URL used until credentials exist; never resolves.
PLACEHOLDER_URL = "https://placeholder.invalid"


@dataclass
class ServerConfig:
    """Configuration for connecting to a WordPress site.

    Attributes:
        server_url: Base URL of the site (e.g., "https://blog.example.com").
        auth_header: Value of the Authorization header sent with every request.
        timeout: Request/connection timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    auth_header: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.strip().rstrip("/")

    @classmethod
    def placeholder(cls) -> ServerConfig:
        """Config used before the user has entered credentials."""
        return cls(server_url=PLACEHOLDER_URL, auth_header="")

    @property
    def is_placeholder(self) -> bool:
        """Check if this config points at the placeholder base."""
        return self.server_url == PLACEHOLDER_URL or not self.auth_header

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")
