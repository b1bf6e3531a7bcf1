"""Credential storage for the WordPress site.

This module provides:
- Credentials: Site URL, username and application password
- CredentialStore: Persists credentials (password in the OS keyring)

The site URL and username live in config.json; the application password
is kept in the OS keyring under KEYRING_SERVICE, keyed by username.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from pathlib import Path

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

from notepost.core.config import ServerConfig

logger = logging.getLogger(__name__)

CONFIG_NAME = "config.json"
KEYRING_SERVICE = "notepost"


class CredentialError(Exception):
    """Exception raised for credential storage errors."""


@dataclass(frozen=True)
class Credentials:
    """Site credentials.

    Attributes:
        url: Site base URL.
        username: WordPress username.
        app_password: WordPress application password.
    """

    url: str
    username: str
    app_password: str

    @property
    def auth_header(self) -> str:
        """HTTP Basic Authorization header value."""
        token = base64.b64encode(f"{self.username}:{self.app_password}".encode()).decode()
        return f"Basic {token}"

    @property
    def is_complete(self) -> bool:
        return bool(self.url.strip() and self.username.strip() and self.app_password.strip())


class CredentialStore:
    """Persists site credentials under a config directory."""

    def __init__(self, config_dir: Path) -> None:
        """Initialize the store.

        Args:
            config_dir: Directory holding config.json.
        """
        self._config_file = Path(config_dir) / CONFIG_NAME

    def _read(self) -> dict[str, str]:
        if not self._config_file.exists():
            return {}
        try:
            return dict(json.loads(self._config_file.read_text()))
        except json.JSONDecodeError as e:
            raise CredentialError(f"Corrupted config file: {e}") from e

    def _write(self, data: dict[str, str]) -> None:
        self._config_file.parent.mkdir(parents=True, exist_ok=True)
        self._config_file.write_text(json.dumps(data, indent=2))

    def save(self, url: str, username: str, app_password: str) -> Credentials:
        """Save credentials.

        Args:
            url: Site base URL.
            username: WordPress username.
            app_password: Application password.

        Returns:
            The saved credentials.

        Raises:
            CredentialError: If any field is blank or the keyring is unavailable.
        """
        credentials = Credentials(url=url.strip(), username=username.strip(), app_password=app_password.strip())
        if not credentials.is_complete:
            raise CredentialError("Site URL, username and application password are all required")

        try:
            keyring.set_password(KEYRING_SERVICE, credentials.username, credentials.app_password)
        except KeyringError as e:
            raise CredentialError(f"Could not store password in keyring: {e}") from e

        data = self._read()
        data["blog_url"] = credentials.url
        data["username"] = credentials.username
        self._write(data)
        logger.info("Saved credentials for %s at %s", credentials.username, credentials.url)
        return credentials

    def load(self) -> Credentials | None:
        """Load credentials.

        Returns:
            Credentials if all three parts exist, None otherwise.
        """
        data = self._read()
        url = data.get("blog_url")
        username = data.get("username")
        if not url or not username:
            return None
        try:
            app_password = keyring.get_password(KEYRING_SERVICE, username)
        except KeyringError as e:
            logger.warning("Keyring unavailable: %s", e)
            return None
        if not app_password:
            return None
        credentials = Credentials(url=url, username=username, app_password=app_password)
        return credentials if credentials.is_complete else None

    def has_credentials(self) -> bool:
        """Check whether complete credentials are stored."""
        return self.load() is not None

    def clear(self) -> None:
        """Forget stored credentials."""
        data = self._read()
        username = data.pop("username", None)
        data.pop("blog_url", None)
        if username:
            try:
                keyring.delete_password(KEYRING_SERVICE, username)
            except PasswordDeleteError:
                logger.debug("No keyring entry for %s", username)
            except KeyringError as e:
                raise CredentialError(f"Could not remove password from keyring: {e}") from e
        self._write(data)

    def server_config(self, timeout: float = 30.0) -> ServerConfig:
        """Build the gateway config, or the placeholder when not set up."""
        credentials = self.load()
        if credentials is None:
            return ServerConfig.placeholder()
        return ServerConfig(
            server_url=credentials.url,
            auth_header=credentials.auth_header,
            timeout=timeout,
        )
