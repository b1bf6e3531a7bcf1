"""HTTP gateway for WordPress social note drafts.

This module provides:
- DraftGateway: HTTP client for the jetpack-social-note REST collection
- RemoteDraft: Normalized note returned by the site
- Error taxonomy (NetworkError, ServerError, NotFoundError, ...)

Calls are never retried here; callers decide what a failure means.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx

from notepost.client.content import normalize_content
from notepost.core.config import ServerConfig

logger = logging.getLogger(__name__)

NOTES_PATH = "/wp-json/wp/v2/jetpack-social-note"

STATUS_DRAFT = "draft"
STATUS_PUBLISH = "publish"

DRAFTS_PER_PAGE = 100
TOTAL_PAGES_HEADER = "X-WP-TotalPages"


class APIError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkError(APIError):
    """The site could not be reached (offline, DNS, timeout)."""


class NotConfiguredError(APIError):
    """No credentials have been entered yet."""


class ServerError(APIError):
    """The site was reached but rejected or failed the request."""


class AuthenticationError(ServerError):
    """Credentials were rejected."""


class NotFoundError(ServerError):
    """Remote resource not found."""


def parse_gmt(value: str) -> int:
    """Parse a WordPress *_gmt timestamp as UTC.

    Args:
        value: Timestamp like "2025-01-02T15:30:00" (no offset).

    Returns:
        Milliseconds since epoch.
    """
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return int(parsed.timestamp() * 1000)


@dataclass(frozen=True)
class RemoteDraft:
    """Note as returned by the site.

    Attributes:
        remote_id: Server-assigned id.
        raw: Editable content, None when the site only sent rendered HTML.
        rendered: HTML content.
        status: "draft" or "publish".
        modified_at: Server modification time, ms since epoch (UTC).
    """

    remote_id: int
    raw: str | None
    rendered: str
    status: str
    modified_at: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteDraft:
        """Create from API response dictionary."""
        content = data.get("content") or {}
        return cls(
            remote_id=int(data["id"]),
            raw=content.get("raw"),
            rendered=content.get("rendered") or "",
            status=data["status"],
            modified_at=parse_gmt(data["modified_gmt"]),
        )

    @property
    def content(self) -> str:
        """Normalized plain-text content."""
        return normalize_content(self.raw, self.rendered)

    @property
    def is_draft(self) -> bool:
        return self.status == STATUS_DRAFT


class DraftGateway:
    """HTTP client for the site's social note drafts."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the gateway.

        Args:
            config: Site URL, auth header and timeouts. A placeholder config
                yields a gateway that refuses every call.
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={"Authorization": config.auth_header},
        )

    @property
    def config(self) -> ServerConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> DraftGateway:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map failures onto the gateway errors."""
        if self._config.is_placeholder:
            raise NotConfiguredError("No credentials configured")
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e
        return self._handle_response(response)

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code in (401, 403):
            raise AuthenticationError(self._detail(response, "Invalid credentials"), response.status_code)
        if response.status_code == 404:
            raise NotFoundError(self._detail(response, "Resource not found"), 404)
        if response.status_code >= 400:
            raise ServerError(self._detail(response, "Unknown error"), response.status_code)
        return response

    @staticmethod
    def _detail(response: httpx.Response, default: str) -> str:
        # WordPress errors look like {"code": ..., "message": ..., "data": {...}}
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            return str(body.get("message") or body.get("detail") or default)
        return default

    @staticmethod
    def _parse_note(response: httpx.Response) -> RemoteDraft:
        try:
            return RemoteDraft.from_dict(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise ServerError(f"Malformed note response: {e}", response.status_code) from e

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the site's REST API is reachable.

        Returns:
            True if the API index answers.
        """
        try:
            self._request("GET", "/wp-json/")
        except APIError:
            return False
        return True

    # === Draft operations ===

    def list_drafts(self, freshness_token: int | None = None) -> list[RemoteDraft]:
        """List all drafts on the site.

        Pages are followed until the X-WP-TotalPages count is reached, so
        the result is the complete draft listing.

        Args:
            freshness_token: Value sent as the "_" query parameter so no cache
                layer can answer with a stale listing. Defaults to now in ms.

        Returns:
            Drafts only; anything else in the response is dropped.
        """
        if freshness_token is None:
            freshness_token = time.time_ns() // 1_000_000

        notes: list[RemoteDraft] = []
        page = 1
        total_pages = 1
        while page <= total_pages:
            response = self._request(
                "GET",
                NOTES_PATH,
                params={
                    "status": STATUS_DRAFT,
                    "context": "edit",
                    "per_page": str(DRAFTS_PER_PAGE),
                    "page": str(page),
                    "_": str(freshness_token),
                },
            )
            try:
                items = response.json()
                notes.extend(RemoteDraft.from_dict(item) for item in items)
            except (ValueError, KeyError, TypeError) as e:
                raise ServerError(f"Malformed draft listing: {e}", response.status_code) from e
            if page == 1:
                total_pages = self._total_pages(response)
            page += 1
        return [note for note in notes if note.is_draft]

    @staticmethod
    def _total_pages(response: httpx.Response) -> int:
        try:
            return max(1, int(response.headers.get(TOTAL_PAGES_HEADER, "1")))
        except ValueError:
            return 1

    def get_draft(self, remote_id: int) -> RemoteDraft:
        """Get a draft by id.

        Uses the same status/context as list_drafts(); without them the
        site answers 404 for drafts.

        Raises:
            NotFoundError: If the draft does not exist.
        """
        response = self._request(
            "GET",
            f"{NOTES_PATH}/{remote_id}",
            params={"status": STATUS_DRAFT, "context": "edit"},
        )
        return self._parse_note(response)

    def create_draft(self, content: str) -> RemoteDraft:
        """Create a new draft.

        Returns:
            The created draft with its assigned id and timestamp.
        """
        response = self._request(
            "POST",
            NOTES_PATH,
            json={"content": content, "status": STATUS_DRAFT},
        )
        return self._parse_note(response)

    def update_draft(self, remote_id: int, content: str) -> RemoteDraft:
        """Replace the content of an existing draft."""
        response = self._request(
            "POST",
            f"{NOTES_PATH}/{remote_id}",
            json={"content": content, "status": STATUS_DRAFT},
        )
        return self._parse_note(response)

    def delete_draft(self, remote_id: int) -> None:
        """Permanently delete a draft, bypassing the trash.

        Deleting a draft that no longer exists is not an error.
        """
        try:
            self._request(
                "DELETE",
                f"{NOTES_PATH}/{remote_id}",
                params={"force": "true"},
            )
        except NotFoundError:
            logger.debug("Draft %s already gone", remote_id)
        except ServerError as e:
            # 410 Gone is what some sites answer for a trashed post
            if e.status_code != 410:
                raise
            logger.debug("Draft %s already gone", remote_id)

    def publish(self, content: str, existing_remote_id: int | None = None) -> RemoteDraft:
        """Publish a note.

        Args:
            content: Note body.
            existing_remote_id: When set, that draft is updated and promoted
                instead of creating a new note.

        Returns:
            The published note.
        """
        url = NOTES_PATH if existing_remote_id is None else f"{NOTES_PATH}/{existing_remote_id}"
        response = self._request(
            "POST",
            url,
            json={"content": content, "status": STATUS_PUBLISH},
        )
        return self._parse_note(response)
