"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from notepost.client.state import LocalDraftStore
from tests.fakes import FakeGateway, FakeKeyring


@pytest.fixture
def store(tmp_path: Path) -> Generator[LocalDraftStore, None, None]:
    """Create a LocalDraftStore instance."""
    s = LocalDraftStore(tmp_path / "drafts.db")
    yield s
    s.close()


@pytest.fixture
def gateway() -> FakeGateway:
    """Create an empty in-memory site."""
    return FakeGateway()


@pytest.fixture
def fake_keyring(monkeypatch: pytest.MonkeyPatch) -> FakeKeyring:
    """Route credential storage to an in-memory keyring."""
    fake = FakeKeyring()
    monkeypatch.setattr("notepost.client.credentials.keyring", fake)
    return fake


@pytest.fixture
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temporary config directory."""
    config = tmp_path / ".notepost"
    monkeypatch.setenv("NOTEPOST_CONFIG_DIR", str(config))
    return config
