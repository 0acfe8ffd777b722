"""Unit tests for the registry SDK client."""

from __future__ import annotations

import pytest

from core.config import RegistryConfig
from core.errors import RegistryStoreError
from store.registry_sdk import RegistryClient
from tests.fixture_paths import fixture_source_root


def _client() -> RegistryClient:
    return RegistryClient(RegistryConfig(source_root=str(fixture_source_root())))


def test_snapshot_raises_before_refresh() -> None:
    """Lookups before any refresh should fail with a store error."""
    with pytest.raises(RegistryStoreError):
        _client().specialty(60001234)


def test_refresh_then_lookup_specialty() -> None:
    """A refreshed client should serve specialty lookups."""
    client = _client()

    outcome = client.refresh()

    assert outcome.status == "succeeded"
    assert client.specialty(60001234).specialty.name == "DOLIPRANE 500 mg, comprimé"


def test_presentation_lookup_by_cip13() -> None:
    """The client should resolve presentations by long code."""
    client = _client()
    client.refresh()

    assert client.presentation(3400930000001).cis == 60001234


def test_with_source_root_returns_fresh_client(tmp_path) -> None:
    """Cloning with another root should point refreshes at it."""
    client = _client().with_source_root(str(tmp_path))

    outcome = client.refresh()

    assert outcome.status == "failed" and client.config.source_root == str(tmp_path)


def test_start_and_stop_scheduler() -> None:
    """Starting the client should publish before returning."""
    client = _client()

    client.start()
    try:
        assert client.snapshot().version == 1
        assert client.health().next_refresh_at is not None
    finally:
        client.stop()
