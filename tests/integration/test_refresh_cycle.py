"""Integration tests for end-to-end refresh cycles."""

from __future__ import annotations

import httpx

from core.config import RegistryConfig
from core.constants import SOURCE_FILE_NAMES
from ingest.source_reader import read_source_bytes
from store.registry_sdk import RegistryClient
from tests.fixture_paths import fixture_source_root, read_fixture_sources


def test_local_refresh_serves_linked_graph() -> None:
    """Refreshing from the fixture directory links every source."""
    client = RegistryClient(RegistryConfig(source_root=str(fixture_source_root())))

    outcome = client.refresh()
    snapshot = client.snapshot()

    assert outcome.status == "succeeded"
    assert [record.cis for record in snapshot.list_specialties()] == [60001234, 60002345, 60003456]
    assert snapshot.get_specialty(60003456).conditions[0].text.startswith("prescription réservée")
    assert outcome.report.quality.specialties_without_conditions == 2


def test_http_refresh_uses_mirror_and_keeps_snapshot_on_outage() -> None:
    """An HTTP outage after a good cycle keeps serving the first snapshot."""
    files = {SOURCE_FILE_NAMES[name]: content for name, content in read_fixture_sources().items()}
    state = {"down": False}

    def handler(request: httpx.Request) -> httpx.Response:
        if state["down"]:
            return httpx.Response(502)
        return httpx.Response(200, content=files[request.url.path.rsplit("/", 1)[-1]])

    transport = httpx.MockTransport(handler)
    config = RegistryConfig(source_root="https://mirror.example.org/bdpm")

    def fetch(source_name: str, uri: str) -> bytes:
        return read_source_bytes(source_name, uri, config, http_transport=transport)

    client = RegistryClient(config, fetcher=fetch)
    first = client.refresh()
    state["down"] = True
    second = client.refresh()

    assert first.status == "succeeded" and second.status == "failed"
    assert client.snapshot().version == 1
    assert client.group(100).group.label.startswith("PARACETAMOL 500 mg")
    assert client.health().last_error is not None
