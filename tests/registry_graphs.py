"""Graph builders shared by store and refresh tests."""

from __future__ import annotations

from types import MappingProxyType

from core.config import RegistryConfig
from core.graph_types import RegistryGraph
from core.types import RefreshReport
from ingest.entity_loader import load_all_sources
from link.linker import link_sources
from tests.fixture_paths import read_fixture_sources


def fixture_graph() -> RegistryGraph:
    """Link the sample fixture sources into a fresh graph."""
    return link_sources(load_all_sources(read_fixture_sources(), RegistryConfig())).graph


def empty_report(graph: RegistryGraph) -> RefreshReport:
    """Build a minimal cycle report for a graph."""
    return RefreshReport(
        record_counts=MappingProxyType({}),
        reject_counts=MappingProxyType({}),
        orphan_counts=MappingProxyType({}),
        specialty_count=len(graph.specialties),
        group_count=len(graph.groups),
    )
