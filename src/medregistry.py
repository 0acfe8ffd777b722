"""Public SDK surface for the medicine registry.

This module provides a stable import path for library users.
It re-exports the primary client and the snapshot read models.
"""

from __future__ import annotations

from core.config import RegistryConfig
from core.graph_types import GenericGroup, GroupMember, RegistryGraph, ResolvedGroup, SpecialtyRecord
from core.types import (
    Composition,
    Condition,
    Presentation,
    RefreshOutcome,
    RefreshReport,
    Specialty,
)
from refresh.health import HealthStatus
from store.registry_sdk import RegistryClient
from store.snapshot import RegistrySnapshot

__all__ = [
    "Composition",
    "Condition",
    "GenericGroup",
    "GroupMember",
    "HealthStatus",
    "Presentation",
    "RefreshOutcome",
    "RefreshReport",
    "RegistryClient",
    "RegistryConfig",
    "RegistryGraph",
    "RegistrySnapshot",
    "ResolvedGroup",
    "Specialty",
    "SpecialtyRecord",
]
