"""Published registry snapshot.

A snapshot pairs one immutable linked graph with its version, publish
time, and cycle report. It is the read surface handed to the serving layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from core.graph_types import GenericGroup, RegistryGraph, ResolvedGroup, SpecialtyRecord
from core.types import Presentation, RefreshReport
from link.linker import normalize_label

_CIP7_LENGTH = 7
_CIP13_LENGTH = 13


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable, fully linked version of the registry.

    Attributes:
        version: Monotonic snapshot number, starting at 1.
        published_at: UTC publish timestamp.
        graph: Linked registry graph.
        report: Report of the refresh cycle that produced the graph.
    """

    version: int
    published_at: datetime
    graph: RegistryGraph
    report: RefreshReport

    def get_specialty(self, cis: int) -> SpecialtyRecord | None:
        """Return the composite specialty for an identifier, if present."""
        return self.graph.specialty_index.get(cis)

    def get_group(self, group_id: int) -> ResolvedGroup | None:
        """Return a generic group joined with its member records.

        Args:
            group_id: Group identifier.

        Returns:
            Resolved group in member order, or ``None`` when unknown.
        """
        group = self.graph.group_index.get(group_id)
        if group is None:
            return None
        member_records = tuple(
            self.graph.specialty_index[member.cis] for member in group.members
        )
        return ResolvedGroup(group=group, member_records=member_records)

    def get_presentation(self, cip: int) -> Presentation | None:
        """Look up a presentation by its 7-digit or 13-digit packaging code."""
        if len(str(cip)) == _CIP13_LENGTH:
            return self.graph.cip13_index.get(cip)
        if len(str(cip)) <= _CIP7_LENGTH:
            return self.graph.cip7_index.get(cip)
        return None

    def list_specialties(self) -> tuple[SpecialtyRecord, ...]:
        """Return all specialties in source order."""
        return self.graph.specialties

    def list_groups(self) -> tuple[GenericGroup, ...]:
        """Return all generic groups in first-seen order."""
        return self.graph.groups

    def search_groups(self, text: str) -> tuple[GenericGroup, ...]:
        """Return groups whose normalized label contains ``text``."""
        needle = normalize_label(text).strip()
        if not needle:
            return ()
        return tuple(group for group in self.graph.groups if needle in group.normalized_label)

    def counts(self) -> dict[str, int]:
        """Return headline counts for health and cache headers."""
        return {
            "version": self.version,
            "specialties": len(self.graph.specialties),
            "groups": len(self.graph.groups),
            "presentations": len(self.graph.cip13_index),
        }
