"""Cross-referencing of loaded registry sources.

This module reconciles the five loaded entity sets into one immutable
graph keyed by specialty identifier. It builds identifier indices first
and then makes a single pass over every child source, so linking stays
linear in the total row count.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable

from core.constants import (
    GENERIC_GROUPS_SOURCE,
    SPECIALTIES_SOURCE,
    WARNING_DUPLICATE_MEMBERSHIP,
    WARNING_LABEL_CONFLICT,
)
from core.errors import RegistryLinkError
from core.graph_types import GenericGroup, GroupMember, RegistryGraph, SpecialtyRecord
from core.logging_config import get_logger
from core.types import (
    EntityLoadResult,
    GenericGroupRow,
    LinkWarning,
    LoadedSources,
    OrphanReference,
    Presentation,
    Specialty,
)

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class LinkResult:
    """Linked graph with the per-row issues found while linking.

    Attributes:
        graph: Immutable composite graph.
        orphans: Child or membership rows pointing at unknown specialties.
        warnings: Non-fatal observations such as repeated memberships.
    """

    graph: RegistryGraph
    orphans: tuple[OrphanReference, ...]
    warnings: tuple[LinkWarning, ...]


class _GroupBuilder:
    """Mutable accumulator for one generic group during linking."""

    def __init__(self, group_id: int, label: str) -> None:
        self.group_id = group_id
        self.label = label
        self.members: list[GroupMember] = []
        self.member_ids: set[int] = set()
        self.orphan_cis: list[int] = []

    def freeze(self) -> GenericGroup:
        return GenericGroup(
            group_id=self.group_id,
            label=self.label,
            normalized_label=normalize_label(self.label),
            members=tuple(self.members),
            orphan_cis=tuple(self.orphan_cis),
        )


def link_sources(sources: LoadedSources) -> LinkResult:
    """Build the composite registry graph from loaded sources.

    Args:
        sources: The five loaded entity sets.

    Returns:
        Linked graph plus orphan and warning lists.

    Raises:
        RegistryLinkError: If a specialty identifier appears more than once.
    """
    specialties = _build_specialty_table(sources.specialties)
    orphans: list[OrphanReference] = []
    warnings: list[LinkWarning] = []
    compositions = _attach_children(sources.compositions, specialties, orphans)
    presentations = _attach_children(sources.presentations, specialties, orphans)
    conditions = _attach_children(sources.conditions, specialties, orphans)
    groups, memberships = _resolve_groups(sources.generic_groups, specialties, orphans, warnings)

    records: list[SpecialtyRecord] = []
    for cis, specialty in specialties.items():
        records.append(
            SpecialtyRecord(
                specialty=specialty,
                compositions=tuple(compositions.get(cis, ())),
                presentations=tuple(presentations.get(cis, ())),
                conditions=tuple(conditions.get(cis, ())),
                group_ids=tuple(memberships.get(cis, ())),
            )
        )
    frozen_groups = tuple(builder.freeze() for builder in groups.values())
    graph = _build_graph(tuple(records), frozen_groups)
    _log_link(graph, orphans, warnings)
    return LinkResult(graph=graph, orphans=tuple(orphans), warnings=tuple(warnings))


def normalize_label(label: str) -> str:
    """Normalize a group label for case-insensitive search."""
    return label.lower().replace("+", " ")


def _build_specialty_table(result: EntityLoadResult) -> dict[int, Specialty]:
    """Index specialties by identifier, rejecting duplicates structurally.

    Raises:
        RegistryLinkError: On a duplicate identifier.
    """
    table: dict[int, Specialty] = {}
    for record, line_number in _with_line_numbers(result):
        if record.cis in table:
            raise RegistryLinkError(
                f"Duplicate specialty identifier {record.cis} in source "
                f"'{SPECIALTIES_SOURCE}' at line {line_number}. "
                "Refusing to overwrite; the previous snapshot stays published.",
                source_name=SPECIALTIES_SOURCE,
            )
        table[record.cis] = record
    return table


def _attach_children(
    result: EntityLoadResult,
    specialties: dict[int, Specialty],
    orphans: list[OrphanReference],
) -> dict[int, list]:
    """Group child records under their owning specialty in source order."""
    attached: dict[int, list] = {}
    for record, line_number in _with_line_numbers(result):
        if record.cis not in specialties:
            orphans.append(
                OrphanReference(
                    source_name=result.source_name,
                    cis=record.cis,
                    line_number=line_number,
                )
            )
            continue
        attached.setdefault(record.cis, []).append(record)
    return attached


def _resolve_groups(
    result: EntityLoadResult,
    specialties: dict[int, Specialty],
    orphans: list[OrphanReference],
    warnings: list[LinkWarning],
) -> tuple[dict[int, _GroupBuilder], dict[int, list[int]]]:
    """Resolve generic groups and the specialty back-links in one pass.

    Returns:
        Group builders by group id and group ids by member specialty.
    """
    groups: dict[int, _GroupBuilder] = {}
    memberships: dict[int, list[int]] = {}
    for row, line_number in _with_line_numbers(result):
        builder = groups.get(row.group_id)
        if builder is None:
            builder = _GroupBuilder(row.group_id, row.label)
            groups[row.group_id] = builder
        elif row.label != builder.label:
            warnings.append(
                LinkWarning(
                    kind=WARNING_LABEL_CONFLICT,
                    detail=f"line {line_number} labels group '{row.label}', kept '{builder.label}'",
                    group_id=row.group_id,
                    cis=row.cis,
                )
            )
        if row.cis not in specialties:
            orphans.append(
                OrphanReference(
                    source_name=GENERIC_GROUPS_SOURCE,
                    cis=row.cis,
                    line_number=line_number,
                    group_id=row.group_id,
                )
            )
            if row.cis not in builder.orphan_cis:
                builder.orphan_cis.append(row.cis)
            continue
        if row.cis in builder.member_ids:
            warnings.append(
                LinkWarning(
                    kind=WARNING_DUPLICATE_MEMBERSHIP,
                    detail=f"line {line_number} repeats member {row.cis} of group {row.group_id}",
                    group_id=row.group_id,
                    cis=row.cis,
                )
            )
            continue
        _add_membership(builder, memberships, row)
    return groups, memberships


def _add_membership(
    builder: _GroupBuilder,
    memberships: dict[int, list[int]],
    row: GenericGroupRow,
) -> None:
    """Record one membership on both the group and the specialty side."""
    builder.members.append(
        GroupMember(cis=row.cis, role_code=row.role_code, role_label=row.role_label)
    )
    builder.member_ids.add(row.cis)
    memberships.setdefault(row.cis, []).append(row.group_id)


def _build_graph(
    records: tuple[SpecialtyRecord, ...],
    groups: tuple[GenericGroup, ...],
) -> RegistryGraph:
    cip7_index: dict[int, Presentation] = {}
    cip13_index: dict[int, Presentation] = {}
    for record in records:
        for presentation in record.presentations:
            cip7_index.setdefault(presentation.cip7, presentation)
            cip13_index.setdefault(presentation.cip13, presentation)
    return RegistryGraph(
        specialties=records,
        groups=groups,
        specialty_index=MappingProxyType({record.cis: record for record in records}),
        group_index=MappingProxyType({group.group_id: group for group in groups}),
        cip7_index=MappingProxyType(cip7_index),
        cip13_index=MappingProxyType(cip13_index),
    )


def _with_line_numbers(result: EntityLoadResult) -> Iterable[tuple]:
    """Pair records with their source line numbers, 0 when unknown."""
    if len(result.line_numbers) == len(result.records):
        return zip(result.records, result.line_numbers)
    return ((record, 0) for record in result.records)


def _log_link(
    graph: RegistryGraph,
    orphans: list[OrphanReference],
    warnings: list[LinkWarning],
) -> None:
    _LOGGER.info(
        "sources_linked",
        specialty_count=len(graph.specialties),
        group_count=len(graph.groups),
        orphan_count=len(orphans),
        warning_count=len(warnings),
    )
    if orphans:
        by_source: dict[str, int] = {}
        for orphan in orphans:
            by_source[orphan.source_name] = by_source.get(orphan.source_name, 0) + 1
        _LOGGER.warning("orphans_detected", orphan_counts=by_source)
