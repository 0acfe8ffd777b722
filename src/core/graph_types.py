"""Linked registry graph models.

This module defines the composite records produced by the linker and
published by the snapshot store. Every collection is immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from core.types import Composition, Condition, Presentation, Specialty


@dataclass(frozen=True)
class SpecialtyRecord:
    """Composite specialty with its attached child records.

    Attributes:
        specialty: Decoded specialty row.
        compositions: Attached compositions in source order.
        presentations: Attached presentations in source order.
        conditions: Attached prescription conditions in source order.
        group_ids: Generic groups this specialty belongs to, first-seen order.
    """

    specialty: Specialty
    compositions: tuple[Composition, ...] = ()
    presentations: tuple[Presentation, ...] = ()
    conditions: tuple[Condition, ...] = ()
    group_ids: tuple[int, ...] = ()

    @property
    def cis(self) -> int:
        """Registry identifier of the specialty."""
        return self.specialty.cis


@dataclass(frozen=True)
class GroupMember:
    """Role-tagged member of a generic group."""

    cis: int
    role_code: int
    role_label: str


@dataclass(frozen=True)
class GenericGroup:
    """Set of therapeutically equivalent specialties.

    Attributes:
        group_id: Group identifier.
        label: Display label from the first row of the group.
        normalized_label: Lower-cased label with ``+`` replaced by spaces.
        members: Resolved members in source order.
        orphan_cis: Member identifiers absent from the specialty set.
    """

    group_id: int
    label: str
    normalized_label: str
    members: tuple[GroupMember, ...] = ()
    orphan_cis: tuple[int, ...] = ()

    def member_ids(self) -> tuple[int, ...]:
        """Return member specialty identifiers in order."""
        return tuple(member.cis for member in self.members)


@dataclass(frozen=True)
class ResolvedGroup:
    """Generic group joined with its member specialty records."""

    group: GenericGroup
    member_records: tuple[SpecialtyRecord, ...]


@dataclass(frozen=True)
class RegistryGraph:
    """Fully linked registry graph.

    Attributes:
        specialties: Composite specialties in source order.
        groups: Generic groups in first-seen order.
        specialty_index: Specialty identifier to composite record.
        group_index: Group identifier to group.
        cip7_index: Short packaging code to presentation.
        cip13_index: Long packaging code to presentation.
    """

    specialties: tuple[SpecialtyRecord, ...]
    groups: tuple[GenericGroup, ...]
    specialty_index: Mapping[int, SpecialtyRecord]
    group_index: Mapping[int, GenericGroup]
    cip7_index: Mapping[int, Presentation]
    cip13_index: Mapping[int, Presentation]
