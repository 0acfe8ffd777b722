"""Unit tests for cross-referencing loaded registry sources."""

from __future__ import annotations

import pytest

from core.config import RegistryConfig
from core.constants import WARNING_DUPLICATE_MEMBERSHIP, WARNING_LABEL_CONFLICT
from core.errors import RegistryLinkError
from core.types import EntityLoadResult, GenericGroupRow, LoadedSources
from ingest.entity_loader import load_all_sources
from ingest.row_decoders import decode_specialty_row
from link.linker import link_sources, normalize_label
from tests.fixture_paths import read_fixture_sources, specialty_row, tsv


def _composition(cis: int) -> tuple[object, ...]:
    return (cis, "comprimé", 2202, "PARACÉTAMOL", "500 mg", "un comprimé", "SA")


def _presentation(cis: int, cip7: int, cip13: int) -> tuple[object, ...]:
    return (cis, cip7, "boîte", "Présentation active", "Déclaration", "01/01/2000", cip13, "oui", "65%", "2,50")


def _load(
    specialties: bytes,
    compositions: bytes | None = None,
    presentations: bytes | None = None,
    conditions: bytes | None = None,
    groups: bytes | None = None,
) -> LoadedSources:
    contents = {
        "specialties": specialties,
        "compositions": compositions or tsv(_composition(1)),
        "presentations": presentations or tsv(_presentation(1, 1000001, 3400910000001)),
        "conditions": conditions or tsv((1, "liste I")),
        "generic_groups": groups or tsv((100, "Group1", 1, 0, 100)),
    }
    return load_all_sources(contents, RegistryConfig())


def test_link_builds_group_and_back_link() -> None:
    """A group row should create the group and the specialty back-link."""
    result = link_sources(_load(tsv(specialty_row(1))))

    group = result.graph.group_index[100]
    assert group.label == "Group1"
    assert [(member.cis, member.role_code) for member in group.members] == [(1, 0)]
    assert result.graph.specialty_index[1].group_ids == (100,)


def test_link_excludes_mismatched_group_row() -> None:
    """A row with disagreeing group columns never creates a membership."""
    groups = tsv((100, "Group1", 1, 0, 100), (100, "Group1", 2, 1, 101), (200, "Group2", 3, 0, 200))
    specialties = tsv(specialty_row(1), specialty_row(2), specialty_row(3))

    result = link_sources(_load(specialties, groups=groups))

    assert result.graph.specialty_index[2].group_ids == ()
    assert 101 not in result.graph.group_index


def test_link_records_orphan_composition() -> None:
    """A composition for an unknown specialty is reported and excluded."""
    compositions = tsv(_composition(1), _composition(999))

    result = link_sources(_load(tsv(specialty_row(1)), compositions=compositions))

    assert [(orphan.source_name, orphan.cis, orphan.line_number) for orphan in result.orphans] == [
        ("compositions", 999, 2)
    ]
    assert len(result.graph.specialty_index[1].compositions) == 1


def test_link_keeps_orphan_group_members_on_group() -> None:
    """Unknown group members are listed on the group, not as members."""
    groups = tsv((100, "Group1", 1, 0, 100), (100, "Group1", 42, 1, 100))

    result = link_sources(_load(tsv(specialty_row(1)), groups=groups))

    group = result.graph.group_index[100]
    assert group.member_ids() == (1,) and group.orphan_cis == (42,)
    assert result.orphans[0].group_id == 100


def test_link_raises_for_duplicate_specialty() -> None:
    """A repeated specialty identifier aborts linking."""
    with pytest.raises(RegistryLinkError) as error:
        link_sources(_load(tsv(specialty_row(1), specialty_row(1, "AUTRE NOM"))))

    assert error.value.source_name == "specialties"


def test_link_ignores_repeated_membership() -> None:
    """A repeated (group, member) row adds one membership and a warning."""
    groups = tsv((100, "Group1", 1, 0, 100), (100, "Group1", 1, 0, 100))

    result = link_sources(_load(tsv(specialty_row(1)), groups=groups))

    assert len(result.graph.group_index[100].members) == 1
    assert result.graph.specialty_index[1].group_ids == (100,)
    assert [warning.kind for warning in result.warnings] == [WARNING_DUPLICATE_MEMBERSHIP]


def test_link_keeps_first_group_label() -> None:
    """Later differing labels keep the first one and warn."""
    groups = tsv((100, "Group1", 1, 0, 100), (100, "Group One", 2, 1, 100))

    result = link_sources(_load(tsv(specialty_row(1), specialty_row(2)), groups=groups))

    assert result.graph.group_index[100].label == "Group1"
    assert result.warnings[0].kind == WARNING_LABEL_CONFLICT


def test_link_preserves_source_order() -> None:
    """Specialties and groups enumerate in insertion order."""
    specialties = tsv(specialty_row(3), specialty_row(1), specialty_row(2))
    groups = tsv((300, "G3", 3, 0, 300), (100, "G1", 1, 0, 100))

    graph = link_sources(_load(specialties, groups=groups)).graph

    assert [record.cis for record in graph.specialties] == [3, 1, 2]
    assert [group.group_id for group in graph.groups] == [300, 100]


def test_link_builds_cip_indices() -> None:
    """Presentations are indexed by both packaging codes."""
    graph = link_sources(_load(tsv(specialty_row(1)))).graph

    assert graph.cip7_index[1000001] is graph.cip13_index[3400910000001]


def test_link_is_deterministic_for_same_input() -> None:
    """Linking the same sources twice yields equal graphs."""
    first = link_sources(load_all_sources(read_fixture_sources(), RegistryConfig()))
    second = link_sources(load_all_sources(read_fixture_sources(), RegistryConfig()))

    assert first.graph.specialties == second.graph.specialties
    assert first.graph.groups == second.graph.groups


def test_normalize_label_replaces_plus_and_case() -> None:
    """Normalized labels are lower-case with plus signs as spaces."""
    assert normalize_label("IBUPROFENE + CODEINE") == "ibuprofene   codeine"


def _result(source_name: str, records: tuple = ()) -> EntityLoadResult:
    return EntityLoadResult(source_name=source_name, records=records, rejects=(), index={})


def test_link_single_member_group_without_children() -> None:
    """A childless specialty still joins its group in both directions."""
    specialty = decode_specialty_row("\t".join(str(value) for value in specialty_row(1, "Test Med")))
    sources = LoadedSources(
        specialties=_result("specialties", (specialty,)),
        compositions=_result("compositions"),
        presentations=_result("presentations"),
        conditions=_result("conditions"),
        generic_groups=_result(
            "generic_groups",
            (GenericGroupRow(group_id=100, label="Group1", cis=1, role_code=0, role_label="Princeps"),),
        ),
    )

    graph = link_sources(sources).graph

    record = graph.specialty_index[1]
    assert record.specialty.name == "Test Med"
    assert (record.compositions, record.presentations, record.conditions) == ((), (), ())
    assert graph.group_index[100].member_ids() == (1,)
    assert record.group_ids == (100,)


def test_link_memberships_are_bidirectional() -> None:
    """Every group member back-links to the group and nothing else does."""
    graph = link_sources(load_all_sources(read_fixture_sources(), RegistryConfig())).graph

    for group in graph.groups:
        for cis in group.member_ids():
            assert group.group_id in graph.specialty_index[cis].group_ids
    for record in graph.specialties:
        for group_id in record.group_ids:
            assert record.cis in graph.group_index[group_id].member_ids()


def test_link_attaches_children_to_matching_identifier_only() -> None:
    """Attached child records always carry their owner's identifier."""
    graph = link_sources(load_all_sources(read_fixture_sources(), RegistryConfig())).graph

    for record in graph.specialties:
        children = record.compositions + record.presentations + record.conditions
        assert all(child.cis == record.cis for child in children)
