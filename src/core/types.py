"""Shared typed models.

This module defines immutable row records and per-cycle reports used by
ingest, link, store, and refresh layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Mapping, TypeVar

RecordT = TypeVar("RecordT")
IndexValueT = TypeVar("IndexValueT")


@dataclass(frozen=True)
class Specialty:
    """One registered pharmaceutical product.

    Attributes:
        cis: Registry identifier of the specialty.
        name: Denomination.
        pharmaceutical_form: Pharmaceutical form.
        administration_routes: Administration routes in source order.
        authorization_status: Marketing authorization status.
        procedure_type: Authorization procedure type.
        marketing_status: Commercialisation state.
        authorization_date: Authorization date as published (dd/mm/yyyy).
        registry_status: Registry status such as an availability alert.
        european_authorization_number: European authorization number.
        holder: Authorization holder name.
        enhanced_surveillance: Whether the product is under enhanced surveillance.
    """

    cis: int
    name: str
    pharmaceutical_form: str
    administration_routes: tuple[str, ...]
    authorization_status: str
    procedure_type: str
    marketing_status: str
    authorization_date: str
    registry_status: str
    european_authorization_number: str
    holder: str
    enhanced_surveillance: bool


@dataclass(frozen=True)
class Composition:
    """One active-substance line item of a specialty.

    Attributes:
        cis: Owning specialty identifier.
        pharmaceutical_element: Element the substance belongs to.
        substance_code: Substance code.
        substance_name: Substance denomination.
        dosage: Dosage text.
        dosage_reference: Reference quantity for the dosage.
        component_nature: Component nature (active substance or fraction).
        linkage_number: Sequence linking substance and therapeutic fraction.
    """

    cis: int
    pharmaceutical_element: str
    substance_code: int
    substance_name: str
    dosage: str
    dosage_reference: str
    component_nature: str
    linkage_number: int | None = None


@dataclass(frozen=True)
class Presentation:
    """One packaging line item of a specialty.

    Attributes:
        cis: Owning specialty identifier.
        cip7: Short packaging code.
        label: Packaging label.
        administrative_status: Administrative status of the packaging.
        marketing_status: Commercialisation state.
        declaration_date: Marketing declaration date as published.
        cip13: Long packaging code.
        institutional_agreement: Agreement for institutional use.
        reimbursement_rate: Reimbursement rate text.
        price: Price in euros truncated to cents, ``None`` when absent.
    """

    cis: int
    cip7: int
    label: str
    administrative_status: str
    marketing_status: str
    declaration_date: str
    cip13: int
    institutional_agreement: str
    reimbursement_rate: str
    price: float | None = None


@dataclass(frozen=True)
class Condition:
    """One prescription-restriction note of a specialty."""

    cis: int
    text: str


@dataclass(frozen=True)
class GenericGroupRow:
    """One decoded row of the generic-group source.

    Attributes:
        group_id: Group identifier.
        label: Group display label.
        cis: Member specialty identifier.
        role_code: Numeric role classification.
        role_label: Human-readable role.
    """

    group_id: int
    label: str
    cis: int
    role_code: int
    role_label: str


@dataclass(frozen=True)
class RowReject:
    """One source row excluded during decoding.

    Attributes:
        source_name: Source the row came from.
        line_number: One-based line number in the source.
        reason: Machine-readable reject reason.
        detail: Human-readable detail.
        raw_line: Truncated raw line for diagnostics.
    """

    source_name: str
    line_number: int
    reason: str
    detail: str
    raw_line: str


@dataclass(frozen=True)
class EntityLoadResult(Generic[RecordT, IndexValueT]):
    """Output of one entity loader.

    Attributes:
        source_name: Loaded source name.
        records: Valid records in source order.
        rejects: Rows excluded with reasons.
        index: Specialty identifier to owned record(s).
        line_numbers: Source line number of each record, aligned with ``records``.
        total_lines: Lines read, including empty ones.
        empty_lines: Empty lines skipped silently.
    """

    source_name: str
    records: tuple[RecordT, ...]
    rejects: tuple[RowReject, ...]
    index: Mapping[int, IndexValueT]
    line_numbers: tuple[int, ...] = ()
    total_lines: int = 0
    empty_lines: int = 0

    @property
    def reject_count(self) -> int:
        """Number of rejected rows."""
        return len(self.rejects)


@dataclass(frozen=True)
class LoadedSources:
    """The five loaded entity sets consumed by the linker."""

    specialties: EntityLoadResult[Specialty, Specialty]
    compositions: EntityLoadResult[Composition, tuple[Composition, ...]]
    presentations: EntityLoadResult[Presentation, tuple[Presentation, ...]]
    conditions: EntityLoadResult[Condition, tuple[Condition, ...]]
    generic_groups: EntityLoadResult[GenericGroupRow, tuple[GenericGroupRow, ...]]

    def all_results(self) -> tuple[EntityLoadResult, ...]:
        """Return load results in canonical source order."""
        return (
            self.specialties,
            self.compositions,
            self.presentations,
            self.conditions,
            self.generic_groups,
        )


@dataclass(frozen=True)
class OrphanReference:
    """A child record or membership row pointing at an unknown specialty.

    Attributes:
        source_name: Source of the orphaned record.
        cis: Unresolved specialty identifier.
        line_number: One-based source line number, 0 when unknown.
        group_id: Group identifier for generic-group orphans.
    """

    source_name: str
    cis: int
    line_number: int = 0
    group_id: int | None = None


@dataclass(frozen=True)
class LinkWarning:
    """Non-fatal linker observation such as a repeated membership row."""

    kind: str
    detail: str
    group_id: int | None = None
    cis: int | None = None


@dataclass(frozen=True)
class DataQualityReport:
    """Summary of data quality issues in one linked graph.

    Attributes:
        specialties_without_compositions: Count of specialties lacking compositions.
        specialties_without_presentations: Count lacking presentations.
        specialties_without_conditions: Count lacking conditions.
        specialties_without_groups: Count outside any generic group.
        duplicate_cip7: Short packaging codes seen more than once.
        duplicate_cip13: Long packaging codes seen more than once.
        groups_without_members: Groups with no resolved member.
    """

    specialties_without_compositions: int = 0
    specialties_without_presentations: int = 0
    specialties_without_conditions: int = 0
    specialties_without_groups: int = 0
    duplicate_cip7: tuple[int, ...] = ()
    duplicate_cip13: tuple[int, ...] = ()
    groups_without_members: tuple[int, ...] = ()


@dataclass(frozen=True)
class RefreshReport:
    """Per-cycle aggregate of counts, rejects, and orphans.

    Attributes:
        record_counts: Accepted records per source.
        reject_counts: Rejected rows per source.
        orphan_counts: Orphan references per source.
        specialty_count: Specialties in the linked graph.
        group_count: Generic groups in the linked graph.
        rejects: All row rejects of the cycle.
        orphans: All orphan references of the cycle.
        warnings: Linker warnings of the cycle.
        quality: Data quality summary.
        duration_seconds: Wall time of the cycle.
    """

    record_counts: Mapping[str, int]
    reject_counts: Mapping[str, int]
    orphan_counts: Mapping[str, int]
    specialty_count: int
    group_count: int
    rejects: tuple[RowReject, ...] = ()
    orphans: tuple[OrphanReference, ...] = ()
    warnings: tuple[LinkWarning, ...] = ()
    quality: DataQualityReport = field(default_factory=DataQualityReport)
    duration_seconds: float = 0.0


@dataclass(frozen=True)
class RefreshOutcome:
    """Operational signal emitted after every refresh request.

    Attributes:
        status: ``succeeded``, ``failed``, or ``skipped``.
        started_at: UTC time the request started.
        finished_at: UTC time the request finished.
        snapshot_version: Published version on success, else the version still served.
        report: Cycle report on success.
        error: Failure or skip message.
        failed_source: Source named by a structural or acquisition failure.
    """

    status: str
    started_at: datetime
    finished_at: datetime
    snapshot_version: int | None = None
    report: RefreshReport | None = None
    error: str | None = None
    failed_source: str | None = None
