"""Entity loaders for registry sources.

This module reads one source end-to-end through its row decoder and
returns valid records, row rejects, and an index by specialty identifier.
Per-row problems are collected; structurally broken sources raise.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Callable, Generic, Mapping, TypeVar

from core.config import RegistryConfig
from core.constants import (
    COMPOSITIONS_SOURCE,
    CONDITIONS_SOURCE,
    DEFAULT_MAX_REJECT_RATIO,
    GENERIC_GROUPS_SOURCE,
    PRESENTATIONS_SOURCE,
    REJECT_GROUP_ID_MISMATCH,
    REJECT_RAW_LINE_PREVIEW,
    SPECIALTIES_SOURCE,
)
from core.errors import RegistryIngestError, RegistryRowError
from core.logging_config import get_logger
from core.types import (
    Composition,
    Condition,
    EntityLoadResult,
    GenericGroupRow,
    LoadedSources,
    Presentation,
    RowReject,
    Specialty,
)
from ingest.row_decoders import (
    decode_composition_row,
    decode_condition_row,
    decode_generic_group_row,
    decode_presentation_row,
    decode_specialty_row,
)
from ingest.text_decoding import decode_source_bytes, split_source_lines

_LOGGER = get_logger(__name__)

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class _DecodedRows(Generic[RecordT]):
    """Intermediate decode output before indexing."""

    records: tuple[RecordT, ...]
    line_numbers: tuple[int, ...]
    rejects: tuple[RowReject, ...]
    total_lines: int
    empty_lines: int


def load_specialties(
    content: bytes,
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO,
) -> EntityLoadResult[Specialty, Specialty]:
    """Load the specialty source.

    The index keeps the first record of each identifier; duplicates are
    left in ``records`` so the linker can reject them structurally.

    Args:
        content: Raw source bytes.
        max_reject_ratio: Rejected share above which the source is garbled.

    Returns:
        Load result indexed by identifier to a single specialty.

    Raises:
        RegistryIngestError: If the source is empty or systematically malformed.
    """
    decoded = _decode_rows(SPECIALTIES_SOURCE, content, decode_specialty_row, max_reject_ratio)
    index: dict[int, Specialty] = {}
    for record in decoded.records:
        index.setdefault(record.cis, record)
    return _build_result(SPECIALTIES_SOURCE, decoded, index)


def load_compositions(
    content: bytes,
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO,
) -> EntityLoadResult[Composition, tuple[Composition, ...]]:
    """Load the composition source."""
    decoded = _decode_rows(COMPOSITIONS_SOURCE, content, decode_composition_row, max_reject_ratio)
    return _build_result(COMPOSITIONS_SOURCE, decoded, _group_by_cis(decoded.records))


def load_presentations(
    content: bytes,
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO,
) -> EntityLoadResult[Presentation, tuple[Presentation, ...]]:
    """Load the presentation source."""
    decoded = _decode_rows(
        PRESENTATIONS_SOURCE, content, decode_presentation_row, max_reject_ratio
    )
    return _build_result(PRESENTATIONS_SOURCE, decoded, _group_by_cis(decoded.records))


def load_conditions(
    content: bytes,
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO,
) -> EntityLoadResult[Condition, tuple[Condition, ...]]:
    """Load the prescription condition source."""
    decoded = _decode_rows(CONDITIONS_SOURCE, content, decode_condition_row, max_reject_ratio)
    return _build_result(CONDITIONS_SOURCE, decoded, _group_by_cis(decoded.records))


def load_generic_groups(
    content: bytes,
    max_reject_ratio: float = DEFAULT_MAX_REJECT_RATIO,
    validate_trailer: bool = True,
) -> EntityLoadResult[GenericGroupRow, tuple[GenericGroupRow, ...]]:
    """Load the generic-group source.

    Args:
        content: Raw source bytes.
        max_reject_ratio: Rejected share above which the source is garbled.
        validate_trailer: Whether the trailing group identifier must match.

    Returns:
        Load result indexed by member specialty identifier.

    Raises:
        RegistryIngestError: If the source is empty, systematically
            malformed, or its duplicated group column has drifted.
    """
    decoder = partial(decode_generic_group_row, validate_trailer=validate_trailer)
    decoded = _decode_rows(GENERIC_GROUPS_SOURCE, content, decoder, max_reject_ratio)
    return _build_result(GENERIC_GROUPS_SOURCE, decoded, _group_by_cis(decoded.records))


def load_all_sources(contents: Mapping[str, bytes], config: RegistryConfig) -> LoadedSources:
    """Run every entity loader over acquired source contents.

    Args:
        contents: Raw bytes keyed by source name.
        config: Runtime configuration with reject policy.

    Returns:
        The five loaded entity sets.

    Raises:
        RegistryIngestError: If any source is structurally broken.
    """
    ratio = config.max_reject_ratio
    return LoadedSources(
        specialties=load_specialties(contents[SPECIALTIES_SOURCE], ratio),
        compositions=load_compositions(contents[COMPOSITIONS_SOURCE], ratio),
        presentations=load_presentations(contents[PRESENTATIONS_SOURCE], ratio),
        conditions=load_conditions(contents[CONDITIONS_SOURCE], ratio),
        generic_groups=load_generic_groups(
            contents[GENERIC_GROUPS_SOURCE], ratio, config.validate_group_trailer
        ),
    )


def _decode_rows(
    source_name: str,
    content: bytes,
    decoder: Callable[[str], RecordT],
    max_reject_ratio: float,
) -> _DecodedRows[RecordT]:
    """Decode every line of a source and enforce structural rules."""
    lines = split_source_lines(decode_source_bytes(content))
    records: list[RecordT] = []
    line_numbers: list[int] = []
    rejects: list[RowReject] = []
    empty_lines = 0
    for line_number, line in enumerate(lines, 1):
        if not line.strip():
            empty_lines += 1
            continue
        try:
            record = decoder(line)
        except RegistryRowError as error:
            rejects.append(
                RowReject(
                    source_name=source_name,
                    line_number=line_number,
                    reason=error.reason,
                    detail=error.detail,
                    raw_line=line[:REJECT_RAW_LINE_PREVIEW],
                )
            )
            continue
        records.append(record)
        line_numbers.append(line_number)
    decoded = _DecodedRows(
        records=tuple(records),
        line_numbers=tuple(line_numbers),
        rejects=tuple(rejects),
        total_lines=len(lines),
        empty_lines=empty_lines,
    )
    _check_structure(source_name, decoded, max_reject_ratio)
    _log_load(source_name, decoded)
    return decoded


def _check_structure(source_name: str, decoded: _DecodedRows, max_reject_ratio: float) -> None:
    """Raise when a source is empty or malformed on most rows.

    Raises:
        RegistryIngestError: For structural format errors.
    """
    row_count = decoded.total_lines - decoded.empty_lines
    if row_count == 0:
        raise RegistryIngestError(
            f"Source '{source_name}' is empty: no data rows found. "
            "Check that the download completed and the file is not truncated.",
            source_name=source_name,
        )
    reason_counts = Counter(reject.reason for reject in decoded.rejects)
    mismatch_count = reason_counts.get(REJECT_GROUP_ID_MISMATCH, 0)
    if mismatch_count and mismatch_count / row_count > max_reject_ratio:
        raise RegistryIngestError(
            f"Source '{source_name}' duplicated group identifier columns disagree on "
            f"{mismatch_count} of {row_count} rows; the upstream format has drifted.",
            source_name=source_name,
        )
    if not decoded.records or len(decoded.rejects) / row_count > max_reject_ratio:
        raise RegistryIngestError(
            f"Source '{source_name}' is malformed: {len(decoded.rejects)} of {row_count} "
            f"rows rejected ({dict(reason_counts)}). Check the column layout of the file.",
            source_name=source_name,
        )


def _build_result(
    source_name: str,
    decoded: _DecodedRows,
    index: Mapping,
) -> EntityLoadResult:
    return EntityLoadResult(
        source_name=source_name,
        records=decoded.records,
        rejects=decoded.rejects,
        index=MappingProxyType(dict(index)),
        line_numbers=decoded.line_numbers,
        total_lines=decoded.total_lines,
        empty_lines=decoded.empty_lines,
    )


def _group_by_cis(records: tuple) -> dict[int, tuple]:
    """Index child records by owning specialty, keeping source order."""
    grouped: dict[int, list] = {}
    for record in records:
        grouped.setdefault(record.cis, []).append(record)
    return {cis: tuple(items) for cis, items in grouped.items()}


def _log_load(source_name: str, decoded: _DecodedRows) -> None:
    _LOGGER.info(
        "source_loaded",
        source_name=source_name,
        record_count=len(decoded.records),
        reject_count=len(decoded.rejects),
        total_lines=decoded.total_lines,
        empty_lines=decoded.empty_lines,
    )
    if decoded.rejects:
        _LOGGER.warning(
            "rows_rejected",
            source_name=source_name,
            reject_count=len(decoded.rejects),
            reasons=dict(Counter(reject.reason for reject in decoded.rejects)),
            first_line_number=decoded.rejects[0].line_number,
        )
