"""Data quality report over a linked registry graph.

The report counts specialties missing child records and lists duplicated
packaging codes. Nothing here is fatal; findings are logged as warnings.
"""

from __future__ import annotations

from collections import Counter

from core.graph_types import RegistryGraph
from core.logging_config import get_logger
from core.types import DataQualityReport

_LOGGER = get_logger(__name__)


def build_quality_report(graph: RegistryGraph) -> DataQualityReport:
    """Summarize data quality issues in a linked graph.

    Args:
        graph: Linked registry graph.

    Returns:
        Data quality report.
    """
    cip7_counts: Counter[int] = Counter()
    cip13_counts: Counter[int] = Counter()
    for record in graph.specialties:
        for presentation in record.presentations:
            cip7_counts[presentation.cip7] += 1
            cip13_counts[presentation.cip13] += 1
    report = DataQualityReport(
        specialties_without_compositions=_count_missing(graph, "compositions"),
        specialties_without_presentations=_count_missing(graph, "presentations"),
        specialties_without_conditions=_count_missing(graph, "conditions"),
        specialties_without_groups=_count_missing(graph, "group_ids"),
        duplicate_cip7=_duplicates(cip7_counts),
        duplicate_cip13=_duplicates(cip13_counts),
        groups_without_members=tuple(
            group.group_id for group in graph.groups if not group.members
        ),
    )
    _log_report(report)
    return report


def _count_missing(graph: RegistryGraph, attribute: str) -> int:
    return sum(1 for record in graph.specialties if not getattr(record, attribute))


def _duplicates(counts: Counter[int]) -> tuple[int, ...]:
    return tuple(sorted(code for code, count in counts.items() if count > 1))


def _log_report(report: DataQualityReport) -> None:
    if report.duplicate_cip7 or report.duplicate_cip13:
        _LOGGER.warning(
            "data_quality_warning",
            issue="duplicate_cip",
            cip7_duplicates=list(report.duplicate_cip7),
            cip13_duplicates=list(report.duplicate_cip13),
        )
    if report.specialties_without_compositions:
        _LOGGER.warning(
            "data_quality_warning",
            issue="specialties_without_compositions",
            count=report.specialties_without_compositions,
        )
    if report.groups_without_members:
        _LOGGER.warning(
            "data_quality_warning",
            issue="groups_without_members",
            group_ids=list(report.groups_without_members),
        )
