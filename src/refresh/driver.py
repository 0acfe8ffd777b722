"""Refresh cycle orchestration.

This module runs one acquire, decode, link, and publish cycle at a time.
A failed cycle leaves the previously published snapshot untouched.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Callable

from core.config import RegistryConfig
from core.constants import (
    REFRESH_STATUS_FAILED,
    REFRESH_STATUS_SKIPPED,
    REFRESH_STATUS_SUCCEEDED,
    SOURCE_NAMES,
)
from core.errors import RegistryAcquisitionError, RegistryIngestError, RegistryLinkError
from core.logging_config import get_logger
from core.types import DataQualityReport, LoadedSources, RefreshOutcome, RefreshReport
from ingest.entity_loader import load_all_sources
from ingest.source_reader import SourceFetcher, acquire_sources
from link.linker import LinkResult, link_sources
from link.quality_report import build_quality_report
from store.snapshot_store import SnapshotStore

_LOGGER = get_logger(__name__)

OutcomeListener = Callable[[RefreshOutcome], None]

_CYCLE_ERRORS = (RegistryAcquisitionError, RegistryIngestError, RegistryLinkError)


class RefreshDriver:
    """Runs refresh cycles against one snapshot store.

    At most one cycle is in flight. A concurrent request is either
    rejected with a ``skipped`` outcome or waits for the running cycle.
    """

    def __init__(
        self,
        config: RegistryConfig,
        store: SnapshotStore,
        fetcher: SourceFetcher | None = None,
    ) -> None:
        """Create a refresh driver.

        Args:
            config: Runtime configuration.
            store: Store receiving published snapshots.
            fetcher: Optional ``(source_name, uri) -> bytes`` source reader.
        """
        self._config = config
        self._store = store
        self._fetcher = fetcher
        self._cycle_lock = threading.Lock()
        self._listeners: list[OutcomeListener] = []
        self._last_outcome: RefreshOutcome | None = None
        self._last_failure: RefreshOutcome | None = None

    @property
    def store(self) -> SnapshotStore:
        """Store receiving published snapshots."""
        return self._store

    @property
    def is_refreshing(self) -> bool:
        """Whether a cycle is currently in flight."""
        return self._cycle_lock.locked()

    @property
    def last_outcome(self) -> RefreshOutcome | None:
        """Outcome of the most recent cycle that actually ran."""
        return self._last_outcome

    @property
    def last_failure(self) -> RefreshOutcome | None:
        """Most recent failed outcome, cleared by the next success."""
        return self._last_failure

    def add_listener(self, listener: OutcomeListener) -> None:
        """Register a callable receiving every refresh outcome."""
        self._listeners.append(listener)

    def run_once(self, wait: bool = False) -> RefreshOutcome:
        """Run one refresh cycle.

        Args:
            wait: Block until a running cycle finishes instead of skipping.

        Returns:
            Outcome of this request.
        """
        started_at = datetime.now(timezone.utc)
        if not self._cycle_lock.acquire(blocking=wait):
            outcome = self._skipped_outcome(started_at)
        else:
            try:
                outcome = self._run_cycle(started_at)
            finally:
                self._cycle_lock.release()
        self._record(outcome)
        return outcome

    def _run_cycle(self, started_at: datetime) -> RefreshOutcome:
        clock_start = time.monotonic()
        _LOGGER.info("refresh_started", started_at=started_at.isoformat())
        try:
            contents = acquire_sources(self._config, self._fetcher)
            loaded = load_all_sources(contents, self._config)
            link_result = link_sources(loaded)
        except _CYCLE_ERRORS as error:
            return self._failed_outcome(started_at, error)
        quality = build_quality_report(link_result.graph)
        report = _build_report(loaded, link_result, quality, time.monotonic() - clock_start)
        snapshot = self._store.publish(link_result.graph, report)
        _LOGGER.info(
            "refresh_completed",
            version=snapshot.version,
            record_counts=dict(report.record_counts),
            reject_counts=dict(report.reject_counts),
            orphan_counts=dict(report.orphan_counts),
            duration_seconds=round(report.duration_seconds, 3),
        )
        return RefreshOutcome(
            status=REFRESH_STATUS_SUCCEEDED,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            snapshot_version=snapshot.version,
            report=report,
        )

    def _failed_outcome(self, started_at: datetime, error: Exception) -> RefreshOutcome:
        current = self._store.current_or_none()
        failed_source = getattr(error, "source_name", None)
        _LOGGER.error(
            "refresh_failed",
            error_type=type(error).__name__,
            error=str(error),
            failed_source=failed_source,
            served_version=current.version if current else None,
        )
        return RefreshOutcome(
            status=REFRESH_STATUS_FAILED,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            snapshot_version=current.version if current else None,
            error=str(error),
            failed_source=failed_source,
        )

    def _skipped_outcome(self, started_at: datetime) -> RefreshOutcome:
        current = self._store.current_or_none()
        _LOGGER.info("refresh_skipped", reason="refresh already in progress")
        return RefreshOutcome(
            status=REFRESH_STATUS_SKIPPED,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            snapshot_version=current.version if current else None,
            error="refresh already in progress",
        )

    def _record(self, outcome: RefreshOutcome) -> None:
        if outcome.status != REFRESH_STATUS_SKIPPED:
            self._last_outcome = outcome
        if outcome.status == REFRESH_STATUS_FAILED:
            self._last_failure = outcome
        elif outcome.status == REFRESH_STATUS_SUCCEEDED:
            self._last_failure = None
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception as error:
                _LOGGER.error(
                    "outcome_listener_failed",
                    status=outcome.status,
                    error_type=type(error).__name__,
                    error=str(error),
                )


def _build_report(
    loaded: LoadedSources,
    link_result: LinkResult,
    quality: DataQualityReport,
    duration_seconds: float,
) -> RefreshReport:
    """Aggregate loader and linker findings into one cycle report."""
    results = loaded.all_results()
    orphan_counts = {name: 0 for name in SOURCE_NAMES}
    for orphan in link_result.orphans:
        orphan_counts[orphan.source_name] += 1
    return RefreshReport(
        record_counts=MappingProxyType(
            {result.source_name: len(result.records) for result in results}
        ),
        reject_counts=MappingProxyType(
            {result.source_name: result.reject_count for result in results}
        ),
        orphan_counts=MappingProxyType(orphan_counts),
        specialty_count=len(link_result.graph.specialties),
        group_count=len(link_result.graph.groups),
        rejects=tuple(reject for result in results for reject in result.rejects),
        orphans=link_result.orphans,
        warnings=link_result.warnings,
        quality=quality,
        duration_seconds=duration_seconds,
    )
