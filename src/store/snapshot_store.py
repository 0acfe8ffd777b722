"""Versioned in-memory snapshot store.

This module holds the single published registry snapshot. Publishing
swaps one reference; readers keep whatever snapshot they captured.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from core.errors import RegistryStoreError
from core.graph_types import RegistryGraph
from core.logging_config import get_logger
from core.types import RefreshReport
from store.snapshot import RegistrySnapshot

_LOGGER = get_logger(__name__)


class SnapshotStore:
    """Single-writer store of the current registry snapshot.

    Writes are serialized by a lock so versions form a total order.
    Reads never take the lock: rebinding one attribute is atomic, and a
    published snapshot is never mutated.
    """

    def __init__(self) -> None:
        self._current: RegistrySnapshot | None = None
        self._write_lock = threading.Lock()

    def publish(self, graph: RegistryGraph, report: RefreshReport) -> RegistrySnapshot:
        """Install a new graph as the current snapshot.

        Args:
            graph: Freshly linked graph; must not be shared with older snapshots.
            report: Report of the cycle that produced the graph.

        Returns:
            The published snapshot.
        """
        with self._write_lock:
            previous = self._current
            version = previous.version + 1 if previous else 1
            snapshot = RegistrySnapshot(
                version=version,
                published_at=_next_publish_time(previous),
                graph=graph,
                report=report,
            )
            self._current = snapshot
        _LOGGER.info(
            "snapshot_published",
            version=snapshot.version,
            specialty_count=len(graph.specialties),
            group_count=len(graph.groups),
            previous_version=previous.version if previous else None,
        )
        return snapshot

    def current(self) -> RegistrySnapshot:
        """Return the snapshot in effect at the moment of the call.

        Raises:
            RegistryStoreError: If nothing has been published yet.
        """
        snapshot = self._current
        if snapshot is None:
            raise RegistryStoreError(
                "No registry snapshot has been published yet. "
                "Run a refresh before serving lookups."
            )
        return snapshot

    def current_or_none(self) -> RegistrySnapshot | None:
        """Return the current snapshot, or ``None`` before the first publish."""
        return self._current

    @property
    def is_ready(self) -> bool:
        """Whether a snapshot has been published."""
        return self._current is not None


def _next_publish_time(previous: RegistrySnapshot | None) -> datetime:
    """Return a UTC timestamp strictly after the previous publish time."""
    now = datetime.now(timezone.utc)
    if previous is None:
        return now
    return max(now, previous.published_at + timedelta(microseconds=1))
