"""Python SDK for registry operations.

This module exposes high-level APIs for refreshing the registry and
reading the published snapshot.
"""

from __future__ import annotations

from dataclasses import replace

from core.config import RegistryConfig
from core.graph_types import ResolvedGroup, SpecialtyRecord
from core.logging_config import configure_logging
from core.types import Presentation, RefreshOutcome
from ingest.source_reader import SourceFetcher
from refresh.driver import OutcomeListener, RefreshDriver
from refresh.health import HealthStatus, assess_health
from refresh.scheduler import RefreshScheduler
from store.snapshot import RegistrySnapshot
from store.snapshot_store import SnapshotStore


class RegistryClient:
    """Primary SDK entry point wiring store, driver, and scheduler."""

    def __init__(
        self,
        config: RegistryConfig | None = None,
        fetcher: SourceFetcher | None = None,
    ) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
            fetcher: Optional ``(source_name, uri) -> bytes`` source reader.
        """
        self._config = config or RegistryConfig.from_env()
        configure_logging(self._config.log_level)
        self._store = SnapshotStore()
        self._driver = RefreshDriver(self._config, self._store, fetcher)
        self._scheduler = RefreshScheduler(self._driver, self._config.refresh_interval_seconds)

    @property
    def config(self) -> RegistryConfig:
        """Runtime configuration of this client."""
        return self._config

    def refresh(self, wait: bool = True) -> RefreshOutcome:
        """Run one refresh cycle now.

        Args:
            wait: Block behind an in-flight cycle instead of skipping.

        Returns:
            Outcome of the cycle.
        """
        return self._driver.run_once(wait=wait)

    def start(self) -> RefreshOutcome:
        """Run the initial refresh and start scheduled refreshes.

        Raises:
            RegistryStoreError: If the initial refresh published nothing.
        """
        return self._scheduler.start()

    def stop(self) -> None:
        """Stop scheduled refreshes."""
        self._scheduler.stop()

    def trigger_refresh(self) -> None:
        """Ask the scheduler for an on-demand refresh."""
        self._scheduler.trigger()

    def add_listener(self, listener: OutcomeListener) -> None:
        """Register a callable receiving every refresh outcome."""
        self._driver.add_listener(listener)

    def snapshot(self) -> RegistrySnapshot:
        """Return the snapshot currently served.

        Raises:
            RegistryStoreError: If nothing has been published yet.
        """
        return self._store.current()

    def specialty(self, cis: int) -> SpecialtyRecord | None:
        """Look up one composite specialty by identifier."""
        return self.snapshot().get_specialty(cis)

    def group(self, group_id: int) -> ResolvedGroup | None:
        """Look up one generic group with its member records."""
        return self.snapshot().get_group(group_id)

    def presentation(self, cip: int) -> Presentation | None:
        """Look up one presentation by CIP7 or CIP13 code."""
        return self.snapshot().get_presentation(cip)

    def health(self) -> HealthStatus:
        """Assess freshness of the served snapshot."""
        return assess_health(self._driver, next_refresh_at=self._scheduler.next_run_at)

    def with_source_root(self, source_root: str) -> "RegistryClient":
        """Clone the client with a different source root.

        Args:
            source_root: Local directory, HTTP base URL, or S3 prefix.

        Returns:
            New SDK client instance with an empty store.
        """
        return RegistryClient(replace(self._config, source_root=source_root))
