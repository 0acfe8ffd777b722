"""Background refresh scheduling.

This module runs the first refresh synchronously, then repeats it on a
fixed interval from a daemon thread. ``trigger`` requests an early cycle.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

from core.constants import REFRESH_STATUS_SUCCEEDED
from core.errors import RegistryError, RegistryStoreError
from core.logging_config import get_logger
from core.types import RefreshOutcome
from refresh.driver import RefreshDriver

_LOGGER = get_logger(__name__)


class RefreshScheduler:
    """Fixed-interval scheduler around one refresh driver."""

    def __init__(self, driver: RefreshDriver, interval_seconds: float) -> None:
        """Create a scheduler.

        Args:
            driver: Driver running refresh cycles.
            interval_seconds: Delay between scheduled cycles.
        """
        self._driver = driver
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._trigger_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._next_run_at: datetime | None = None

    @property
    def next_run_at(self) -> datetime | None:
        """UTC time of the next scheduled cycle while running."""
        return self._next_run_at

    @property
    def is_running(self) -> bool:
        """Whether the background thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> RefreshOutcome:
        """Run the initial refresh and start the background loop.

        Returns:
            Outcome of the initial refresh.

        Raises:
            RegistryError: If the scheduler is already running.
            RegistryStoreError: If no snapshot exists after the initial refresh.
        """
        if self.is_running:
            raise RegistryError("Refresh scheduler is already running; call stop() first.")
        outcome = self._driver.run_once(wait=True)
        if outcome.status != REFRESH_STATUS_SUCCEEDED and not self._driver.store.is_ready:
            raise RegistryStoreError(
                f"Initial registry refresh failed: {outcome.error}. "
                "Serving cannot start without a published snapshot."
            )
        self._stop_event.clear()
        self._trigger_event.clear()
        self._next_run_at = datetime.now(timezone.utc) + timedelta(seconds=self._interval_seconds)
        self._thread = threading.Thread(
            target=self._loop, name="registry-refresh", daemon=True
        )
        self._thread.start()
        _LOGGER.info("scheduler_started", interval_seconds=self._interval_seconds)
        return outcome

    def trigger(self) -> None:
        """Request an on-demand refresh from the background loop."""
        self._trigger_event.set()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the background loop and wait for it to exit.

        Args:
            timeout: Optional join timeout in seconds.
        """
        self._stop_event.set()
        self._trigger_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None
        self._next_run_at = None
        _LOGGER.info("scheduler_stopped")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self._next_run_at = datetime.now(timezone.utc) + timedelta(
                seconds=self._interval_seconds
            )
            self._trigger_event.wait(timeout=self._interval_seconds)
            if self._stop_event.is_set():
                break
            self._trigger_event.clear()
            try:
                self._driver.run_once()
            except Exception as error:
                # Keep the schedule alive; the served snapshot is unchanged.
                _LOGGER.error(
                    "scheduled_refresh_crashed",
                    error_type=type(error).__name__,
                    error=str(error),
                )
