"""Unit tests for background refresh scheduling."""

from __future__ import annotations

import threading

import pytest

from core.config import RegistryConfig
from core.errors import RegistryStoreError
from refresh.driver import RefreshDriver
from refresh.scheduler import RefreshScheduler
from store.snapshot_store import SnapshotStore
from tests.fixture_paths import dict_fetcher, read_fixture_sources


def _driver(contents: dict[str, bytes]) -> RefreshDriver:
    return RefreshDriver(RegistryConfig(), SnapshotStore(), dict_fetcher(contents))


def test_start_publishes_before_returning() -> None:
    """The initial refresh runs synchronously inside start."""
    scheduler = RefreshScheduler(_driver(read_fixture_sources()), interval_seconds=3600)

    outcome = scheduler.start()
    try:
        assert outcome.snapshot_version == 1 and scheduler.is_running
        assert scheduler.next_run_at is not None
    finally:
        scheduler.stop()

    assert not scheduler.is_running


def test_start_raises_when_initial_refresh_fails() -> None:
    """Serving cannot start without a first snapshot."""
    contents = read_fixture_sources()
    contents["specialties"] = b""
    scheduler = RefreshScheduler(_driver(contents), interval_seconds=3600)

    with pytest.raises(RegistryStoreError):
        scheduler.start()

    assert not scheduler.is_running


def test_trigger_runs_an_extra_cycle() -> None:
    """Triggering wakes the loop for an on-demand refresh."""
    driver = _driver(read_fixture_sources())
    second_cycle = threading.Event()
    driver.add_listener(lambda outcome: outcome.snapshot_version == 2 and second_cycle.set())
    scheduler = RefreshScheduler(driver, interval_seconds=3600)
    scheduler.start()
    try:
        scheduler.trigger()

        assert second_cycle.wait(5)
    finally:
        scheduler.stop()


def test_interval_elapsing_runs_a_cycle() -> None:
    """Cycles repeat on the configured interval."""
    driver = _driver(read_fixture_sources())
    second_cycle = threading.Event()
    driver.add_listener(lambda outcome: outcome.snapshot_version == 2 and second_cycle.set())
    scheduler = RefreshScheduler(driver, interval_seconds=0.05)
    scheduler.start()
    try:
        assert second_cycle.wait(5)
    finally:
        scheduler.stop()
