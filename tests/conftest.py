"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _clear_registry_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep host REGISTRY_* variables out of config-dependent tests."""
    for name in (
        "REGISTRY_SOURCE_ROOT",
        "REGISTRY_SOURCES_FILE",
        "REGISTRY_FETCH_TIMEOUT_SECONDS",
        "REGISTRY_REFRESH_INTERVAL_SECONDS",
        "REGISTRY_MAX_REJECT_RATIO",
        "REGISTRY_VALIDATE_GROUP_TRAILER",
        "REGISTRY_S3_REGION",
        "REGISTRY_S3_PROFILE",
        "REGISTRY_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
