"""Snapshot freshness assessment.

This module derives a health status from the age and size of the
published snapshot and the state of the refresh driver.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone

from core.constants import (
    HEALTH_DEGRADED_AGE_HOURS,
    HEALTH_REFRESHING_DEGRADED_AGE_HOURS,
    HEALTH_STATUS_DEGRADED,
    HEALTH_STATUS_HEALTHY,
    HEALTH_STATUS_UNHEALTHY,
    HEALTH_UNHEALTHY_AGE_HOURS,
)
from core.logging_config import get_logger
from refresh.driver import RefreshDriver

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class HealthStatus:
    """Health of the served registry data.

    Attributes:
        status: ``healthy``, ``degraded``, or ``unhealthy``.
        snapshot_version: Served snapshot version, if any.
        last_update: Publish time of the served snapshot.
        data_age_hours: Snapshot age rounded to one decimal.
        specialty_count: Specialties in the served snapshot.
        group_count: Generic groups in the served snapshot.
        is_refreshing: Whether a refresh cycle is in flight.
        last_error: Message of the latest failed cycle since the last success.
        next_refresh_at: Next scheduled refresh when known.
    """

    status: str
    snapshot_version: int | None
    last_update: datetime | None
    data_age_hours: float | None
    specialty_count: int
    group_count: int
    is_refreshing: bool
    last_error: str | None = None
    next_refresh_at: datetime | None = None

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-friendly payload."""
        payload = asdict(self)
        for key in ("last_update", "next_refresh_at"):
            value = payload[key]
            payload[key] = value.isoformat() if value else None
        return payload


def assess_health(
    driver: RefreshDriver,
    now: datetime | None = None,
    next_refresh_at: datetime | None = None,
) -> HealthStatus:
    """Assess the health of the served snapshot.

    Args:
        driver: Refresh driver owning the snapshot store.
        now: Optional current UTC time, defaults to the wall clock.
        next_refresh_at: Next scheduled refresh, usually from the scheduler.

    Returns:
        Health status with counts and freshness.
    """
    current_time = now or datetime.now(timezone.utc)
    snapshot = driver.store.current_or_none()
    failure = driver.last_failure
    last_error = failure.error if failure else None
    if snapshot is None:
        return HealthStatus(
            status=HEALTH_STATUS_UNHEALTHY,
            snapshot_version=None,
            last_update=None,
            data_age_hours=None,
            specialty_count=0,
            group_count=0,
            is_refreshing=driver.is_refreshing,
            last_error=last_error,
            next_refresh_at=next_refresh_at,
        )
    age_hours = (current_time - snapshot.published_at).total_seconds() / 3600
    specialty_count = len(snapshot.graph.specialties)
    group_count = len(snapshot.graph.groups)
    status = _classify(age_hours, specialty_count, group_count, driver.is_refreshing)
    if status != HEALTH_STATUS_HEALTHY:
        _LOGGER.warning(
            "data_stale",
            status=status,
            data_age_hours=round(age_hours, 1),
            snapshot_version=snapshot.version,
        )
    return HealthStatus(
        status=status,
        snapshot_version=snapshot.version,
        last_update=snapshot.published_at,
        data_age_hours=round(age_hours, 1),
        specialty_count=specialty_count,
        group_count=group_count,
        is_refreshing=driver.is_refreshing,
        last_error=last_error,
        next_refresh_at=next_refresh_at,
    )


def _classify(age_hours: float, specialty_count: int, group_count: int, refreshing: bool) -> str:
    if specialty_count == 0 or group_count == 0:
        return HEALTH_STATUS_UNHEALTHY
    if age_hours > HEALTH_UNHEALTHY_AGE_HOURS:
        return HEALTH_STATUS_UNHEALTHY
    if age_hours > HEALTH_DEGRADED_AGE_HOURS:
        return HEALTH_STATUS_DEGRADED
    if refreshing and age_hours > HEALTH_REFRESHING_DEGRADED_AGE_HOURS:
        return HEALTH_STATUS_DEGRADED
    return HEALTH_STATUS_HEALTHY
