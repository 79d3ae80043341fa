"""Health and status data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class HealthSnapshot:
    """Last observed success and error of the traffic pipeline."""

    last_success_at: datetime | None = None
    last_error_at: datetime | None = None
    last_error_code: str | None = None
    last_error_reason: str | None = None
    last_cache_status: str | None = None
    last_is_stale: bool | None = None


@dataclass
class BuildInfo:
    """Deployed build identification."""

    commit: str
    environment: str


@dataclass
class StatusOverview:
    """Data behind the status page."""

    build: BuildInfo
    health: HealthSnapshot
    has_health: bool
