"""Traffic-related data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from npmtraffic.types.derived import DerivedMetrics

CacheStatus = Literal["HIT", "MISS", "STALE"]
StaleReason = Literal["UPSTREAM_401", "UPSTREAM_429", "UPSTREAM_5XX", "TIMEOUT", "UNKNOWN"]


def format_timestamp(ts: datetime) -> str:
    """Format a timestamp as ISO 8601 in UTC with Z suffix."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    elif ts.tzinfo != timezone.utc:
        ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class DateRange:
    """Inclusive reporting window ending yesterday (UTC)."""

    days: int
    label: str  # "last-7-days", "last-30-days", ...
    start_date: str
    end_date: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "days": self.days,
            "label": self.label,
            "startDate": self.start_date,
            "endDate": self.end_date,
        }


@dataclass(frozen=True)
class RawDownloadRow:
    """A day as reported by the npm downloads API."""

    day: str
    downloads: int


@dataclass
class UpstreamRange:
    """Response body of the downloads range endpoint."""

    start: str
    end: str
    package: str
    downloads: list[RawDownloadRow]


@dataclass(frozen=True)
class TrafficSeriesRow:
    """One calendar day of a normalized series."""

    date: str
    downloads: int


@dataclass(frozen=True)
class Totals:
    """Sum and rounded daily average of a series."""

    sum: int
    avg_per_day: int


@dataclass
class TrafficCacheValue:
    """What the traffic cache stores; status fields are derived on read."""

    package: str
    range: DateRange
    series: list[TrafficSeriesRow]
    totals: Totals
    fetched_at: datetime


@dataclass
class TrafficMeta:
    """Provenance and freshness of a traffic response."""

    fetched_at: datetime
    cache_status: CacheStatus
    is_stale: bool
    stale_reason: StaleReason | None = None
    source: str = "npm"


@dataclass
class TrafficResponse:
    """Fully assembled traffic for one package and range."""

    package: str
    range: DateRange
    series: list[TrafficSeriesRow]
    totals: Totals
    derived: DerivedMetrics
    meta: TrafficMeta
    warning: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to the JSON shape served by route handlers.

        Returns:
            Dictionary with camelCase keys
        """
        data: dict[str, Any] = {
            "package": self.package,
            "range": self.range.to_dict(),
            "series": [{"date": row.date, "downloads": row.downloads} for row in self.series],
            "totals": {"sum": self.totals.sum, "avgPerDay": self.totals.avg_per_day},
            "derived": self.derived.to_dict(),
            "meta": {
                "source": self.meta.source,
                "fetchedAt": format_timestamp(self.meta.fetched_at),
                "cacheStatus": self.meta.cache_status,
                "isStale": self.meta.is_stale,
                "staleReason": self.meta.stale_reason,
            },
        }
        if self.warning is not None:
            data["warning"] = self.warning
        return data


@dataclass
class PrewarmFailure:
    """A traffic entry that could not be warmed."""

    package: str
    days: int
    error_code: str


@dataclass
class PrewarmResult:
    """Outcome of a prewarm run."""

    warmed_count: int
    failed_count: int
    failures: list[PrewarmFailure] = field(default_factory=list)
    duration_ms: float = 0.0
