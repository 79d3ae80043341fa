"""Registry metadata models."""

from dataclasses import dataclass, field
from datetime import datetime

from npmtraffic.types.traffic import CacheStatus


@dataclass
class VersionMarker:
    """Versions published on one UTC day."""

    date_utc: str
    versions: list[str]


@dataclass
class VersionTimeline:
    """Release activity of a package within a date range."""

    package: str
    markers: list[VersionMarker]
    fetched_at: datetime
    cache_status: CacheStatus
    is_stale: bool
    dist_tag_latest: str | None
    latest_version: str | None
    latest_published_date_utc: str | None
    releases_in_range: int
    total_versions: int


@dataclass
class PackageMeta:
    """Publish times and dist-tags as served by the registry."""

    time: dict[str, str] = field(default_factory=dict)
    dist_tags: dict[str, str] = field(default_factory=dict)


@dataclass
class SearchItem:
    """A registry search hit."""

    name: str
    description: str | None = None
    score: float | None = None


@dataclass
class SearchResponse:
    """Search results with cache provenance."""

    query: str
    items: list[SearchItem]
    fetched_at: datetime
    cache_status: CacheStatus
