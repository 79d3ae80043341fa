"""npmtraffic type definitions.

This module exports all data model types used by the package.
"""

from npmtraffic.types.compare import (
    CompareData,
    CompareSeriesRow,
    CompareTotals,
    CompareValue,
)
from npmtraffic.types.derived import DerivedMetrics, DerivedValue, OutlierValue
from npmtraffic.types.health import BuildInfo, HealthSnapshot, StatusOverview
from npmtraffic.types.metadata import (
    PackageMeta,
    SearchItem,
    SearchResponse,
    VersionMarker,
    VersionTimeline,
)
from npmtraffic.types.traffic import (
    CacheStatus,
    DateRange,
    PrewarmFailure,
    PrewarmResult,
    RawDownloadRow,
    StaleReason,
    Totals,
    TrafficCacheValue,
    TrafficMeta,
    TrafficResponse,
    TrafficSeriesRow,
    UpstreamRange,
)

__all__ = [
    # Traffic types
    "CacheStatus",
    "StaleReason",
    "DateRange",
    "RawDownloadRow",
    "UpstreamRange",
    "TrafficSeriesRow",
    "Totals",
    "TrafficCacheValue",
    "TrafficMeta",
    "TrafficResponse",
    "PrewarmFailure",
    "PrewarmResult",
    # Derived metrics
    "DerivedValue",
    "OutlierValue",
    "DerivedMetrics",
    # Compare types
    "CompareValue",
    "CompareSeriesRow",
    "CompareTotals",
    "CompareData",
    # Health types
    "HealthSnapshot",
    "BuildInfo",
    "StatusOverview",
    # Registry metadata
    "PackageMeta",
    "VersionMarker",
    "VersionTimeline",
    "SearchItem",
    "SearchResponse",
]
