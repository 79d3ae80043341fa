"""
Traffic orchestration.

Per request: validate the name, look the range up in the cache, and on a
miss fetch from npm. Transient upstream failures fall back to stale cached
data when there is any. A 404 never does: the package does not exist.

Failures are returned as values (``Err``) from ``fetch_traffic_result``;
``fetch_traffic`` turns them into exceptions for callers that prefer those.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from npmtraffic.cache import TwoTierCache
from npmtraffic.config import Settings
from npmtraffic.dates import clamp_days, range_for_days, utc_now
from npmtraffic.derived import build_derived_metrics
from npmtraffic.exceptions import (
    InvalidRequestError,
    NotFoundError,
    PackageNotFoundError,
    TrafficError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from npmtraffic.health import HealthRecorder
from npmtraffic.logging import get_logger
from npmtraffic.normalize import compute_totals, normalize_series
from npmtraffic.package_name import normalize_package_input, validate_package_name
from npmtraffic.types.traffic import (
    CacheStatus,
    DateRange,
    StaleReason,
    TrafficCacheValue,
    TrafficMeta,
    TrafficResponse,
    UpstreamRange,
)

if TYPE_CHECKING:
    from npmtraffic.clients.downloads import DownloadsClient

T = TypeVar("T")

logger = get_logger("traffic")

STALE_WARNING = "Showing cached data (upstream error)."


class TrafficErrorCode(Enum):
    """Outcome classes a traffic request can fail with."""

    INVALID_REQUEST = "INVALID_REQUEST"
    PACKAGE_NOT_FOUND = "PACKAGE_NOT_FOUND"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


_HTTP_STATUS = {
    TrafficErrorCode.INVALID_REQUEST: 400,
    TrafficErrorCode.PACKAGE_NOT_FOUND: 404,
    TrafficErrorCode.UPSTREAM_UNAVAILABLE: 502,
}


@dataclass(frozen=True)
class TrafficFailure:
    """A failed traffic request."""

    code: TrafficErrorCode
    message: str
    upstream_status: int | None = None

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self.code]

    def to_exception(self) -> TrafficError:
        if self.code is TrafficErrorCode.INVALID_REQUEST:
            return InvalidRequestError(self.message)
        if self.code is TrafficErrorCode.PACKAGE_NOT_FOUND:
            return PackageNotFoundError(self.message)
        return UpstreamUnavailableError(self.message, self.upstream_status)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err:
    error: TrafficFailure


TrafficResult = Ok[TrafficResponse] | Err


def unwrap(result: TrafficResult) -> TrafficResponse:
    """Return the response or raise the matching TrafficError."""
    if isinstance(result, Err):
        raise result.error.to_exception()
    return result.value


def build_cache_key(package: str, days: int, start_date: str) -> str:
    """Key of a traffic entry. start_date rolls over daily, retiring old entries."""
    return f"traffic:{package.lower()}:{days}:{start_date}"


def classify_stale_reason(error: Exception) -> StaleReason:
    """Map an upstream failure onto the stale-reason vocabulary."""
    if isinstance(error, UpstreamTimeoutError):
        return "TIMEOUT"
    if isinstance(error, UpstreamError) and error.status is not None:
        if error.status in (401, 403):
            return "UPSTREAM_401"
        if error.status == 429:
            return "UPSTREAM_429"
        if 500 <= error.status <= 599:
            return "UPSTREAM_5XX"
    return "UNKNOWN"


def build_response(
    cached: TrafficCacheValue,
    cache_status: CacheStatus,
    stale_reason: StaleReason | None = None,
) -> TrafficResponse:
    """Wrap a cached value; status fields are computed here, never stored."""
    is_stale = cache_status == "STALE"
    return TrafficResponse(
        package=cached.package,
        range=cached.range,
        series=list(cached.series),
        totals=cached.totals,
        derived=build_derived_metrics(cached.series),
        meta=TrafficMeta(
            fetched_at=cached.fetched_at,
            cache_status=cache_status,
            is_stale=is_stale,
            stale_reason=stale_reason if is_stale else None,
        ),
        warning=STALE_WARNING if is_stale else None,
    )


@dataclass
class PendingFetch:
    """A validated request that missed the fresh cache."""

    package: str
    range: DateRange
    key: str
    stale: TrafficCacheValue | None


class BaseTrafficService:
    """State and steps shared by the sync and async traffic services."""

    def __init__(
        self,
        cache: TwoTierCache,
        health: HealthRecorder | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Args:
            cache: Cache shared with the other services of the process
            health: Recorder for the status page (default: a private one)
            settings: TTLs and test hooks (default: Settings())
            now: Returns the current UTC time (default: datetime.now(timezone.utc))
        """
        self.cache = cache
        self.health = health or HealthRecorder(now)
        self.settings = settings or Settings()
        self._now = now or utc_now

    def get_cached_traffic(
        self,
        package_input: str,
        days: int | str | None = None,
        reason: StaleReason | None = None,
    ) -> TrafficResponse | None:
        """
        Read traffic from the cache only; never touches the network.

        Args:
            package_input: Package name as entered
            days: Requested day count
            reason: Stale reason to report if the entry is stale (default: UNKNOWN)

        Returns:
            TrafficResponse with HIT or STALE status, or None when nothing usable
            is cached or the name is invalid
        """
        package = normalize_package_input(package_input)
        if not validate_package_name(package).ok:
            return None

        date_range = range_for_days(days, self._now())
        lookup = self.cache.get_with_stale(
            build_cache_key(package, date_range.days, date_range.start_date)
        )
        if not lookup.hit or lookup.value is None:
            return None
        if lookup.stale:
            return build_response(lookup.value, "STALE", reason or "UNKNOWN")
        return build_response(lookup.value, "HIT")

    def _prepare(
        self, package_input: str, days_input: int | str | None
    ) -> TrafficResult | PendingFetch:
        package = normalize_package_input(package_input)
        validation = validate_package_name(package)
        if not validation.ok:
            return Err(TrafficFailure(
                TrafficErrorCode.INVALID_REQUEST, validation.error or "invalid package name"
            ))

        date_range = range_for_days(clamp_days(days_input), self._now())
        key = build_cache_key(package, date_range.days, date_range.start_date)
        lookup = self.cache.get_with_stale(key)

        if lookup.hit and not lookup.stale and lookup.value is not None:
            self.health.record_success("HIT", False)
            return Ok(build_response(lookup.value, "HIT"))

        return PendingFetch(
            package=package,
            range=date_range,
            key=key,
            stale=lookup.value if lookup.hit else None,
        )

    def _check_test_failure(self) -> None:
        status = self.settings.test_upstream_fail
        if status:
            raise UpstreamError(f"UPSTREAM_{status}", "Test upstream failure", status)

    def _on_success(self, pending: PendingFetch, upstream: UpstreamRange) -> TrafficResult:
        series = normalize_series(upstream.downloads, pending.range)
        value = TrafficCacheValue(
            package=pending.package,
            range=pending.range,
            series=series,
            totals=compute_totals(series),
            fetched_at=self._now(),
        )
        self.cache.set_with_stale(
            pending.key,
            value,
            self.settings.traffic_fresh_ttl,
            self.settings.traffic_stale_ttl,
        )
        self.health.record_success("MISS", False)
        return Ok(build_response(value, "MISS"))

    def _on_failure(self, pending: PendingFetch, error: UpstreamError) -> TrafficResult:
        if isinstance(error, NotFoundError):
            self.health.record_error("PACKAGE_NOT_FOUND")
            return Err(TrafficFailure(TrafficErrorCode.PACKAGE_NOT_FOUND, "Package not found", 404))

        reason = classify_stale_reason(error)
        if pending.stale is not None:
            logger.warning(
                "Serving stale traffic for %s (%s): %s", pending.package, reason, error.message
            )
            self.health.record_error("UPSTREAM_UNAVAILABLE", reason)
            self.health.record_success("STALE", True)
            return Ok(build_response(pending.stale, "STALE", reason))

        logger.error("Traffic fetch failed for %s (%s): %s", pending.package, reason, error.message)
        self.health.record_error("UPSTREAM_UNAVAILABLE", reason)
        return Err(TrafficFailure(
            TrafficErrorCode.UPSTREAM_UNAVAILABLE,
            "npm API temporarily unavailable",
            error.status,
        ))


class TrafficService(BaseTrafficService):
    """
    Traffic facade over the blocking downloads client.

    Example:
        ```python
        service = TrafficService(downloads_client, TwoTierCache())
        response = service.fetch_traffic("react", 30)
        print(response.totals.sum, response.meta.cache_status)
        ```
    """

    def __init__(
        self,
        downloads: "DownloadsClient",
        cache: TwoTierCache,
        health: HealthRecorder | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(cache, health, settings, now)
        self.downloads = downloads

    def fetch_traffic_result(
        self, package_input: str, days: int | str | None = None
    ) -> TrafficResult:
        """
        Fetch traffic for a package, returning failures as values.

        Args:
            package_input: Package name as entered
            days: Requested day count (invalid or missing: 30)

        Returns:
            Ok(TrafficResponse) or Err(TrafficFailure)
        """
        prepared = self._prepare(package_input, days)
        if not isinstance(prepared, PendingFetch):
            return prepared

        try:
            self._check_test_failure()
            upstream = self.downloads.fetch_daily_downloads_range(
                prepared.package, prepared.range.start_date, prepared.range.end_date
            )
        except UpstreamError as e:
            return self._on_failure(prepared, e)

        return self._on_success(prepared, upstream)

    def fetch_traffic(self, package_input: str, days: int | str | None = None) -> TrafficResponse:
        """
        Fetch traffic for a package.

        Raises:
            InvalidRequestError: If the name is invalid
            PackageNotFoundError: If npm does not know the package
            UpstreamUnavailableError: If npm failed and nothing usable is cached
        """
        return unwrap(self.fetch_traffic_result(package_input, days))
