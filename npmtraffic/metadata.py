"""
Registry metadata: existence checks, release timelines, repository links
and search.

Every lookup goes through the shared cache first. Timelines and search
results fall back to stale cached data when the registry fails.
"""

import re
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from npmtraffic.cache import TwoTierCache
from npmtraffic.config import Settings
from npmtraffic.dates import utc_now
from npmtraffic.exceptions import UpstreamError, UpstreamUnavailableError
from npmtraffic.logging import get_logger
from npmtraffic.normalize import round_half_up
from npmtraffic.package_name import assert_valid_package_name, normalize_package_input
from npmtraffic.types.metadata import PackageMeta, SearchResponse, VersionMarker, VersionTimeline
from npmtraffic.types.traffic import CacheStatus, DateRange

if TYPE_CHECKING:
    from npmtraffic.async_clients.registry import AsyncRegistryClient
    from npmtraffic.clients.registry import RegistryClient

logger = get_logger("metadata")

MAX_MARKER_DAYS = 28

_SEMVER_LIKE_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-+].+)?$")
_ZERO_PATCH_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)")
_GITHUB_REPO_RE = re.compile(
    r"^(https?://(?:www\.)?github\.com/[^/]+/[^/]+)(?:/.*)?$", re.IGNORECASE
)
_NON_VERSION_KEYS = ("created", "modified")


def is_semver_like(value: str) -> bool:
    return bool(_SEMVER_LIKE_RE.match(value))


def _is_zero_patch_release(version: str) -> bool:
    match = _ZERO_PATCH_RE.match(version)
    return bool(match) and match.group(3) == "0"


def to_utc_day(iso: str) -> str | None:
    """UTC calendar day (YYYY-MM-DD) of an ISO timestamp, or None if unparsable."""
    if not isinstance(iso, str) or not iso:
        return None
    text = iso[:-1] + "+00:00" if iso.endswith("Z") else iso
    try:
        ts = datetime.fromisoformat(text)
    except ValueError:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc).date().isoformat()


def _iter_versions(time: Mapping[str, str]) -> Iterator[tuple[str, str, str]]:
    """Yield (version, iso, day) for every semver-like entry with a valid timestamp."""
    for key, iso in time.items():
        if key in _NON_VERSION_KEYS or not is_semver_like(key):
            continue
        day = to_utc_day(iso)
        if day is None:
            continue
        yield key, iso, day


@dataclass
class TimeAnalysis:
    """Release counts and latest-version facts derived from a `time` map."""

    total_versions: int
    releases_in_range: int
    dist_tag_latest: str | None
    latest_version: str | None
    latest_published_date_utc: str | None


def analyze_time(
    time: Mapping[str, str], dist_tags: Mapping[str, str], date_range: DateRange
) -> TimeAnalysis:
    """
    Summarize a registry `time` map against a date range.

    The latest version is the `latest` dist-tag when it has a publish time,
    otherwise the most recently published semver-like version.
    """
    total_versions = 0
    releases_in_range = 0
    most_recent_iso = ""
    most_recent_version: str | None = None

    for version, iso, day in _iter_versions(time):
        total_versions += 1
        if iso > most_recent_iso:
            most_recent_iso = iso
            most_recent_version = version
        if date_range.start_date <= day <= date_range.end_date:
            releases_in_range += 1

    dist_tag_latest = dist_tags.get("latest")
    if not isinstance(dist_tag_latest, str):
        dist_tag_latest = None
    if dist_tag_latest and isinstance(time.get(dist_tag_latest), str):
        latest_version: str | None = dist_tag_latest
    else:
        latest_version = most_recent_version

    return TimeAnalysis(
        total_versions=total_versions,
        releases_in_range=releases_in_range,
        dist_tag_latest=dist_tag_latest,
        latest_version=latest_version,
        latest_published_date_utc=(
            to_utc_day(time.get(latest_version, "")) if latest_version else None
        ),
    )


def pick_evenly_indices(indices: list[int], count: int) -> list[int]:
    """Pick up to `count` entries spread evenly over `indices`, first and last included."""
    if count <= 0:
        return []
    if len(indices) <= count:
        return list(indices)
    if count == 1:
        return [indices[len(indices) // 2]]

    span = Decimal(len(indices) - 1)
    picked = {
        indices[int(round_half_up(Decimal(i) * span / Decimal(count - 1)))]
        for i in range(count)
    }
    return sorted(picked)


def downsample_version_markers(
    markers: list[VersionMarker], max_days: int = MAX_MARKER_DAYS
) -> list[VersionMarker]:
    """
    Reduce markers to at most `max_days` days.

    The first and last days are always kept, then days with several
    releases or an x.y.0 release, then evenly spaced others.
    """
    if len(markers) <= max_days:
        return markers

    last = len(markers) - 1
    must_keep = {0, last}
    for i, marker in enumerate(markers):
        if len(marker.versions) > 1 or any(_is_zero_patch_release(v) for v in marker.versions):
            must_keep.add(i)

    must = sorted(must_keep)

    if len(must) > max_days:
        middle = [i for i in must if i not in (0, last)]
        sampled = pick_evenly_indices(middle, max(0, max_days - 2))
        return [markers[i] for i in sorted({0, *sampled, last})]

    remaining = max_days - len(must)
    if remaining <= 0:
        return [markers[i] for i in must]

    candidates = [i for i in range(len(markers)) if i not in must_keep]
    sampled = pick_evenly_indices(candidates, remaining)
    return [markers[i] for i in sorted(must_keep.union(sampled))]


def extract_version_markers(
    time: Mapping[str, str], date_range: DateRange, max_days: int = MAX_MARKER_DAYS
) -> list[VersionMarker]:
    """Group in-range releases by UTC day, ascending, then downsample."""
    by_day: dict[str, list[str]] = {}
    for version, _, day in _iter_versions(time):
        if date_range.start_date <= day <= date_range.end_date:
            by_day.setdefault(day, []).append(version)

    markers = [
        VersionMarker(date_utc=day, versions=sorted(versions))
        for day, versions in sorted(by_day.items())
    ]
    return downsample_version_markers(markers, max_days)


def normalize_repository_url(value: Any) -> str | None:
    """
    Reduce a package.json `repository` field to https://github.com/{owner}/{repo}.

    Args:
        value: A URL string or an object with a `url` key

    Returns:
        Normalized GitHub URL, or None for anything that is not a GitHub repository
    """
    if not value:
        return None
    if isinstance(value, str):
        url = value
    elif isinstance(value, dict) and isinstance(value.get("url"), str):
        url = value["url"]
    else:
        return None

    cleaned = re.sub(r"^git\+", "", url)
    cleaned = re.sub(r"^git://", "https://", cleaned)
    cleaned = re.sub(r"\.git$", "", cleaned)
    if not cleaned.startswith("http"):
        cleaned = f"https://{cleaned}"

    match = _GITHUB_REPO_RE.match(cleaned)
    return match.group(1) if match else None


@dataclass
class VersionTimeCacheValue:
    meta: PackageMeta
    fetched_at: datetime


class BaseMetadataService:
    """Cache handling shared by the sync and async metadata services."""

    def __init__(
        self,
        cache: TwoTierCache,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self.cache = cache
        self.settings = settings or Settings()
        self._now = now or utc_now

    # validate

    @staticmethod
    def _validate_key(package: str) -> str:
        return f"validate:{package.lower()}"

    def _prepare_exists(self, name: str) -> tuple[str, bool | None]:
        package = normalize_package_input(name)
        assert_valid_package_name(package)
        lookup = self.cache.get(self._validate_key(package))
        return package, (lookup.value if lookup.hit else None)

    def _store_exists(self, package: str, exists: bool) -> bool:
        ttl = (
            self.settings.validate_positive_ttl
            if exists
            else self.settings.validate_negative_ttl
        )
        self.cache.set(self._validate_key(package), exists, ttl)
        return exists

    @staticmethod
    def _exists_failed(package: str, error: UpstreamError) -> UpstreamUnavailableError:
        logger.error("Registry lookup failed for %s: %s", package, error.message)
        return UpstreamUnavailableError("Registry lookup failed", error.status)

    # versions

    @staticmethod
    def _versions_key(package: str) -> str:
        return f"versions:{package.lower()}"

    @staticmethod
    def _build_timeline(
        package: str,
        cached: VersionTimeCacheValue,
        date_range: DateRange,
        cache_status: CacheStatus,
    ) -> VersionTimeline:
        analysis = analyze_time(cached.meta.time, cached.meta.dist_tags, date_range)
        return VersionTimeline(
            package=package,
            markers=extract_version_markers(cached.meta.time, date_range),
            fetched_at=cached.fetched_at,
            cache_status=cache_status,
            is_stale=cache_status == "STALE",
            dist_tag_latest=analysis.dist_tag_latest,
            latest_version=analysis.latest_version,
            latest_published_date_utc=analysis.latest_published_date_utc,
            releases_in_range=analysis.releases_in_range,
            total_versions=analysis.total_versions,
        )

    def _store_meta(self, package: str, meta: PackageMeta) -> VersionTimeCacheValue:
        value = VersionTimeCacheValue(meta=meta, fetched_at=self._now())
        self.cache.set_with_stale(
            self._versions_key(package),
            value,
            self.settings.metadata_fresh_ttl,
            self.settings.metadata_stale_ttl,
        )
        return value

    def _timeline_failed(
        self,
        package: str,
        stale: VersionTimeCacheValue | None,
        date_range: DateRange,
        error: UpstreamError,
    ) -> VersionTimeline | None:
        if stale is None:
            logger.error("Version metadata unavailable for %s: %s", package, error.message)
            return None
        logger.warning("Serving stale version metadata for %s: %s", package, error.message)
        return self._build_timeline(package, stale, date_range, "STALE")

    # repository

    @staticmethod
    def _repo_key(package: str) -> str:
        return f"repo:{package.lower()}"

    def _store_repo(self, package: str, raw: Any) -> str | None:
        url = normalize_repository_url(raw)
        if url is not None:
            self.cache.set(self._repo_key(package), url, self.settings.repo_ttl)
        return url

    # search

    @staticmethod
    def _search_key(query: str, limit: int) -> str:
        return f"search:{query.lower()}:{limit}"

    def _empty_search(self, query: str) -> SearchResponse:
        return SearchResponse(query=query, items=[], fetched_at=self._now(), cache_status="MISS")

    def _store_search(self, query: str, limit: int, items: list[Any]) -> SearchResponse:
        response = SearchResponse(
            query=query, items=items, fetched_at=self._now(), cache_status="MISS"
        )
        self.cache.set_with_stale(
            self._search_key(query, limit),
            response,
            self.settings.search_fresh_ttl,
            self.settings.search_stale_ttl,
        )
        return response

    @staticmethod
    def _search_failed(
        query: str, stale: SearchResponse | None, error: UpstreamError
    ) -> SearchResponse:
        if stale is None:
            logger.error("Search failed for %r: %s", query, error.message)
            raise UpstreamUnavailableError(upstream_status=error.status) from error
        logger.warning("Serving stale search results for %r: %s", query, error.message)
        return replace(stale, query=query, cache_status="STALE")


class MetadataService(BaseMetadataService):
    """
    Registry metadata over the blocking registry client.

    Example:
        ```python
        service = MetadataService(registry_client, TwoTierCache())
        if service.package_exists("react"):
            timeline = service.get_version_timeline("react", range_for_days(30))
        ```
    """

    def __init__(
        self,
        registry: "RegistryClient",
        cache: TwoTierCache,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(cache, settings, now)
        self.registry = registry

    def package_exists(self, name: str) -> bool:
        """
        Check whether a package exists on the registry.

        Answers are cached for 24 hours when positive and 1 hour when negative.

        Raises:
            InvalidRequestError: If the name is invalid
            UpstreamUnavailableError: If the registry failed with anything but 404
        """
        package, cached = self._prepare_exists(name)
        if cached is not None:
            return cached
        try:
            exists = self.registry.package_exists(package)
        except UpstreamError as e:
            raise self._exists_failed(package, e) from e
        return self._store_exists(package, exists)

    def get_version_timeline(self, name: str, date_range: DateRange) -> VersionTimeline | None:
        """
        Release markers and version facts of a package for a date range.

        Returns:
            VersionTimeline, or None when the registry failed and nothing is cached
        """
        package = normalize_package_input(name)
        if not package:
            return None

        lookup = self.cache.get_with_stale(self._versions_key(package))
        if lookup.hit and not lookup.stale:
            return self._build_timeline(package, lookup.value, date_range, "HIT")

        try:
            meta = self.registry.get_package_meta(package)
        except UpstreamError as e:
            return self._timeline_failed(package, lookup.value, date_range, e)
        return self._build_timeline(package, self._store_meta(package, meta), date_range, "MISS")

    def get_github_repo(self, name: str) -> str | None:
        """GitHub repository URL of a package, or None if it has none or lookup failed."""
        package = normalize_package_input(name)
        if not package:
            return None

        lookup = self.cache.get_with_stale(self._repo_key(package))
        if lookup.hit:
            return lookup.value

        try:
            raw = self.registry.get_repository(package)
        except UpstreamError as e:
            logger.warning("Repository lookup failed for %s: %s", package, e.message)
            return None
        return self._store_repo(package, raw)

    def search(self, query: str, limit: int = 10) -> SearchResponse:
        """
        Search the registry.

        Raises:
            UpstreamUnavailableError: If the registry failed and nothing is cached
        """
        query = normalize_package_input(query)
        if not query:
            return self._empty_search(query)

        lookup = self.cache.get_with_stale(self._search_key(query, limit))
        if lookup.hit and not lookup.stale:
            return replace(lookup.value, query=query, cache_status="HIT")

        try:
            items = self.registry.search(query, limit)
        except UpstreamError as e:
            return self._search_failed(query, lookup.value, e)
        return self._store_search(query, limit, items)


class AsyncMetadataService(BaseMetadataService):
    """Registry metadata over the async registry client."""

    def __init__(
        self,
        registry: "AsyncRegistryClient",
        cache: TwoTierCache,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(cache, settings, now)
        self.registry = registry

    async def package_exists(self, name: str) -> bool:
        package, cached = self._prepare_exists(name)
        if cached is not None:
            return cached
        try:
            exists = await self.registry.package_exists(package)
        except UpstreamError as e:
            raise self._exists_failed(package, e) from e
        return self._store_exists(package, exists)

    async def get_version_timeline(
        self, name: str, date_range: DateRange
    ) -> VersionTimeline | None:
        package = normalize_package_input(name)
        if not package:
            return None

        lookup = self.cache.get_with_stale(self._versions_key(package))
        if lookup.hit and not lookup.stale:
            return self._build_timeline(package, lookup.value, date_range, "HIT")

        try:
            meta = await self.registry.get_package_meta(package)
        except UpstreamError as e:
            return self._timeline_failed(package, lookup.value, date_range, e)
        return self._build_timeline(package, self._store_meta(package, meta), date_range, "MISS")

    async def get_github_repo(self, name: str) -> str | None:
        package = normalize_package_input(name)
        if not package:
            return None

        lookup = self.cache.get_with_stale(self._repo_key(package))
        if lookup.hit:
            return lookup.value

        try:
            raw = await self.registry.get_repository(package)
        except UpstreamError as e:
            logger.warning("Repository lookup failed for %s: %s", package, e.message)
            return None
        return self._store_repo(package, raw)

    async def search(self, query: str, limit: int = 10) -> SearchResponse:
        query = normalize_package_input(query)
        if not query:
            return self._empty_search(query)

        lookup = self.cache.get_with_stale(self._search_key(query, limit))
        if lookup.hit and not lookup.stale:
            return replace(lookup.value, query=query, cache_status="HIT")

        try:
            items = await self.registry.search(query, limit)
        except UpstreamError as e:
            return self._search_failed(query, lookup.value, e)
        return self._store_search(query, limit, items)
