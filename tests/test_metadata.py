"""
Tests for registry metadata: existence, version timelines, repository and search.
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from npmtraffic.cache import TwoTierCache
from npmtraffic.exceptions import (
    InvalidRequestError,
    NotFoundError,
    ServerError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from npmtraffic.metadata import (
    MAX_MARKER_DAYS,
    AsyncMetadataService,
    MetadataService,
    analyze_time,
    downsample_version_markers,
    extract_version_markers,
    is_semver_like,
    normalize_repository_url,
    pick_evenly_indices,
    to_utc_day,
)
from npmtraffic.testing import AsyncMockRegistryClient, FakeClock, MockRegistryClient
from npmtraffic.types.metadata import PackageMeta, SearchItem, VersionMarker
from npmtraffic.types.traffic import DateRange

RANGE = DateRange(30, "last-30-days", "2025-12-18", "2026-01-16")

SAMPLE_TIME = {
    "created": "2020-01-01T00:00:00.000Z",
    "modified": "2026-01-10T00:00:00.000Z",
    "1.0.0": "2025-11-01T10:00:00.000Z",
    "1.1.0": "2025-12-20T09:00:00.000Z",
    "1.1.1": "2025-12-20T18:30:00.000Z",
    "1.1.2": "2026-01-05T23:59:59.999Z",
    "2.0.0-beta.1": "2026-01-12T00:00:00.000Z",
    "nightly": "2026-01-13T00:00:00.000Z",
    "1.1.3": "not a date",
}


@given(
    count=st.integers(min_value=0, max_value=40),
    total=st.integers(min_value=0, max_value=200),
)
@settings(max_examples=200)
def test_pick_evenly_indices_bounds(count: int, total: int) -> None:
    """Picks are a sorted subset of at most `count` entries, first and last included."""
    indices = list(range(total))

    picked = pick_evenly_indices(indices, count)

    assert picked == sorted(set(picked))
    assert set(picked) <= set(indices)
    assert len(picked) <= max(count, 0)
    if count >= 2 and total > count:
        assert picked[0] == 0 and picked[-1] == total - 1


@given(
    versions=st.lists(
        st.lists(st.sampled_from(["1.0.1", "1.0.2", "2.0.0", "2.1.3"]), min_size=1, max_size=3),
        max_size=120,
    )
)
@settings(max_examples=100)
def test_downsample_never_exceeds_limit(versions: list[list[str]]) -> None:
    """Downsampled markers never exceed the limit and keep the first and last day."""
    markers = [
        VersionMarker(date_utc=f"day-{i:03d}", versions=v) for i, v in enumerate(versions)
    ]

    result = downsample_version_markers(markers)

    assert len(result) <= MAX_MARKER_DAYS
    if markers:
        assert result[0] is markers[0]
        assert result[-1] is markers[-1]
    assert [m.date_utc for m in result] == sorted(m.date_utc for m in result)


class TestPureHelpers:
    """Tests for timeline and repository helpers."""

    def test_semver_like(self) -> None:
        assert is_semver_like("1.2.3")
        assert is_semver_like("2.0.0-beta.1")
        assert not is_semver_like("created")
        assert not is_semver_like("1.2")

    def test_to_utc_day(self) -> None:
        assert to_utc_day("2026-01-05T23:59:59.999Z") == "2026-01-05"
        assert to_utc_day("2026-01-05T23:00:00-02:00") == "2026-01-06"
        assert to_utc_day("garbage") is None
        assert to_utc_day("") is None

    def test_extract_markers_groups_by_day(self) -> None:
        markers = extract_version_markers(SAMPLE_TIME, RANGE)

        assert [(m.date_utc, m.versions) for m in markers] == [
            ("2025-12-20", ["1.1.0", "1.1.1"]),
            ("2026-01-05", ["1.1.2"]),
            ("2026-01-12", ["2.0.0-beta.1"]),
        ]

    def test_analyze_time_prefers_latest_dist_tag(self) -> None:
        analysis = analyze_time(SAMPLE_TIME, {"latest": "1.1.2"}, RANGE)

        assert analysis.total_versions == 5
        assert analysis.releases_in_range == 4
        assert analysis.dist_tag_latest == "1.1.2"
        assert analysis.latest_version == "1.1.2"
        assert analysis.latest_published_date_utc == "2026-01-05"

    def test_analyze_time_falls_back_to_most_recent(self) -> None:
        analysis = analyze_time(SAMPLE_TIME, {"latest": "9.9.9"}, RANGE)

        assert analysis.dist_tag_latest == "9.9.9"
        assert analysis.latest_version == "2.0.0-beta.1"
        assert analysis.latest_published_date_utc == "2026-01-12"

    def test_downsample_keeps_notable_days(self) -> None:
        markers = [VersionMarker(f"d{i:02d}", [f"1.0.{i + 1}"]) for i in range(40)]
        markers[10] = VersionMarker("d10", ["1.1.0"])
        markers[20] = VersionMarker("d20", ["1.1.5", "1.1.6"])

        result = downsample_version_markers(markers)

        kept = {m.date_utc for m in result}
        assert len(result) == MAX_MARKER_DAYS
        assert {"d00", "d10", "d20", "d39"} <= kept

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("git+https://github.com/facebook/react.git", "https://github.com/facebook/react"),
            ({"type": "git", "url": "git://github.com/vuejs/core.git"}, "https://github.com/vuejs/core"),
            ("github.com/owner/repo/tree/main/packages/x", "https://github.com/owner/repo"),
            ("https://gitlab.com/owner/repo", None),
            ({"type": "git"}, None),
            (None, None),
            (42, None),
        ],
    )
    def test_normalize_repository_url(self, value: object, expected: str | None) -> None:
        assert normalize_repository_url(value) == expected


class TestMetadataService:
    """Tests for MetadataService over MockRegistryClient."""

    def test_package_exists_caches_answers(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_exists("left-pad", exists=False)

        assert metadata_service.package_exists("react") is True
        assert metadata_service.package_exists("react") is True
        assert metadata_service.package_exists("left-pad") is False
        assert metadata_service.package_exists("left-pad") is False
        assert mock_registry.call_count("package_exists") == 2

    def test_negative_answer_expires_sooner(
        self,
        fake_clock: FakeClock,
        mock_registry: MockRegistryClient,
        metadata_service: MetadataService,
    ) -> None:
        mock_registry.configure_exists("left-pad", exists=False)
        metadata_service.package_exists("left-pad")
        metadata_service.package_exists("react")

        fake_clock.advance(2 * 60 * 60)
        metadata_service.package_exists("left-pad")
        metadata_service.package_exists("react")

        calls = [c.args[0] for c in mock_registry.get_calls("package_exists")]
        assert calls == ["left-pad", "react", "left-pad"]

    def test_package_exists_validates_name(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        with pytest.raises(InvalidRequestError):
            metadata_service.package_exists("Bad Name")
        assert mock_registry.call_count() == 0

    def test_package_exists_upstream_failure(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_exists("react", error=ServerError("UPSTREAM_500", "down", 500))

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            metadata_service.package_exists("react")

        assert exc_info.value.upstream_status == 500

    def test_timeline_miss_hit_stale(
        self,
        fake_clock: FakeClock,
        mock_registry: MockRegistryClient,
        metadata_service: MetadataService,
    ) -> None:
        mock_registry.configure_meta(
            "react", PackageMeta(time=SAMPLE_TIME, dist_tags={"latest": "1.1.2"})
        )

        miss = metadata_service.get_version_timeline("react", RANGE)
        hit = metadata_service.get_version_timeline("react", RANGE)

        fake_clock.advance(7 * 60 * 60)
        mock_registry.configure_meta("react", error=UpstreamTimeoutError("slow"))
        stale = metadata_service.get_version_timeline("react", RANGE)

        assert miss.cache_status == "MISS"
        assert hit.cache_status == "HIT"
        assert stale.cache_status == "STALE"
        assert stale.is_stale is True
        assert stale.fetched_at == miss.fetched_at
        assert stale.releases_in_range == 4
        assert len(stale.markers) == 3
        assert mock_registry.call_count("get_package_meta") == 2

    def test_timeline_none_without_cache(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_meta("react", error=NotFoundError())

        assert metadata_service.get_version_timeline("react", RANGE) is None
        assert metadata_service.get_version_timeline("   ", RANGE) is None

    def test_github_repo(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_repository(
            "react", {"url": "git+https://github.com/facebook/react.git"}
        )

        assert metadata_service.get_github_repo("react") == "https://github.com/facebook/react"
        assert metadata_service.get_github_repo("react") == "https://github.com/facebook/react"
        assert mock_registry.call_count("get_repository") == 1

    def test_github_repo_missing_or_failing(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_repository("vue", error=ServerError("UPSTREAM_500", "down", 500))

        assert metadata_service.get_github_repo("lodash") is None
        assert metadata_service.get_github_repo("vue") is None

    def test_search_miss_hit_stale(
        self,
        fake_clock: FakeClock,
        mock_registry: MockRegistryClient,
        metadata_service: MetadataService,
    ) -> None:
        mock_registry.configure_search("rea", [SearchItem("react", "UI", 0.9)])

        miss = metadata_service.search("rea")
        hit = metadata_service.search("REA")
        fake_clock.advance(16 * 60)
        mock_registry.configure_search("rea", error=ServerError("UPSTREAM_503", "down", 503))
        stale = metadata_service.search("rea")

        assert miss.cache_status == "MISS"
        assert hit.cache_status == "HIT"
        assert stale.cache_status == "STALE"
        assert [item.name for item in stale.items] == ["react"]

    def test_cached_search_echoes_callers_query(
        self,
        fake_clock: FakeClock,
        mock_registry: MockRegistryClient,
        metadata_service: MetadataService,
    ) -> None:
        mock_registry.configure_search("react", [SearchItem("react")])

        metadata_service.search("react")
        hit = metadata_service.search("React")
        fake_clock.advance(16 * 60)
        mock_registry.configure_search("react", error=ServerError("UPSTREAM_503", "down", 503))
        stale = metadata_service.search("REACT")

        assert (hit.query, hit.cache_status) == ("React", "HIT")
        assert (stale.query, stale.cache_status) == ("REACT", "STALE")
        assert metadata_service.search("react").query == "react"

    def test_search_failure_without_cache(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        mock_registry.configure_search("rea", error=ServerError("UPSTREAM_503", "down", 503))

        with pytest.raises(UpstreamUnavailableError) as exc_info:
            metadata_service.search("rea")

        assert exc_info.value.upstream_status == 503

    def test_empty_search_skips_registry(
        self, mock_registry: MockRegistryClient, metadata_service: MetadataService
    ) -> None:
        response = metadata_service.search("   ")

        assert response.items == []
        assert response.cache_status == "MISS"
        assert mock_registry.call_count() == 0


class TestAsyncMetadataService:
    """Tests for AsyncMetadataService."""

    def test_async_operations(self) -> None:
        clock = FakeClock()
        registry = AsyncMockRegistryClient()
        registry.configure_exists("ghost", exists=False)
        registry.configure_meta("react", PackageMeta(time=SAMPLE_TIME))
        registry.configure_repository("react", "https://github.com/facebook/react")
        registry.configure_search("react", [SearchItem("react")])
        service = AsyncMetadataService(registry, TwoTierCache(clock=clock.time), now=clock.now)

        async def run() -> tuple:
            return (
                await service.package_exists("ghost"),
                await service.get_version_timeline("react", RANGE),
                await service.get_github_repo("react"),
                await service.search("react", limit=5),
            )

        exists, timeline, repo, search = asyncio.run(run())

        assert exists is False
        assert timeline.latest_version == "2.0.0-beta.1"
        assert repo == "https://github.com/facebook/react"
        assert search.items[0].name == "react"
