"""
Pytest fixtures for npmtraffic testing.

Services are wired to mock clients and a FakeClock pinned to
2026-01-17T12:00:00Z, so every range is deterministic.
"""

from collections.abc import Generator
from datetime import date, datetime, timedelta

import pytest

from npmtraffic.async_traffic import AsyncTrafficService
from npmtraffic.cache import TwoTierCache
from npmtraffic.config import Settings
from npmtraffic.dates import range_for_days
from npmtraffic.health import HealthRecorder
from npmtraffic.metadata import AsyncMetadataService, MetadataService
from npmtraffic.normalize import compute_totals
from npmtraffic.testing.mock import (
    AsyncMockDownloadsClient,
    AsyncMockRegistryClient,
    FakeClock,
    MockDownloadsClient,
    MockRegistryClient,
)
from npmtraffic.traffic import TrafficService, build_response
from npmtraffic.types.traffic import (
    DateRange,
    RawDownloadRow,
    TrafficCacheValue,
    TrafficResponse,
    TrafficSeriesRow,
)

# ============================================================================
# Builders
# ============================================================================


def _dates_from(start: str, count: int) -> list[str]:
    first = date.fromisoformat(start)
    return [(first + timedelta(days=i)).isoformat() for i in range(count)]


def create_raw_rows(start: str, values: list[int]) -> list[RawDownloadRow]:
    """Rows for consecutive days beginning at `start`."""
    return [
        RawDownloadRow(day=day, downloads=value)
        for day, value in zip(_dates_from(start, len(values)), values)
    ]


def create_series(start: str, values: list[int]) -> list[TrafficSeriesRow]:
    """Normalized series for consecutive days beginning at `start`."""
    return [
        TrafficSeriesRow(date=day, downloads=value)
        for day, value in zip(_dates_from(start, len(values)), values)
    ]


def create_traffic_response(
    package: str,
    values: list[int],
    start: str = "2026-01-01",
    fetched_at: datetime | None = None,
    stale: bool = False,
) -> TrafficResponse:
    """
    Build a TrafficResponse without going through a service.

    Example:
        ```python
        react = create_traffic_response("react", [5, 5, 5])
        vue = create_traffic_response("vue", [1, 2, 3], stale=True)
        data = assemble_compare_data([("react", react), ("vue", vue)], 7)
        ```
    """
    series = create_series(start, values)
    date_range = DateRange(
        days=len(values),
        label=f"last-{len(values)}-days",
        start_date=series[0].date if series else start,
        end_date=series[-1].date if series else start,
    )
    cached = TrafficCacheValue(
        package=package,
        range=date_range,
        series=series,
        totals=compute_totals(series),
        fetched_at=fetched_at or FakeClock.DEFAULT_START,
    )
    if stale:
        return build_response(cached, "STALE", "UPSTREAM_5XX")
    return build_response(cached, "MISS")


# ============================================================================
# Clock, cache and health
# ============================================================================


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a FakeClock at 2026-01-17T12:00:00Z."""
    return FakeClock()


@pytest.fixture
def cache(fake_clock: FakeClock) -> TwoTierCache:
    """Provide an empty cache driven by fake_clock."""
    return TwoTierCache(clock=fake_clock.time)


@pytest.fixture
def health(fake_clock: FakeClock) -> HealthRecorder:
    return HealthRecorder(fake_clock.now)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def sample_range(fake_clock: FakeClock) -> DateRange:
    """The 30-day range ending the day before fake_clock's start."""
    return range_for_days(30, fake_clock.now())


# ============================================================================
# Mock clients and services
# ============================================================================


@pytest.fixture
def mock_downloads() -> Generator[MockDownloadsClient, None, None]:
    """
    Provide a MockDownloadsClient.

    Example:
        ```python
        def test_totals(mock_downloads, traffic_service):
            mock_downloads.configure("react", values=[1] * 30)
            assert traffic_service.fetch_traffic("react").totals.sum == 30
        ```
    """
    client = MockDownloadsClient()
    yield client
    client.reset()


@pytest.fixture
def async_mock_downloads() -> Generator[AsyncMockDownloadsClient, None, None]:
    client = AsyncMockDownloadsClient()
    yield client
    client.reset()


@pytest.fixture
def mock_registry() -> Generator[MockRegistryClient, None, None]:
    client = MockRegistryClient()
    yield client
    client.reset()


@pytest.fixture
def async_mock_registry() -> Generator[AsyncMockRegistryClient, None, None]:
    client = AsyncMockRegistryClient()
    yield client
    client.reset()


@pytest.fixture
def traffic_service(
    mock_downloads: MockDownloadsClient,
    cache: TwoTierCache,
    health: HealthRecorder,
    settings: Settings,
    fake_clock: FakeClock,
) -> TrafficService:
    """Provide a TrafficService over mock_downloads."""
    return TrafficService(mock_downloads, cache, health, settings, fake_clock.now)


@pytest.fixture
def async_traffic_service(
    async_mock_downloads: AsyncMockDownloadsClient,
    cache: TwoTierCache,
    health: HealthRecorder,
    settings: Settings,
    fake_clock: FakeClock,
) -> AsyncTrafficService:
    return AsyncTrafficService(async_mock_downloads, cache, health, settings, fake_clock.now)


@pytest.fixture
def metadata_service(
    mock_registry: MockRegistryClient,
    cache: TwoTierCache,
    settings: Settings,
    fake_clock: FakeClock,
) -> MetadataService:
    """Provide a MetadataService over mock_registry."""
    return MetadataService(mock_registry, cache, settings, fake_clock.now)


@pytest.fixture
def async_metadata_service(
    async_mock_registry: AsyncMockRegistryClient,
    cache: TwoTierCache,
    settings: Settings,
    fake_clock: FakeClock,
) -> AsyncMetadataService:
    return AsyncMetadataService(async_mock_registry, cache, settings, fake_clock.now)
