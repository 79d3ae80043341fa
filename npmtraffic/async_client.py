"""
npmtraffic async client.

Async counterpart of NpmTrafficClient, built on httpx.AsyncClient.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from npmtraffic.async_clients import AsyncDownloadsClient, AsyncRegistryClient
from npmtraffic.async_traffic import AsyncTrafficService
from npmtraffic.async_transport import AsyncHTTPTransport
from npmtraffic.cache import TwoTierCache
from npmtraffic.client import REGISTRY_RETRY_CONFIG
from npmtraffic.compare import build_compare_data_async
from npmtraffic.config import Settings
from npmtraffic.health import HealthRecorder, get_status_overview
from npmtraffic.metadata import AsyncMetadataService
from npmtraffic.prewarm import prewarm_traffic
from npmtraffic.traffic import TrafficResult
from npmtraffic.transport import RetryConfig
from npmtraffic.types import (
    CompareData,
    DateRange,
    PrewarmResult,
    SearchResponse,
    StaleReason,
    StatusOverview,
    TrafficResponse,
    VersionTimeline,
)


class AsyncNpmTrafficClient:
    """
    Async client for npm download statistics.

    Example:
        ```python
        from npmtraffic import AsyncNpmTrafficClient

        async with AsyncNpmTrafficClient() as client:
            traffic = await client.fetch_traffic("react", 30)
            compare = await client.compare(["react", "vue"])
            result = await client.prewarm()
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: TwoTierCache | None = None,
        health: HealthRecorder | None = None,
        retry_config: RetryConfig | None = None,
        now: Callable[[], datetime] | None = None,
        downloads_http_transport: httpx.AsyncBaseTransport | None = None,
        registry_http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the async client.

        Args:
            settings: Endpoints, timeouts and TTLs (default: Settings())
            cache: Cache to share with other clients (default: a new one)
            health: Health recorder to share (default: a new one)
            retry_config: Retry policy of the downloads API (default: RetryConfig())
            now: Returns the current UTC time, for tests
            downloads_http_transport: Custom httpx transport for the downloads API
            registry_http_transport: Custom httpx transport for the registry
        """
        self.settings = settings or Settings()
        self.cache = cache or TwoTierCache()
        self.health = health or HealthRecorder(now)

        self._downloads_transport = AsyncHTTPTransport(
            base_url=self.settings.downloads_base_url,
            timeout=self.settings.timeout,
            retry_config=retry_config,
            user_agent=self.settings.user_agent,
            http_transport=downloads_http_transport,
        )
        self._registry_transport = AsyncHTTPTransport(
            base_url=self.settings.registry_base_url,
            timeout=self.settings.timeout,
            retry_config=REGISTRY_RETRY_CONFIG,
            user_agent=self.settings.user_agent,
            http_transport=registry_http_transport,
        )

        self.downloads = AsyncDownloadsClient(self._downloads_transport)
        self.registry = AsyncRegistryClient(self._registry_transport)
        self.traffic = AsyncTrafficService(
            self.downloads, self.cache, self.health, self.settings, now
        )
        self.metadata = AsyncMetadataService(self.registry, self.cache, self.settings, now)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "AsyncNpmTrafficClient":
        """Create a client configured from NPMTRAFFIC_* environment variables."""
        return cls(settings=Settings.from_env(), **kwargs)

    async def fetch_traffic(
        self, package: str, days: int | str | None = None
    ) -> TrafficResponse:
        return await self.traffic.fetch_traffic(package, days)

    async def fetch_traffic_result(
        self, package: str, days: int | str | None = None
    ) -> TrafficResult:
        return await self.traffic.fetch_traffic_result(package, days)

    def get_cached_traffic(
        self, package: str, days: int | str | None = None, reason: StaleReason | None = None
    ) -> TrafficResponse | None:
        return self.traffic.get_cached_traffic(package, days, reason)

    async def compare(self, packages: list[str], days: int | str | None = None) -> CompareData:
        return await build_compare_data_async(self.traffic, packages, days)

    async def package_exists(self, package: str) -> bool:
        return await self.metadata.package_exists(package)

    async def get_version_timeline(
        self, package: str, date_range: DateRange
    ) -> VersionTimeline | None:
        return await self.metadata.get_version_timeline(package, date_range)

    async def get_github_repo(self, package: str) -> str | None:
        return await self.metadata.get_github_repo(package)

    async def search(self, query: str, limit: int = 10) -> SearchResponse:
        return await self.metadata.search(query, limit)

    async def prewarm(
        self, packages: list[str] | None = None, days: list[int] | None = None
    ) -> PrewarmResult:
        """Warm the traffic cache; see npmtraffic.prewarm.prewarm_traffic."""
        return await prewarm_traffic(self.traffic.fetch_traffic, packages, days)

    def status(self) -> StatusOverview:
        return get_status_overview(self.health)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self._downloads_transport.close()
        await self._registry_transport.close()

    async def __aenter__(self) -> "AsyncNpmTrafficClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
