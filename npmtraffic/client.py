"""
npmtraffic main client.

Wires transports, resource clients and services into one object sharing a
cache and a health recorder.
"""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx

from npmtraffic.cache import TwoTierCache
from npmtraffic.clients import DownloadsClient, RegistryClient
from npmtraffic.compare import build_compare_data
from npmtraffic.config import Settings
from npmtraffic.health import HealthRecorder, get_status_overview
from npmtraffic.metadata import MetadataService
from npmtraffic.traffic import TrafficResult, TrafficService
from npmtraffic.transport import HTTPTransport, RetryConfig
from npmtraffic.types import (
    CompareData,
    DateRange,
    SearchResponse,
    StaleReason,
    StatusOverview,
    TrafficResponse,
    VersionTimeline,
)

# Registry lookups are interactive; they fail fast instead of retrying.
REGISTRY_RETRY_CONFIG = RetryConfig(max_retries=0)


class NpmTrafficClient:
    """
    Main client for npm download statistics.

    Example:
        ```python
        from npmtraffic import NpmTrafficClient

        with NpmTrafficClient() as client:
            traffic = client.fetch_traffic("react", 30)
            print(traffic.totals.sum, traffic.meta.cache_status)

            compare = client.compare(["react", "vue"], 30)
            for pkg in compare.packages:
                print(pkg.name, pkg.share)
        ```
    """

    def __init__(
        self,
        settings: Settings | None = None,
        cache: TwoTierCache | None = None,
        health: HealthRecorder | None = None,
        retry_config: RetryConfig | None = None,
        now: Callable[[], datetime] | None = None,
        downloads_http_transport: httpx.BaseTransport | None = None,
        registry_http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

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

        self._downloads_transport = HTTPTransport(
            base_url=self.settings.downloads_base_url,
            timeout=self.settings.timeout,
            retry_config=retry_config,
            user_agent=self.settings.user_agent,
            http_transport=downloads_http_transport,
        )
        self._registry_transport = HTTPTransport(
            base_url=self.settings.registry_base_url,
            timeout=self.settings.timeout,
            retry_config=REGISTRY_RETRY_CONFIG,
            user_agent=self.settings.user_agent,
            http_transport=registry_http_transport,
        )

        self.downloads = DownloadsClient(self._downloads_transport)
        self.registry = RegistryClient(self._registry_transport)
        self.traffic = TrafficService(
            self.downloads, self.cache, self.health, self.settings, now
        )
        self.metadata = MetadataService(self.registry, self.cache, self.settings, now)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "NpmTrafficClient":
        """
        Create a client configured from NPMTRAFFIC_* environment variables.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        return cls(settings=Settings.from_env(), **kwargs)

    def fetch_traffic(self, package: str, days: int | str | None = None) -> TrafficResponse:
        """Daily downloads of a package; see TrafficService.fetch_traffic."""
        return self.traffic.fetch_traffic(package, days)

    def fetch_traffic_result(self, package: str, days: int | str | None = None) -> TrafficResult:
        return self.traffic.fetch_traffic_result(package, days)

    def get_cached_traffic(
        self, package: str, days: int | str | None = None, reason: StaleReason | None = None
    ) -> TrafficResponse | None:
        return self.traffic.get_cached_traffic(package, days, reason)

    def compare(self, packages: list[str], days: int | str | None = None) -> CompareData:
        """Compare 2-5 packages; see npmtraffic.compare.build_compare_data."""
        return build_compare_data(self.traffic, packages, days)

    def package_exists(self, package: str) -> bool:
        return self.metadata.package_exists(package)

    def get_version_timeline(self, package: str, date_range: DateRange) -> VersionTimeline | None:
        return self.metadata.get_version_timeline(package, date_range)

    def get_github_repo(self, package: str) -> str | None:
        return self.metadata.get_github_repo(package)

    def search(self, query: str, limit: int = 10) -> SearchResponse:
        return self.metadata.search(query, limit)

    def status(self) -> StatusOverview:
        """Build info and last observed health of this client."""
        return get_status_overview(self.health)

    def close(self) -> None:
        """Close the client and release resources."""
        self._downloads_transport.close()
        self._registry_transport.close()

    def __enter__(self) -> "NpmTrafficClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
