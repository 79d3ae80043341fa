"""
Async traffic orchestration.

Same state machine as npmtraffic.traffic; only the upstream fetch awaits.
"""

from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING

from npmtraffic.cache import TwoTierCache
from npmtraffic.config import Settings
from npmtraffic.exceptions import UpstreamError
from npmtraffic.health import HealthRecorder
from npmtraffic.traffic import BaseTrafficService, TrafficResult, PendingFetch, unwrap
from npmtraffic.types.traffic import TrafficResponse

if TYPE_CHECKING:
    from npmtraffic.async_clients.downloads import AsyncDownloadsClient


class AsyncTrafficService(BaseTrafficService):
    """Traffic facade over the async downloads client."""

    def __init__(
        self,
        downloads: "AsyncDownloadsClient",
        cache: TwoTierCache,
        health: HealthRecorder | None = None,
        settings: Settings | None = None,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(cache, health, settings, now)
        self.downloads = downloads

    async def fetch_traffic_result(
        self, package_input: str, days: int | str | None = None
    ) -> TrafficResult:
        """
        Fetch traffic for a package, returning failures as values.

        Returns:
            Ok(TrafficResponse) or Err(TrafficFailure)
        """
        prepared = self._prepare(package_input, days)
        if not isinstance(prepared, PendingFetch):
            return prepared

        try:
            self._check_test_failure()
            upstream = await self.downloads.fetch_daily_downloads_range(
                prepared.package, prepared.range.start_date, prepared.range.end_date
            )
        except UpstreamError as e:
            return self._on_failure(prepared, e)

        return self._on_success(prepared, upstream)

    async def fetch_traffic(
        self, package_input: str, days: int | str | None = None
    ) -> TrafficResponse:
        """
        Fetch traffic for a package.

        Raises:
            InvalidRequestError: If the name is invalid
            PackageNotFoundError: If npm does not know the package
            UpstreamUnavailableError: If npm failed and nothing usable is cached
        """
        return unwrap(await self.fetch_traffic_result(package_input, days))
