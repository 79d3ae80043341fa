"""Async downloads resource client."""

from typing import TYPE_CHECKING

from npmtraffic.clients.downloads import build_range_path, parse_range_response
from npmtraffic.types.traffic import UpstreamRange

if TYPE_CHECKING:
    from npmtraffic.async_transport import AsyncHTTPTransport


class AsyncDownloadsClient:
    """Async client for the npm downloads API."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        """
        Initialize the async downloads client.

        Args:
            transport: Async HTTP transport for api.npmjs.org
        """
        self.transport = transport

    async def fetch_daily_downloads_range(
        self, package: str, start: str, end: str
    ) -> UpstreamRange:
        """
        Fetch daily download counts of a package.

        Args:
            package: Validated package name
            start: First day (YYYY-MM-DD, inclusive)
            end: Last day (YYYY-MM-DD, inclusive)

        Returns:
            UpstreamRange; days without data may be missing
        """
        data = await self.transport.get_json(build_range_path(package, start, end))
        return parse_range_response(data, package, start, end)
