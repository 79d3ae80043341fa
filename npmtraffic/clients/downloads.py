"""Downloads resource client."""

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from npmtraffic.exceptions import UpstreamError
from npmtraffic.types.traffic import RawDownloadRow, UpstreamRange

if TYPE_CHECKING:
    from npmtraffic.transport import HTTPTransport


def build_range_path(package: str, start: str, end: str) -> str:
    """Path of the daily range endpoint; scoped names are percent-encoded."""
    return f"/downloads/range/{start}:{end}/{quote(package, safe='')}"


def parse_range_response(data: Any, package: str, start: str, end: str) -> UpstreamRange:
    """
    Parse the body of the range endpoint.

    Raises:
        UpstreamError: If the body has no downloads list
    """
    if not isinstance(data, dict) or not isinstance(data.get("downloads"), list):
        raise UpstreamError("INVALID_RESPONSE", "Response missing 'downloads' list")

    try:
        rows = [
            RawDownloadRow(day=str(entry["day"]), downloads=int(entry.get("downloads") or 0))
            for entry in data["downloads"]
            if isinstance(entry, dict) and entry.get("day")
        ]
    except (TypeError, ValueError) as e:
        raise UpstreamError("INVALID_RESPONSE", f"Malformed download row: {e}") from e
    return UpstreamRange(
        start=data.get("start", start),
        end=data.get("end", end),
        package=data.get("package", package),
        downloads=rows,
    )


class DownloadsClient:
    """Client for the npm downloads API."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the downloads client.

        Args:
            transport: HTTP transport for api.npmjs.org
        """
        self.transport = transport

    def fetch_daily_downloads_range(
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

        Raises:
            NotFoundError: If npm does not know the package
            UpstreamError: On any other failure, after at most one retry
        """
        data = self.transport.get_json(build_range_path(package, start, end))
        return parse_range_response(data, package, start, end)
