"""Async registry resource client."""

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from npmtraffic.clients.registry import parse_package_meta, parse_search_results
from npmtraffic.exceptions import NotFoundError
from npmtraffic.types.metadata import PackageMeta, SearchItem

if TYPE_CHECKING:
    from npmtraffic.async_transport import AsyncHTTPTransport


class AsyncRegistryClient:
    """Async client for registry.npmjs.org package documents and search."""

    def __init__(self, transport: "AsyncHTTPTransport") -> None:
        self.transport = transport

    async def package_exists(self, package: str) -> bool:
        try:
            await self.transport.get_json(f"/{quote(package, safe='')}")
        except NotFoundError:
            return False
        return True

    async def get_package_meta(self, package: str) -> PackageMeta:
        data = await self.transport.get_json(
            f"/{quote(package, safe='')}", params={"fields": "time,dist-tags"}
        )
        return parse_package_meta(data)

    async def get_repository(self, package: str) -> Any:
        data = await self.transport.get_json(f"/{quote(package, safe='')}")
        return data.get("repository") if isinstance(data, dict) else None

    async def search(self, query: str, limit: int = 10) -> list[SearchItem]:
        data = await self.transport.get_json("/-/v1/search", params={"text": query, "size": limit})
        return parse_search_results(data)
