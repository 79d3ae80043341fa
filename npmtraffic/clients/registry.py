"""Registry resource client."""

from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from npmtraffic.exceptions import NotFoundError
from npmtraffic.types.metadata import PackageMeta, SearchItem

if TYPE_CHECKING:
    from npmtraffic.transport import HTTPTransport


def parse_package_meta(data: Any) -> PackageMeta:
    if not isinstance(data, dict):
        return PackageMeta()
    time = data.get("time")
    dist_tags = data.get("dist-tags")
    return PackageMeta(
        time={k: v for k, v in time.items() if isinstance(v, str)} if isinstance(time, dict) else {},
        dist_tags=(
            {k: v for k, v in dist_tags.items() if isinstance(v, str)}
            if isinstance(dist_tags, dict)
            else {}
        ),
    )


def parse_search_results(data: Any) -> list[SearchItem]:
    objects = data.get("objects") if isinstance(data, dict) else None
    items = []
    for entry in objects or []:
        package = entry.get("package") or {}
        name = package.get("name")
        if not name:
            continue
        score = (entry.get("score") or {}).get("final")
        items.append(
            SearchItem(name=name, description=package.get("description"), score=score)
        )
    return items


class RegistryClient:
    """Client for registry.npmjs.org package documents and search."""

    def __init__(self, transport: "HTTPTransport") -> None:
        """
        Initialize the registry client.

        Args:
            transport: HTTP transport for registry.npmjs.org
        """
        self.transport = transport

    def package_exists(self, package: str) -> bool:
        """
        Check whether the registry knows a package.

        Returns:
            False on 404, True on success

        Raises:
            UpstreamError: On any other failure
        """
        try:
            self.transport.get_json(f"/{quote(package, safe='')}")
        except NotFoundError:
            return False
        return True

    def get_package_meta(self, package: str) -> PackageMeta:
        """Fetch publish times and dist-tags of a package."""
        data = self.transport.get_json(
            f"/{quote(package, safe='')}", params={"fields": "time,dist-tags"}
        )
        return parse_package_meta(data)

    def get_repository(self, package: str) -> Any:
        """Fetch the raw `repository` field of a package document."""
        data = self.transport.get_json(f"/{quote(package, safe='')}")
        return data.get("repository") if isinstance(data, dict) else None

    def search(self, query: str, limit: int = 10) -> list[SearchItem]:
        """Search packages by text."""
        data = self.transport.get_json("/-/v1/search", params={"text": query, "size": limit})
        return parse_search_results(data)
