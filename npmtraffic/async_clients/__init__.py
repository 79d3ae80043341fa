"""npmtraffic async resource clients."""

from npmtraffic.async_clients.downloads import AsyncDownloadsClient
from npmtraffic.async_clients.registry import AsyncRegistryClient

__all__ = [
    "AsyncDownloadsClient",
    "AsyncRegistryClient",
]
