"""npmtraffic resource clients."""

from npmtraffic.clients.downloads import DownloadsClient
from npmtraffic.clients.registry import RegistryClient

__all__ = [
    "DownloadsClient",
    "RegistryClient",
]
