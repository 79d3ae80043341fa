"""npmtraffic testing utilities.

Provides mock clients, a fake clock and fixtures for testing code built on npmtraffic.
"""

from npmtraffic.testing.fixtures import (
    create_raw_rows,
    create_series,
    create_traffic_response,
)
from npmtraffic.testing.mock import (
    AsyncMockDownloadsClient,
    AsyncMockRegistryClient,
    FakeClock,
    MockCall,
    MockDownloadsClient,
    MockRegistryClient,
    MockResponse,
)

__all__ = [
    # Mock clients
    "MockDownloadsClient",
    "AsyncMockDownloadsClient",
    "MockRegistryClient",
    "AsyncMockRegistryClient",
    "MockCall",
    "MockResponse",
    "FakeClock",
    # Helper functions
    "create_raw_rows",
    "create_series",
    "create_traffic_response",
]
