"""
Pytest plugin for npmtraffic testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your conftest.py:

    pytest_plugins = ["npmtraffic.testing.conftest"]
"""

# Re-export all fixtures for pytest auto-discovery
from npmtraffic.testing.fixtures import (
    async_metadata_service,
    async_mock_downloads,
    async_mock_registry,
    async_traffic_service,
    cache,
    fake_clock,
    health,
    metadata_service,
    mock_downloads,
    mock_registry,
    sample_range,
    settings,
    traffic_service,
)

__all__ = [
    "fake_clock",
    "cache",
    "health",
    "settings",
    "sample_range",
    "mock_downloads",
    "async_mock_downloads",
    "mock_registry",
    "async_mock_registry",
    "traffic_service",
    "async_traffic_service",
    "metadata_service",
    "async_metadata_service",
]
