"""npmtraffic - npm download statistics with caching and stale fallback."""

from npmtraffic.async_client import AsyncNpmTrafficClient
from npmtraffic.async_traffic import AsyncTrafficService
from npmtraffic.cache import TwoTierCache
from npmtraffic.client import NpmTrafficClient
from npmtraffic.compare import assemble_compare_data, build_compare_data, build_compare_data_async
from npmtraffic.config import Settings
from npmtraffic.dates import ALLOWED_DAYS, clamp_days, range_for_days
from npmtraffic.exceptions import (
    AuthenticationError,
    ConfigurationError,
    InvalidRequestError,
    NotFoundError,
    NpmTrafficError,
    PackageNotFoundError,
    RateLimitedError,
    ServerError,
    TrafficError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
    UpstreamUnavailableError,
)
from npmtraffic.health import HealthRecorder, get_status_overview
from npmtraffic.logging import configure_logging, get_logger
from npmtraffic.package_name import validate_package_name
from npmtraffic.prewarm import prewarm_traffic
from npmtraffic.traffic import (
    Err,
    Ok,
    TrafficErrorCode,
    TrafficFailure,
    TrafficService,
    unwrap,
)
from npmtraffic.transport import HTTPTransport, RetryConfig
from npmtraffic.version import VERSION

__version__ = VERSION

__all__ = [
    "__version__",
    # Main Clients
    "NpmTrafficClient",
    "AsyncNpmTrafficClient",
    # Services
    "TrafficService",
    "AsyncTrafficService",
    "build_compare_data",
    "build_compare_data_async",
    "assemble_compare_data",
    "prewarm_traffic",
    "HealthRecorder",
    "get_status_overview",
    # Results
    "Ok",
    "Err",
    "TrafficErrorCode",
    "TrafficFailure",
    "unwrap",
    # Cache and settings
    "TwoTierCache",
    "Settings",
    # Dates and names
    "ALLOWED_DAYS",
    "clamp_days",
    "range_for_days",
    "validate_package_name",
    # Exceptions
    "NpmTrafficError",
    "ConfigurationError",
    "UpstreamError",
    "NotFoundError",
    "AuthenticationError",
    "RateLimitedError",
    "ServerError",
    "UpstreamTimeoutError",
    "UpstreamConnectionError",
    "TrafficError",
    "InvalidRequestError",
    "PackageNotFoundError",
    "UpstreamUnavailableError",
    # Transport
    "HTTPTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
