"""npmtraffic exception classes."""


class NpmTrafficError(Exception):
    """Base exception for all npmtraffic errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(NpmTrafficError):
    """Raised when settings are invalid."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


# ---------------------------------------------------------------------------
# Upstream (client layer) errors
# ---------------------------------------------------------------------------


class UpstreamError(NpmTrafficError):
    """Raised when the npm API answers with an error or cannot be reached.

    ``status`` is the HTTP status code, or None when no response was received.
    """

    def __init__(
        self, code: str, message: str, status: int | None = None
    ) -> None:
        super().__init__(code, message)
        self.status = status


class NotFoundError(UpstreamError):
    """Raised on 404. Permanent for the requested package, never retried."""

    def __init__(self, message: str = "Package not found") -> None:
        super().__init__("NPM_NOT_FOUND", message, 404)


class AuthenticationError(UpstreamError):
    """Raised on 401/403."""

    pass


class RateLimitedError(UpstreamError):
    """Raised on 429."""

    def __init__(
        self, code: str, message: str, retry_after: float | None = None
    ) -> None:
        super().__init__(code, message, 429)
        self.retry_after = retry_after


class ServerError(UpstreamError):
    """Raised on 5xx."""

    pass


class UpstreamTimeoutError(UpstreamError):
    """Raised when every attempt timed out."""

    def __init__(self, message: str) -> None:
        super().__init__("TIMEOUT", message)


class UpstreamConnectionError(UpstreamError):
    """Raised on network failures after the last attempt."""

    def __init__(self, message: str) -> None:
        super().__init__("CONNECTION_ERROR", message)


# ---------------------------------------------------------------------------
# Service layer errors
# ---------------------------------------------------------------------------


class TrafficError(NpmTrafficError):
    """Error surfaced by the traffic, compare and metadata services.

    ``status`` is the HTTP status a route handler should answer with;
    ``upstream_status`` is the npm API status that caused it, when known.
    """

    status: int = 500

    def __init__(
        self,
        code: str,
        message: str,
        upstream_status: int | None = None,
    ) -> None:
        super().__init__(code, message)
        self.upstream_status = upstream_status


class InvalidRequestError(TrafficError):
    """Bad package name or package count. Never retried or cached."""

    status = 400

    def __init__(self, message: str) -> None:
        super().__init__("INVALID_REQUEST", message)


class PackageNotFoundError(TrafficError):
    """The registry definitively does not know the package."""

    status = 404

    def __init__(self, message: str = "Package not found") -> None:
        super().__init__("PACKAGE_NOT_FOUND", message, 404)


class UpstreamUnavailableError(TrafficError):
    """The npm API failed and no cached data could stand in."""

    status = 502

    def __init__(
        self,
        message: str = "npm API temporarily unavailable",
        upstream_status: int | None = None,
    ) -> None:
        super().__init__("UPSTREAM_UNAVAILABLE", message, upstream_status)
