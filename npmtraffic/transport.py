"""
HTTP Transport for npmtraffic.

Handles HTTP communication with the npm APIs: per-attempt timeouts, a
bounded retry on transient failures, and parsing of error responses into
typed exceptions.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from npmtraffic.exceptions import (
    AuthenticationError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from npmtraffic.logging import get_logger, log_http_request, log_http_response, truncate_body
from npmtraffic.version import USER_AGENT

logger = get_logger("http")


@dataclass
class RetryConfig:
    """Configuration for retry behavior.

    The default allows two attempts in total. The npm API is a shared
    third-party service, so failures are not hammered during incidents.
    """

    max_retries: int = 1
    min_retry_delay: float = 1.0  # Lower clamp for Retry-After, in seconds
    max_retry_delay: float = 5.0  # Upper clamp for Retry-After, in seconds


def is_retryable_status(status_code: int) -> bool:
    """429 and 5xx are transient; everything else is final."""
    return status_code == 429 or 500 <= status_code <= 599


class HTTPTransport:
    """
    HTTP transport layer with retry logic.

    Handles:
    - A fresh timeout for every attempt
    - Immediate failure on 404 and other non-retryable statuses
    - One retry on 429, 5xx and network errors, delayed by Retry-After clamped to [1, 5] s
    - Error response parsing into typed exceptions
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 5.0,
        retry_config: RetryConfig | None = None,
        user_agent: str = USER_AGENT,
        http_transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize HTTP transport.

        Args:
            base_url: Base URL for API requests (e.g., "https://api.npmjs.org")
            timeout: Timeout of each attempt in seconds
            retry_config: Configuration for retry behavior
            user_agent: User-Agent header sent with every request
            http_transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": user_agent},
            transport=http_transport,
        )

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "HTTPTransport":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a JSON document with automatic retry.

        Args:
            path: API path (e.g., "/downloads/range/2024-01-01:2024-01-30/react")
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            UpstreamError: On API errors (see npmtraffic.exceptions for subclasses)
        """
        def make_request() -> httpx.Response:
            return self._client.get(path, params=params)

        return self._execute_with_retry(make_request, path, params)

    def _execute_with_retry(
        self,
        request_fn: Callable[[], httpx.Response],
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Function that makes the HTTP request
            path: Request path, for logging

        Returns:
            Parsed JSON response

        Raises:
            UpstreamError: On non-retryable errors or after the last attempt
        """
        last_error: UpstreamError | None = None

        for attempt in range(self.retry_config.max_retries + 1):
            log_http_request("GET", path, params, attempt)
            started = time.monotonic()
            try:
                response = request_fn()
            except httpx.TimeoutException as e:
                last_error = UpstreamTimeoutError(f"Request timed out after {self.timeout}s: {e}")
            except httpx.RequestError as e:
                last_error = UpstreamConnectionError(str(e))
            else:
                log_http_response(
                    response.status_code,
                    path,
                    None if response.is_success else response.text,
                    (time.monotonic() - started) * 1000,
                )

                if response.is_success:
                    return self._parse_json(response)

                error = self._parse_error_response(response)
                if not self._should_retry(response.status_code, attempt):
                    raise error

                last_error = error
                wait_time = self._get_backoff_time(response.headers.get("Retry-After"))
                logger.warning(
                    "GET %s failed with %s, retrying in %.1fs",
                    path, response.status_code, wait_time,
                )
                time.sleep(wait_time)
                continue

            # Network errors are retryable
            if attempt >= self.retry_config.max_retries:
                raise last_error

            wait_time = self._get_backoff_time(None)
            logger.warning("GET %s failed (%s), retrying in %.1fs", path, last_error.message, wait_time)
            time.sleep(wait_time)

        # Should not reach here, but just in case
        if last_error:
            raise last_error
        raise UpstreamError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        """
        Determine if a request should be retried.

        Args:
            status_code: HTTP status code
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the request should be retried
        """
        if attempt >= self.retry_config.max_retries:
            return False

        return is_retryable_status(status_code)

    def _get_backoff_time(self, retry_after: str | None) -> float:
        """
        Calculate the delay before the next attempt.

        Args:
            retry_after: Value of Retry-After header (if present)

        Returns:
            Retry-After seconds clamped to [min_retry_delay, max_retry_delay];
            the lower bound when the header is missing or unparsable
        """
        low = self.retry_config.min_retry_delay
        high = self.retry_config.max_retry_delay

        wait = low
        if retry_after:
            try:
                wait = float(retry_after)
            except ValueError:
                pass  # Fall back to the minimum delay

        return max(low, min(wait, high))

    @staticmethod
    def _parse_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError("INVALID_RESPONSE", f"Invalid JSON response: {e}") from e

    @staticmethod
    def _parse_error_response(response: httpx.Response) -> UpstreamError:
        """
        Parse an error response into a typed exception.

        Args:
            response: HTTP response with error status

        Returns:
            Appropriate UpstreamError subclass
        """
        status_code = response.status_code
        message = truncate_body(response.text) or f"HTTP {status_code}"

        if status_code == 404:
            return NotFoundError(message)
        elif status_code in (401, 403):
            return AuthenticationError(f"UPSTREAM_{status_code}", message, status_code)
        elif status_code == 429:
            retry_after: float | None
            try:
                retry_after = float(response.headers.get("Retry-After", ""))
            except ValueError:
                retry_after = None
            return RateLimitedError("UPSTREAM_429", message, retry_after)
        elif status_code >= 500:
            return ServerError(f"UPSTREAM_{status_code}", message, status_code)
        else:
            return UpstreamError(f"UPSTREAM_{status_code}", message, status_code)
