"""
Async HTTP Transport for npmtraffic.

Same retry and error policy as npmtraffic.transport, on the httpx async client.
"""

import asyncio
import time
from collections.abc import Callable, Coroutine
from typing import Any

import httpx

from npmtraffic.exceptions import (
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from npmtraffic.logging import get_logger, log_http_request, log_http_response
from npmtraffic.transport import HTTPTransport, RetryConfig, is_retryable_status
from npmtraffic.version import USER_AGENT

logger = get_logger("http")


class AsyncHTTPTransport:
    """
    Async HTTP transport layer with retry logic.

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
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize async HTTP transport.

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

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json", "User-Agent": user_agent},
            transport=http_transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "AsyncHTTPTransport":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """
        GET a JSON document with automatic retry.

        Args:
            path: API path
            params: Query parameters

        Returns:
            Parsed JSON response

        Raises:
            UpstreamError: On API errors
        """
        async def make_request() -> httpx.Response:
            return await self._client.get(path, params=params)

        return await self._execute_with_retry(make_request, path, params)

    async def _execute_with_retry(
        self,
        request_fn: Callable[[], Coroutine[Any, Any, httpx.Response]],
        path: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """
        Execute a request with automatic retry on retryable errors.

        Args:
            request_fn: Async function that makes the HTTP request
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
                response = await request_fn()
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
                    return HTTPTransport._parse_json(response)

                error = self._parse_error_response(response)
                if not self._should_retry(response.status_code, attempt):
                    raise error

                last_error = error
                wait_time = self._get_backoff_time(response.headers.get("Retry-After"))
                logger.warning(
                    "GET %s failed with %s, retrying in %.1fs",
                    path, response.status_code, wait_time,
                )
                await asyncio.sleep(wait_time)
                continue

            # Network errors are retryable
            if attempt >= self.retry_config.max_retries:
                raise last_error

            wait_time = self._get_backoff_time(None)
            logger.warning("GET %s failed (%s), retrying in %.1fs", path, last_error.message, wait_time)
            await asyncio.sleep(wait_time)

        # Should not reach here, but just in case
        if last_error:
            raise last_error
        raise UpstreamError("UNKNOWN_ERROR", "Request failed with no error details")

    def _should_retry(self, status_code: int, attempt: int) -> bool:
        if attempt >= self.retry_config.max_retries:
            return False

        return is_retryable_status(status_code)

    def _get_backoff_time(self, retry_after: str | None) -> float:
        low = self.retry_config.min_retry_delay
        high = self.retry_config.max_retry_delay

        wait = low
        if retry_after:
            try:
                wait = float(retry_after)
            except ValueError:
                pass  # Fall back to the minimum delay

        return max(low, min(wait, high))

    def _parse_error_response(self, response: httpx.Response) -> UpstreamError:
        """Parse an error response into a typed exception."""
        return HTTPTransport._parse_error_response(response)
