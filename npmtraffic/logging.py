"""
npmtraffic logging utilities.

Provides configurable logging for upstream HTTP traffic and cache activity.
Response bodies are truncated before they reach a log record.
"""

import logging
from typing import Any

# Create package loggers
_root_logger = logging.getLogger("npmtraffic")
_http_logger = logging.getLogger("npmtraffic.http")
_cache_logger = logging.getLogger("npmtraffic.cache")

# Maximum number of characters of an upstream body kept in a log line
_BODY_PREVIEW_LENGTH = 200


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    cache_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure npmtraffic logging.

    Args:
        level: Default log level for all npmtraffic loggers (default: INFO)
        http_level: Log level for upstream request/response logging (default: same as level)
        cache_level: Log level for cache hit/miss logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from npmtraffic.logging import configure_logging

        # Trace every call made to the npm API
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _root_logger.setLevel(level)
    _root_logger.addHandler(handler)

    _http_logger.setLevel(http_level if http_level is not None else level)
    _cache_logger.setLevel(cache_level if cache_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get an npmtraffic logger.

    Args:
        name: Logger name suffix (e.g., "http", "traffic"). If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _root_logger
    return logging.getLogger(f"npmtraffic.{name}")


def truncate_body(body: str | None, limit: int = _BODY_PREVIEW_LENGTH) -> str:
    """Shorten an upstream response body for logging."""
    if not body:
        return ""
    body = body.strip()
    if len(body) <= limit:
        return body
    return f"{body[:limit]}... ({len(body)} chars)"


def log_http_request(
    method: str,
    url: str,
    params: dict[str, Any] | None = None,
    attempt: int = 0,
) -> None:
    """
    Log an upstream request at DEBUG level.

    Args:
        method: HTTP method
        url: Request URL or path
        params: Query parameters (optional)
        attempt: Attempt number, 0-indexed
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} {url}"]

    if params:
        log_parts.append(f"params={params}")

    if attempt:
        log_parts.append(f"attempt={attempt + 1}")

    _http_logger.debug(" | ".join(log_parts))


def log_http_response(
    status_code: int,
    url: str,
    body: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log an upstream response at DEBUG level.

    Args:
        status_code: HTTP status code
        url: Request URL
        body: Raw response body (optional, truncated)
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"Response {status_code} from {url}"]

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if body:
        log_parts.append(f"body={truncate_body(body)}")

    _http_logger.debug(" | ".join(log_parts))


def log_cache_event(event: str, key: str) -> None:
    """
    Log a cache lookup outcome at DEBUG level.

    Args:
        event: Outcome such as "HIT", "STALE", "MISS", "SET" or "EXPIRED"
        key: Cache key
    """
    if not _cache_logger.isEnabledFor(logging.DEBUG):
        return

    _cache_logger.debug("%s %s", event, key)


__all__ = [
    "configure_logging",
    "get_logger",
    "truncate_body",
    "log_http_request",
    "log_http_response",
    "log_cache_event",
]
