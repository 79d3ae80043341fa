"""
Tests for npmtraffic logging.
"""

import io
import logging
from collections.abc import Generator

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from npmtraffic.cache import TwoTierCache
from npmtraffic.logging import (
    configure_logging,
    get_logger,
    log_cache_event,
    log_http_request,
    log_http_response,
    truncate_body,
)


@pytest.fixture
def restore_loggers() -> Generator[None, None, None]:
    """Restore npmtraffic logger levels and handlers after a test."""
    loggers = [get_logger(), get_logger("http"), get_logger("cache")]
    saved = [(lg.level, list(lg.handlers)) for lg in loggers]
    yield
    for lg, (level, handlers) in zip(loggers, saved):
        lg.setLevel(level)
        lg.handlers = handlers


def capture(name: str, level: int = logging.DEBUG) -> tuple[logging.Logger, io.StringIO]:
    buffer = io.StringIO()
    handler = logging.StreamHandler(buffer)
    handler.setLevel(logging.DEBUG)
    logger = get_logger(name)
    logger.setLevel(level)
    logger.handlers = [handler]
    return logger, buffer


@given(body=st.text(min_size=0, max_size=1000))
@settings(max_examples=100)
def test_truncated_body_is_bounded(body: str) -> None:
    """Truncated bodies never carry more than the preview of the original."""
    truncated = truncate_body(body, limit=50)

    if len(body.strip()) <= 50:
        assert truncated == body.strip()
    else:
        assert truncated.startswith(body.strip()[:50])
        assert truncated.endswith(f"({len(body.strip())} chars)")


def test_truncate_body_empty() -> None:
    assert truncate_body(None) == ""
    assert truncate_body("") == ""


def test_configure_logging_sets_levels(restore_loggers: None) -> None:
    configure_logging(
        level=logging.WARNING,
        http_level=logging.DEBUG,
        cache_level=logging.ERROR,
        handler=logging.StreamHandler(io.StringIO()),
    )

    assert get_logger().level == logging.WARNING
    assert get_logger("http").level == logging.DEBUG
    assert get_logger("cache").level == logging.ERROR


def test_configure_logging_uses_format(restore_loggers: None) -> None:
    buffer = io.StringIO()
    configure_logging(
        level=logging.INFO,
        handler=logging.StreamHandler(buffer),
        format_string="%(name)s:%(levelname)s:%(message)s",
    )

    get_logger("traffic").info("warmed")

    assert "npmtraffic.traffic:INFO:warmed" in buffer.getvalue()


def test_get_logger_names() -> None:
    assert get_logger().name == "npmtraffic"
    assert get_logger("http").name == "npmtraffic.http"
    assert get_logger("compare").name == "npmtraffic.compare"


def test_http_logging_includes_attempt_and_elapsed(restore_loggers: None) -> None:
    _, buffer = capture("http")

    log_http_request("GET", "/downloads/range/x/react", {"q": "1"}, attempt=1)
    log_http_response(200, "/downloads/range/x/react", '{"downloads": []}', 12.345)

    output = buffer.getvalue()
    assert "GET /downloads/range/x/react | params={'q': '1'} | attempt=2" in output
    assert "Response 200 from /downloads/range/x/react | elapsed=12.35ms" in output
    assert 'body={"downloads": []}' in output


def test_http_logging_silent_above_debug(restore_loggers: None) -> None:
    _, buffer = capture("http", level=logging.INFO)

    log_http_request("GET", "/x")
    log_http_response(500, "/x", "oops")

    assert buffer.getvalue() == ""


def test_large_response_body_truncated(restore_loggers: None) -> None:
    _, buffer = capture("http")

    log_http_response(502, "/x", "e" * 5000)

    output = buffer.getvalue()
    assert "e" * 5000 not in output
    assert "(5000 chars)" in output


def test_cache_events_logged(restore_loggers: None) -> None:
    _, buffer = capture("cache")
    cache = TwoTierCache(clock=lambda: 0.0)

    cache.set("traffic:react:30", 1, 60)
    cache.get("traffic:react:30")
    cache.get("traffic:vue:30")
    log_cache_event("STALE", "traffic:x:7")

    lines = buffer.getvalue().splitlines()
    assert lines == [
        "SET traffic:react:30",
        "HIT traffic:react:30",
        "MISS traffic:vue:30",
        "STALE traffic:x:7",
    ]
