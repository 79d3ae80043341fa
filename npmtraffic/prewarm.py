"""
Cache prewarming.

Fetches traffic for popular packages ahead of demand so that the first
visitor of the day gets a cache hit. Meant to run from a scheduler.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from npmtraffic.exceptions import NpmTrafficError
from npmtraffic.logging import get_logger
from npmtraffic.package_name import normalize_package_input
from npmtraffic.types.traffic import PrewarmFailure, PrewarmResult

logger = get_logger("prewarm")

POPULAR_PACKAGES = (
    "react",
    "react-dom",
    "next",
    "vue",
    "typescript",
    "lodash",
    "axios",
    "express",
    "webpack",
    "vite",
    "eslint",
    "prettier",
    "jest",
    "tailwindcss",
    "@angular/core",
    "svelte",
    "chalk",
    "commander",
    "dayjs",
    "zod",
)

PREWARM_DAYS = (7, 14, 30)
DEFAULT_PREWARM_PACKAGES = 12

FetchFn = Callable[[str, int], Awaitable[Any]]


def _normalize_packages(packages: list[str] | None) -> list[str]:
    if not packages:
        return list(POPULAR_PACKAGES[:DEFAULT_PREWARM_PACKAGES])
    return [name for name in (normalize_package_input(p) for p in packages) if name]


def _error_code(error: BaseException) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return "timeout"
    if isinstance(error, NpmTrafficError):
        return error.code
    return str(error) or type(error).__name__


async def prewarm_traffic(
    fetch_fn: FetchFn,
    packages: list[str] | None = None,
    days: list[int] | None = None,
    concurrency: int = 3,
    timeout: float = 6.0,
) -> PrewarmResult:
    """
    Warm the traffic cache for every (package, days) pair.

    Pairs run in batches of `concurrency`; each fetch gets `timeout` seconds.
    Failures are collected, never raised.

    Args:
        fetch_fn: Coroutine function fetching traffic, e.g. AsyncTrafficService.fetch_traffic
        packages: Packages to warm (default: the 12 most popular)
        days: Day counts to warm; values outside 7/14/30 are dropped (default: all three)
        concurrency: Fetches in flight at once
        timeout: Seconds allowed per fetch

    Returns:
        PrewarmResult with counts, failures and duration
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")

    day_counts = list(PREWARM_DAYS) if days is None else [d for d in days if d in PREWARM_DAYS]
    tasks = [(pkg, d) for pkg in _normalize_packages(packages) for d in day_counts]

    failures: list[PrewarmFailure] = []
    warmed = 0
    started = time.monotonic()

    async def run(pkg: str, day_count: int) -> PrewarmFailure | None:
        try:
            await asyncio.wait_for(fetch_fn(pkg, day_count), timeout)
        except Exception as e:
            logger.warning("Prewarm failed for %s (%s days): %s", pkg, day_count, e)
            return PrewarmFailure(package=pkg, days=day_count, error_code=_error_code(e))
        return None

    for i in range(0, len(tasks), concurrency):
        batch = tasks[i:i + concurrency]
        for outcome in await asyncio.gather(*(run(pkg, d) for pkg, d in batch)):
            if outcome is None:
                warmed += 1
            else:
                failures.append(outcome)

    result = PrewarmResult(
        warmed_count=warmed,
        failed_count=len(failures),
        failures=failures,
        duration_ms=(time.monotonic() - started) * 1000,
    )
    logger.info(
        "Prewarmed %d of %d entries in %.0fms", warmed, len(tasks), result.duration_ms
    )
    return result
