"""
Compare orchestration.

Fetches traffic for 2-5 packages, aligns the series by date and computes
each package's share of the combined total. A failure for any package
fails the whole comparison.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import TYPE_CHECKING

from npmtraffic.dates import clamp_days
from npmtraffic.exceptions import InvalidRequestError
from npmtraffic.normalize import round_half_up
from npmtraffic.package_name import canonicalize_packages
from npmtraffic.types.compare import CompareData, CompareSeriesRow, CompareTotals, CompareValue
from npmtraffic.types.traffic import TrafficResponse

if TYPE_CHECKING:
    from npmtraffic.async_traffic import AsyncTrafficService
    from npmtraffic.config import Settings
    from npmtraffic.traffic import TrafficService


def compute_share(total: int, total_all: int) -> float:
    """Percent of total_all, rounded half-up to two decimals. A zero total_all counts as 1."""
    denominator = Decimal(total_all or 1)
    return float(round_half_up(Decimal(total) * 10000 / denominator) / 100)


def assemble_compare_data(
    datasets: list[tuple[str, TrafficResponse]], days: int
) -> CompareData:
    """
    Merge per-package traffic into one date-aligned comparison.

    The first package's dates drive the unified series. A package without a
    row for some date contributes 0 downloads and no delta there.

    Args:
        datasets: (name, response) pairs in display order
        days: Clamped day count of the comparison

    Returns:
        CompareData

    Raises:
        ValueError: If datasets is empty
    """
    if not datasets:
        raise ValueError("assemble_compare_data needs at least one dataset")

    totals = [(name, data.totals.sum) for name, data in datasets]
    total_all = sum(total for _, total in totals)
    packages = [
        CompareTotals(name=name, total=total, share=compute_share(total, total_all))
        for name, total in totals
    ]

    positions = [
        (name, data.series, {row.date: i for i, row in enumerate(data.series)})
        for name, data in datasets
    ]

    series = []
    for row in datasets[0][1].series:
        values = {}
        for name, rows, index in positions:
            i = index.get(row.date)
            if i is None:
                values[name] = CompareValue(downloads=0, delta=None)
                continue
            downloads = rows[i].downloads
            delta = downloads - rows[i - 1].downloads if i > 0 else None
            values[name] = CompareValue(downloads=downloads, delta=delta)
        series.append(CompareSeriesRow(date=row.date, values=values))

    warnings = [f"{name}: {data.warning}" for name, data in datasets if data.warning]

    return CompareData(
        days=days,
        range=datasets[0][1].range,
        packages=packages,
        series=series,
        warnings=warnings,
    )


def _prepare_names(pkg_names: list[str], settings: "Settings") -> list[str]:
    names = canonicalize_packages(pkg_names)
    if not settings.compare_min <= len(names) <= settings.compare_max:
        raise InvalidRequestError(
            f"compare requires {settings.compare_min}-{settings.compare_max} packages"
        )
    return names


def build_compare_data(
    service: "TrafficService",
    pkg_names: list[str],
    days: int | str | None = None,
) -> CompareData:
    """
    Compare the traffic of several packages.

    Packages are fetched concurrently on a thread pool.

    Args:
        service: Traffic service used for every package
        pkg_names: Package names as entered; duplicates (case-insensitive) collapse
        days: Requested day count (invalid or missing: 30)

    Returns:
        CompareData

    Raises:
        InvalidRequestError: If fewer than 2 or more than 5 distinct packages are given,
            or any name is invalid
        PackageNotFoundError: If any package does not exist
        UpstreamUnavailableError: If any package could not be fetched
    """
    day_count = clamp_days(days)
    names = _prepare_names(pkg_names, service.settings)

    with ThreadPoolExecutor(max_workers=len(names)) as executor:
        responses = list(executor.map(lambda name: service.fetch_traffic(name, day_count), names))

    return assemble_compare_data(list(zip(names, responses)), day_count)


async def build_compare_data_async(
    service: "AsyncTrafficService",
    pkg_names: list[str],
    days: int | str | None = None,
) -> CompareData:
    """Async counterpart of build_compare_data; fetches with asyncio.gather."""
    day_count = clamp_days(days)
    names = _prepare_names(pkg_names, service.settings)

    responses = await asyncio.gather(
        *(service.fetch_traffic(name, day_count) for name in names)
    )

    return assemble_compare_data(list(zip(names, responses)), day_count)
