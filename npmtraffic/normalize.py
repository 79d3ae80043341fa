"""Series normalization.

Upstream rows may skip days. Consumers index series by position, so every
normalized series has exactly one row per day of its range.
"""

from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from npmtraffic.dates import list_dates_between
from npmtraffic.types.traffic import DateRange, RawDownloadRow, Totals, TrafficSeriesRow


def normalize_series(
    raw_rows: Iterable[RawDownloadRow], date_range: DateRange
) -> list[TrafficSeriesRow]:
    """
    Align upstream rows to every date of a range, zero-filling gaps.

    Args:
        raw_rows: Rows as returned by the npm downloads API
        date_range: Requested range

    Returns:
        One TrafficSeriesRow per date in the range, ascending. If the range
        cannot be enumerated the raw rows are passed through unchanged.
    """
    rows = list(raw_rows)
    dates = list_dates_between(date_range.start_date, date_range.end_date)
    if not dates:
        return [TrafficSeriesRow(date=row.day, downloads=row.downloads or 0) for row in rows]

    by_date = {row.day: row.downloads or 0 for row in rows}
    return [TrafficSeriesRow(date=day, downloads=by_date.get(day, 0)) for day in dates]


def round_half_up(value: Decimal, places: int = 0) -> Decimal:
    """Round like JavaScript's Math.round (ties away from zero for positives)."""
    return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def compute_totals(series: list[TrafficSeriesRow]) -> Totals:
    """Sum downloads and compute the rounded per-day average."""
    total = sum(row.downloads for row in series)
    if not series:
        return Totals(sum=total, avg_per_day=0)
    avg = round_half_up(Decimal(total) / Decimal(len(series)))
    return Totals(sum=total, avg_per_day=int(avg))
