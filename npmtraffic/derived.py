"""
Derived metrics over a normalized series.

Moving averages smooth the weekly download rhythm. Outliers are scored
with the median absolute deviation, which release-day spikes cannot skew
the way they skew a standard deviation.
"""

from collections import deque
from decimal import Decimal
from statistics import median

from npmtraffic.normalize import round_half_up
from npmtraffic.types.derived import DerivedMetrics, DerivedValue, OutlierValue
from npmtraffic.types.traffic import TrafficSeriesRow

# Scales MAD to a consistent estimator of the standard deviation under normality
MAD_SCALE = 1.4826
OUTLIER_THRESHOLD = 3

DERIVED_METHOD_DESCRIPTION = (
    f"Trailing MA3/MA7; outlier score = (x - median)/(MAD×{MAD_SCALE:.4f}) "
    f"threshold={OUTLIER_THRESHOLD}"
)


def compute_trailing_ma(
    series: list[TrafficSeriesRow], window: int
) -> list[DerivedValue]:
    """
    Compute a trailing moving average.

    Args:
        series: Normalized series
        window: Number of days averaged (3 and 7 are used)

    Returns:
        One DerivedValue per row; None until `window` values have been
        seen, then the mean rounded to 1 decimal

    Raises:
        ValueError: If window is smaller than 1
    """
    if window < 1:
        raise ValueError("window must be at least 1")

    result = []
    buffer: deque[int] = deque(maxlen=window)
    for row in series:
        buffer.append(row.downloads)
        if len(buffer) < window:
            result.append(DerivedValue(date=row.date, value=None))
            continue
        avg = round_half_up(Decimal(sum(buffer)) / Decimal(window), 1)
        result.append(DerivedValue(date=row.date, value=float(avg)))
    return result


def compute_outliers_mad(series: list[TrafficSeriesRow]) -> list[OutlierValue]:
    """
    Score every day by its robust z-score.

    score = (x - median) / (MAD * 1.4826). A series with zero MAD (flat or
    nearly flat) scores 0 everywhere and has no outliers.
    """
    if not series:
        return []

    values = [row.downloads for row in series]
    med = median(values)
    mad = median(abs(value - med) for value in values)
    scale = mad * MAD_SCALE

    result = []
    for row, value in zip(series, values):
        score = (value - med) / scale if scale > 0 else 0.0
        is_outlier = scale > 0 and abs(score) >= OUTLIER_THRESHOLD
        result.append(OutlierValue(date=row.date, is_outlier=is_outlier, score=float(score)))
    return result


def build_derived_metrics(series: list[TrafficSeriesRow]) -> DerivedMetrics:
    """Compute MA3, MA7 and outlier scores for a series."""
    return DerivedMetrics(
        ma3=compute_trailing_ma(series, 3),
        ma7=compute_trailing_ma(series, 7),
        outliers=compute_outliers_mad(series),
    )
