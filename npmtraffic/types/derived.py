"""Derived-metric data models."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class DerivedValue:
    """A moving-average point; value is None until the window is full."""

    date: str
    value: float | None


@dataclass(frozen=True)
class OutlierValue:
    """Robust (MAD based) outlier score of a day."""

    date: str
    is_outlier: bool
    score: float


@dataclass
class DerivedMetrics:
    """Moving averages and outlier scores over a series."""

    ma3: list[DerivedValue]
    ma7: list[DerivedValue]
    outliers: list[OutlierValue]

    def to_dict(self) -> dict[str, Any]:
        return {
            "ma3": [{"date": v.date, "value": v.value} for v in self.ma3],
            "ma7": [{"date": v.date, "value": v.value} for v in self.ma7],
            "outliers": [
                {"date": o.date, "is_outlier": o.is_outlier, "score": o.score}
                for o in self.outliers
            ],
        }
