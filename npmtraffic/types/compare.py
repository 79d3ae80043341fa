"""Compare-related data models."""

from dataclasses import dataclass, field
from typing import Any

from npmtraffic.types.traffic import DateRange


@dataclass(frozen=True)
class CompareValue:
    """Downloads of one package on one day, with day-over-day delta."""

    downloads: int
    delta: int | None


@dataclass
class CompareSeriesRow:
    """One date across every compared package."""

    date: str
    values: dict[str, CompareValue]


@dataclass
class CompareTotals:
    """Range total and share-of-total (percent, 2 decimals) of a package."""

    name: str
    total: int
    share: float


@dataclass
class CompareData:
    """Date-aligned comparison of 2-5 packages."""

    days: int
    range: DateRange
    packages: list[CompareTotals]
    series: list[CompareSeriesRow]
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "days": self.days,
            "range": self.range.to_dict(),
            "packages": [
                {"name": p.name, "total": p.total, "share": p.share}
                for p in self.packages
            ],
            "series": [
                {
                    "date": row.date,
                    "values": {
                        name: {"downloads": v.downloads, "delta": v.delta}
                        for name, v in row.values.items()
                    },
                }
                for row in self.series
            ],
        }
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data
