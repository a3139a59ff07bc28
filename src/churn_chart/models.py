# ABOUTME: Record types shared by ingestion, aggregation and chart layout.
# ABOUTME: ChangeRecord per commit, PeriodTotals per bucket, AggregatedSeries per query.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional

PERIOD_MODES = ("day", "month", "year", "commit")


@dataclass(frozen=True)
class ChangeRecord:
    day: str
    timestamp: int
    insertions: int
    deletions: int
    commit: Optional[str] = None
    summary: Optional[str] = None

    @property
    def delta(self) -> int:
        return self.insertions + self.deletions


@dataclass(frozen=True)
class PeriodTotals:
    insertions: int = 0
    deletions: int = 0

    @property
    def total(self) -> int:
        return self.insertions + self.deletions

    def __add__(self, other: PeriodTotals) -> PeriodTotals:
        return PeriodTotals(
            insertions=self.insertions + other.insertions,
            deletions=self.deletions + other.deletions,
        )


@dataclass(frozen=True)
class AggregatedSeries:
    """Period totals for one grouping mode, in display order.

    `daily` is the day snapshot the entries were derived from; the chart
    summary uses it for lifespan and per-day averages in every mode.
    """

    mode: str
    entries: tuple[tuple[str, PeriodTotals], ...] = ()
    daily: Mapping[str, PeriodTotals] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[str, PeriodTotals]]:
        return iter(self.entries)

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self.entries]

    @property
    def totals(self) -> list[int]:
        return [value.total for _, value in self.entries]
