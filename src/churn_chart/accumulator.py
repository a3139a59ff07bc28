# ABOUTME: Running per-day churn totals for one repository analysis.
# ABOUTME: Owns the day buckets and the ordered list of ingested commits.

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import ChangeRecord, PeriodTotals

if TYPE_CHECKING:
    from .models import AggregatedSeries


class CommitStatAccumulator:
    """Collects ChangeRecords into per-day insertion/deletion totals.

    One instance belongs to one repository analysis. Switching repository or
    ignore list means building a new accumulator, not clearing this one.
    """

    def __init__(self) -> None:
        self._daily: dict[str, PeriodTotals] = {}
        self._records: list[ChangeRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def record(self, change: ChangeRecord) -> None:
        existing = self._daily.get(change.day, PeriodTotals())
        self._daily[change.day] = existing + PeriodTotals(
            insertions=change.insertions,
            deletions=change.deletions,
        )
        self._records.append(change)

    def snapshot(self) -> dict[str, PeriodTotals]:
        return dict(sorted(self._daily.items()))

    def records(self) -> tuple[ChangeRecord, ...]:
        return tuple(self._records)

    def reset(self) -> None:
        self._daily.clear()
        self._records.clear()

    def aggregate(self, mode: str) -> AggregatedSeries:
        from .periods import aggregate

        return aggregate(self, mode)
