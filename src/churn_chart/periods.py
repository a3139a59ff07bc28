# ABOUTME: Regroups per-day churn totals into day, month, year or per-commit series.
# ABOUTME: Also provides the calendar helpers used for lifespan statistics.

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from .models import PERIOD_MODES, AggregatedSeries, ChangeRecord, PeriodTotals

if TYPE_CHECKING:
    from .accumulator import CommitStatAccumulator

COMMIT_HASH_WIDTH = 7
COMMIT_SUMMARY_WIDTH = 50


def _check_mode(mode: str) -> str:
    if mode not in PERIOD_MODES:
        raise ValueError(f"Invalid period: {mode!r} (expected one of {', '.join(PERIOD_MODES)})")
    return mode


def period_key(day: str, mode: str) -> str:
    """Map an ISO day (YYYY-MM-DD) to its bucket key for `mode`."""
    if mode == "day":
        return day
    if mode == "month":
        return day[:7]
    if mode == "year":
        return day[:4]
    raise ValueError(f"Invalid date period: {mode!r} (expected day, month or year)")


def commit_key(record: ChangeRecord) -> str:
    short_hash = (record.commit or "")[:COMMIT_HASH_WIDTH]
    subject = (record.summary or "").split("\n")[0][:COMMIT_SUMMARY_WIDTH]
    return " ".join(part for part in (record.day, short_hash, subject) if part)


def aggregate(accumulator: CommitStatAccumulator, mode: str) -> AggregatedSeries:
    """Build the series for `mode` from the accumulator's current state.

    Date modes merge every day that maps to the same key and sort by key,
    which is chronological for the fixed-width ISO prefixes. Commit mode keeps
    one entry per ingested record in ingestion order, never merging, even
    when two commits produce the same key.
    """
    _check_mode(mode)
    daily = accumulator.snapshot()

    if mode == "commit":
        entries = tuple(
            (commit_key(r), PeriodTotals(insertions=r.insertions, deletions=r.deletions))
            for r in accumulator.records()
        )
        return AggregatedSeries(mode=mode, entries=entries, daily=daily)

    grouped: dict[str, PeriodTotals] = {}
    for day, totals in daily.items():
        key = period_key(day, mode)
        grouped[key] = grouped.get(key, PeriodTotals()) + totals

    return AggregatedSeries(mode=mode, entries=tuple(sorted(grouped.items())), daily=daily)


def lifespan_days(first_day: str, last_day: str) -> int:
    """Inclusive number of calendar days between two ISO dates."""
    first = dt.date.fromisoformat(first_day)
    last = dt.date.fromisoformat(last_day)
    return abs((last - first).days) + 1


def possible_periods(first_day: str, last_day: str, mode: str) -> int:
    """Number of day/month/year buckets touched by the inclusive date range."""
    first = dt.date.fromisoformat(min(first_day, last_day))
    last = dt.date.fromisoformat(max(first_day, last_day))
    if mode == "day":
        return (last - first).days + 1
    if mode == "month":
        return (last.year * 12 + last.month) - (first.year * 12 + first.month) + 1
    if mode == "year":
        return last.year - first.year + 1
    raise ValueError(f"Invalid date period: {mode!r} (expected day, month or year)")
