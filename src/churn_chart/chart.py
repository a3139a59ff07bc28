# ABOUTME: Lays out an aggregated churn series as fixed-width bar chart rows.
# ABOUTME: Computes scale ticks, outlier flags, average marker and summary statistics.

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .models import AggregatedSeries, PeriodTotals
from .percentile import Classification, classify, percentile_rank, round_half_up
from .periods import lifespan_days, possible_periods

DEFAULT_SCALE_WIDTH = 50
SCALE_TICKS = 5

# Cell kinds; a row's bar is a tuple of these, one per scale column.
EMPTY = "empty"
DELETION = "deletion"
INSERTION = "insertion"
OUTLIER = "outlier"
AVERAGE = "average"


@dataclass(frozen=True)
class ChartRow:
    key: str
    total: int
    insertions: int
    deletions: int
    percentage: float
    rank: int
    is_outlier: bool
    cells: tuple[str, ...]


@dataclass(frozen=True)
class ChartSummary:
    mode: str
    percentile: int
    lifespan_days: int
    avg_per_active_day: int
    avg_per_active_period: int
    active_periods: int
    possible_periods: int

    @property
    def active_percentage(self) -> float:
        if self.possible_periods <= 0:
            return 0.0
        return self.active_periods / self.possible_periods * 100


@dataclass(frozen=True)
class ChartLayout:
    mode: str
    percentile: int
    scale_width: int
    max_value: int
    total_changes: int
    classification: Classification
    average_position: int
    ticks: tuple[int, ...]
    rows: tuple[ChartRow, ...]
    summary: Optional[ChartSummary]

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class AnalysisOverview:
    lifespan_days: int
    avg_per_active_day: int


def analysis_overview(daily: Mapping[str, PeriodTotals], percentile: int) -> Optional[AnalysisOverview]:
    """Lifespan and typical change volume per active day, or None without data."""
    if not daily:
        return None
    days = sorted(daily)
    active = [t.total for t in daily.values() if t.total > 0]
    return AnalysisOverview(
        lifespan_days=lifespan_days(days[0], days[-1]),
        avg_per_active_day=round_half_up(classify(active, percentile).average_value),
    )


def _summarize(
    series: AggregatedSeries,
    percentile: int,
) -> ChartSummary:
    overview = analysis_overview(series.daily, percentile)
    active = [total for total in series.totals if total > 0]
    lifespan = overview.lifespan_days if overview else 0
    per_day = overview.avg_per_active_day if overview else 0

    if series.mode == "commit":
        possible = len(series)
    elif series.daily:
        days = sorted(series.daily)
        possible = possible_periods(days[0], days[-1], series.mode)
    else:
        possible = len(series)

    return ChartSummary(
        mode=series.mode,
        percentile=percentile,
        lifespan_days=lifespan,
        avg_per_active_day=per_day,
        avg_per_active_period=round_half_up(classify(active, percentile).average_value),
        active_periods=len(active),
        possible_periods=possible,
    )


def _bar_cells(
    totals: PeriodTotals,
    max_value: int,
    scale_width: int,
    is_outlier: bool,
    average_position: int,
) -> tuple[str, ...]:
    cells = [EMPTY] * scale_width

    if is_outlier:
        length = round_half_up(totals.total / max_value * scale_width)
        for i in range(min(length, scale_width)):
            cells[i] = OUTLIER
    else:
        del_len = round_half_up(totals.deletions / max_value * scale_width)
        ins_len = round_half_up(totals.insertions / max_value * scale_width)
        for i in range(min(del_len, scale_width)):
            cells[i] = DELETION
        for i in range(del_len, min(del_len + ins_len, scale_width)):
            cells[i] = INSERTION

    if 0 <= average_position < scale_width:
        cells[average_position] = AVERAGE
    return tuple(cells)


def render(
    series: AggregatedSeries,
    percentile: int,
    scale_width: int = DEFAULT_SCALE_WIDTH,
) -> ChartLayout:
    """Compute every row of the churn chart for `series`.

    Bars are scaled against the largest total in the series, outliers
    included, so one dominant period compresses the others. Rows above the
    percentile cutoff render as a single solid outlier segment; the rest show
    deletions then insertions. Without data (or with an all-zero series) the
    layout has no rows and no summary.
    """
    totals = series.totals
    classification = classify(totals, percentile)
    max_value = max(totals) if totals else 0
    total_changes = sum(totals)

    if max_value == 0:
        return ChartLayout(
            mode=series.mode,
            percentile=percentile,
            scale_width=scale_width,
            max_value=0,
            total_changes=total_changes,
            classification=classification,
            average_position=0,
            ticks=(),
            rows=(),
            summary=None,
        )

    average_position = round_half_up(classification.average_value / max_value * scale_width)
    ticks = tuple(
        round_half_up(max_value * i / (SCALE_TICKS - 1)) for i in range(SCALE_TICKS)
    )

    # Ranks are memoized by value for this render only.
    rank_cache: dict[int, int] = {}
    rows: list[ChartRow] = []
    for key, value in series:
        total = value.total
        if total not in rank_cache:
            rank_cache[total] = percentile_rank(total, totals)
        is_outlier = total > classification.percentile_value
        rows.append(
            ChartRow(
                key=key,
                total=total,
                insertions=value.insertions,
                deletions=value.deletions,
                percentage=total / total_changes * 100,
                rank=rank_cache[total],
                is_outlier=is_outlier,
                cells=_bar_cells(value, max_value, scale_width, is_outlier, average_position),
            )
        )

    return ChartLayout(
        mode=series.mode,
        percentile=percentile,
        scale_width=scale_width,
        max_value=max_value,
        total_changes=total_changes,
        classification=classification,
        average_position=average_position,
        ticks=ticks,
        rows=tuple(rows),
        summary=_summarize(series, percentile),
    )
