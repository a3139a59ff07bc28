# ABOUTME: CSV export of chart rows.
# ABOUTME: One row per period with totals, share of all changes, rank and outlier flag.

from __future__ import annotations

import csv
from pathlib import Path

from .chart import ChartLayout

CHART_FIELDNAMES = [
    "period",
    "insertions",
    "deletions",
    "total",
    "percentage",
    "percentile_rank",
    "is_outlier",
]


def chart_rows(layout: ChartLayout) -> list[dict[str, object]]:
    rows: list[dict[str, object]] = []
    for row in layout.rows:
        rows.append(
            {
                "period": row.key,
                "insertions": row.insertions,
                "deletions": row.deletions,
                "total": row.total,
                "percentage": round(row.percentage, 2),
                "percentile_rank": row.rank,
                "is_outlier": int(row.is_outlier),
            }
        )
    return rows


def write_csv(path: Path, rows: list[dict[str, object]], fieldnames: list[str]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        writer.writerows(rows)
