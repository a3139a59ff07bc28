# ABOUTME: Tests for the PNG bar chart export.
# ABOUTME: Renders layouts with and without outliers to temp files.

from __future__ import annotations

from pathlib import Path

import pytest


def _layout(totals: list[tuple[int, int]], percentile: int = 80):
    from churn_chart.accumulator import CommitStatAccumulator
    from churn_chart.chart import render
    from churn_chart.models import ChangeRecord

    acc = CommitStatAccumulator()
    for i, (ins, dels) in enumerate(totals):
        acc.record(
            ChangeRecord(day=f"2024-01-{i + 1:02d}", timestamp=i, insertions=ins, deletions=dels)
        )
    return render(acc.aggregate("day"), percentile)


class TestPlotLayoutPng:
    """Tests for plot_layout_png."""

    def test_writes_png_with_outlier(self, tmp_path: Path) -> None:
        """A layout with an outlier renders to a PNG file."""
        from churn_chart.plotting import plot_layout_png

        out = tmp_path / "nested" / "chart.png"
        plot_layout_png(_layout([(6, 4), (20, 0), (0, 30), (20, 20), (900, 100)]), out, "test")

        assert out.exists()
        assert out.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_many_periods(self, tmp_path: Path) -> None:
        """Long series thin out their tick labels without failing."""
        from churn_chart.plotting import plot_layout_png

        out = tmp_path / "long.png"
        plot_layout_png(_layout([(i, i % 3) for i in range(1, 29)]), out, "long")

        assert out.exists()

    def test_empty_layout_raises(self, tmp_path: Path) -> None:
        """There is nothing to plot without data."""
        from churn_chart.plotting import plot_layout_png

        with pytest.raises(RuntimeError):
            plot_layout_png(_layout([]), tmp_path / "empty.png", "empty")
