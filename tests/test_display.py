# ABOUTME: Tests for the terminal chart text produced from a layout.
# ABOUTME: Checks plain-text columns and the colors applied to bar segments.

from __future__ import annotations

import io

import pytest


def _layout(rows, mode="day", percentile=80, scale_width=50):
    from churn_chart.accumulator import CommitStatAccumulator
    from churn_chart.chart import render
    from churn_chart.models import ChangeRecord

    acc = CommitStatAccumulator()
    for i, (day, ins, dels, summary) in enumerate(rows):
        acc.record(
            ChangeRecord(
                day=day,
                timestamp=i,
                insertions=ins,
                deletions=dels,
                commit=f"abcdef{i}0000",
                summary=summary,
            )
        )
    return render(acc.aggregate(mode), percentile, scale_width)


@pytest.fixture
def outlier_layout():
    return _layout(
        [
            ("2024-01-01", 6, 4, "a"),
            ("2024-01-02", 20, 0, "b"),
            ("2024-01-03", 0, 30, "c"),
            ("2024-01-04", 20, 20, "d"),
            ("2024-01-05", 900, 100, "e"),
        ]
    )


class TestFormatChart:
    """Tests for format_chart."""

    def test_header_and_scale(self, outlier_layout) -> None:
        """Title, dashed rule, tick values and the average marker line."""
        from churn_chart.display import format_chart

        lines = [t.plain for t in format_chart(outlier_layout, "/tmp/repo")]
        gutter = " " * 10 + " │"

        assert lines[1] == "Git Changes Chart for /tmp/repo:"
        assert lines[3] == gutter + "┈" * 50
        assert lines[4] == gutter + "   0" + " " * 8 + " 250" + " " * 8 + " 500" + " " * 8 + " 750" + " " * 8 + "1000"
        assert lines[5] == gutter + " │ avg: 25"

    def test_outlier_row_text(self, outlier_layout) -> None:
        """Outlier row shows a full bar with the marker, value, share and rank."""
        from churn_chart.display import format_chart

        lines = [t.plain for t in format_chart(outlier_layout, "repo")]
        row = next(line for line in lines if line.startswith("2024-01-05"))

        assert row == "2024-01-05 │" + "█│" + "█" * 48 + " 1000 90.9% p80"

    def test_small_row_pads_value(self, outlier_layout) -> None:
        """Values are right-aligned to the widest total."""
        from churn_chart.display import format_chart

        lines = [t.plain for t in format_chart(outlier_layout, "repo")]
        row = next(line for line in lines if line.startswith("2024-01-01"))

        assert row.endswith("   10 0.9% p0")

    def test_segment_colors(self, outlier_layout) -> None:
        """Deletions are red, outliers dim and the marker blue."""
        from churn_chart.display import format_chart

        lines = format_chart(outlier_layout, "repo")
        deletion_row = next(t for t in lines if t.plain.startswith("2024-01-03"))
        outlier_row = next(t for t in lines if t.plain.startswith("2024-01-05"))

        assert any(str(span.style) == "red" for span in deletion_row.spans)
        assert any(str(span.style) == "blue" for span in deletion_row.spans)
        assert any(str(span.style) == "dim" for span in outlier_row.spans)
        assert not any(str(span.style) == "green" for span in outlier_row.spans)

    def test_statistics_block_day_mode(self, outlier_layout) -> None:
        """Day mode skips the separate per-day average line."""
        from churn_chart.display import format_chart

        lines = [t.plain for t in format_chart(outlier_layout, "repo")]
        start = lines.index("Statistics:")

        assert lines[start + 1 :] == [
            "├─ Lifespan: 5 days",
            "├─ Average changes per active day (80th percentile): 25",
            "└─ Active days: 5 out of 5 (100.0%)",
        ]

    def test_statistics_block_month_mode(self) -> None:
        """Other modes add the per-day average line."""
        from churn_chart.display import format_chart

        layout = _layout(
            [("2024-01-01", 10, 0, "x"), ("2024-03-01", 20, 0, "y")], mode="month", percentile=50
        )
        lines = [t.plain for t in format_chart(layout, "repo")]
        start = lines.index("Statistics:")

        assert lines[start + 1 :] == [
            "├─ Lifespan: 61 days",
            "├─ Average changes per active day (50th percentile): 10",
            "├─ Average changes per active month (50th percentile): 10",
            "└─ Active months: 2 out of 3 (66.7%)",
        ]

    def test_commit_subject_is_not_markup(self) -> None:
        """Square brackets in commit subjects are printed as-is."""
        from churn_chart.display import format_chart, print_lines
        from rich.console import Console

        layout = _layout([("2024-01-01", 3, 1, "[bold]fix[/bold] parser")], mode="commit")
        lines = format_chart(layout, "repo")
        assert any("[bold]fix[/bold] parser" in t.plain for t in lines)

        buf = io.StringIO()
        print_lines(Console(file=buf, width=200, color_system=None), lines)
        assert "[bold]fix[/bold] parser" in buf.getvalue()

    def test_wide_subjects_keep_gutter_aligned(self) -> None:
        """Keys with double-width characters pad to the same terminal column."""
        from churn_chart.display import format_chart
        from rich.cells import cell_len

        layout = _layout(
            [("2024-01-01", 3, 1, "修复解析器"), ("2024-01-02", 2, 0, "fix parser")],
            mode="commit",
        )
        rows = [t.plain for t in format_chart(layout, "repo") if t.plain.startswith("2024-01-0")]

        assert len(rows) == 2
        gutters = {cell_len(row[: row.index("│")]) for row in rows}
        assert len(gutters) == 1

    def test_empty_layout_prints_header_only(self) -> None:
        """No data prints the title and an informational line, no table."""
        from churn_chart.display import format_chart

        layout = _layout([])
        lines = [t.plain for t in format_chart(layout, "repo")]

        assert "Git Changes Chart for repo:" in lines
        assert "No changes to display." in lines
        assert not any("│" in line for line in lines)


class TestFormatOverview:
    """Tests for format_overview."""

    def test_overview_with_ignored_extensions(self) -> None:
        """Ignored extensions appear on the last branch."""
        from churn_chart.chart import AnalysisOverview
        from churn_chart.display import format_overview

        lines = [
            t.plain for t in format_overview(AnalysisOverview(12, 40), 95, ("json", "md"))
        ]

        assert "✓ Analysis complete!" in lines
        assert "├─ Project lifespan: 12 days" in lines
        assert "├─ Average changes per active day (95th percentile): 40" in lines
        assert "└─ Ignored extensions: .json, .md" in lines

    def test_overview_without_data(self) -> None:
        """No data gives the short completion message."""
        from churn_chart.display import format_overview

        lines = [t.plain for t in format_overview(None, 95)]

        assert "Analysis complete!" in lines


class TestIngestWithProgress:
    """Tests for ingest_with_progress."""

    def test_interrupt_keeps_partial_history(self, caplog: pytest.LogCaptureFixture) -> None:
        """Ctrl-C midway keeps the records fed so far, and they still render."""
        from churn_chart.accumulator import CommitStatAccumulator
        from churn_chart.chart import render
        from churn_chart.display import ingest_with_progress
        from churn_chart.models import ChangeRecord
        from rich.console import Console

        records = [
            ChangeRecord(day=f"2024-01-0{i + 1}", timestamp=i, insertions=i + 1, deletions=0)
            for i in range(4)
        ]

        class _InterruptedAfterTwo(list):
            def __iter__(self):
                yield from records[:2]
                raise KeyboardInterrupt

        acc = CommitStatAccumulator()
        with caplog.at_level("WARNING", logger="churn_chart"):
            fed = ingest_with_progress(
                Console(file=io.StringIO(), color_system=None),
                _InterruptedAfterTwo(records),
                acc,
            )

        assert fed == 2
        assert [r.day for r in acc.records()] == ["2024-01-01", "2024-01-02"]
        assert "Interrupted after 2 of 4 commits" in caplog.text

        layout = render(acc.aggregate("day"), 95)
        assert [row.key for row in layout.rows] == ["2024-01-01", "2024-01-02"]
