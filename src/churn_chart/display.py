# ABOUTME: Terminal rendering of chart layouts and analysis overviews with rich.
# ABOUTME: Builds plain rich Text lines so commit subjects are never read as markup.

from __future__ import annotations

import logging
from typing import Optional, Sequence

from rich.cells import cell_len
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
)
from rich.text import Text

from .accumulator import CommitStatAccumulator
from .chart import (
    AVERAGE,
    DELETION,
    INSERTION,
    OUTLIER,
    AnalysisOverview,
    ChartLayout,
)
from .git_history import ingest
from .models import ChangeRecord
from .percentile import round_half_up

logger = logging.getLogger(__name__)

BLOCK = "█"
MARKER = "│"
RULE = "┈"

CELL_STYLES = {
    DELETION: "red",
    INSERTION: "green",
    OUTLIER: "dim",
    AVERAGE: "blue",
}


def _branch(last: bool = False) -> Text:
    return Text("└─" if last else "├─", style="dim")


def _cell(kind: str) -> Text:
    if kind == AVERAGE:
        return Text(MARKER, style=CELL_STYLES[AVERAGE])
    style = CELL_STYLES.get(kind)
    if style is None:
        return Text(" ")
    return Text(BLOCK, style=style)


def format_chart(layout: ChartLayout, repo: str) -> list[Text]:
    lines: list[Text] = [Text(""), Text(f"Git Changes Chart for {repo}:"), Text("")]
    if layout.is_empty:
        lines.append(Text("No changes to display.", style="dim"))
        return lines

    key_width = max(cell_len(row.key) for row in layout.rows)
    value_width = len(str(layout.max_value))
    gutter = " " * key_width + " │"
    width = layout.scale_width

    rule = Text(gutter)
    rule.append(RULE * width, style="dim")
    lines.append(rule)

    spacing = width // (len(layout.ticks) - 1)
    scale = "".join(
        (" " * (0 if i == 0 else spacing - value_width)) + str(v).rjust(value_width)
        for i, v in enumerate(layout.ticks)
    )
    scale_line = Text(gutter)
    scale_line.append(scale, style="dim")
    lines.append(scale_line)

    marker_line = Text(gutter + " " * layout.average_position)
    marker_line.append(MARKER, style="blue")
    marker_line.append(f" avg: {round_half_up(layout.classification.average_value)}")
    lines.append(marker_line)
    lines.append(Text(""))

    for row in layout.rows:
        # Width in terminal cells, not code points.
        line = Text(row.key + " " * (key_width - cell_len(row.key)) + " │")
        for kind in row.cells:
            line.append_text(_cell(kind))
        line.append(f" {str(row.total).rjust(value_width)} ")
        line.append(f"{row.percentage:.1f}%", style="cyan")
        line.append(" ")
        line.append(f"p{row.rank}", style="yellow")
        lines.append(line)

    lines.append(rule.copy())
    lines.extend(format_summary(layout))
    return lines


def format_summary(layout: ChartLayout) -> list[Text]:
    summary = layout.summary
    if summary is None:
        return []
    noun = summary.mode
    pct = str(summary.percentile)

    lines = [Text(""), Text("Statistics:", style="bold")]

    line = _branch()
    line.append(" Lifespan: ")
    line.append(str(summary.lifespan_days), style="cyan")
    line.append(" days")
    lines.append(line)

    if summary.mode != "day":
        line = _branch()
        line.append(" Average changes per active day (")
        line.append(pct, style="yellow")
        line.append("th percentile): ")
        line.append(str(summary.avg_per_active_day), style="cyan")
        lines.append(line)

    line = _branch()
    line.append(f" Average changes per active {noun} (")
    line.append(pct, style="yellow")
    line.append("th percentile): ")
    line.append(str(summary.avg_per_active_period), style="cyan")
    lines.append(line)

    line = _branch(last=True)
    line.append(f" Active {noun}s: ")
    line.append(str(summary.active_periods), style="cyan")
    line.append(f" out of {summary.possible_periods} (")
    line.append(f"{summary.active_percentage:.1f}%", style="yellow")
    line.append(")")
    lines.append(line)
    return lines


def format_overview(
    overview: Optional[AnalysisOverview],
    percentile: int,
    ignored_extensions: Sequence[str] = (),
) -> list[Text]:
    if overview is None:
        return [Text(""), Text("Analysis complete!"), Text("")]

    lines = [Text(""), Text("✓ Analysis complete!", style="green")]

    line = _branch()
    line.append(" Project lifespan: ")
    line.append(str(overview.lifespan_days), style="cyan")
    line.append(" days")
    lines.append(line)

    line = _branch(last=not ignored_extensions)
    line.append(" Average changes per active day (")
    line.append(str(percentile), style="yellow")
    line.append("th percentile): ")
    line.append(str(overview.avg_per_active_day), style="cyan")
    lines.append(line)

    if ignored_extensions:
        line = _branch(last=True)
        line.append(" Ignored extensions: ")
        line.append(", ".join("." + ext for ext in ignored_extensions), style="yellow")
        lines.append(line)

    lines.append(Text(""))
    return lines


def print_lines(console: Console, lines: Sequence[Text]) -> None:
    for line in lines:
        console.print(line, soft_wrap=True, highlight=False)


def ingest_with_progress(
    console: Console,
    records: Sequence[ChangeRecord],
    accumulator: CommitStatAccumulator,
) -> int:
    """Feed records into the accumulator behind a progress bar.

    Ctrl-C stops feeding; the records already ingested stay in the accumulator.
    """
    progress = Progress(
        TextColumn("Processing commits:"),
        BarColumn(bar_width=50, complete_style="cyan", finished_style="green"),
        TaskProgressColumn(),
        MofNCompleteColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task("ingest", total=len(records))
        try:
            return ingest(
                records,
                accumulator,
                on_progress=lambda current, _total: progress.update(task, completed=current),
            )
        except KeyboardInterrupt:
            logger.warning(
                "Interrupted after %d of %d commits; showing partial history",
                len(accumulator),
                len(records),
            )
            return len(accumulator)
