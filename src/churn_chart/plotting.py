from __future__ import annotations

from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402

from .chart import ChartLayout  # noqa: E402
from .percentile import round_half_up  # noqa: E402

DELETION_COLOR = "#dc2626"
INSERTION_COLOR = "#16a34a"
OUTLIER_COLOR = "#9ca3af"
AVERAGE_COLOR = "#2563eb"


def _tick_step(count: int, max_labels: int = 30) -> int:
    if count <= max_labels:
        return 1
    return -(-count // max_labels)


def plot_layout_png(
    layout: ChartLayout,
    output_png: Path,
    title: str,
    dpi: int = 160,
) -> None:
    """Stacked deletion/insertion bars per period, outliers in grey.

    The dashed line is the typical average (values at or below the
    percentile cutoff), the same figure the terminal marker shows.
    """
    if layout.is_empty:
        raise RuntimeError("No changes to plot")

    output_png = output_png.expanduser().resolve()
    output_png.parent.mkdir(parents=True, exist_ok=True)

    x = list(range(len(layout.rows)))
    deletions = [0 if r.is_outlier else r.deletions for r in layout.rows]
    insertions = [0 if r.is_outlier else r.insertions for r in layout.rows]
    outliers = [r.total if r.is_outlier else 0 for r in layout.rows]

    width = max(8.0, min(24.0, len(x) * 0.25))
    fig, ax = plt.subplots(nrows=1, ncols=1, figsize=(width, 5))
    fig.suptitle(title, fontsize=14, fontweight="semibold")

    ax.bar(x, deletions, color=DELETION_COLOR, width=0.8, label="deletions")
    ax.bar(x, insertions, bottom=deletions, color=INSERTION_COLOR, width=0.8, label="insertions")
    if any(outliers):
        ax.bar(
            x,
            outliers,
            color=OUTLIER_COLOR,
            width=0.8,
            label=f"above p{layout.percentile}",
        )

    avg = layout.classification.average_value
    ax.axhline(
        avg,
        color=AVERAGE_COLOR,
        linewidth=1.4,
        linestyle="--",
        label=f"avg: {round_half_up(avg)}",
    )

    step = _tick_step(len(x))
    ax.set_xticks(x[::step])
    ax.set_xticklabels(
        [r.key for r in layout.rows][::step], rotation=60, ha="right", fontsize=7
    )
    ax.set_ylabel("changes (insertions+deletions)")
    ax.grid(True, axis="y", alpha=0.25)
    ax.legend(loc="upper left", fontsize=9, frameon=False)

    fig.text(
        0.5,
        0.01,
        f"{layout.mode}s: {len(x)}  total changes: {layout.total_changes}",
        ha="center",
        fontsize=9,
        color="#555",
    )

    fig.tight_layout(rect=(0, 0.03, 1, 0.95))
    fig.savefig(output_png, dpi=dpi)
    plt.close(fig)
