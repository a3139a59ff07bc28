# ABOUTME: CLI entry point for the churn-chart tool.
# ABOUTME: Provides the one-shot chart command and the interactive shell command.

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from importlib import metadata
from pathlib import Path

from rich.console import Console

from .accumulator import CommitStatAccumulator
from .chart import DEFAULT_SCALE_WIDTH, analysis_overview, render
from .config import ChartConfig, load_config, resolve_config_path
from .display import format_chart, format_overview, ingest_with_progress, print_lines
from .export import CHART_FIELDNAMES, chart_rows, write_csv
from .git_history import HistoryOptions, collect_change_records, normalize_extensions, resolve_repo
from .logging_config import setup_logging
from .models import PERIOD_MODES
from .percentile import InvalidPercentileError, validate_percentile
from .shell import InteractiveShell

logger = logging.getLogger(__name__)


def _version() -> str:
    try:
        return metadata.version("churn-chart")
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _percentile_arg(value: str) -> int:
    try:
        return validate_percentile(value)
    except InvalidPercentileError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _scale_width_arg(value: str) -> int:
    try:
        width = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid scale width: {value!r}") from e
    if width < 1:
        raise argparse.ArgumentTypeError("Scale width must be at least 1")
    return width


def _load_config(ns: argparse.Namespace) -> ChartConfig:
    config_path = resolve_config_path(ns.config)
    logger.debug("config: %s", config_path)
    return load_config(config_path)


def _cmd_chart(ns: argparse.Namespace) -> int:
    """Analyze a repository once and print the chart for one period."""
    config = _load_config(ns)
    percentile = ns.percentile if ns.percentile is not None else config.percentile
    scale_width = ns.scale_width if ns.scale_width is not None else config.scale_width
    ignored = (
        normalize_extensions(ns.ignore.split(",")) if ns.ignore is not None else config.ignore
    )
    options = HistoryOptions(
        from_ref=ns.from_ref,
        include_merges=config.include_merges and not ns.no_merges,
        ignored_extensions=ignored,
    )

    repo = resolve_repo(Path(ns.repo))
    console = Console()
    console.print(f"\nAnalyzing repository at: {repo}", markup=False, highlight=False)

    records = collect_change_records(repo, options)
    accumulator = CommitStatAccumulator()
    ingest_with_progress(console, records, accumulator)

    overview = analysis_overview(accumulator.snapshot(), percentile)
    print_lines(console, format_overview(overview, percentile, ignored))

    layout = render(accumulator.aggregate(ns.period), percentile, scale_width)
    print_lines(console, format_chart(layout, str(repo)))

    if ns.output_csv:
        out_csv = Path(ns.output_csv).expanduser()
        write_csv(out_csv, chart_rows(layout), CHART_FIELDNAMES)
        console.print(f"csv: {out_csv}", markup=False, highlight=False)

    if ns.png:
        if layout.is_empty:
            logger.warning("No changes to plot; skipping %s", ns.png)
        else:
            from .plotting import plot_layout_png

            out_png = Path(ns.png).expanduser()
            plot_layout_png(
                layout,
                out_png,
                title=f"{repo.name}: changes per {ns.period} (p{percentile})",
            )
            console.print(f"png: {out_png}", markup=False, highlight=False)

    return 0


def _cmd_shell(ns: argparse.Namespace) -> int:
    """Start the interactive command loop on a repository."""
    config = _load_config(ns)
    if ns.percentile is not None:
        config = replace(config, percentile=ns.percentile)

    if ns.repo is None:
        try:
            raw = input("Enter repository path (or press Enter for current directory): ")
        except EOFError:
            raw = ""
        repo_arg = raw.strip() or "."
    else:
        repo_arg = ns.repo

    shell = InteractiveShell(resolve_repo(Path(repo_arg)), config=config)
    shell.analyze()
    return shell.run()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="churn-chart",
        description="Chart git insertions and deletions per day, month, year or commit.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {_version()}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--percentile",
        type=_percentile_arg,
        default=None,
        help="Percentile threshold (1-100) separating typical periods from outliers "
             "(default: from config, else 95).",
    )
    common.add_argument(
        "--config",
        default=None,
        help="Path to a TOML config file. "
             "Can also be set via CHURN_CHART_CONFIG env var.",
    )
    verbosity = common.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", help="Show debug logging.")
    verbosity.add_argument("--quiet", action="store_true", help="Only log errors.")

    sub = parser.add_subparsers(dest="cmd", required=True)

    chart = sub.add_parser(
        "chart",
        parents=[common],
        help="Print the churn chart for a repository.",
    )
    chart.add_argument("repo", nargs="?", default=".", help="Repository path (default: cwd).")
    chart.add_argument(
        "--period",
        choices=PERIOD_MODES,
        default="day",
        help="Grouping period (default: day).",
    )
    chart.add_argument(
        "--scale-width",
        type=_scale_width_arg,
        default=None,
        help=f"Bar width in characters (default: from config, else {DEFAULT_SCALE_WIDTH}).",
    )
    chart.add_argument(
        "--ignore",
        default=None,
        help='Comma-separated file extensions to skip, e.g. "json,md,txt".',
    )
    chart.add_argument(
        "--from",
        dest="from_ref",
        default=None,
        help="Only count commits after this ref (commit hash, branch or tag).",
    )
    chart.add_argument("--no-merges", action="store_true", help="Skip merge commits.")
    chart.add_argument("--output-csv", default=None, help="Write the chart rows to this CSV.")
    chart.add_argument("--png", default=None, help="Write a bar chart PNG to this path.")
    chart.set_defaults(func=_cmd_chart)

    shell = sub.add_parser(
        "shell",
        parents=[common],
        help="Explore a repository interactively.",
    )
    shell.add_argument("repo", nargs="?", default=None, help="Repository path.")
    shell.set_defaults(func=_cmd_shell)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    ns = parser.parse_args(argv)
    setup_logging(verbose=ns.verbose, quiet=ns.quiet)
    try:
        rc = int(ns.func(ns))
    except RuntimeError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2) from e
    raise SystemExit(rc)
