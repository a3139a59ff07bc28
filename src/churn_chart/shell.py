# ABOUTME: Interactive command loop for exploring one repository's churn.
# ABOUTME: Re-renders charts on demand; rebuilds the accumulator on repo/ignore/range changes.

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from rich.console import Console

from .accumulator import CommitStatAccumulator
from .chart import analysis_overview, render
from .config import ChartConfig
from .display import format_chart, format_overview, ingest_with_progress, print_lines
from .git_history import HistoryOptions, collect_change_records, normalize_extensions, resolve_repo
from .percentile import PERCENTILE_ERROR, InvalidPercentileError, validate_percentile

logger = logging.getLogger(__name__)

DEFAULT_SWITCH_PERCENTILE = 95

HELP_TEXT = """
Available commands:
  day                 - Show changes by day (YYYY-MM-DD)
  month               - Show changes by month (YYYY-MM)
  year                - Show changes by year (YYYY)
  commit [from]       - Show changes by commit with hash and message. Optional 'from' parameter can be a commit hash, branch name, or tag
  repo [path] [p]     - Switch to a different repository, optional percentile p (default 95)
  percentile <p>      - Update current percentile threshold (1-100)
  ignore <exts>       - Ignore files with extensions (comma-separated, e.g., "json,md,txt")
  help                - Show this help message
  exit                - Exit the program
"""


class InteractiveShell:
    """Command loop over a single repository analysis.

    The accumulator is replaced wholesale whenever the repository, the ignore
    list or the commit range changes. A percentile change only re-renders.
    """

    def __init__(
        self,
        repo: Path,
        config: ChartConfig = ChartConfig(),
        console: Optional[Console] = None,
        input_fn: Optional[Callable[[str], str]] = None,
    ) -> None:
        self.console = console or Console()
        self.input_fn = input_fn or input
        self.repo = repo
        self.percentile = config.percentile
        self.scale_width = config.scale_width
        self.include_merges = config.include_merges
        self.ignored_extensions: tuple[str, ...] = config.ignore
        self.from_ref: Optional[str] = None
        self.last_mode = "day"
        self.accumulator = CommitStatAccumulator()
        self._commands: dict[str, Callable[[Sequence[str]], None]] = {
            "day": lambda args: self.show("day"),
            "month": lambda args: self.show("month"),
            "year": lambda args: self.show("year"),
            "commit": self._cmd_commit,
            "repo": self._cmd_repo,
            "percentile": self._cmd_percentile,
            "ignore": self._cmd_ignore,
            "help": lambda args: self._say(HELP_TEXT),
        }

    def _say(self, message: str) -> None:
        self.console.print(message, markup=False, highlight=False)

    def analyze(
        self,
        from_ref: Optional[str] = None,
        repo: Optional[Path] = None,
        ignored_extensions: Optional[tuple[str, ...]] = None,
        percentile: Optional[int] = None,
    ) -> bool:
        """Read history into a fresh accumulator and make it current.

        The repository, ignore list and percentile only change once the history
        has been read. Returns False when reading was interrupted, leaving the
        previous analysis in place.
        """
        repo = self.repo if repo is None else repo
        if ignored_extensions is None:
            ignored_extensions = self.ignored_extensions
        options = HistoryOptions(
            from_ref=from_ref,
            include_merges=self.include_merges,
            ignored_extensions=ignored_extensions,
        )
        self._say(f"\nAnalyzing repository at: {repo}")
        try:
            records = collect_change_records(repo, options)
        except KeyboardInterrupt:
            logger.warning(
                "Interrupted while reading history of %s; keeping previous analysis", repo
            )
            return False

        accumulator = CommitStatAccumulator()
        ingest_with_progress(self.console, records, accumulator)
        self.repo = repo
        self.ignored_extensions = ignored_extensions
        if percentile is not None:
            self.percentile = percentile
        self.accumulator = accumulator
        self.from_ref = from_ref
        self.print_overview()
        return True

    def print_overview(self) -> None:
        overview = analysis_overview(self.accumulator.snapshot(), self.percentile)
        print_lines(
            self.console,
            format_overview(overview, self.percentile, self.ignored_extensions),
        )

    def show(self, mode: str) -> None:
        self.last_mode = mode
        layout = render(self.accumulator.aggregate(mode), self.percentile, self.scale_width)
        print_lines(self.console, format_chart(layout, str(self.repo)))

    def _cmd_commit(self, args: Sequence[str]) -> None:
        from_ref = args[0] if args else None
        if from_ref != self.from_ref and not self.analyze(from_ref):
            return
        self.show("commit")

    def _cmd_repo(self, args: Sequence[str]) -> None:
        percentile = validate_percentile(args[1]) if len(args) > 1 else DEFAULT_SWITCH_PERCENTILE
        if args:
            raw_path = args[0]
        else:
            try:
                raw_path = self.input_fn(
                    "Enter repository path (or press Enter for current directory): "
                )
            except EOFError:
                raw_path = ""
            raw_path = raw_path.strip() or "."
        self.analyze(repo=resolve_repo(Path(raw_path)), percentile=percentile)

    def _cmd_percentile(self, args: Sequence[str]) -> None:
        if not args:
            raise InvalidPercentileError(PERCENTILE_ERROR)
        self.percentile = validate_percentile(args[0])
        self.print_overview()
        self.show(self.last_mode)

    def _cmd_ignore(self, args: Sequence[str]) -> None:
        self.analyze(ignored_extensions=normalize_extensions(args[0].split(",") if args else []))

    def execute(self, cmd: str, args: Sequence[str]) -> None:
        handler = self._commands.get(cmd)
        if handler is None:
            self._say('Unknown command. Type "help" for available commands.')
            return
        try:
            handler(args)
        except InvalidPercentileError as e:
            self._say(str(e))
        except (RuntimeError, ValueError) as e:
            logger.debug("Command %r failed", cmd, exc_info=True)
            self._say(f"Operation failed: {e}")

    def run(self) -> int:
        self._say(HELP_TEXT)
        while True:
            try:
                line = self.input_fn("\nEnter command: ")
            except (EOFError, KeyboardInterrupt):
                self._say("")
                return 0

            parts = line.strip().split()
            if not parts:
                continue
            cmd, args = parts[0].lower(), parts[1:]
            if cmd == "exit":
                return 0
            self.execute(cmd, args)
