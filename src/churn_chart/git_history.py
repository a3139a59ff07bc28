# ABOUTME: Extracts per-commit insertion/deletion records from git history.
# ABOUTME: Applies the ignored-extension filter and feeds records into an accumulator.

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence

from .accumulator import CommitStatAccumulator
from .models import ChangeRecord

logger = logging.getLogger(__name__)

COMMIT_MARKER = "<<<CHURN_COMMIT>>>\t"
ALWAYS_IGNORED_FILES = ("package-lock.json",)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class HistoryOptions:
    from_ref: Optional[str] = None
    include_merges: bool = True
    ignored_extensions: tuple[str, ...] = ()


def _run_git(repo: Path, args: list[str]) -> str:
    proc = subprocess.run(
        ["git", "-C", str(repo), *args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        check=False,
    )
    if proc.returncode != 0:
        raise RuntimeError(proc.stderr.strip() or f"git failed: {' '.join(args)}")
    return proc.stdout


def normalize_extensions(exts: Iterable[str]) -> tuple[str, ...]:
    """Lower-case extensions and strip one leading dot: ".JSON" -> "json"."""
    out: list[str] = []
    for ext in exts:
        e = ext.strip().lower()
        if e.startswith("."):
            e = e[1:]
        if e and e not in out:
            out.append(e)
    return tuple(out)


def is_path_counted(path: str, ignored_extensions: Sequence[str]) -> bool:
    lowered = path.lower()
    if any(lowered.endswith(name) for name in ALWAYS_IGNORED_FILES):
        return False
    # No dot means the whole name is compared, matching `split(".")[-1]`.
    ext = lowered.rsplit(".", 1)[-1]
    return ext not in ignored_extensions


def _utc_day(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d")


def _parse_numstat_log(
    lines: Iterable[str],
    marker: str,
    ignored_extensions: Sequence[str] = (),
) -> list[ChangeRecord]:
    records: list[ChangeRecord] = []
    current_hash: Optional[str] = None
    current_ts: Optional[int] = None
    current_subject: Optional[str] = None
    insertions = 0
    deletions = 0

    def flush() -> None:
        nonlocal current_hash, current_ts, current_subject, insertions, deletions
        if current_hash is None or current_ts is None:
            return
        records.append(
            ChangeRecord(
                day=_utc_day(current_ts),
                timestamp=current_ts,
                insertions=insertions,
                deletions=deletions,
                commit=current_hash,
                summary=current_subject,
            )
        )
        current_hash = None
        current_ts = None
        current_subject = None
        insertions = 0
        deletions = 0

    for raw_line in lines:
        line = raw_line.rstrip("\n")
        if not line:
            continue
        if line.startswith(marker):
            flush()
            payload = line[len(marker) :]
            parts = payload.split("\t", 2)
            if len(parts) < 2:
                raise RuntimeError(f"Unexpected commit header: {line!r}")
            current_hash = parts[0]
            try:
                current_ts = int(parts[1])
            except ValueError as e:
                raise RuntimeError(f"Unexpected commit timestamp: {line!r}") from e
            current_subject = parts[2] if len(parts) > 2 else ""
            continue

        parts = line.split("\t", 2)
        if len(parts) < 3 or current_hash is None:
            continue

        added, deleted, path = parts
        if not is_path_counted(path, ignored_extensions):
            continue
        # Binary files report "-" for both counts.
        if added == "-" or deleted == "-":
            continue
        try:
            insertions += int(added)
            deletions += int(deleted)
        except ValueError:
            continue

    flush()
    return records


def is_git_repository(path: Path) -> bool:
    path = path.expanduser()
    if not path.is_dir():
        return False
    try:
        _run_git(path.resolve(), ["rev-parse", "--git-dir"])
    except (OSError, RuntimeError):
        return False
    return True


def resolve_repo(path: Path) -> Path:
    repo = path.expanduser().resolve()
    if not is_git_repository(repo):
        raise RuntimeError(f"'{repo}' is not a valid Git repository")
    return repo


def collect_change_records(repo: Path, options: HistoryOptions) -> list[ChangeRecord]:
    """Read one ChangeRecord per commit, oldest first.

    Counts come from `--numstat`, filtered by the ignored extensions. The day
    is the UTC calendar date of the author timestamp.
    """
    repo = resolve_repo(repo)
    try:
        _run_git(repo, ["rev-parse", "--verify", "--quiet", "HEAD"])
    except RuntimeError:
        logger.info("No commits yet in %s", repo)
        return []

    git_args = [
        "log",
        "--reverse",
        "--numstat",
        f"--pretty=format:{COMMIT_MARKER}%H\t%at\t%s",
    ]
    if not options.include_merges:
        git_args.append("--no-merges")
    if options.from_ref:
        git_args.append(f"{options.from_ref}..HEAD")

    out = _run_git(repo, git_args)
    records = _parse_numstat_log(
        out.splitlines(),
        marker=COMMIT_MARKER,
        ignored_extensions=normalize_extensions(options.ignored_extensions),
    )
    logger.debug("Parsed %d commits from %s", len(records), repo)
    return records


def ingest(
    records: Sequence[ChangeRecord],
    accumulator: CommitStatAccumulator,
    on_progress: Optional[ProgressCallback] = None,
) -> int:
    """Feed records into the accumulator one at a time; returns how many were fed.

    Interrupting the loop leaves everything already recorded in place.
    """
    total = len(records)
    fed = 0
    for record in records:
        accumulator.record(record)
        fed += 1
        if on_progress is not None:
            on_progress(fed, total)
    return fed
