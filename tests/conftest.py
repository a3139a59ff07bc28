# ABOUTME: Shared pytest fixtures for churn-chart tests.
# ABOUTME: Provides temporary git repos whose commits carry fixed dates.

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Callable

import pytest


def _git(repo: Path, *args: str, date: str | None = None) -> None:
    env = dict(os.environ)
    if date is not None:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
    subprocess.run(["git", *args], cwd=repo, check=True, capture_output=True, env=env)


@pytest.fixture
def commit_file() -> Callable[..., None]:
    """Return a helper that writes a file and commits it at a fixed UTC date."""

    def _commit(repo: Path, name: str, content: str, message: str, date: str) -> None:
        path = repo / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        _git(repo, "add", name)
        _git(repo, "commit", "-m", message, date=date)

    return _commit


@pytest.fixture
def empty_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with no commits."""
    repo = tmp_path / "test-repo"
    repo.mkdir()

    _git(repo, "init")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "commit.gpgsign", "false")
    return repo


@pytest.fixture
def git_repo(empty_git_repo: Path, commit_file: Callable[..., None]) -> Path:
    """Create a temporary git repository with three dated commits.

    - 2024-01-15: README.md, 3 lines
    - 2024-01-15: app.py, 2 lines
    - 2024-03-02: data.json, 5 lines
    """
    repo = empty_git_repo
    commit_file(repo, "README.md", "# Test\n\nhello\n", "Initial commit", "2024-01-15T10:00:00+00:00")
    commit_file(repo, "app.py", "a = 1\nb = 2\n", "Add app", "2024-01-15T12:00:00+00:00")
    commit_file(
        repo,
        "data.json",
        "{\n\"a\": 1,\n\"b\": 2,\n\"c\": 3\n}\n",
        "Add data",
        "2024-03-02T09:30:00+00:00",
    )
    return repo


@pytest.fixture
def non_git_dir(tmp_path: Path) -> Path:
    """Create a temporary directory that is NOT a git repository."""
    non_git = tmp_path / "not-a-repo"
    non_git.mkdir()
    (non_git / "some_file.txt").write_text("hello\n")
    return non_git
