from __future__ import annotations

import shutil
import subprocess
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from gitcache.git.manager import RepositoryManager  # noqa: E402

HAS_GIT = shutil.which("git") is not None

GitRunner = Callable[..., str]


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip tests that drive a real git binary when none is installed."""
    if HAS_GIT:
        return
    skip_git = pytest.mark.skip(reason="git executable not found on PATH")
    for item in items:
        if "requires_git" in item.keywords:
            item.add_marker(skip_git)


@pytest.fixture(autouse=True)
def isolate_environment(tmp_path: Path, monkeypatch: Any) -> None:
    """Keep user git config and GITCACHE_* settings out of every test."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.delenv("GIT_DIR", raising=False)
    monkeypatch.delenv("GIT_WORK_TREE", raising=False)
    monkeypatch.delenv("GITCACHE_PROJECT_PATH", raising=False)
    monkeypatch.delenv("GITCACHE_TIMEOUT", raising=False)


@pytest.fixture
def git() -> GitRunner:
    """Run git directly for test setup (not part of the system under test)."""

    def _run(path: Path, *args: str) -> str:
        completed = subprocess.run(
            ["git", *args], cwd=path, check=True, capture_output=True, text=True
        )
        return completed.stdout

    return _run


@pytest.fixture
def git_repo(tmp_path: Path, git: GitRunner) -> Path:
    """A repository on branch ``main`` with one commit and a clean tree."""
    repo_path = tmp_path / "repo"
    repo_path.mkdir()
    git(repo_path, "init", "--quiet")
    git(repo_path, "symbolic-ref", "HEAD", "refs/heads/main")
    git(repo_path, "config", "commit.gpgsign", "false")

    (repo_path / "README.md").write_text("# Test Repo\n")
    git(repo_path, "add", "README.md")
    git(repo_path, "commit", "--quiet", "-m", "Initial commit")
    return repo_path


@pytest.fixture
def plain_dir(tmp_path: Path) -> Path:
    path = tmp_path / "plain"
    path.mkdir()
    return path


@pytest.fixture
def manager(git_repo: Path) -> RepositoryManager:
    return RepositoryManager(git_repo)


@pytest.fixture
def plain_manager(plain_dir: Path) -> RepositoryManager:
    return RepositoryManager(plain_dir)
