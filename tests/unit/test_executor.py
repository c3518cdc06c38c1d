from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from gitcache.core.result import Err, ErrorKind, Ok
from gitcache.git.executor import CommandExecutor, CommandResult


def _completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    completed = MagicMock()
    completed.returncode = returncode
    completed.stdout = stdout
    completed.stderr = stderr
    return completed


def test_rejects_non_positive_timeout(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        CommandExecutor(tmp_path, timeout_ms=0)


def test_run_passes_cwd_and_timeout_in_seconds(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=2500)

    with patch(
        "gitcache.git.executor.subprocess.run", return_value=_completed(stdout="true\n")
    ) as mock_run:
        result = executor.run("rev-parse", "--is-inside-work-tree")

    assert result == Ok(CommandResult(returncode=0, stdout="true\n", stderr=""))
    args, kwargs = mock_run.call_args
    assert args[0] == ["git", "rev-parse", "--is-inside-work-tree"]
    assert kwargs["cwd"] == tmp_path
    assert kwargs["timeout"] == 2.5
    assert kwargs["stdin"] is subprocess.DEVNULL
    assert kwargs["env"]["GIT_TERMINAL_PROMPT"] == "0"


def test_unscoped_run_ignores_missing_directory(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path / "missing", timeout_ms=1000)

    with patch(
        "gitcache.git.executor.subprocess.run",
        return_value=_completed(stdout="git version 2.43.0\n"),
    ) as mock_run:
        result = executor.run_checked("--version", scoped=False)

    assert result == Ok("git version 2.43.0\n")
    assert mock_run.call_args.kwargs["cwd"] is None


def test_missing_directory_is_a_failure(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path / "missing", timeout_ms=1000)

    with patch("gitcache.git.executor.subprocess.run") as mock_run:
        result = executor.run("status")

    assert isinstance(result, Err)
    assert result.error.kind is ErrorKind.TOOL_INVOCATION_FAILED
    assert result.error.message == "Repository path does not exist"
    mock_run.assert_not_called()


def test_timeout_becomes_timed_out_error(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=1500)

    with patch(
        "gitcache.git.executor.subprocess.run",
        side_effect=subprocess.TimeoutExpired(cmd=["git", "fetch"], timeout=1.5),
    ):
        result = executor.run_checked("fetch")

    assert isinstance(result, Err)
    assert result.error.kind is ErrorKind.OPERATION_TIMED_OUT
    assert result.error.message == "git fetch timed out after 1500 ms"


def test_missing_binary(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=1000, git_binary="definitely-not-git")

    with patch("gitcache.git.executor.subprocess.run", side_effect=FileNotFoundError()):
        result = executor.run("status")

    assert isinstance(result, Err)
    assert result.error.message == "git executable not found on PATH"


def test_os_error_on_start(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=1000)

    with patch("gitcache.git.executor.subprocess.run", side_effect=PermissionError("denied")):
        result = executor.run("status")

    assert isinstance(result, Err)
    assert result.error.message == "Failed to start git"
    assert result.error.context["error"] == "denied"


def test_non_zero_exit_is_ok_for_run(tmp_path: Path) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=1000)

    with patch("gitcache.git.executor.subprocess.run", return_value=_completed(returncode=1)):
        match executor.run("show-ref", "--verify", "--quiet", "refs/heads/x"):
            case Ok(result):
                assert result.ok is False
            case Err(err):
                pytest.fail(f"Unexpected error: {err}")


@pytest.mark.parametrize(
    ("stdout", "stderr", "expected"),
    [
        ("", "  fatal: bad revision\n", "fatal: bad revision"),
        ("nothing to commit, working tree clean\n", "", "nothing to commit, working tree clean"),
        ("", "", "git commit -m msg failed"),
    ],
)
def test_run_checked_failure_detail(
    tmp_path: Path, stdout: str, stderr: str, expected: str
) -> None:
    executor = CommandExecutor(tmp_path, timeout_ms=1000)

    with patch(
        "gitcache.git.executor.subprocess.run",
        return_value=_completed(returncode=1, stdout=stdout, stderr=stderr),
    ):
        result = executor.run_checked("commit", "-m", "msg")

    assert isinstance(result, Err)
    assert result.error.kind is ErrorKind.TOOL_INVOCATION_FAILED
    assert result.error.message == expected
    assert result.error.context["returncode"] == 1


@pytest.mark.requires_git
def test_real_git_version(tmp_path: Path) -> None:
    result = CommandExecutor(tmp_path, timeout_ms=10_000).run_checked("--version")

    assert result.unwrap().startswith("git version")
