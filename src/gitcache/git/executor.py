"""Blocking git invocation.

Every git call a RepositoryManager makes goes through CommandExecutor: one
subprocess per call, bounded by the handle's timeout. The exit code, stdout
and stderr are the whole contract with the tool.
"""

from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from pathlib import Path

from gitcache.core.console import get_logger
from gitcache.core.result import (
    Err,
    GitCacheError,
    Ok,
    OperationTimedOutError,
    Result,
    ToolInvocationFailedError,
)

logger = get_logger(__name__)

# git must never wait on a credential or editor prompt.
_GIT_ENV_OVERRIDES = {"GIT_TERMINAL_PROMPT": "0", "GIT_EDITOR": "true"}


@dataclass(slots=True)
class CommandResult:
    """Result of a git invocation that ran to completion."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def failure_detail(self, args: tuple[str, ...]) -> str:
        """Trimmed stderr, else stdout, else a generic message."""
        return self.stderr.strip() or self.stdout.strip() or f"git {' '.join(args)} failed"


class CommandExecutor:
    """Runs git synchronously in a fixed working directory."""

    def __init__(self, cwd: Path, timeout_ms: int, git_binary: str = "git") -> None:
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self._cwd = cwd
        self._timeout_ms = timeout_ms
        self._git = git_binary

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    def run(self, *args: str, scoped: bool = True) -> Result[CommandResult, GitCacheError]:
        """Invoke git and return its outcome whatever the exit code.

        Err is reserved for invocations that never completed: missing
        directory, missing binary, or timeout. ``scoped=False`` runs git
        outside the working directory, for queries like ``--version``.
        """
        context = {"cwd": str(self._cwd), "args": list(args)}
        if scoped and not self._cwd.is_dir():
            return Err(ToolInvocationFailedError("Repository path does not exist", context=context))

        logger.debug("git %s (cwd=%s)", " ".join(args), self._cwd)
        try:
            completed = subprocess.run(
                [self._git, *args],
                cwd=self._cwd if scoped else None,
                env={**os.environ, **_GIT_ENV_OVERRIDES},
                capture_output=True,
                stdin=subprocess.DEVNULL,
                timeout=self._timeout_ms / 1000,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.debug("git %s timed out after %d ms", " ".join(args), self._timeout_ms)
            return Err(
                OperationTimedOutError(
                    f"git {' '.join(args)} timed out after {self._timeout_ms} ms",
                    context=context,
                )
            )
        except FileNotFoundError:
            return Err(ToolInvocationFailedError("git executable not found on PATH", context=context))
        except OSError as exc:
            return Err(
                ToolInvocationFailedError(
                    "Failed to start git", context={**context, "error": str(exc)}
                )
            )

        result = CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            logger.debug("git %s exited %d", " ".join(args), result.returncode)
        return Ok(result)

    def run_checked(self, *args: str, scoped: bool = True) -> Result[str, GitCacheError]:
        """Invoke git and return stdout, treating a non-zero exit as failure."""
        match self.run(*args, scoped=scoped):
            case Err(err):
                return Err(err)
            case Ok(result):
                pass

        if not result.ok:
            return Err(
                ToolInvocationFailedError(
                    result.failure_detail(args),
                    context={
                        "cwd": str(self._cwd),
                        "args": list(args),
                        "returncode": result.returncode,
                    },
                )
            )
        return Ok(result.stdout)
