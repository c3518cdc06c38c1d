"""
Result types and error taxonomy for gitcache.

This module provides:
1. Result[T, E] type for explicit error handling
2. The error hierarchy every repository operation reports failures with
3. Helper functions for Result operations

Usage:
    from gitcache.core.result import Ok, Err, Result, NotARepositoryError

    def current_branch() -> Result[str, GitCacheError]:
        if not in_repo:
            return Err(NotARepositoryError())
        return Ok("main")

    match current_branch():
        case Ok(branch):
            print(branch)
        case Err(err):
            print(err.kind, err.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=Exception)
F = TypeVar("F", bound=Exception)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Represents a successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        """Return the contained value (ignores default for Ok)."""
        return self.value

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply a function to the contained value."""
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[E], F]) -> Ok[T]:
        """No-op for Ok - returns self unchanged."""
        return self

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Result[U, E]:
        """Chain operations that may fail."""
        return fn(self.value)


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Represents a failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        """Raise the contained error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        """Return the default value."""
        return default

    def map(self, fn: Callable[[T], U]) -> Err[E]:
        """No-op for Err - returns self unchanged."""
        return self

    def map_err(self, fn: Callable[[E], F]) -> Err[F]:
        """Apply a function to the contained error."""
        return Err(fn(self.error))

    def and_then(self, fn: Callable[[T], Result[U, E]]) -> Err[E]:
        """Short-circuit for Err - returns self unchanged."""
        return self


# Type alias for Result
Result = Ok[T] | Err[E]


# ---------------------------------------------------------------------------
# Error taxonomy
# ---------------------------------------------------------------------------

NOT_A_REPOSITORY_MESSAGE = "Not a git repository"


class ErrorKind(StrEnum):
    """Discriminator carried by every GitCacheError."""

    NOT_A_REPOSITORY = "not_a_repository"
    BRANCH_EXISTS = "branch_exists"
    BRANCH_NOT_FOUND = "branch_not_found"
    CANNOT_DELETE_CURRENT_BRANCH = "cannot_delete_current_branch"
    INVALID_BRANCH_NAME = "invalid_branch_name"
    OPERATION_TIMED_OUT = "operation_timed_out"
    TOOL_INVOCATION_FAILED = "tool_invocation_failed"


class GitCacheError(Exception):
    """Base exception for all gitcache failures.

    Operations never raise these for expected conditions; they travel inside
    ``Err`` so callers can branch on ``kind`` without try/except.
    """

    kind: ErrorKind = ErrorKind.TOOL_INVOCATION_FAILED

    def __init__(self, message: str, *, context: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} [{ctx_str}]"
        return self.message


class NotARepositoryError(GitCacheError):
    """The managed directory is not inside a git working tree."""

    kind = ErrorKind.NOT_A_REPOSITORY

    def __init__(
        self, message: str = NOT_A_REPOSITORY_MESSAGE, *, context: dict | None = None
    ) -> None:
        super().__init__(message, context=context)


class BranchExistsError(GitCacheError):
    """A branch with the requested name already exists."""

    kind = ErrorKind.BRANCH_EXISTS


class BranchNotFoundError(GitCacheError):
    """The requested branch does not exist."""

    kind = ErrorKind.BRANCH_NOT_FOUND


class CannotDeleteCurrentBranchError(GitCacheError):
    """Attempted to delete the checked-out branch."""

    kind = ErrorKind.CANNOT_DELETE_CURRENT_BRANCH


class InvalidBranchNameError(GitCacheError):
    """Branch name failed validation.

    ``errors`` keeps every individual rule violation.
    """

    kind = ErrorKind.INVALID_BRANCH_NAME

    def __init__(
        self, errors: list[str], *, context: dict | None = None
    ) -> None:
        super().__init__("; ".join(errors) or "Invalid branch name", context=context)
        self.errors = list(errors)


class OperationTimedOutError(GitCacheError):
    """A git invocation exceeded the configured timeout."""

    kind = ErrorKind.OPERATION_TIMED_OUT


class ToolInvocationFailedError(GitCacheError):
    """Git exited non-zero, could not be started, or produced unusable output."""

    kind = ErrorKind.TOOL_INVOCATION_FAILED


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def first_error(results: list[Result[Any, E]]) -> E | None:
    """Return the error of the first failed result, if any."""
    for result in results:
        if isinstance(result, Err):
            return result.error
    return None


__all__ = [
    # Result types
    "Ok",
    "Err",
    "Result",
    # Error taxonomy
    "ErrorKind",
    "NOT_A_REPOSITORY_MESSAGE",
    "GitCacheError",
    "NotARepositoryError",
    "BranchExistsError",
    "BranchNotFoundError",
    "CannotDeleteCurrentBranchError",
    "InvalidBranchNameError",
    "OperationTimedOutError",
    "ToolInvocationFailedError",
    # Helpers
    "first_error",
]
