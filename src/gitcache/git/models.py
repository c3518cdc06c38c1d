"""Structured payloads returned by RepositoryManager operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

ALL_FILES = "all files"


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


@dataclass(frozen=True, slots=True)
class RepositoryHandle:
    """Target directory and invocation timeout of one manager."""

    path: Path
    timeout_ms: int


@dataclass(frozen=True, slots=True)
class BranchDescriptor:
    name: str
    current: bool = False
    remote: bool = False


@dataclass
class StatusInfo:
    status: str
    has_changes: bool
    cached: bool
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def entries(self) -> list[tuple[str, str]]:
        """Porcelain entries as (status_code, path)."""
        parsed: list[tuple[str, str]] = []
        for line in self.status.splitlines():
            if not line:
                continue
            parsed.append((line[:2].strip(), line[3:] if len(line) > 3 else ""))
        return parsed


@dataclass
class BranchInfo:
    branch: str
    cached: bool
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class RemotesInfo:
    remotes: str
    cached: bool
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def names(self) -> list[str]:
        """Distinct remote names in ``git remote -v`` order."""
        seen: list[str] = []
        for line in self.remotes.splitlines():
            parts = line.split()
            if parts and parts[0] not in seen:
                seen.append(parts[0])
        return seen


@dataclass
class BranchCreated:
    branch_name: str
    checked_out: bool
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class BranchCheckedOut:
    branch_name: str
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class BranchDeleted:
    branch_name: str
    force: bool
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class BranchListing:
    branches: list[BranchDescriptor]
    current_branch: str | None
    timestamp: str = field(default_factory=utc_timestamp)

    def find(self, name: str) -> BranchDescriptor | None:
        return next((branch for branch in self.branches if branch.name == name), None)


@dataclass
class CommitInfo:
    message: str
    # ALL_FILES when everything was staged, otherwise the paths as passed.
    files: str | tuple[str, ...]
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class PushInfo:
    remote: str
    branch: str
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class CleanupReport:
    target_branch: str
    merged_branches: list[str]
    deleted_branches: list[str]
    dry_run: bool
    failed_branches: dict[str, str] = field(default_factory=dict)
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class BranchValidation:
    valid: bool
    errors: list[str]
    normalized_name: str


@dataclass
class HealthReport:
    healthy: bool
    is_git_repository: bool
    git_version: str | None = None
    current_branch: str | None = None
    has_uncommitted_changes: bool | None = None
    has_remote: bool | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utc_timestamp)


@dataclass
class ComprehensiveInfo:
    """Health report plus the raw status and remote payloads.

    Fields that need a working repository stay None for other directories;
    ``to_dict`` omits them entirely.
    """

    is_git_repository: bool
    healthy: bool
    error: str | None = None
    git_version: str | None = None
    current_branch: str | None = None
    has_uncommitted_changes: bool = False
    has_remote: bool = False
    status: str | None = None
    remotes: str | None = None
    timestamp: str = field(default_factory=utc_timestamp)

    _ALWAYS_PRESENT = frozenset({"is_git_repository", "healthy", "error"})

    def to_dict(self) -> dict[str, Any]:
        return {
            key: value
            for key, value in asdict(self).items()
            if value is not None or key in self._ALWAYS_PRESENT
        }
