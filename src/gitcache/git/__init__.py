"""Git repository management.

This package provides the caching repository manager:
    - RepositoryManager: cached status/branch/remote queries and mutations
    - CommandExecutor: blocking git invocation with a timeout
    - GitCache: per-manager result cache
    - validate_branch_name: pure branch name checks
"""

from __future__ import annotations

from .cache import CacheKey, GitCache
from .executor import CommandExecutor, CommandResult
from .manager import INVALIDATES, RepositoryManager
from .models import (
    ALL_FILES,
    BranchCheckedOut,
    BranchCreated,
    BranchDeleted,
    BranchDescriptor,
    BranchInfo,
    BranchListing,
    BranchValidation,
    CleanupReport,
    CommitInfo,
    ComprehensiveInfo,
    HealthReport,
    PushInfo,
    RemotesInfo,
    RepositoryHandle,
    StatusInfo,
)
from .validation import MAX_BRANCH_NAME_LENGTH, validate_branch_name

__all__ = [
    "ALL_FILES",
    "BranchCheckedOut",
    "BranchCreated",
    "BranchDeleted",
    "BranchDescriptor",
    "BranchInfo",
    "BranchListing",
    "BranchValidation",
    "CacheKey",
    "CleanupReport",
    "CommandExecutor",
    "CommandResult",
    "CommitInfo",
    "ComprehensiveInfo",
    "GitCache",
    "HealthReport",
    "INVALIDATES",
    "MAX_BRANCH_NAME_LENGTH",
    "PushInfo",
    "RemotesInfo",
    "RepositoryHandle",
    "RepositoryManager",
    "StatusInfo",
    "validate_branch_name",
]
