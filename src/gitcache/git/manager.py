"""Caching repository manager.

RepositoryManager answers branch, status and remote queries for one working
directory, serving repeated reads from a per-instance cache and invalidating
the affected entries whenever it mutates the repository itself. Every
operation returns a value; expected failures come back as ``Err`` with a
GitCacheError whose ``kind`` says what went wrong.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from gitcache.core.config import ManagerConfig, load_config
from gitcache.core.console import get_logger
from gitcache.core.result import (
    NOT_A_REPOSITORY_MESSAGE,
    BranchExistsError,
    BranchNotFoundError,
    CannotDeleteCurrentBranchError,
    Err,
    GitCacheError,
    InvalidBranchNameError,
    NotARepositoryError,
    Ok,
    Result,
    ToolInvocationFailedError,
    first_error,
)
from gitcache.git.cache import CacheKey, GitCache
from gitcache.git.executor import CommandExecutor
from gitcache.git.models import (
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
from gitcache.git.validation import validate_branch_name

logger = get_logger(__name__)

# Cache keys each mutating operation clears after it succeeds.
INVALIDATES: dict[str, tuple[CacheKey, ...]] = {
    "create_branch": (),
    "create_branch_checkout": (CacheKey.GIT_BRANCH,),
    "checkout_branch": (CacheKey.GIT_BRANCH, CacheKey.GIT_STATUS),
    "delete_branch": (),
    "commit_changes": (CacheKey.GIT_STATUS,),
    "push_changes": (),
    "cleanup_merged_branches": (),
}

_LOCAL_PREFIX = "refs/heads/"
_REMOTE_PREFIX = "refs/remotes/"


def _parse_branch_refs(output: str, current: str | None) -> list[BranchDescriptor]:
    """Turn ``for-each-ref --format=%(refname)`` output into descriptors."""
    branches: list[BranchDescriptor] = []
    for line in output.splitlines():
        ref = line.strip()
        if ref.startswith(_LOCAL_PREFIX):
            name = ref[len(_LOCAL_PREFIX) :]
            branches.append(BranchDescriptor(name=name, current=name == current, remote=False))
        elif ref.startswith(_REMOTE_PREFIX):
            name = ref[len(_REMOTE_PREFIX) :]
            # origin/HEAD is a symbolic pointer, not a branch
            if name.endswith("/HEAD"):
                continue
            branches.append(BranchDescriptor(name=name, current=False, remote=True))
    return branches


class RepositoryManager:
    """Caching façade over git for a single working directory."""

    def __init__(
        self,
        project_path: Path | str | None = None,
        timeout: int | None = None,
        *,
        executor: CommandExecutor | None = None,
    ) -> None:
        config = load_config(project_path=project_path, timeout=timeout)
        self._handle = RepositoryHandle(path=config.project_path, timeout_ms=config.timeout)
        self._executor = executor or CommandExecutor(self._handle.path, self._handle.timeout_ms)
        self._cache = GitCache()

    @classmethod
    def from_config(
        cls, config: ManagerConfig, *, executor: CommandExecutor | None = None
    ) -> RepositoryManager:
        return cls(config.project_path, config.timeout, executor=executor)

    @property
    def handle(self) -> RepositoryHandle:
        return self._handle

    @property
    def project_path(self) -> Path:
        return self._handle.path

    @property
    def timeout(self) -> int:
        return self._handle.timeout_ms

    @property
    def cache(self) -> GitCache:
        return self._cache

    @property
    def git_version(self) -> str | None:
        return self._cache.git_version

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _require_repository(self) -> Err[GitCacheError] | None:
        """Gate for operations that need a work tree.

        A detection call that never completed (timeout, missing binary) is
        returned as is; only a completed probe answering "no" becomes
        NotARepositoryError.
        """
        match self._detect_repository():
            case Err(err):
                return Err(err)
            case Ok(True):
                return None
            case Ok(False):
                return Err(NotARepositoryError(context={"path": str(self.project_path)}))

    def _invalidate(self, operation: str) -> None:
        keys = INVALIDATES[operation]
        if keys:
            logger.debug("%s invalidated %s", operation, ", ".join(keys))
        self._cache.invalidate(*keys)

    def _cached_read(
        self, key: CacheKey, loader: Callable[[], Result[str, GitCacheError]]
    ) -> Result[tuple[str, bool], GitCacheError]:
        """Serve ``key`` from the cache or load and store it.

        Returns the value together with whether it came from the cache.
        """
        if (gate := self._require_repository()) is not None:
            return gate

        cached = self._cache.get(key)
        if cached is not None:
            return Ok((str(cached), True))

        match loader():
            case Err(err):
                return Err(err)
            case Ok(value):
                self._cache.set(key, value)
                return Ok((value, False))

    def _git_output(self, *args: str) -> Callable[[], Result[str, GitCacheError]]:
        return lambda: self._executor.run_checked(*args).map(str.rstrip)

    def _read_current_branch(self) -> Result[str, GitCacheError]:
        args = ("symbolic-ref", "--quiet", "--short", "HEAD")
        match self._executor.run(*args):
            case Err(err):
                return Err(err)
            case Ok(result):
                pass

        if result.ok:
            return Ok(result.stdout.strip())
        if result.returncode == 1 and not result.stderr.strip():
            return Err(
                ToolInvocationFailedError("HEAD is detached", context={"path": str(self.project_path)})
            )
        return Err(
            ToolInvocationFailedError(
                result.failure_detail(args), context={"returncode": result.returncode}
            )
        )

    def _branch_exists(self, name: str) -> Result[bool, GitCacheError]:
        match self._executor.run("show-ref", "--verify", "--quiet", f"{_LOCAL_PREFIX}{name}"):
            case Err(err):
                return Err(err)
            case Ok(result):
                return Ok(result.ok)

    def _current_branch_name(self) -> str | None:
        return self.get_current_branch().map(lambda info: info.branch).unwrap_or(None)

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def check_git_installation(self) -> bool:
        """Return True if git runs; caches the version string on success."""
        if self._cache.is_set(CacheKey.GIT_VERSION):
            return True

        match self._executor.run_checked("--version", scoped=False):
            case Ok(output) if output.startswith("git version"):
                self._cache.set(CacheKey.GIT_VERSION, output.strip())
                return True
            case Ok(output):
                logger.debug("Unexpected git --version output: %r", output)
                return False
            case Err(err):
                logger.debug("git is not available: %s", err.message)
                return False

    def _detect_repository(self) -> Result[bool, GitCacheError]:
        cached = self._cache.get(CacheKey.IS_GIT_REPO)
        if cached is not None:
            return Ok(bool(cached))

        match self._executor.run("rev-parse", "--is-inside-work-tree"):
            case Ok(result):
                is_repo = result.ok and result.stdout.strip() == "true"
            case Err(err):
                # Not cached: a timeout or missing binary says nothing about the directory.
                logger.debug("Repository detection failed: %s", err.message)
                return Err(err)

        self._cache.set(CacheKey.IS_GIT_REPO, is_repo)
        return Ok(is_repo)

    def is_git_repository(self) -> bool:
        return self._detect_repository().unwrap_or(False)

    # -------------------------------------------------------------------------
    # Cached reads
    # -------------------------------------------------------------------------

    def get_git_status(self) -> Result[StatusInfo, GitCacheError]:
        return self._cached_read(CacheKey.GIT_STATUS, self._git_output("status", "--porcelain")).map(
            lambda hit: StatusInfo(status=hit[0], has_changes=bool(hit[0]), cached=hit[1])
        )

    def get_current_branch(self) -> Result[BranchInfo, GitCacheError]:
        return self._cached_read(CacheKey.GIT_BRANCH, self._read_current_branch).map(
            lambda hit: BranchInfo(branch=hit[0], cached=hit[1])
        )

    def get_git_remotes(self) -> Result[RemotesInfo, GitCacheError]:
        return self._cached_read(CacheKey.GIT_REMOTE, self._git_output("remote", "-v")).map(
            lambda hit: RemotesInfo(remotes=hit[0], cached=hit[1])
        )

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def get_repository_health(self) -> HealthReport:
        match self._detect_repository():
            case Err(err):
                return HealthReport(healthy=False, is_git_repository=False, error=err.message)
            case Ok(False):
                return HealthReport(
                    healthy=False, is_git_repository=False, error=NOT_A_REPOSITORY_MESSAGE
                )
            case Ok(True):
                pass

        installed = self.check_git_installation()
        branch = self.get_current_branch()
        status = self.get_git_status()
        remotes = self.get_git_remotes()

        failure = first_error([branch, status, remotes])
        error = failure.message if failure is not None else None
        if error is None and not installed:
            error = "git executable is not available"

        return HealthReport(
            healthy=error is None,
            is_git_repository=True,
            git_version=self.git_version,
            current_branch=branch.map(lambda info: info.branch).unwrap_or(None),
            has_uncommitted_changes=status.map(lambda info: info.has_changes).unwrap_or(None),
            has_remote=remotes.map(lambda info: bool(info.names)).unwrap_or(None),
            error=error,
        )

    async def get_comprehensive_git_info(self) -> ComprehensiveInfo:
        """Health report plus the raw status and remote listings."""
        health = self.get_repository_health()
        if not health.is_git_repository:
            return ComprehensiveInfo(is_git_repository=False, healthy=False, error=health.error)

        return ComprehensiveInfo(
            is_git_repository=True,
            healthy=health.healthy,
            error=health.error,
            git_version=health.git_version,
            current_branch=health.current_branch,
            has_uncommitted_changes=bool(health.has_uncommitted_changes),
            has_remote=bool(health.has_remote),
            status=self.get_git_status().map(lambda info: info.status).unwrap_or(None),
            remotes=self.get_git_remotes().map(lambda info: info.remotes).unwrap_or(None),
        )

    # -------------------------------------------------------------------------
    # Branch lifecycle
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_branch_name(name: str, prefix: str = "") -> BranchValidation:
        return validate_branch_name(name, prefix)

    def create_branch(self, name: str, checkout: bool = False) -> Result[BranchCreated, GitCacheError]:
        if (gate := self._require_repository()) is not None:
            return gate

        validation = validate_branch_name(name)
        if not validation.valid:
            return Err(InvalidBranchNameError(validation.errors, context={"branch": name}))

        match self._branch_exists(name):
            case Err(err):
                return Err(err)
            case Ok(True):
                return Err(BranchExistsError(f"Branch {name} already exists", context={"branch": name}))
            case Ok(False):
                pass

        args = ("checkout", "-b", name) if checkout else ("branch", name)
        match self._executor.run_checked(*args):
            case Err(err):
                return Err(err)
            case Ok(_):
                pass

        self._invalidate("create_branch_checkout" if checkout else "create_branch")
        logger.info("Created branch %s%s", name, " (checked out)" if checkout else "")
        return Ok(BranchCreated(branch_name=name, checked_out=checkout))

    def checkout_branch(self, name: str) -> Result[BranchCheckedOut, GitCacheError]:
        if (gate := self._require_repository()) is not None:
            return gate

        match self._branch_exists(name):
            case Err(err):
                return Err(err)
            case Ok(False):
                return Err(BranchNotFoundError(f"Branch {name} does not exist", context={"branch": name}))
            case Ok(True):
                pass

        match self._executor.run_checked("checkout", name, "--"):
            case Err(err):
                return Err(err)
            case Ok(_):
                pass

        self._invalidate("checkout_branch")
        logger.info("Checked out branch %s", name)
        return Ok(BranchCheckedOut(branch_name=name))

    def delete_branch(self, name: str, force: bool = False) -> Result[BranchDeleted, GitCacheError]:
        """Delete a local branch; never the one currently checked out."""
        if (gate := self._require_repository()) is not None:
            return gate

        if name == self._current_branch_name():
            return Err(
                CannotDeleteCurrentBranchError(
                    f"Cannot delete branch {name}: it is currently checked out",
                    context={"branch": name},
                )
            )

        match self._branch_exists(name):
            case Err(err):
                return Err(err)
            case Ok(False):
                return Err(BranchNotFoundError(f"Branch {name} does not exist", context={"branch": name}))
            case Ok(True):
                pass

        match self._executor.run_checked("branch", "-D" if force else "-d", name):
            case Err(err):
                return Err(err)
            case Ok(_):
                pass

        self._invalidate("delete_branch")
        logger.info("Deleted branch %s%s", name, " (forced)" if force else "")
        return Ok(BranchDeleted(branch_name=name, force=force))

    def list_branches(self) -> Result[BranchListing, GitCacheError]:
        if (gate := self._require_repository()) is not None:
            return gate

        match self._executor.run_checked(
            "for-each-ref", "--format=%(refname)", _LOCAL_PREFIX.rstrip("/"), _REMOTE_PREFIX.rstrip("/")
        ):
            case Err(err):
                return Err(err)
            case Ok(output):
                pass

        current = self._current_branch_name()
        return Ok(BranchListing(branches=_parse_branch_refs(output, current), current_branch=current))

    # -------------------------------------------------------------------------
    # Commit / push / cleanup
    # -------------------------------------------------------------------------

    def commit_changes(
        self, message: str, files: Sequence[str | Path] | str | Path | None = None
    ) -> Result[CommitInfo, GitCacheError]:
        """Stage and commit ``files``, or every change when none are given.

        With explicit files the commit is restricted to those paths, so other
        modified or staged files stay uncommitted.
        """
        if not isinstance(message, str):
            raise TypeError(f"commit message must be a string, got {type(message).__name__}")
        if (gate := self._require_repository()) is not None:
            return gate

        if isinstance(files, (str, Path)):
            files = [files]
        paths = tuple(str(path) for path in files or ())

        if paths:
            add_args: tuple[str, ...] = ("add", "--", *paths)
            commit_args: tuple[str, ...] = ("commit", "-m", message, "--", *paths)
        else:
            add_args = ("add", "--all")
            commit_args = ("commit", "-m", message)

        for args in (add_args, commit_args):
            match self._executor.run_checked(*args):
                case Err(err):
                    return Err(err)
                case Ok(_):
                    pass

        self._invalidate("commit_changes")
        logger.info("Committed %s", ", ".join(paths) if paths else ALL_FILES)
        return Ok(CommitInfo(message=message, files=paths or ALL_FILES))

    def push_changes(
        self, remote: str = "origin", branch: str | None = None
    ) -> Result[PushInfo, GitCacheError]:
        """Push ``branch`` (default: the current branch) to ``remote``."""
        if (gate := self._require_repository()) is not None:
            return gate

        if branch is None:
            match self.get_current_branch():
                case Err(err):
                    return Err(err)
                case Ok(info):
                    branch = info.branch

        match self._executor.run_checked("push", remote, branch):
            case Err(err):
                return Err(err)
            case Ok(_):
                pass

        self._invalidate("push_changes")
        logger.info("Pushed %s to %s", branch, remote)
        return Ok(PushInfo(remote=remote, branch=branch))

    def cleanup_merged_branches(
        self, target_branch: str, dry_run: bool = False
    ) -> Result[CleanupReport, GitCacheError]:
        """Delete local branches already merged into ``target_branch``.

        The target and the checked-out branch are never candidates. Deletion
        uses ``git branch -d`` only, so git refuses anything it considers
        unmerged; such refusals are reported in ``failed_branches``.
        """
        if (gate := self._require_repository()) is not None:
            return gate

        match self._branch_exists(target_branch):
            case Err(err):
                return Err(err)
            case Ok(False):
                return Err(
                    BranchNotFoundError(
                        f"Branch {target_branch} does not exist", context={"branch": target_branch}
                    )
                )
            case Ok(True):
                pass

        match self._executor.run_checked(
            "for-each-ref",
            "--format=%(refname:short)",
            f"--merged={target_branch}",
            _LOCAL_PREFIX.rstrip("/"),
        ):
            case Err(err):
                return Err(err)
            case Ok(output):
                pass

        excluded = {target_branch, self._current_branch_name()}
        merged = [
            name for name in (line.strip() for line in output.splitlines()) if name and name not in excluded
        ]

        if dry_run:
            return Ok(
                CleanupReport(
                    target_branch=target_branch,
                    merged_branches=merged,
                    deleted_branches=[],
                    dry_run=True,
                )
            )

        deleted: list[str] = []
        failed: dict[str, str] = {}
        for name in merged:
            match self._executor.run_checked("branch", "-d", name):
                case Ok(_):
                    deleted.append(name)
                case Err(err):
                    logger.warning("Could not delete merged branch %s: %s", name, err.message)
                    failed[name] = err.message

        self._invalidate("cleanup_merged_branches")
        logger.info("Cleaned up %d merged branch(es) into %s", len(deleted), target_branch)
        return Ok(
            CleanupReport(
                target_branch=target_branch,
                merged_branches=merged,
                deleted_branches=deleted,
                dry_run=False,
                failed_branches=failed,
            )
        )

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Cache cleared for %s", self.project_path)
