"""gitcache - caching façade over the git command-line tool.

Query and mutate a working directory's branch, status, remote and commit
state without re-spawning git for every read, with every outcome normalized
into an Ok/Err result.

Exports:
    __version__: Package version string.
    RepositoryManager: The manager for one working directory.
    ManagerConfig: Settings a manager is built from.
    setup_logging: Attach a Rich log handler to the package logger.
"""

from __future__ import annotations

from gitcache.core.config import ManagerConfig, load_config
from gitcache.core.console import setup_logging
from gitcache.core.result import Err, ErrorKind, GitCacheError, Ok, Result
from gitcache.git.manager import RepositoryManager

__all__ = [
    "Err",
    "ErrorKind",
    "GitCacheError",
    "ManagerConfig",
    "Ok",
    "RepositoryManager",
    "Result",
    "__version__",
    "load_config",
    "setup_logging",
]

__version__ = "0.1.0"
