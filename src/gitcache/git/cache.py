"""Per-manager result cache.

One slot per read query. ``None`` means unset; anything else is the last
value the query produced. Entries stay valid until an operation run through
the owning manager mutates the state they describe, at which point that
operation invalidates exactly the keys it affects.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum


class CacheKey(StrEnum):
    IS_GIT_REPO = "is_git_repo"
    GIT_VERSION = "git_version"
    GIT_STATUS = "git_status"
    GIT_BRANCH = "git_branch"
    GIT_REMOTE = "git_remote"


@dataclass
class GitCache:
    is_git_repo: bool | None = None
    git_version: str | None = None
    git_status: str | None = None
    git_branch: str | None = None
    git_remote: str | None = None

    def get(self, key: CacheKey) -> bool | str | None:
        return getattr(self, key.value)

    def set(self, key: CacheKey, value: bool | str) -> None:
        setattr(self, key.value, value)

    def is_set(self, key: CacheKey) -> bool:
        return self.get(key) is not None

    def invalidate(self, *keys: CacheKey) -> None:
        for key in keys:
            setattr(self, key.value, None)

    def clear(self) -> None:
        self.invalidate(*CacheKey)

    def snapshot(self) -> dict[str, bool | str | None]:
        return {f.name: getattr(self, f.name) for f in fields(self)}
