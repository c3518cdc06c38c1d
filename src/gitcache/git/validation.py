"""Branch name validation.

Follows ``git check-ref-format --branch`` closely enough to reject anything
git itself would refuse, without invoking git. All violations are collected
rather than stopping at the first one.
"""

from __future__ import annotations

import re

from gitcache.git.models import BranchValidation

MAX_BRANCH_NAME_LENGTH = 100

EMPTY_NAME_ERROR = "Branch name cannot be empty"
TOO_LONG_ERROR = f"Branch name is too long (max {MAX_BRANCH_NAME_LENGTH} characters)"
INVALID_CHARACTERS_ERROR = "Branch name contains invalid characters"

# Whitespace, ASCII control characters, DEL and the characters git reserves.
_FORBIDDEN_CHARS = re.compile(r"[\s\x00-\x1f\x7f~^:?*\[\\]")


def _violates_ref_format(name: str) -> bool:
    if _FORBIDDEN_CHARS.search(name):
        return True
    if ".." in name or "@{" in name or name in ("@", "HEAD"):
        return True
    if name.startswith("-") or name.endswith("."):
        return True
    if name.startswith("/") or name.endswith("/") or "//" in name:
        return True
    return any(
        component.startswith(".") or component.endswith(".lock")
        for component in name.split("/")
    )


def validate_branch_name(name: str, prefix: str = "") -> BranchValidation:
    """Check ``prefix + name`` against git's branch naming rules.

    ``normalized_name`` is the prefixed name when a prefix was given and the
    result is valid; otherwise it is ``name`` unchanged.
    """
    errors: list[str] = []
    full_name = f"{prefix}{name}"

    if not name:
        errors.append(EMPTY_NAME_ERROR)
    if len(full_name) > MAX_BRANCH_NAME_LENGTH:
        errors.append(TOO_LONG_ERROR)
    if full_name and _violates_ref_format(full_name):
        errors.append(INVALID_CHARACTERS_ERROR)

    valid = not errors
    normalized = full_name if prefix and valid else name
    return BranchValidation(valid=valid, errors=errors, normalized_name=normalized)
