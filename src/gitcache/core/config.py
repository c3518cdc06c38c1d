"""Manager configuration.

A RepositoryManager recognizes exactly two settings:
    - project_path: directory to operate in (defaults to the process cwd)
    - timeout: per-invocation git timeout in milliseconds (defaults to 30000)

Both can be supplied explicitly or through GITCACHE_* environment variables;
explicit values win.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from contextlib import nullcontext
from pathlib import Path
from typing import Any
from unittest.mock import patch

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_MS = 30_000


class ConfigError(ValueError):
    """Raised when manager configuration cannot be validated."""


class ManagerConfig(BaseSettings):
    """Settings for a single RepositoryManager."""

    model_config = SettingsConfigDict(
        env_prefix="GITCACHE_",
        extra="forbid",
        frozen=True,
    )

    project_path: Path = Field(
        default_factory=Path.cwd, description="Working directory git commands run in."
    )
    timeout: int = Field(
        default=DEFAULT_TIMEOUT_MS, gt=0, description="Per-invocation timeout in milliseconds."
    )

    @field_validator("project_path", mode="after")
    @classmethod
    def resolve_project_path(cls, v: Path) -> Path:
        return v.expanduser().resolve()


def load_config(
    env: Mapping[str, str] | None = None,
    **overrides: Any,
) -> ManagerConfig:
    """Build a ManagerConfig from the environment plus explicit overrides.

    ``None`` overrides are ignored so callers can forward optional arguments
    untouched. Raises ConfigError when a value fails validation.
    """
    values = {key: value for key, value in overrides.items() if value is not None}
    context_manager = patch.dict(os.environ, env, clear=False) if env is not None else nullcontext()

    try:
        with context_manager:
            return ManagerConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid manager configuration: {exc}") from exc
