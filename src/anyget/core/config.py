"""Shared client settings every getter reads through its owner."""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from pathlib import Path

from anyget.core import paths
from anyget.core.env import env_bool, env_float, env_octal

DEFAULT_DIR_MODE = 0o755
DEFAULT_UMASK = 0o022


@dataclass(frozen=True)
class Settings:
    """Immutable for the lifetime of a fetch."""

    dir_mode: int | None = None
    umask: int = DEFAULT_UMASK
    disable_symlinks: bool = False
    pwd: Path | None = None
    timeout: float | None = None
    cache_dir: Path = field(default_factory=paths.default_cache_dir)

    def mode(self, default: int = DEFAULT_DIR_MODE) -> int:
        """Directory creation mode, falling back to *default* when unset."""
        return self.dir_mode if self.dir_mode is not None else default

    def file_mode(self, mode: int) -> int:
        """Permission bits for a new file copied from one with *mode*."""
        return stat.S_IMODE(mode) & ~self.umask

    def working_dir(self) -> Path:
        return self.pwd if self.pwd is not None else Path(os.getcwd())

    @classmethod
    def from_env(cls) -> Settings:
        cache_dir = os.environ.get("ANYGET_CACHE_DIR", "").strip()
        raw_mode = os.environ.get("ANYGET_DIR_MODE", "").strip()
        return cls(
            dir_mode=env_octal("ANYGET_DIR_MODE", DEFAULT_DIR_MODE) if raw_mode else None,
            umask=env_octal("ANYGET_UMASK", DEFAULT_UMASK),
            disable_symlinks=env_bool("ANYGET_DISABLE_SYMLINKS", False),
            timeout=env_float("ANYGET_TIMEOUT"),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else paths.default_cache_dir(),
        )
