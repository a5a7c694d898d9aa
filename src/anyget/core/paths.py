"""Default locations on disk."""

from __future__ import annotations

import os
from pathlib import Path

HOME_ENV = "ANYGET_HOME"
CACHE_DIR = "cache"
STORAGE_META_SUFFIX = ".toml"


def anyget_home() -> Path:
    """Return $ANYGET_HOME, else ~/.anyget."""
    home = os.environ.get(HOME_ENV, "").strip()
    return Path(home).expanduser() if home else Path.home() / ".anyget"


def default_cache_dir() -> Path:
    return anyget_home() / CACHE_DIR
