"""Runtime environment helpers."""

from __future__ import annotations

import os
from pathlib import Path

from anyget.core import paths

_USER_ENV_LOADED = False


def load_user_env() -> None:
    """Load user-level anyget env files without overriding existing vars."""
    global _USER_ENV_LOADED
    if _USER_ENV_LOADED:
        return

    for env_file in _candidate_env_files():
        _load_env_file(env_file)

    _USER_ENV_LOADED = True


def _candidate_env_files() -> list[Path]:
    files: list[Path] = []
    env_override = os.environ.get("ANYGET_ENV_FILE", "").strip()
    if env_override:
        files.append(Path(env_override).expanduser())

    files.append(paths.anyget_home() / ".env")
    files.append(Path.home() / ".config" / "anyget" / "env")
    return files


def _load_env_file(path: Path) -> None:
    if not path.is_file():
        return

    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key or key in os.environ:
            continue

        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
            value = value[1:-1]
        os.environ[key] = value


def env_bool(key: str, default: bool) -> bool:
    v = os.environ.get(key)
    if v is None or not v.strip():
        return default
    return v.strip().lower() not in ("0", "false", "no", "off")


def env_octal(key: str, default: int) -> int:
    v = os.environ.get(key, "").strip()
    if not v:
        return default
    try:
        return int(v, 8)
    except ValueError as exc:
        raise ValueError(f"{key} must be an octal permission value, got {v!r}") from exc


def env_float(key: str) -> float | None:
    v = os.environ.get(key, "").strip()
    if not v:
        return None
    try:
        return float(v)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number of seconds, got {v!r}") from exc
