"""Keyed local cache of fetched directories.

FolderStorage keeps one directory per key under its root, named by the MD5
of the key, next to a small TOML record of what was fetched:

  <root>/<md5(key)>        the fetched tree (often a symlink)
  <root>/<md5(key)>.toml   key, source, fetched_at

Only :meth:`Storage.get` writes there.
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import tomlkit
from tomlkit.exceptions import TOMLKitError

from anyget.core import paths
from anyget.core.context import Context
from anyget.core.errors import StorageError
from anyget.core.fsutil import remove_any
from anyget.core.models import ClientMode
from anyget.services.client import Client

logger = logging.getLogger(__name__)


def _now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


class Storage(ABC):
    """Looks up fetched directories and fetches or updates them by key."""

    @abstractmethod
    def dir(self, key: str) -> tuple[Path, bool]:
        """Return (path, present). Raises StorageError on a cache fault."""

    @abstractmethod
    def get(self, key: str, source: str, update: bool = False, *, ctx: Context | None = None) -> None:
        """Fetch *source* for *key*, or refresh it when *update* is set."""


class FolderStorage(Storage):
    """Storage backed by a plain directory.

    ``get`` calls for the same key are serialized within the process; a
    waiting caller re-checks presence once it holds the lock, so a second
    ``get(update=False)`` after a completed fetch does nothing. A first
    fetch that fails leaves nothing behind at the entry path.
    """

    def __init__(self, root: str | Path | None = None, *, client: Client | None = None) -> None:
        self._owns_client = client is None
        self.client = client if client is not None else Client()
        self.root = Path(root) if root is not None else self.client.settings.cache_dir
        # key -> [lock, number of callers holding or waiting on it]
        self._locks: dict[str, list] = {}
        self._locks_mutex = threading.Lock()

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self) -> FolderStorage:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _digest(self, key: str) -> str:
        return hashlib.md5(key.encode("utf-8"), usedforsecurity=False).hexdigest()

    def _path(self, key: str) -> Path:
        return self.root / self._digest(key)

    def _meta_path(self, key: str) -> Path:
        return self.root / f"{self._digest(key)}{paths.STORAGE_META_SUFFIX}"

    @contextmanager
    def _key_lock(self, key: str):
        with self._locks_mutex:
            entry = self._locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_mutex:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[key]

    def read_meta(self, key: str) -> dict:
        meta = self._meta_path(key)
        try:
            raw = tomlkit.loads(meta.read_text())
        except FileNotFoundError as exc:
            raise StorageError(f"cache entry for {key!r} has no metadata at {meta}") from exc
        except (OSError, TOMLKitError) as exc:
            raise StorageError(f"cache metadata for {key!r} is unreadable: {meta}: {exc}") from exc

        if raw.get("key") != key:
            raise StorageError(f"cache metadata at {meta} belongs to {raw.get('key')!r}, not {key!r}")
        return raw.unwrap()

    def _write_meta(self, key: str, source: str) -> None:
        doc = tomlkit.document()
        doc.add("key", key)
        doc.add("source", source)
        doc.add("fetched_at", _now_utc())
        self._meta_path(key).write_text(tomlkit.dumps(doc))

    def _discard(self, path: Path) -> None:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            remove_any(path)

    def dir(self, key: str) -> tuple[Path, bool]:
        path = self._path(key)
        if not os.path.lexists(path):
            return path, False
        self.read_meta(key)
        return path, True

    def get(self, key: str, source: str, update: bool = False, *, ctx: Context | None = None) -> None:
        with self._key_lock(key):
            path, present = self.dir(key)
            if present and not update:
                logger.debug("cache hit for %r at %s", key, path)
                return

            logger.debug("%s %r from %s into %s", "updating" if present else "fetching", key, source, path)
            self.root.mkdir(mode=self.client.settings.mode(), parents=True, exist_ok=True)
            try:
                self.client.get(source, path, mode=ClientMode.DIR, ctx=ctx)
            except BaseException:
                if not present and os.path.lexists(path):
                    logger.debug("discarding partial fetch of %r at %s", key, path)
                    self._discard(path)
                raise
            self._write_meta(key, source)
