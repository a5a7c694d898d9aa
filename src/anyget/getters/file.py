"""Local filesystem getter — links or copies paths into place.

Directories are always symlinked. An existing directory destination is
only ever replaced when it is itself a symlink, which is the only form this
getter creates; anything else is a DestinationConflict and is left alone.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from anyget.core.context import Context
from anyget.core.errors import DestinationConflict, GetterError, SourceInvalid
from anyget.core.fsutil import copy_file, ensure_parent
from anyget.core.models import ClientMode, SourceURL
from anyget.getters.base import Getter

logger = logging.getLogger(__name__)


class FileGetter(Getter):
    """Getter for ``file`` URLs and plain local paths.

    With ``copy=False`` single files are symlinked as well; with
    ``copy=True`` they are copied and their mode bits kept, minus the
    owner's umask.
    """

    def __init__(self, copy: bool = False) -> None:
        self.copy = copy

    def _source_path(self, url: SourceURL) -> Path:
        path = Path(url.path)
        if not path.is_absolute():
            path = self.owner.settings.working_dir() / path
        return path

    def _stat_source(self, path: Path) -> os.stat_result:
        try:
            return os.stat(path)
        except OSError as exc:
            raise SourceInvalid(str(path), exc.strerror or str(exc)) from exc

    def client_mode(self, ctx: Context, url: SourceURL) -> ClientMode:
        path = self._source_path(url)
        if stat.S_ISDIR(self._stat_source(path).st_mode):
            return ClientMode.DIR
        return ClientMode.FILE

    def get(self, ctx: Context, dst: str, url: SourceURL) -> None:
        settings = self.owner.settings
        ctx.check()

        src = self._source_path(url)
        if not stat.S_ISDIR(self._stat_source(src).st_mode):
            raise SourceInvalid(str(src), "source path must be a directory")

        if settings.disable_symlinks:
            raise GetterError(f"symlinks are disabled; cannot link directory {src} to {dst}")

        try:
            existing = os.lstat(dst)
        except FileNotFoundError:
            existing = None

        if existing is not None:
            if not stat.S_ISLNK(existing.st_mode):
                raise DestinationConflict(dst, "destination exists and is not a symlink")
            logger.debug("replacing symlink %s -> %s", dst, os.readlink(dst))
            os.remove(dst)

        ensure_parent(dst, settings.mode())
        os.symlink(src, dst)
        self.owner.emit(f"Linked {dst} -> {src}")

    def get_file(self, ctx: Context, dst: str, url: SourceURL) -> None:
        settings = self.owner.settings
        ctx.check()

        src = self._source_path(url)
        info = self._stat_source(src)
        if stat.S_ISDIR(info.st_mode):
            raise SourceInvalid(str(src), "source path must be a file")

        if os.path.lexists(dst):
            if os.path.isdir(dst) and not os.path.islink(dst):
                os.rmdir(dst)
            else:
                os.remove(dst)

        ensure_parent(dst, settings.mode())

        if not self.copy and not settings.disable_symlinks:
            os.symlink(src, dst)
            self.owner.emit(f"Linked {dst} -> {src}")
            return

        size = copy_file(
            ctx,
            dst,
            src,
            disable_symlinks=settings.disable_symlinks,
            mode=settings.file_mode(info.st_mode),
        )
        self.owner.emit(f"Copied {size} bytes to {dst}")
