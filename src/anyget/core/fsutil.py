"""Filesystem helpers shared by getters."""

from __future__ import annotations

import os
import stat
import tempfile
from pathlib import Path

from anyget.core.context import Context
from anyget.core.errors import GetterError

COPY_CHUNK = 1024 * 1024


def ensure_parent(path: str | Path, mode: int) -> None:
    """Create the parent directory chain of *path*."""
    Path(path).parent.mkdir(mode=mode, parents=True, exist_ok=True)


def remove_any(path: str | Path) -> None:
    """Remove a file or symlink at *path* if one exists; never recurses."""
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def copy_file(
    ctx: Context,
    dst: str | Path,
    src: str | Path,
    *,
    disable_symlinks: bool,
    mode: int,
) -> int:
    """Copy *src* to *dst* in chunks, checking *ctx* between chunks.

    The bytes go to a temporary sibling of *dst* that is renamed into place
    only once complete, so a cancelled or failed copy leaves no partial
    file behind. The destination gets permission bits *mode*. Returns the
    number of bytes written.
    """
    if disable_symlinks and os.path.islink(src):
        raise GetterError(f"copying of symlinks has been disabled: {src}")

    dst = Path(dst)
    fd, tmp = tempfile.mkstemp(dir=dst.parent, prefix=f".{dst.name}.", suffix=".part")
    os.close(fd)
    try:
        with open(src, "rb") as fin:
            written = copy_reader(ctx, tmp, iter(lambda: fin.read(COPY_CHUNK), b""), mode=mode)
        os.replace(tmp, dst)
    except BaseException:
        remove_any(tmp)
        raise
    return written


def copy_reader(ctx: Context, dst: str | Path, chunks, *, mode: int) -> int:
    """Write an iterable of byte chunks to *dst*, checking *ctx* per chunk."""
    written = 0
    with open(dst, "wb") as fout:
        for chunk in chunks:
            ctx.check()
            fout.write(chunk)
            written += len(chunk)
    os.chmod(dst, stat.S_IMODE(mode))
    return written
