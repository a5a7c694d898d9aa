"""Fetch repositories with the ``git`` binary.

Query parameters on the source select what to check out:

  git::https://example.com/repo.git?ref=v1.2.0
  git::ssh://git@example.com/repo.git?ref=main&depth=1
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import replace
from pathlib import Path
from urllib.parse import parse_qsl, urlencode

from anyget.core.context import Context
from anyget.core.errors import DestinationConflict, SourceInvalid
from anyget.core.fsutil import copy_file, ensure_parent, remove_any
from anyget.core.models import ClientMode, SourceURL
from anyget.core.process import run_captured
from anyget.getters.base import Getter

logger = logging.getLogger(__name__)

_OPTIONS = ("ref", "depth")


def parse_options(url: SourceURL) -> tuple[str, str, int]:
    """Split *url* into (remote, ref, depth); depth 0 means full history."""
    ref = ""
    depth = 0
    rest: list[tuple[str, str]] = []
    for key, value in parse_qsl(url.query, keep_blank_values=True):
        if key == "ref":
            ref = value
        elif key == "depth":
            try:
                depth = int(value)
            except ValueError as exc:
                raise SourceInvalid(url.geturl(), f"depth must be an integer, got {value!r}") from exc
        else:
            rest.append((key, value))

    remote = replace(url, query=urlencode(rest), fragment="").geturl()
    return remote, ref, depth


class GitGetter(Getter):
    """Clones on first fetch, fetches and fast-forwards afterwards."""

    def client_mode(self, ctx: Context, url: SourceURL) -> ClientMode:
        self.require_owner()
        return ClientMode.DIR

    def get(self, ctx: Context, dst: str, url: SourceURL) -> None:
        owner = self.owner
        remote, ref, depth = parse_options(url)
        dest = Path(dst)

        if os.path.lexists(dest):
            if not (dest / ".git").exists():
                raise DestinationConflict(dst, "destination exists and is not a git work tree")
            owner.emit(f"Updating {dst}…")
            self._update(ctx, dest, ref, depth)
            return

        owner.emit(f"Cloning {remote}…")
        ensure_parent(dest, owner.settings.mode())
        self._clone(ctx, dest, remote, ref, depth)

    def _clone(self, ctx: Context, dest: Path, remote: str, ref: str, depth: int) -> None:
        args = ["git", "clone"]
        if depth > 0:
            args += ["--depth", str(depth)]
            if ref:
                args += ["--branch", ref]
        args += [remote, str(dest)]
        run_captured(args, ctx=ctx)

        if ref and depth <= 0:
            try:
                run_captured(["git", "checkout", ref], ctx=ctx, cwd=dest)
            except Exception:
                # the clone is ours; a half-checked-out tree must not look fetched
                shutil.rmtree(dest, ignore_errors=True)
                raise

    def _update(self, ctx: Context, dest: Path, ref: str, depth: int) -> None:
        fetch = ["git", "fetch", "--tags"]
        if depth > 0:
            fetch += ["--depth", str(depth)]
        run_captured(fetch, ctx=ctx, cwd=dest)

        if ref:
            run_captured(["git", "checkout", ref], ctx=ctx, cwd=dest)
            run_captured(["git", "pull", "--ff-only", "origin", ref], ctx=ctx, cwd=dest)
        else:
            run_captured(["git", "pull", "--ff-only"], ctx=ctx, cwd=dest)

    def get_file(self, ctx: Context, dst: str, url: SourceURL) -> None:
        """Clone the parent path into a temp dir and copy the named file out."""
        settings = self.owner.settings
        parent, _, filename = url.path.rpartition("/")
        if not filename:
            raise SourceInvalid(url.geturl(), "source must name a file inside the repository")
        raw_parent = url.raw_path.rpartition("/")[0] if url.raw_path else ""
        repo_url = replace(url, path=parent, raw_path=raw_parent)

        with tempfile.TemporaryDirectory(prefix="anyget-git-") as tmp:
            checkout = Path(tmp) / "repo"
            self.get(ctx, str(checkout), repo_url)

            src = checkout / filename
            if not src.is_file():
                raise SourceInvalid(str(src), "file not found in repository")

            remove_any(dst)
            ensure_parent(dst, settings.mode())
            copy_file(
                ctx,
                dst,
                src,
                disable_symlinks=settings.disable_symlinks,
                mode=settings.file_mode(src.stat().st_mode),
            )
