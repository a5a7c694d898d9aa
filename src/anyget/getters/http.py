"""HTTP(S) getter built on httpx.

Single files are streamed to a temporary sibling and renamed into place.
Directory fetches ask the server where the real source lives: the response
must carry an ``X-Anyget-Get`` header naming another source string, which
is then fetched through the owning client.
"""

from __future__ import annotations

import logging
import os
import tempfile
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from pathlib import Path
from urllib.parse import urljoin

import httpx

from anyget.core.context import Context
from anyget.core.errors import GetterError
from anyget.core.fsutil import copy_reader, ensure_parent, remove_any
from anyget.core.models import ClientMode, SourceURL
from anyget.core.source import parse_forced
from anyget.getters.base import Getter

logger = logging.getLogger(__name__)

GET_HEADER = "X-Anyget-Get"
MAX_REDIRECTS = 10
# Timeout for each request when the context has no deadline.
REQUEST_TIMEOUT = 30.0


def _timeout(ctx: Context) -> float:
    remaining = ctx.remaining()
    if remaining is None:
        return REQUEST_TIMEOUT
    return min(REQUEST_TIMEOUT, remaining)


class HttpGetter(Getter):
    """Getter for ``http`` and ``https`` URLs."""

    def __init__(self, header: str = GET_HEADER) -> None:
        self.header = header

    def client_mode(self, ctx: Context, url: SourceURL) -> ClientMode:
        self.require_owner()
        if url.path.endswith("/"):
            return ClientMode.DIR
        return ClientMode.FILE

    def get(self, ctx: Context, dst: str, url: SourceURL) -> None:
        owner = self.owner
        target = url.geturl()
        ctx.check()
        try:
            resp = owner.http_client.get(target, timeout=_timeout(ctx))
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise GetterError(f"error fetching {target}: {exc}") from exc

        source = resp.headers.get(self.header, "").strip()
        if not source:
            raise GetterError(f"no source URL was returned by {target} (missing {self.header} header)")

        forced, locator = parse_forced(source)
        if not forced and "://" not in locator:
            source = urljoin(target, locator)

        if ctx.redirects >= MAX_REDIRECTS:
            raise GetterError(f"too many {self.header} redirects (last {target} -> {source})")
        hop = Context(parent=ctx)
        hop.redirects = ctx.redirects + 1

        logger.debug("%s redirected directory fetch to %s", target, source)
        owner.get(source, dst, mode=ClientMode.DIR, ctx=hop)

    def get_file(self, ctx: Context, dst: str, url: SourceURL) -> None:
        owner = self.owner
        settings = owner.settings
        target = url.geturl()
        ctx.check()

        if os.path.isfile(dst) and self._is_current(ctx, dst, target):
            logger.debug("%s is current with %s, skipping download", dst, target)
            owner.emit(f"Up to date: {dst}")
            return

        ensure_parent(dst, settings.mode())
        fd, tmp = tempfile.mkstemp(dir=Path(dst).parent, prefix=f".{Path(dst).name}.", suffix=".part")
        os.close(fd)
        try:
            owner.emit(f"Downloading {target}…")
            with owner.http_client.stream("GET", target, timeout=_timeout(ctx)) as resp:
                resp.raise_for_status()
                size = copy_reader(ctx, tmp, resp.iter_bytes(), mode=settings.file_mode(0o666))
            os.replace(tmp, dst)
        except httpx.HTTPError as exc:
            remove_any(tmp)
            raise GetterError(f"error downloading {target}: {exc}") from exc
        except BaseException:
            remove_any(tmp)
            raise

        owner.emit(f"Downloaded {size} bytes to {dst}")

    def _is_current(self, ctx: Context, dst: str, target: str) -> bool:
        """True when *dst* matches the remote size and is not older than it."""
        try:
            resp = self.owner.http_client.head(target, timeout=_timeout(ctx))
        except httpx.HTTPError:
            return False
        if resp.status_code >= 400:
            return False

        length = resp.headers.get("content-length")
        modified = resp.headers.get("last-modified")
        if length is None or modified is None:
            return False

        info = os.stat(dst)
        try:
            if int(length) != info.st_size:
                return False
            remote_mtime = parsedate_to_datetime(modified)
        except (TypeError, ValueError):
            return False
        if remote_mtime.tzinfo is None:
            remote_mtime = remote_mtime.replace(tzinfo=timezone.utc)
        return datetime.fromtimestamp(info.st_mtime, timezone.utc) >= remote_mtime
