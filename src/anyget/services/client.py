"""Client — turns a source string and a destination into a finished fetch.

Resolution (forced scheme, detection, URL parsing, getter lookup) has no
side effects; the filesystem, network and subprocesses are only touched
once the chosen getter runs.
"""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Callable
from pathlib import Path

import httpx

from anyget.core.config import Settings
from anyget.core.context import Context
from anyget.core.errors import BackendNotFound, SourceInvalid
from anyget.core.models import ClientMode, FetchRequest, SourceURL
from anyget.core.source import Detector, describe, detect, parse_url
from anyget.getters import Getter, default_getters

logger = logging.getLogger(__name__)

# Default timeout for the shared HTTP client.
HTTP_TIMEOUT = 30.0


class Client:
    """Owns the getter registry and the settings shared by its getters.

    *getters* replaces the built-in scheme mapping; ``client.getters`` may
    also be edited entry by entry before fetching.
    """

    def __init__(
        self,
        *,
        getters: dict[str, Getter] | None = None,
        settings: Settings | None = None,
        http_client: httpx.Client | None = None,
        on_progress: Callable[[str], None] | None = None,
        detectors: list[Detector] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else Settings.from_env()
        self.getters = getters if getters is not None else default_getters()
        self.detectors = detectors
        self._http_client = http_client
        self._owns_http_client = http_client is None
        self._emit = on_progress or (lambda _msg: None)

    # ── shared state for getters ────────────────────────────────────

    def emit(self, message: str) -> None:
        self._emit(message)

    @property
    def http_client(self) -> httpx.Client:
        if self._http_client is None:
            self._http_client = httpx.Client(follow_redirects=True, timeout=HTTP_TIMEOUT)
        return self._http_client

    def close(self) -> None:
        if self._owns_http_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── resolution ──────────────────────────────────────────────────

    def resolve(self, src: str) -> tuple[Getter, SourceURL]:
        """Pick the getter for *src* and parse its locator."""
        desc = describe(src)
        if not desc.forced:
            desc = describe(detect(src, self.settings.working_dir(), self.detectors))

        url = parse_url(desc.locator)
        scheme = (desc.forced or url.scheme).lower()
        getter = self.getters.get(scheme)
        if getter is None:
            raise BackendNotFound(scheme)

        logger.debug("source %r → getter %r, url %s", src, scheme, url.geturl())
        return getter, url

    def _context(self, ctx: Context | None) -> Context:
        if ctx is None:
            return Context(self.settings.timeout)
        if self.settings.timeout is not None:
            return Context(self.settings.timeout, parent=ctx)
        return ctx

    # ── fetch ───────────────────────────────────────────────────────

    def get(
        self,
        src: str,
        dst: str | Path,
        *,
        mode: ClientMode = ClientMode.ANY,
        ctx: Context | None = None,
    ) -> None:
        """Fetch *src* into *dst*.

        With ``ClientMode.ANY`` the getter decides; a single file is then
        written inside *dst* under the basename of the URL path.
        """
        request = FetchRequest(source=src, dest=os.fspath(dst), mode=mode)
        if request.mode is ClientMode.UNSET:
            raise ValueError("client mode must be set")

        getter, url = self.resolve(request.source)
        getter.bind_owner(self)
        ctx = self._context(ctx)

        mode = request.mode
        dest = request.dest
        if mode is ClientMode.ANY:
            mode = getter.client_mode(ctx, url)
            logger.debug("%s resolved to %s", url.geturl(), mode.name)
            if mode is ClientMode.FILE:
                filename = posixpath.basename(url.path.rstrip("/"))
                if not filename:
                    raise SourceInvalid(url.geturl(), "cannot determine a file name for this source")
                dest = os.path.join(dest, filename)

        ctx.check()
        if mode is ClientMode.DIR:
            getter.get(ctx, dest, url)
        else:
            getter.get_file(ctx, dest, url)


def get(src: str, dst: str | Path, *, ctx: Context | None = None, **options) -> None:
    """Fetch the directory at *src* into *dst*, updating it if it exists."""
    with Client(**options) as client:
        client.get(src, dst, mode=ClientMode.DIR, ctx=ctx)


def get_any(src: str, dst: str | Path, *, ctx: Context | None = None, **options) -> None:
    """Fetch *src* into the directory *dst*, letting the getter pick the mode."""
    with Client(**options) as client:
        client.get(src, dst, mode=ClientMode.ANY, ctx=ctx)


def get_file(src: str, dst: str | Path, *, ctx: Context | None = None, **options) -> None:
    """Fetch the single file at *src* to the path *dst*."""
    with Client(**options) as client:
        client.get(src, dst, mode=ClientMode.FILE, ctx=ctx)
