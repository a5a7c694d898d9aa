"""Source string handling — forced schemes, detection and URL parsing.

Source strings take the form ``[<scheme>::]<locator>``:

  git::https://example.com/repo.git   → forced getter "git"
  ./vendor/module                     → file:///abs/vendor/module  (detected)
  github.com/owner/repo               → git::https://github.com/owner/repo.git
  git@github.com:owner/repo.git       → git::ssh://git@github.com/owner/repo.git
  https://example.com/file.tgz        → used as-is
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from urllib.parse import unquote, urlsplit

from anyget.core.errors import SourceInvalid
from anyget.core.models import SourceDescriptor, SourceURL

_FORCED_RE = re.compile(r"([A-Za-z0-9]+)::(.+)")
_URL_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_SCP_RE = re.compile(r"^([A-Za-z0-9_.-]+)@([A-Za-z0-9_.-]+):(?!//)(.+)$")
_GITHUB_RE = re.compile(r"^github\.com/([^/?]+)/([^/?]+?)(?:\.git)?(/[^?]*)?(\?.*)?$")


def parse_forced(src: str) -> tuple[str, str]:
    """Split ``scheme::locator`` into (scheme, locator).

    Returns ("", src) when no forced scheme is present. Only the first
    ``::`` separates; the rest belongs to the locator.
    """
    m = _FORCED_RE.fullmatch(src)
    if m:
        return m.group(1), m.group(2)
    return "", src


def describe(src: str) -> SourceDescriptor:
    forced, locator = parse_forced(src)
    return SourceDescriptor(forced=forced, locator=locator)


def parse_url(locator: str) -> SourceURL:
    """Parse a locator into a SourceURL; never touches the network or disk."""
    parts = urlsplit(locator)
    path = unquote(parts.path)
    return SourceURL(
        scheme=parts.scheme.lower(),
        netloc=parts.netloc,
        path=path,
        raw_path=parts.path if parts.path != path else "",
        query=parts.query,
        fragment=parts.fragment,
    )


# ── Detectors ───────────────────────────────────────────────────────

Detector = Callable[[str, Path], "str | None"]


def _detect_github(src: str, pwd: Path) -> str | None:
    m = _GITHUB_RE.match(src)
    if not m:
        return None
    owner, repo, subpath, query = m.groups()
    if subpath and subpath.strip("/"):
        raise SourceInvalid(src, "GitHub subdirectories are not supported; fetch the repository")
    return f"git::https://github.com/{owner}/{repo}.git{query or ''}"


def _detect_scp(src: str, pwd: Path) -> str | None:
    m = _SCP_RE.match(src)
    if not m:
        return None
    user, host, path = m.groups()
    return f"git::ssh://{user}@{host}/{path.lstrip('/')}"


def _detect_file(src: str, pwd: Path) -> str | None:
    path = Path(src).expanduser()
    if not path.is_absolute():
        path = pwd / path
    return path.as_uri()


DETECTORS: list[Detector] = [_detect_github, _detect_scp, _detect_file]


def detect(src: str, pwd: Path, detectors: list[Detector] | None = None) -> str:
    """Turn shorthand into a fully-qualified source string.

    Strings that are forced or already carry a ``scheme://`` are returned
    unchanged. The file detector is last and accepts any remaining string.
    """
    forced, _ = parse_forced(src)
    if forced or _URL_SCHEME_RE.match(src):
        return src

    for detector in detectors if detectors is not None else DETECTORS:
        result = detector(src, pwd)
        if result is not None:
            return result

    raise SourceInvalid(src, "invalid source string")
