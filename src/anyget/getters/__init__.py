"""Getter registry — which getter serves which scheme.

  file::  /abs/path  ./rel/path  file:///abs/path   → getters.file
  git::   github.com/owner/repo  git@host:repo.git  → getters.git
  http:// https://                                  → getters.http

Each Client owns its own mapping, built by :func:`default_getters`, so
clients with different registries can coexist. Replace entries before
fetching, never while a fetch is running.
"""

from __future__ import annotations

from anyget.getters.base import Getter
from anyget.getters.file import FileGetter
from anyget.getters.git import GitGetter
from anyget.getters.http import HttpGetter


def default_getters() -> dict[str, Getter]:
    """Return a fresh scheme → getter mapping with the built-in getters."""
    http = HttpGetter()
    return {
        "file": FileGetter(),
        "git": GitGetter(),
        "http": http,
        "https": http,
    }


__all__ = ["Getter", "FileGetter", "GitGetter", "HttpGetter", "default_getters"]
