"""Data shapes for fetch requests and parsed sources."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from urllib.parse import urlunsplit


class ClientMode(enum.Enum):
    """Whether a fetch targets a directory tree or a single file.

    ANY asks the selected getter to decide.
    """

    UNSET = 0
    ANY = 1
    DIR = 2
    FILE = 3


@dataclass(frozen=True)
class SourceDescriptor:
    """A raw source split into its optional forced scheme and the locator."""

    forced: str
    locator: str


@dataclass(frozen=True)
class SourceURL:
    """URL-like view of a locator, as handed to getters.

    ``path`` is unescaped; ``raw_path`` keeps the escaped form and is empty
    when the two are identical. ``netloc`` keeps any userinfo and port.
    """

    scheme: str
    netloc: str
    path: str
    raw_path: str = ""
    query: str = ""
    fragment: str = ""

    @property
    def host(self) -> str:
        return self.netloc.rpartition("@")[2]

    def geturl(self, *, with_query: bool = True) -> str:
        path = self.raw_path or self.path
        if not self.scheme:
            # scp-like or bare path locators have no URL form
            return f"{path}?{self.query}" if with_query and self.query else path
        return urlunsplit((
            self.scheme,
            self.netloc,
            path,
            self.query if with_query else "",
            self.fragment if with_query else "",
        ))


@dataclass
class FetchRequest:
    """One invocation of the client; never shared between fetches."""

    source: str
    dest: str
    mode: ClientMode = ClientMode.ANY
