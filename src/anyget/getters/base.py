"""The contract every getter implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from anyget.core.context import Context
from anyget.core.errors import UnboundGetterError
from anyget.core.models import ClientMode, SourceURL

if TYPE_CHECKING:
    from anyget.services.client import Client


class Getter(ABC):
    """Fetches directories or single files for one URL scheme.

    A getter keeps no per-fetch state. Shared settings, the HTTP client and
    the progress callback come from the owning :class:`Client`, bound with
    :meth:`bind_owner` before any other method is called.
    """

    _owner: Client | None = None

    def bind_owner(self, owner: Client) -> None:
        self._owner = owner

    @property
    def owner(self) -> Client:
        if self._owner is None:
            raise UnboundGetterError(f"{type(self).__name__} used before bind_owner()")
        return self._owner

    def require_owner(self) -> None:
        """Raise UnboundGetterError unless :meth:`bind_owner` has been called."""
        if self._owner is None:
            raise UnboundGetterError(f"{type(self).__name__} used before bind_owner()")

    @abstractmethod
    def client_mode(self, ctx: Context, url: SourceURL) -> ClientMode:
        """Decide DIR or FILE for *url* without doing the transfer."""

    @abstractmethod
    def get(self, ctx: Context, dst: str, url: SourceURL) -> None:
        """Fetch a directory tree into *dst*.

        *dst* may exist from an earlier fetch and is then updated in place.
        Content the getter does not recognise as its own must never be
        replaced; raise DestinationConflict instead.
        """

    @abstractmethod
    def get_file(self, ctx: Context, dst: str, url: SourceURL) -> None:
        """Fetch a single file to *dst*, skipping the transfer if it is already current."""
