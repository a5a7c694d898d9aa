"""Exception hierarchy shared by the client, getters and storage."""

from __future__ import annotations


class GetterError(Exception):
    """Base class for every failure raised by anyget."""


class BackendNotFound(GetterError):
    def __init__(self, scheme: str) -> None:
        super().__init__(f"download not supported for scheme '{scheme}'")
        self.scheme = scheme


class SourceInvalid(GetterError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"source path error: {path}: {reason}")
        self.path = path


class DestinationConflict(GetterError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"destination conflict: {path}: {reason}")
        self.path = path


class SubprocessFailure(GetterError):
    """An external command exited non-zero or could not be launched."""

    def __init__(self, message: str, *, path: str, returncode: int | None, output: str) -> None:
        super().__init__(message)
        self.path = path
        self.returncode = returncode
        self.output = output


class FetchCancelled(GetterError):
    """The fetch context was cancelled or its deadline passed."""


class StorageError(GetterError):
    """Cache-internal fault, distinct from a key that was never fetched."""


class UnboundGetterError(RuntimeError):
    """A getter was used before being bound to a client."""
