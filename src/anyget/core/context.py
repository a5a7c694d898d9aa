"""Cancellation and deadline handling for a single fetch."""

from __future__ import annotations

import threading
import time

from anyget.core.errors import FetchCancelled


class Context:
    """Carries a cancellation flag and an optional deadline through a fetch.

    Every blocking step (subprocess, network read, file copy) calls
    :meth:`check` or waits with :meth:`remaining` so that a cancelled or
    expired context aborts promptly.
    """

    def __init__(self, timeout: float | None = None, *, parent: Context | None = None) -> None:
        self._event = threading.Event()
        self._reason = ""
        self.parent = parent
        # X-Anyget-Get hops taken so far on the way to this fetch.
        self.redirects = parent.redirects if parent is not None else 0
        self.deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            if self.deadline is None or parent.deadline < self.deadline:
                self.deadline = parent.deadline

    def cancel(self, reason: str = "context cancelled") -> None:
        self._reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.parent is not None and self.parent.cancelled:
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def remaining(self) -> float | None:
        """Seconds until the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def check(self) -> None:
        """Raise FetchCancelled if the context is done."""
        if not self.cancelled:
            return
        if self._event.is_set():
            raise FetchCancelled(self._reason)
        if self.parent is not None and self.parent.cancelled:
            self.parent.check()
        raise FetchCancelled("context deadline exceeded")
