"""Terminal UI utilities — spinner, progress."""

from __future__ import annotations

import contextlib
import itertools
import sys
import threading


@contextlib.contextmanager
def spinner():
    """Yield a callable that reports progress text.

    On a terminal the text drives an inline spinner; otherwise each message
    is written as its own line so logs stay readable.
    """
    if not sys.stderr.isatty():
        def _line(msg: str) -> None:
            sys.stderr.write(f"{msg}\n")
            sys.stderr.flush()

        yield _line
        return

    frames = itertools.cycle(["⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏"])
    message: str = ""
    lock = threading.Lock()
    done = threading.Event()

    def _update(msg: str) -> None:
        nonlocal message
        with lock:
            message = msg

    def _draw() -> None:
        while not done.is_set():
            with lock:
                text = message
            if text:
                sys.stderr.write(f"\r{next(frames)} {text}\033[K")
                sys.stderr.flush()
            done.wait(0.08)
        sys.stderr.write("\r\033[K")
        sys.stderr.flush()

    t = threading.Thread(target=_draw, daemon=True)
    t.start()
    try:
        yield _update
    finally:
        done.set()
        t.join()
