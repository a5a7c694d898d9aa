import time

import pytest

from anyget.core.context import Context
from anyget.core.errors import FetchCancelled


def test_background_context_never_expires():
    ctx = Context()
    assert not ctx.cancelled
    assert ctx.remaining() is None
    ctx.check()


def test_cancel_with_reason():
    ctx = Context()
    ctx.cancel("stopped by user")
    with pytest.raises(FetchCancelled, match="stopped by user"):
        ctx.check()


def test_deadline_expires():
    ctx = Context(timeout=0.01)
    time.sleep(0.05)
    assert ctx.remaining() == 0.0
    with pytest.raises(FetchCancelled, match="deadline exceeded"):
        ctx.check()


def test_child_inherits_parent_cancellation():
    parent = Context()
    child = Context(timeout=60, parent=parent)
    parent.cancel("parent gone")
    with pytest.raises(FetchCancelled, match="parent gone"):
        child.check()


def test_child_keeps_earlier_parent_deadline():
    parent = Context(timeout=1)
    child = Context(timeout=60, parent=parent)
    assert child.remaining() <= 1
