import time
from pathlib import Path

import pytest
from click.testing import CliRunner

from anyget.core.config import Settings
from anyget.core.models import ClientMode
from anyget.getters import Getter
from anyget.services.client import Client


class RecordingGetter(Getter):
    """Getter that records calls and materialises trivial content."""

    def __init__(self, mode=ClientMode.DIR, delay=0.0):
        self.mode = mode
        self.delay = delay
        self.calls = []

    def client_mode(self, ctx, url):
        self.require_owner()
        return self.mode

    def get(self, ctx, dst, url):
        self.require_owner()
        if self.delay:
            time.sleep(self.delay)
        self.calls.append(("get", dst, url))
        Path(dst).mkdir(parents=True, exist_ok=True)

    def get_file(self, ctx, dst, url):
        self.require_owner()
        self.calls.append(("get_file", dst, url))
        Path(dst).parent.mkdir(parents=True, exist_ok=True)
        Path(dst).write_text("recorded")


@pytest.fixture
def runner():
    """Click CLI runner fixture."""
    return CliRunner()


@pytest.fixture
def tmp_workspace(tmp_path: Path, monkeypatch):
    """Fixture for a temporary workspace; anyget's home points inside it."""
    monkeypatch.setenv("ANYGET_HOME", str(tmp_path / ".anyget"))
    for key in ("ANYGET_UMASK", "ANYGET_DIR_MODE", "ANYGET_DISABLE_SYMLINKS", "ANYGET_TIMEOUT", "ANYGET_CACHE_DIR"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@pytest.fixture
def settings(tmp_workspace):
    return Settings(pwd=tmp_workspace, cache_dir=tmp_workspace / "cache")


@pytest.fixture
def client(settings):
    with Client(settings=settings) as c:
        yield c


@pytest.fixture
def make_getter():
    """Factory for RecordingGetter instances."""
    return RecordingGetter


@pytest.fixture
def recording_getter(make_getter):
    return make_getter()


@pytest.fixture
def source_dir(tmp_workspace):
    """A small directory tree to fetch from."""
    src = tmp_workspace / "srcdir"
    (src / "nested").mkdir(parents=True)
    (src / "main.tf").write_text("module {}\n")
    (src / "nested" / "data.txt").write_text("nested data\n")
    return src


@pytest.fixture
def source_file(tmp_workspace):
    src = tmp_workspace / "payload.txt"
    src.write_text("payload contents\n")
    return src
