import os
import stat
from dataclasses import replace

import pytest

from anyget.core.context import Context
from anyget.core.errors import (
    DestinationConflict,
    FetchCancelled,
    GetterError,
    SourceInvalid,
    UnboundGetterError,
)
from anyget.core.models import ClientMode
from anyget.core.source import parse_url
from anyget.getters import FileGetter


def _bound(client, **kwargs):
    getter = FileGetter(**kwargs)
    getter.bind_owner(client)
    return getter


def _tree(root):
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


def test_get_links_directory(client, source_dir, tmp_workspace):
    dst = tmp_workspace / "out" / "module"
    _bound(client).get(Context(), str(dst), parse_url(source_dir.as_uri()))

    assert dst.is_symlink()
    assert os.readlink(dst) == str(source_dir)
    assert (dst / "nested" / "data.txt").read_text() == "nested data\n"


def test_get_refuses_plain_directory(client, source_dir, tmp_workspace):
    dst = tmp_workspace / "existing"
    (dst / "keep").mkdir(parents=True)
    (dst / "keep" / "notes.md").write_text("user data")
    before = _tree(dst)

    with pytest.raises(DestinationConflict, match="not a symlink"):
        _bound(client).get(Context(), str(dst), parse_url(source_dir.as_uri()))

    assert not dst.is_symlink()
    assert _tree(dst) == before


def test_get_refuses_regular_file(client, source_dir, tmp_workspace):
    dst = tmp_workspace / "existing.txt"
    dst.write_text("do not touch")

    with pytest.raises(DestinationConflict):
        _bound(client).get(Context(), str(dst), parse_url(source_dir.as_uri()))

    assert dst.read_text() == "do not touch"


def test_get_replaces_stale_symlink(client, source_dir, tmp_workspace):
    old = tmp_workspace / "old-src"
    old.mkdir()
    dst = tmp_workspace / "out"
    dst.symlink_to(old)
    old.rmdir()

    _bound(client).get(Context(), str(dst), parse_url(source_dir.as_uri()))

    assert dst.is_symlink()
    assert os.readlink(dst) == str(source_dir)


def test_get_requires_directory_source(client, source_file, tmp_workspace):
    with pytest.raises(SourceInvalid, match="must be a directory"):
        _bound(client).get(Context(), str(tmp_workspace / "out"), parse_url(source_file.as_uri()))
    assert not (tmp_workspace / "out").exists()


def test_get_missing_source(client, tmp_workspace):
    missing = tmp_workspace / "missing"
    with pytest.raises(SourceInvalid):
        _bound(client).get(Context(), str(tmp_workspace / "out"), parse_url(missing.as_uri()))


def test_get_resolves_relative_path_against_pwd(client, source_dir, tmp_workspace):
    dst = tmp_workspace / "out"
    _bound(client).get(Context(), str(dst), parse_url("srcdir"))
    assert os.readlink(dst) == str(source_dir)


def test_get_refuses_when_symlinks_disabled(client, source_dir, tmp_workspace):
    client.settings = replace(client.settings, disable_symlinks=True)
    with pytest.raises(GetterError, match="symlinks are disabled"):
        _bound(client).get(Context(), str(tmp_workspace / "out"), parse_url(source_dir.as_uri()))


def test_get_file_symlinks_by_default(client, source_file, tmp_workspace):
    dst = tmp_workspace / "deep" / "dir" / "copy.txt"
    _bound(client).get_file(Context(), str(dst), parse_url(source_file.as_uri()))

    assert dst.is_symlink()
    assert os.readlink(dst) == str(source_file)


@pytest.mark.parametrize("src_mode,umask,expected", [
    (0o775, 0o022, 0o755),
    (0o666, 0o027, 0o640),
    (0o700, 0o000, 0o700),
])
def test_get_file_copy_applies_umask(client, source_file, tmp_workspace, src_mode, umask, expected):
    client.settings = replace(client.settings, umask=umask)
    source_file.chmod(src_mode)
    dst = tmp_workspace / "out" / "copy.txt"

    _bound(client, copy=True).get_file(Context(), str(dst), parse_url(source_file.as_uri()))

    assert not dst.is_symlink()
    assert dst.read_bytes() == source_file.read_bytes()
    assert stat.S_IMODE(dst.stat().st_mode) == expected


def test_get_file_replaces_existing_destination(client, source_file, tmp_workspace):
    dst = tmp_workspace / "copy.txt"
    dst.write_text("stale")

    _bound(client, copy=True).get_file(Context(), str(dst), parse_url(source_file.as_uri()))

    assert dst.read_text() == "payload contents\n"


def test_get_file_disable_symlinks_copies(client, source_file, tmp_workspace):
    client.settings = replace(client.settings, disable_symlinks=True)
    dst = tmp_workspace / "copy.txt"

    _bound(client).get_file(Context(), str(dst), parse_url(source_file.as_uri()))

    assert not dst.is_symlink()
    assert dst.read_text() == "payload contents\n"


def test_get_file_disable_symlinks_refuses_symlinked_source(client, source_file, tmp_workspace):
    client.settings = replace(client.settings, disable_symlinks=True)
    link = tmp_workspace / "link.txt"
    link.symlink_to(source_file)

    with pytest.raises(GetterError, match="symlinks has been disabled"):
        _bound(client).get_file(Context(), str(tmp_workspace / "copy.txt"), parse_url(link.as_uri()))


def test_get_file_requires_file_source(client, source_dir, tmp_workspace):
    with pytest.raises(SourceInvalid, match="must be a file"):
        _bound(client).get_file(Context(), str(tmp_workspace / "x"), parse_url(source_dir.as_uri()))


def test_get_file_honours_cancellation(client, source_file, tmp_workspace):
    ctx = Context()
    ctx.cancel()

    with pytest.raises(FetchCancelled):
        _bound(client, copy=True).get_file(ctx, str(tmp_workspace / "x"), parse_url(source_file.as_uri()))
    assert not (tmp_workspace / "x").exists()


def test_client_mode(client, source_dir, source_file):
    getter = _bound(client)
    assert getter.client_mode(Context(), parse_url(source_dir.as_uri())) is ClientMode.DIR
    assert getter.client_mode(Context(), parse_url(source_file.as_uri())) is ClientMode.FILE


def test_unbound_getter_is_an_error(source_dir, tmp_workspace):
    with pytest.raises(UnboundGetterError):
        FileGetter().get(Context(), str(tmp_workspace / "out"), parse_url(source_dir.as_uri()))


class _CancelAfter(Context):
    """Context that cancels itself on the nth check."""

    def __init__(self, n):
        super().__init__()
        self.n = n
        self.checks = 0

    def check(self):
        self.checks += 1
        if self.checks >= self.n:
            self.cancel()
        super().check()


def test_cancelled_copy_leaves_no_partial_file(client, tmp_workspace):
    big = tmp_workspace / "big.bin"
    big.write_bytes(os.urandom(3 * 1024 * 1024))
    dst = tmp_workspace / "out" / "big.bin"
    ctx = _CancelAfter(3)

    with pytest.raises(FetchCancelled):
        _bound(client, copy=True).get_file(ctx, str(dst), parse_url(big.as_uri()))

    assert ctx.checks == 3
    assert not dst.exists()
    assert [p.name for p in dst.parent.iterdir()] == []


def test_cancelled_copy_keeps_no_stale_destination(client, source_file, tmp_workspace):
    dst = tmp_workspace / "copy.txt"
    dst.write_text("stale")

    with pytest.raises(FetchCancelled):
        _bound(client, copy=True).get_file(_CancelAfter(2), str(dst), parse_url(source_file.as_uri()))

    assert not dst.exists()
    assert not any(p.name.endswith(".part") for p in tmp_workspace.iterdir())
