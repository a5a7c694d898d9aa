"""CLI commands — get, cache dir, cache get."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import click

from anyget.cli import cli
from anyget.cli.ui import spinner
from anyget.core.config import Settings
from anyget.core.context import Context
from anyget.core.errors import GetterError
from anyget.core.models import ClientMode
from anyget.getters import FileGetter

_MODES = {"any": ClientMode.ANY, "dir": ClientMode.DIR, "file": ClientMode.FILE}


def _settings(disable_symlinks: bool, timeout: float | None) -> Settings:
    settings = Settings.from_env()
    if disable_symlinks:
        settings = replace(settings, disable_symlinks=True)
    if timeout is not None:
        settings = replace(settings, timeout=timeout)
    return settings


# ── get ─────────────────────────────────────────────────────────────


@cli.command()
@click.argument("source")
@click.argument("dest", type=click.Path(file_okay=True, dir_okay=True))
@click.option(
    "--mode", type=click.Choice(sorted(_MODES)), default="any", show_default=True,
    help="Fetch a directory, a single file, or let the getter decide.",
)
@click.option("--copy", is_flag=True, help="Copy local files instead of symlinking them.")
@click.option("--disable-symlinks", is_flag=True, help="Never create symlinks; copy instead.")
@click.option("--timeout", type=float, default=None, help="Abort after this many seconds.")
def get(source: str, dest: str, mode: str, copy: bool, disable_symlinks: bool, timeout: float | None) -> None:
    """Fetch SOURCE into DEST.

    SOURCE can be:

    \b
      ./local/path                      Local file or directory
      github.com/owner/repo             GitHub shorthand (git)
      git@host:owner/repo.git           SSH shorthand (git)
      https://example.com/file.txt      HTTP(S) URL
      git::https://host/repo.git?ref=v1 Forced getter
    """
    from anyget.services.client import Client

    settings = _settings(disable_symlinks, timeout)
    try:
        with spinner() as status, Client(settings=settings, on_progress=status) as client:
            if copy:
                client.getters["file"] = FileGetter(copy=True)
            client.get(source, dest, mode=_MODES[mode], ctx=Context())
    except (GetterError, OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"✔ Fetched {source}")
    click.echo(f"  → {Path(dest)}")


# ── cache ───────────────────────────────────────────────────────────


@cli.group()
@click.option(
    "--root", default=None, type=click.Path(file_okay=False),
    help="Cache root (defaults to $ANYGET_CACHE_DIR or ~/.anyget/cache).",
)
@click.pass_context
def cache(ctx: click.Context, root: str | None) -> None:
    """Inspect and fill the keyed fetch cache."""
    ctx.obj = {"root": root}


@cache.command("dir")
@click.argument("key")
@click.pass_context
def cache_dir(ctx: click.Context, key: str) -> None:
    """Show where KEY is cached and whether it has been fetched."""
    from anyget.services.storage import FolderStorage

    try:
        with FolderStorage(ctx.obj["root"]) as storage:
            path, present = storage.dir(key)
    except GetterError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(str(path))
    if not present:
        click.echo("  (not fetched)")


@cache.command("get")
@click.argument("key")
@click.argument("source")
@click.option("--update", is_flag=True, help="Re-fetch even when KEY is already cached.")
@click.pass_context
def cache_get(ctx: click.Context, key: str, source: str, update: bool) -> None:
    """Fetch SOURCE into the cache under KEY."""
    from anyget.services.client import Client
    from anyget.services.storage import FolderStorage

    try:
        with spinner() as status, Client(on_progress=status) as client:
            storage = FolderStorage(ctx.obj["root"], client=client)
            storage.get(key, source, update)
            path, _ = storage.dir(key)
    except (GetterError, OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(f"✔ Cached {key}")
    click.echo(f"  → {path}")
