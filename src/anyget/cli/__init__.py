"""CLI entry point — Click command group."""

from __future__ import annotations

import logging

import click

from anyget import __version__
from anyget.core.env import load_user_env

load_user_env()


@click.group()
@click.version_option(__version__, prog_name="anyget")
@click.option("-v", "--verbose", is_flag=True, help="Log dispatch and subprocess details.")
def cli(verbose: bool) -> None:
    """anyget — fetch a file or directory from anywhere.

    \b
      anyget get ./local/dir ./out
      anyget get git::https://example.com/repo.git?ref=v1 ./out
      anyget cache get my-module github.com/owner/repo
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# Register all sub-commands on import
from anyget.cli import commands as _commands  # noqa: F401, E402
