"""Run external commands with combined, captured output.

Every getter that shells out goes through :func:`run_captured` so failures
read the same regardless of which tool failed.
"""

from __future__ import annotations

import logging
import shutil
import signal
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from anyget.core.context import Context
from anyget.core.errors import SubprocessFailure

logger = logging.getLogger(__name__)

# How often a running command re-checks its context.
POLL_INTERVAL = 0.1


def exit_description(returncode: int) -> str:
    if returncode < 0:
        try:
            return f"signal: {signal.Signals(-returncode).name}"
        except ValueError:
            return f"signal: {-returncode}"
    return f"exit status {returncode}"


def run_captured(
    cmd: Sequence[str],
    *,
    ctx: Context | None = None,
    cwd: str | Path | None = None,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run *cmd*, merging stdout and stderr into one buffer.

    Returns normally on exit status 0 and discards the output. Raises
    SubprocessFailure naming the executable, its exit status and the
    captured output otherwise; FetchCancelled if *ctx* ends first.
    """
    path = shutil.which(cmd[0]) or cmd[0]
    if ctx is not None:
        ctx.check()

    logger.debug("running %s (cwd=%s)", " ".join(cmd), cwd or ".")
    try:
        proc = subprocess.Popen(
            [path, *cmd[1:]],
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except OSError as exc:
        raise SubprocessFailure(
            f"error running {path}: {exc}",
            path=path,
            returncode=None,
            output="",
        ) from exc

    raw = _communicate(proc, ctx)
    output = raw.decode("utf-8", errors="replace")
    if proc.returncode == 0:
        return

    raise SubprocessFailure(
        f"{path} exited with {exit_description(proc.returncode)}: {output}",
        path=path,
        returncode=proc.returncode,
        output=output,
    )


def _communicate(proc: subprocess.Popen, ctx: Context | None) -> bytes:
    if ctx is None:
        out, _ = proc.communicate()
        return out or b""

    while True:
        try:
            out, _ = proc.communicate(timeout=POLL_INTERVAL)
            return out or b""
        except subprocess.TimeoutExpired:
            if not ctx.cancelled:
                continue
            proc.kill()
            proc.communicate()
            logger.debug("killed pid %s after cancellation", proc.pid)
            ctx.check()
