"""Starting the sqlite3 shell with its input and merged output piped."""

import asyncio
import logging

from sqlshell.errors import SpawnError
from sqlshell.models.options import ShellOptions

logger = logging.getLogger(__name__)


async def spawn_shell(target: str, options: ShellOptions) -> asyncio.subprocess.Process:
    """Start the shell on ``target`` with stdout and stderr on one pipe.

    Merging the two streams keeps error text in program order with the
    rows and markers, so an error always arrives before its statement's
    marker.
    """
    argv = options.command(target)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as exc:
        raise SpawnError(f"could not start {argv[0]!r}: {exc}") from exc
    logger.info("Started shell pid %s on %s", process.pid, target)
    return process


def terminate(process: asyncio.subprocess.Process) -> None:
    """Ask a still-running shell to exit."""
    if process.returncode is not None:
        return
    try:
        process.terminate()
    except ProcessLookupError:
        pass
