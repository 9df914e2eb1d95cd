"""Task that writes statements and their markers to the shell."""

from __future__ import annotations

import asyncio
import logging

from sqlshell.ipc.request import Request

logger = logging.getLogger(__name__)


class Writer:
    """Drains queued requests into the shell's stdin."""

    def __init__(
        self,
        stdin: asyncio.StreamWriter,
        queue: asyncio.Queue[Request | None],
        lifetime: asyncio.Event,
    ) -> None:
        """Initialize with the shell's stdin, the request queue and the connection lifetime."""
        self._stdin = stdin
        self._queue = queue
        self._lifetime = lifetime
        self.error: BaseException | None = None

    async def run(self) -> None:
        """Write until the queue is closed or a write fails."""
        try:
            while (request := await self._queue.get()) is not None:
                try:
                    self._stdin.write(request.wire_bytes())
                    await self._stdin.drain()
                except OSError as exc:
                    logger.warning("Write to shell failed: %s", exc)
                    self.error = exc
                    self._lifetime.set()
                    break
        finally:
            self._close_stdin()

    def _close_stdin(self) -> None:
        # end of input makes the shell flush and exit
        try:
            self._stdin.close()
        except OSError:
            logger.debug("Shell stdin already closed")
