"""Task that reads the shell's output and splits it per statement."""

from __future__ import annotations

import asyncio
import logging

from sqlshell.ipc.framer import Framer
from sqlshell.ipc.request import Request

logger = logging.getLogger(__name__)


class Reader:
    """Routes output spans to the active request and rotates at each marker."""

    def __init__(
        self,
        stdout: asyncio.StreamReader,
        queue: asyncio.Queue[Request | None],
        lifetime: asyncio.Event,
        read_size: int = 4096,
    ) -> None:
        """Initialize with the merged output stream, the registration queue and lifetime."""
        self._stdout = stdout
        self._queue = queue
        self._lifetime = lifetime
        self._read_size = read_size
        self.error: BaseException | None = None

    async def run(self) -> None:
        """Read until registrations stop, the stream ends, or a read fails."""
        framer = Framer()
        request: Request | None = None
        pending = b""
        while True:
            if request is None:
                request = await self._queue.get()
                if request is None:
                    break
                framer.expect(request.marker)

            if not pending:
                try:
                    pending = await self._stdout.read(self._read_size)
                except OSError as exc:
                    logger.warning("Read from shell failed: %s", exc)
                    self.error = exc
                    self._lifetime.set()
                    break
                if not pending:
                    logger.debug("Shell output ended with a statement outstanding")
                    self._lifetime.set()
                    break

            frame = framer.feed(pending)
            pending = frame.rest
            if frame.data:
                await request.forward(frame.data)
            if frame.boundary:
                logger.debug("Statement boundary after %d pending bytes", len(pending))
                request.complete()
                request = None
