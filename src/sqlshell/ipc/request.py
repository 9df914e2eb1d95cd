"""A single statement round-trip through a connection."""

from __future__ import annotations

import asyncio

from sqlshell.errors import ConnectionUnusable, ResultsDiscarded, UnexpectedTermination
from sqlshell.ipc.framer import MARKER, marker_command
from sqlshell.ipc.signals import race


class Request:
    """Statement text going in, output spans coming back.

    Lifecycle: the control loop marks it ``accepted``; the caller takes any
    group lock and ``clear()``s it for writing; the reader forwards output
    spans and ``complete()``s it at the marker. ``cancel()`` ends it early
    from the caller's side, ``abort()`` from the connection's side and
    ``supersede()`` when a later statement needs the output stream.
    """

    def __init__(self, payload: bytes, marker: bytes = MARKER) -> None:
        """Initialize with the statement bytes and the marker ending its output."""
        self.payload = payload
        self.marker = marker
        self.output: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self.accepted = asyncio.Event()
        self.cleared = asyncio.Event()
        self.done = asyncio.Event()
        self.completed = False
        self.aborted = False
        self.superseded = False
        # set once the caller has left dispatch and reads rows on its own
        self.released = asyncio.Event()

    def wire_bytes(self) -> bytes:
        """Statement text followed by the marker command."""
        return self.payload + marker_command(self.marker)

    def clear(self) -> None:
        """Allow the control loop to write this request."""
        self.cleared.set()

    def cancel(self) -> None:
        """Stop waiting for output; the reader discards the rest."""
        self.done.set()

    def abort(self) -> None:
        """End the request because its connection is no longer usable."""
        self.aborted = True
        self.done.set()

    def supersede(self) -> None:
        """Discard unread output so the next statement can run."""
        self.superseded = True
        self.done.set()

    def complete(self) -> None:
        """Mark the statement's output as fully delivered."""
        self.completed = True
        self.done.set()

    async def forward(self, data: bytes) -> bool:
        """Hand ``data`` to the consumer; False if the request was cancelled."""
        if self.done.is_set():
            return False
        delivered, _ = await race(self.output.put(data), self.done)
        return delivered

    async def next_chunk(self, lifetime: asyncio.Event) -> bytes | None:
        """Return the next output span, or None once the output has ended.

        ``lifetime`` is the owning connection's cancellation event.
        """
        while True:
            try:
                return self.output.get_nowait()
            except asyncio.QueueEmpty:
                pass
            if self.aborted:
                raise ConnectionUnusable("connection closed before the statement ran")
            if self.superseded:
                raise ResultsDiscarded("a later statement on this connection discarded these rows")
            if self.done.is_set():
                return None
            if lifetime.is_set():
                self.cancel()
                raise UnexpectedTermination("connection ended while reading results")
            received, chunk = await race(self.output.get(), self.done, lifetime)
            if received:
                return chunk
