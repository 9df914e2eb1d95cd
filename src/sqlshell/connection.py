"""One sqlite3 shell process and the tasks that drive it.

A Connection runs four tasks: the writer, the reader, a process waiter and
the control loop. The control loop takes one request at a time from a
single-slot inbox, waits for the caller to clear it (the caller takes the
group lock first), then hands it to the writer and registers it with the
reader. It also handles the one-time suspend that creates the group's
shared lock when a second sibling connection appears.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlshell.errors import ConnectionFailure, ConnectionUnusable, NotSupportedError, ProcessExited
from sqlshell.ipc.framer import MARKER, unique_marker
from sqlshell.ipc.process import terminate
from sqlshell.ipc.reader import Reader
from sqlshell.ipc.request import Request
from sqlshell.ipc.signals import close_queue, race, wait_any
from sqlshell.ipc.writer import Writer
from sqlshell.locks import LockMode
from sqlshell.models.options import ShellOptions
from sqlshell.statement import Statement

if TYPE_CHECKING:
    from sqlshell.connector import Connector
    from sqlshell.rows import Result, Rows

logger = logging.getLogger(__name__)


class Connection:
    """A logical connection backed by its own shell process."""

    def __init__(
        self,
        connector: Connector,
        process: asyncio.subprocess.Process,
        options: ShellOptions,
    ) -> None:
        """Wire up the tasks for an already started shell process."""
        if process.stdin is None or process.stdout is None:
            raise ValueError("shell process must have piped stdin and stdout")
        self.connector = connector
        self._process = process
        self._options = options

        # set once the connection can no longer run statements
        self.cancelled = asyncio.Event()
        self.ready = asyncio.Event()
        self._admitted = asyncio.Event()
        self._suspend = asyncio.Event()
        self._closing = asyncio.Event()
        self._suspended = False
        self._closed = False

        self._inbox: asyncio.Queue[Request | None] = asyncio.Queue(maxsize=1)
        self._writes: asyncio.Queue[Request | None] = asyncio.Queue(maxsize=1)
        self._registrations: asyncio.Queue[Request | None] = asyncio.Queue(maxsize=1)
        # written to the shell and not yet done, oldest first
        self._dispatched: list[Request] = []
        self._process_error: BaseException | None = None

        self._writer = Writer(process.stdin, self._writes, self.cancelled)
        self._reader = Reader(process.stdout, self._registrations, self.cancelled, options.read_size)
        self._control_task: asyncio.Task[None] | None = None
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def pid(self) -> int:
        """Process id of the shell."""
        return self._process.pid

    @property
    def closed(self) -> bool:
        """True once close() has been called."""
        return self._closed

    @property
    def errors(self) -> tuple[BaseException | None, BaseException | None, BaseException | None]:
        """Terminal errors recorded by the process waiter, writer and reader."""
        return (self._process_error, self._writer.error, self._reader.error)

    def start(self) -> None:
        """Start the writer, reader, process waiter and control tasks."""
        self._control_task = asyncio.create_task(self._control(), name=f"sqlshell-control-{self.pid}")
        self._tasks = [
            asyncio.create_task(self._writer.run(), name=f"sqlshell-writer-{self.pid}"),
            asyncio.create_task(self._reader.run(), name=f"sqlshell-reader-{self.pid}"),
            asyncio.create_task(self._wait_process(), name=f"sqlshell-wait-{self.pid}"),
        ]

    def is_valid(self) -> bool:
        """True while the connection can still run statements."""
        return not self.cancelled.is_set() and not self._closed

    # -- lock coordinator hooks --

    def admit(self) -> None:
        """Let the control loop start without a group lock."""
        self._admitted.set()

    def suspend(self) -> None:
        """Ask this connection to create the group's shared lock."""
        if self._control_task is None or self._control_task.done():
            self.connector.activate_lock()
        else:
            self._suspend.set()

    # -- statements --

    def new_request(self, payload: bytes) -> Request:
        """Create a request for ``payload`` with this connection's marker policy."""
        marker = unique_marker() if self._options.unique_markers else MARKER
        return Request(payload, marker)

    def prepare(self, sql: str) -> Statement:
        """Scan ``sql`` once for placeholders; the text is resent on every run."""
        return Statement(self, sql)

    async def execute(self, sql: str, params: Sequence[Any] = ()) -> Result:
        """Run a statement that returns no rows."""
        return await self.prepare(sql).execute(params)

    async def query(self, sql: str, params: Sequence[Any] = (), *, exclusive: bool = False) -> Rows:
        """Run a statement and return its rows."""
        return await self.prepare(sql).query(params, exclusive=exclusive)

    def begin(self) -> None:
        """Transactions are not supported by the shell driver."""
        raise NotSupportedError("transactions are not supported")

    async def ping(self) -> None:
        """Round-trip an empty statement through the shell."""
        request = self.new_request(b"")
        async with self.dispatch(request, None):
            while await request.next_chunk(self.cancelled) is not None:
                pass

    @asynccontextmanager
    async def dispatch(self, request: Request, mode: LockMode | None) -> AsyncIterator[Request]:
        """Submit ``request`` and hold the group lock in ``mode`` around the body.

        The request is written once the control loop has accepted it and the
        lock (if the group has one) is held. Leaving the block with an
        exception cancels the request; its remaining output is discarded.
        """
        try:
            await self._submit(request)
            lock = self.connector.lock if mode is not None else None
            if lock is None:
                request.clear()
                yield request
            else:
                async with lock.hold(mode):
                    request.clear()
                    yield request
        except BaseException:
            request.cancel()
            raise
        request.released.set()

    async def _submit(self, request: Request) -> None:
        if self._closed or self.cancelled.is_set():
            raise ConnectionUnusable("connection is closed")
        self._discard_unread()
        sent, _ = await race(self._inbox.put(request), self.cancelled)
        if not sent:
            raise ConnectionUnusable("connection is closed")
        await wait_any(request.accepted, request.done, self.cancelled)
        if not request.accepted.is_set():
            request.abort()
            raise ConnectionUnusable("connection closed before the statement was accepted")

    async def close(self) -> None:
        """Stop the shell and wait for every task to finish.

        Raises ConnectionFailure chained to the first terminal error if the
        process, writer or reader failed while the connection was open.
        """
        if self._closed:
            return
        self._closed = True
        self._closing.set()
        for request in self._dispatched:
            if not request.done.is_set():
                request.abort()
        close_queue(self._inbox, on_dropped=Request.abort)

        if self._control_task is not None:
            await self._control_task
        if any(error is not None for error in self.errors):
            terminate(self._process)
        await asyncio.gather(*self._tasks)
        self.connector.leave(self)
        logger.info("Closed connection to %s (pid %s)", self.connector.name, self.pid)

        error = next((e for e in self.errors if e is not None), None)
        if error is not None:
            raise ConnectionFailure(f"connection ended abnormally: {error}") from error

    # -- tasks --

    async def _wait_process(self) -> None:
        returncode = await self._process.wait()
        if self._closing.is_set():
            logger.debug("Shell pid %s exited with status %s", self.pid, returncode)
        else:
            logger.warning("Shell pid %s exited unexpectedly with status %s", self.pid, returncode)
            self._process_error = ProcessExited(returncode)
        self.cancelled.set()

    async def _control(self) -> None:
        try:
            await wait_any(self._admitted, self.connector.lock_ready, self._closing, self.cancelled)
            if not (self._admitted.is_set() or self.connector.lock_ready.is_set()):
                return
            if self._closing.is_set() or self.cancelled.is_set():
                return
            self.ready.set()

            while True:
                if self._suspend.is_set() and not self._suspended:
                    await self._establish_shared_lock()
                    continue
                watch = () if self._suspended else (self._suspend,)
                received, request = await race(self._inbox.get(), *watch)
                if not received:
                    continue
                if request is None:
                    return
                if not await self._dispatch(request):
                    return
        finally:
            close_queue(self._writes, on_dropped=Request.abort)
            close_queue(self._registrations, on_dropped=Request.abort)
            if self._suspend.is_set() and not self._suspended:
                self.connector.activate_lock()
            self.cancelled.set()

    async def _dispatch(self, request: Request) -> bool:
        """Hand one request to the writer and reader; False ends the loop."""
        if self.cancelled.is_set():
            request.abort()
            return False
        request.accepted.set()
        await wait_any(request.cleared, request.done, self.cancelled, self._closing)
        if self.cancelled.is_set() or self._closing.is_set():
            request.abort()
            return False
        if request.done.is_set():
            # the caller gave up before anything was written
            return True

        self._dispatched = [r for r in self._dispatched if not r.done.is_set()]
        self._dispatched.append(request)
        for queue in (self._writes, self._registrations):
            sent, _ = await race(queue.put(request), self.cancelled)
            if not sent:
                request.abort()
                return False
        logger.debug("Dispatched %d byte statement on pid %s", len(request.payload), self.pid)
        return True

    def _discard_unread(self) -> None:
        """Supersede results whose callers left rows unread.

        The reader delivers output in statement order, so a partly read
        result would otherwise hold back every later statement.
        """
        for earlier in self._dispatched:
            if earlier.released.is_set() and not earlier.done.is_set():
                logger.debug("Discarding unread rows on pid %s", self.pid)
                earlier.supersede()

    async def _establish_shared_lock(self) -> None:
        # statements still inside dispatch ran without the lock; let them finish
        for request in self._dispatched:
            if request.released.is_set() or request.done.is_set():
                continue
            await wait_any(request.done, request.released, self.cancelled)
            if self.cancelled.is_set() and not request.done.is_set():
                request.cancel()
        self._suspended = True
        self.connector.activate_lock()
