"""Sibling connections to one database and the lock that coordinates them.

Every connection is a separate shell process, so two connections writing
the same file cannot rely on in-process exclusion. The first time two
connections to a target coexist, the group's SharedLock is created; from
then on statements take it exclusively and queries take it shared. The
lock is never removed again, because nothing tells us reliably that no
other writer will come back.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from sqlshell.connection import Connection
from sqlshell.errors import ConnectionUnusable
from sqlshell.ipc.process import spawn_shell
from sqlshell.ipc.signals import wait_any
from sqlshell.locks import SharedLock
from sqlshell.models.options import ShellOptions

logger = logging.getLogger(__name__)


class Intent(StrEnum):
    """Whether a registration adds or removes a group member."""

    JOIN = "join"
    LEAVE = "leave"


@dataclass(frozen=True)
class Registration:
    """A join or leave message for the lock coordinator."""

    intent: Intent
    connection: Connection


class Connector:
    """Opens connections to one target and coordinates their locking."""

    def __init__(self, name: str, options: ShellOptions | None = None) -> None:
        """Initialize for the database ``name`` with optional shell options."""
        self.name = name
        self.options = options or ShellOptions()
        self.lock: SharedLock | None = None
        self.lock_ready = asyncio.Event()
        self.high_water = 0

        self._registrations: asyncio.Queue[Registration | None] = asyncio.Queue()
        self._members: list[Connection] = []
        self._lock_requested = False
        self._coordinator: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

    @property
    def members(self) -> tuple[Connection, ...]:
        """Connections currently open in this group, oldest first."""
        return tuple(self._members)

    async def connect(self) -> Connection:
        """Start a shell and return its connection once the group admits it."""
        if self._coordinator is None:
            self._coordinator = asyncio.create_task(
                self._coordinate(), name=f"sqlshell-coordinator-{self.name}"
            )

        process = await spawn_shell(self.name, self.options)
        connection = Connection(self, process, self.options)
        connection.start()
        self._registrations.put_nowait(Registration(Intent.JOIN, connection))

        try:
            await wait_any(connection.ready, connection.cancelled)
        except BaseException:
            # the caller gave up while waiting for admission
            self._run_in_background(connection.close())
            raise
        if not connection.ready.is_set():
            await connection.close()
            raise ConnectionUnusable(f"shell for {self.name} ended before it was admitted")
        return connection

    def leave(self, connection: Connection) -> None:
        """Remove a closed connection from the group."""
        self._registrations.put_nowait(Registration(Intent.LEAVE, connection))

    def activate_lock(self) -> None:
        """Create the group lock and release every waiting connection."""
        if self.lock is not None:
            return
        self.lock = SharedLock()
        self.lock_ready.set()
        logger.info("Activated shared lock for %s", self.name)

    async def close(self) -> None:
        """Stop the coordinator; connections should be closed first."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        if self._coordinator is not None:
            self._registrations.put_nowait(None)
            await self._coordinator
            self._coordinator = None

    async def _coordinate(self) -> None:
        while (registration := await self._registrations.get()) is not None:
            connection = registration.connection
            if registration.intent is Intent.LEAVE:
                if connection in self._members:
                    self._members.remove(connection)
                continue
            self._join(connection)

    def _join(self, connection: Connection) -> None:
        self._members.append(connection)
        size = len(self._members)
        self.high_water = max(self.high_water, size)
        if self.lock is not None or self._lock_requested:
            # the lock-ready broadcast admits this connection
            return
        if size == 1:
            connection.admit()
            return

        self._lock_requested = True
        first = self._members[0]
        logger.info(
            "Second connection to %s; pid %s will activate the shared lock",
            self.name,
            first.pid,
        )
        first.suspend()

    def _run_in_background(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background_done)

    def _background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Background close of %s failed: %s", self.name, task.exception())


def target_key(name: str) -> str:
    """Identity of a database target; file paths are resolved."""
    if name in ("", ":memory:") or name.startswith("file:"):
        return name
    return str(Path(name).expanduser().resolve())


class Registry:
    """One Connector per database target.

    Pass the same registry to everything that opens connections to a
    target so that they share a lock coordinator.
    """

    def __init__(self, options: ShellOptions | None = None) -> None:
        """Initialize with shell options used for every connector it creates."""
        self.options = options or ShellOptions()
        self._connectors: dict[str, Connector] = {}

    def connector(self, name: str) -> Connector:
        """Return the connector for ``name``, creating it on first use."""
        key = target_key(name)
        if key not in self._connectors:
            self._connectors[key] = Connector(key, self.options)
        return self._connectors[key]

    async def connect(self, name: str) -> Connection:
        """Open a new connection to ``name``."""
        return await self.connector(name).connect()

    async def close(self) -> None:
        """Stop every connector's coordinator."""
        for connector in self._connectors.values():
            await connector.close()
        self._connectors.clear()
