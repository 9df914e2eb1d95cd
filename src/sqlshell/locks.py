"""Read/write lock shared by sibling connections to one database."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from enum import StrEnum


class LockMode(StrEnum):
    """How a statement holds the group lock."""

    SHARED = "shared"
    EXCLUSIVE = "exclusive"


class SharedLock:
    """Writer-preferring asyncio read/write lock.

    Readers share the lock; a writer holds it alone. Once a writer is
    waiting, new readers queue behind it.
    """

    def __init__(self) -> None:
        """Create an unheld lock."""
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @property
    def readers(self) -> int:
        """Number of shared holders."""
        return self._readers

    @property
    def writer(self) -> bool:
        """True while an exclusive holder exists."""
        return self._writer

    async def acquire_shared(self) -> None:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and not self._writers_waiting)
            self._readers += 1

    async def release_shared(self) -> None:
        async with self._cond:
            self._readers -= 1
            if not self._readers:
                self._cond.notify_all()

    async def acquire_exclusive(self) -> None:
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and not self._readers)
            finally:
                self._writers_waiting -= 1
                # a cancelled writer may have been holding readers back
                self._cond.notify_all()
            self._writer = True

    async def release_exclusive(self) -> None:
        async with self._cond:
            self._writer = False
            self._cond.notify_all()

    @asynccontextmanager
    async def hold(self, mode: LockMode) -> AsyncIterator[None]:
        """Hold the lock in ``mode`` for the body of the ``async with``."""
        if mode is LockMode.EXCLUSIVE:
            await self.acquire_exclusive()
            try:
                yield
            finally:
                await self.release_exclusive()
        else:
            await self.acquire_shared()
            try:
                yield
            finally:
                await self.release_shared()
