"""Shell implementation of the Database protocol.

Wraps one ``Connection``. Read statements run as queries under the
group's shared lock; everything else runs under the exclusive lock. The
shell autocommits each statement, so ``commit()`` is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqlshell.connection import Connection
    from sqlshell.connector import Registry
    from sqlshell.db.backend import Cursor

logger = logging.getLogger(__name__)

# Statements that only read; WITH may prefix a write, so it is not listed
_READ_RE = re.compile(r"^\s*(SELECT|VALUES|EXPLAIN)\b", re.IGNORECASE)


def _is_read(sql: str) -> bool:
    """Return True for statements that cannot modify the database."""
    return _READ_RE.match(sql) is not None


class ShellBackend:
    """Shell implementation of the Database protocol.

    The connection is exposed as ``connection`` for pings and the lock
    state in tests. A new statement discards the unread rows of the
    previous one, so concurrent callers hold ``busy`` until they have read
    their cursor. When the backend created its own registry it closes
    that registry too.
    """

    def __init__(self, connection: Connection, *, registry: Registry | None = None) -> None:
        """Initialize with a connection and, optionally, a registry to own."""
        self.connection = connection
        self._registry = registry
        self.busy = asyncio.Lock()

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor:
        """Execute a single SQL statement and return a cursor over its rows."""
        return await self.connection.query(sql, params, exclusive=not _is_read(sql))

    async def executemany(self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]) -> None:
        """Execute a SQL statement for each set of parameters."""
        statement = self.connection.prepare(sql)
        for params in params_seq:
            await statement.execute(params)

    async def executescript(self, sql: str) -> None:
        """Execute multiple SQL statements in one round-trip."""
        await self.connection.execute(sql)

    async def commit(self) -> None:
        """No-op: the shell autocommits each statement."""

    async def ping(self) -> None:
        """Round-trip an empty statement."""
        await self.connection.ping()

    async def close(self) -> None:
        """Close the connection and any registry this backend owns."""
        try:
            await self.connection.close()
        finally:
            if self._registry is not None:
                await self._registry.close()
