"""Protocols the MCP tools program against.

``ShellBackend`` is the implementation; ``sqlshell.rows`` provides the
row and cursor types it returns.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Row(Protocol):
    """One result row, indexable by column name or position."""

    def __getitem__(self, key: str | int) -> Any: ...

    def __len__(self) -> int: ...

    def keys(self) -> list[str]:
        """Column names in result order."""
        ...


@runtime_checkable
class Cursor(Protocol):
    """Rows of one statement, read incrementally."""

    @property
    def columns(self) -> list[str]:
        """Column names; empty when the statement returned no rows."""
        ...

    @property
    def rowcount(self) -> int:
        """Always -1: the shell never reports affected rows."""
        ...

    async def fetchone(self) -> Row | None: ...

    async def fetchall(self) -> list[Row]: ...


@runtime_checkable
class Database(Protocol):
    """Statement execution against one database target.

    Parameters bind to ``?`` placeholders. Every statement commits on its
    own; ``commit()`` exists for callers written against DB-API habits.
    Callers sharing one database hold ``busy`` from a statement until
    its cursor is read.
    """

    busy: asyncio.Lock

    async def execute(self, sql: str, params: tuple[Any, ...] | list[Any] = ()) -> Cursor: ...

    async def executemany(
        self, sql: str, params_seq: list[tuple[Any, ...] | list[Any]]
    ) -> None: ...

    async def executescript(self, sql: str) -> None:
        """Run several ``;``-separated statements in one round-trip."""
        ...

    async def commit(self) -> None: ...

    async def ping(self) -> None:
        """Round-trip an empty statement."""
        ...

    async def close(self) -> None: ...
