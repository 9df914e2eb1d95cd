"""Result sets decoded from shell output."""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from sqlshell.errors import NotSupportedError, ShellClientError
from sqlshell.ipc.decoder import RowDecoder

if TYPE_CHECKING:
    from sqlshell.connection import Connection
    from sqlshell.ipc.request import Request


class Row:
    """A decoded row supporting both named and positional access."""

    __slots__ = ("_columns", "_values")

    def __init__(self, columns: list[str], values: list[Any]) -> None:
        """Initialize with the result's column names and this row's values."""
        self._columns = columns
        self._values = tuple(values)

    def __getitem__(self, key: str | int) -> Any:
        """Get a column value by name or position."""
        if isinstance(key, str):
            try:
                return self._values[self._columns.index(key)]
            except ValueError:
                raise KeyError(key) from None
        return self._values[key]

    def keys(self) -> list[str]:
        """Return column names."""
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self._values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self._values == other._values
        if isinstance(other, tuple):
            return self._values == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._values)

    def __repr__(self) -> str:
        return f"Row({dict(zip(self._columns, self._values, strict=False))!r})"


class Rows:
    """Lazily decoded rows of one query.

    Rows are pulled from the connection's reader as they are consumed. If
    the shell reports an error or the output is malformed, the request is
    cancelled and the error is raised from the fetch that hit it.
    """

    def __init__(self, connection: Connection, request: Request) -> None:
        """Initialize for ``request`` running on ``connection``."""
        self._connection = connection
        self._request = request
        self._decoder = RowDecoder()
        self._lookahead: Row | None = None
        self._exhausted = False

    @property
    def columns(self) -> list[str]:
        """Column names from the header row; empty when no row was returned."""
        return self._decoder.columns

    @property
    def rowcount(self) -> int:
        """Always -1; the shell does not report affected rows."""
        return -1

    async def prime(self) -> None:
        """Read ahead until the header and first row (or the end) arrive."""
        if self._lookahead is None and not self._exhausted:
            self._lookahead = await self._read_row()

    async def fetchone(self) -> Row | None:
        """Fetch the next row, or None if exhausted."""
        if self._lookahead is not None:
            row, self._lookahead = self._lookahead, None
            return row
        if self._exhausted:
            return None
        return await self._read_row()

    async def fetchall(self) -> list[Row]:
        """Fetch all remaining rows."""
        rows: list[Row] = []
        while (row := await self.fetchone()) is not None:
            rows.append(row)
        return rows

    async def close(self) -> None:
        """Stop reading; unread output is discarded by the reader."""
        self._exhausted = True
        self._lookahead = None
        if not self._request.done.is_set():
            self._request.cancel()

    def __aiter__(self) -> Rows:
        return self

    async def __anext__(self) -> Row:
        row = await self.fetchone()
        if row is None:
            raise StopAsyncIteration
        return row

    async def __aenter__(self) -> Rows:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _read_row(self) -> Row | None:
        try:
            while True:
                values = self._decoder.next_row()
                if values is not None:
                    return Row(self._decoder.columns, values)
                chunk = await self._request.next_chunk(self._connection.cancelled)
                if chunk is None:
                    if self._request.completed:
                        self._decoder.finish()
                    self._exhausted = True
                    return None
                self._decoder.feed(chunk)
        except ShellClientError:
            self._exhausted = True
            self._request.cancel()
            raise


class Result:
    """Outcome of a statement run for its effect.

    Satisfies the cursor protocol with no rows; the shell reports neither
    affected row counts nor the last inserted rowid.
    """

    def __init__(self, columns: list[str] | None = None) -> None:
        """Initialize with the columns of any discarded output."""
        self.columns = columns or []

    @property
    def rowcount(self) -> int:
        """Always -1; the shell does not report affected rows."""
        return -1

    def rows_affected(self) -> int:
        raise NotSupportedError("the shell does not report affected rows")

    def last_insert_id(self) -> int:
        raise NotSupportedError("the shell does not report the last inserted rowid")

    async def fetchone(self) -> None:
        """No rows; always None."""
        return None

    async def fetchall(self) -> list[Row]:
        """No rows; always empty."""
        return []
