"""Statement pre-scan, parameter binding and execution."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, NamedTuple

from sqlshell.encoding import encode_literal
from sqlshell.errors import BindError
from sqlshell.locks import LockMode
from sqlshell.rows import Result, Rows

if TYPE_CHECKING:
    from sqlshell.connection import Connection

_WHITESPACE = " \t\n\r\f\v"


class ScannedSQL(NamedTuple):
    """Statement text with its terminator and placeholder positions."""

    text: str
    terminators: list[int]
    placeholders: list[int]


def scan_sql(sql: str) -> ScannedSQL:
    """Locate ``;`` terminators and ``?`` placeholders outside quotes and comments.

    The shell only runs a statement once it sees a terminating ``;``, so
    one is appended when the last visible token is not a terminator.
    """
    terminators: list[int] = []
    placeholders: list[int] = []
    last_visible = -1
    in_line_comment = False
    i = 0
    n = len(sql)
    while i < n:
        c = sql[i]
        if c in _WHITESPACE:
            in_line_comment = in_line_comment and c != "\n"
            i += 1
            continue
        if in_line_comment:
            i += 1
            continue
        if c in "'\"`":
            # doubled quote characters are escapes and keep us inside
            j = i + 1
            while j < n:
                if sql[j] == c:
                    if j + 1 < n and sql[j + 1] == c:
                        j += 2
                        continue
                    break
                j += 1
            last_visible = min(j, n - 1)
            i = j + 1
            continue
        if c == "-" and sql.startswith("--", i):
            in_line_comment = True
            i += 2
            continue
        if c == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end < 0 else end + 2
            continue
        if c == ";":
            terminators.append(i)
        elif c == "?":
            placeholders.append(i)
        last_visible = i
        i += 1

    if not terminators or last_visible > terminators[-1]:
        sql += "\n;" if in_line_comment else ";"
        terminators.append(len(sql) - 1)
    return ScannedSQL(sql, terminators, placeholders)


def bind(scanned: ScannedSQL, params: Sequence[Any]) -> str:
    """Substitute encoded ``params`` for the placeholders in order."""
    if len(params) != len(scanned.placeholders):
        raise BindError(
            f"got {len(params)} parameters but the statement has "
            f"{len(scanned.placeholders)} placeholders: {scanned.text}"
        )
    if not params:
        return scanned.text

    parts: list[str] = []
    previous = 0
    for position, value in zip(scanned.placeholders, params, strict=True):
        parts.append(scanned.text[previous:position])
        parts.append(encode_literal(value))
        previous = position + 1
    parts.append(scanned.text[previous:])
    return "".join(parts)


class Statement:
    """A scanned statement bound to a connection.

    Nothing is kept on the shell side; each run resends the full text.
    """

    def __init__(self, connection: Connection, sql: str) -> None:
        """Scan ``sql`` for later runs on ``connection``."""
        self._connection = connection
        self._scanned = scan_sql(sql)

    @property
    def text(self) -> str:
        """The statement text as sent to the shell, before binding."""
        return self._scanned.text

    @property
    def num_input(self) -> int:
        """Number of ``?`` placeholders."""
        return len(self._scanned.placeholders)

    async def execute(self, params: Sequence[Any] = ()) -> Result:
        """Run the statement to completion under the group's exclusive lock.

        Raises ShellError if the shell reports an error; any rows the
        statement prints are discarded.
        """
        payload = bind(self._scanned, params).encode("utf-8", "surrogateescape")
        request = self._connection.new_request(payload)
        rows = Rows(self._connection, request)
        async with self._connection.dispatch(request, LockMode.EXCLUSIVE):
            await rows.fetchall()
        return Result(rows.columns)

    async def query(self, params: Sequence[Any] = (), *, exclusive: bool = False) -> Rows:
        """Run the statement and return its rows.

        The group lock is held in shared mode (or exclusive, for statements
        that write and return rows) until the first row or the end of the
        output arrives; later rows are read without it.
        """
        payload = bind(self._scanned, params).encode("utf-8", "surrogateescape")
        request = self._connection.new_request(payload)
        rows = Rows(self._connection, request)
        mode = LockMode.EXCLUSIVE if exclusive else LockMode.SHARED
        async with self._connection.dispatch(request, mode):
            await rows.prime()
        return rows

    async def close(self) -> None:
        """Nothing to release; present for adapter symmetry."""
