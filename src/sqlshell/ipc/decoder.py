"""Decoder for the shell's ``-quote -header`` output.

Turns the byte spans of one statement into rows of Python values. The
decoder is a token-level state machine whose state lives on the object,
so it can stop at any byte when the buffer runs dry and resume when
``feed()`` delivers more.

Wire format, one row per line, fields separated by ``,``:

- ``'text'`` with ``''`` escaping a quote (newlines may appear inside)
- ``NULL``
- ``X'0a1b'`` blobs
- ``-12``, ``3.5``, ``1.0e+20``, ``Inf``, ``-Inf``
- ``Parse error ...``, ``Runtime error ...``, ``Error: ...`` lines

The first row is the header and fills ``columns``.
"""

from __future__ import annotations

import math
from enum import IntEnum, auto
from typing import Any

from sqlshell.errors import DecodeError, ErrorKind, ShellError

_DIGITS = frozenset(b"0123456789")
_NULL = b"NULL"
_INF = b"Inf"

_ERROR_PREFIXES: dict[int, ErrorKind] = {
    ord("P"): ErrorKind.PARSE,
    ord("R"): ErrorKind.RUNTIME,
    ord("E"): ErrorKind.GENERIC,
}


class Token(IntEnum):
    """What the decoder is in the middle of reading."""

    NONE = auto()
    STRING = auto()
    STRING_QUOTE = auto()
    BLOB_X = auto()
    BLOB = auto()
    BLOB_END = auto()
    SIGN = auto()
    NUMBER = auto()
    DECIMAL = auto()
    EXPONENT_SIGN = auto()
    EXPONENT = auto()
    NULL = auto()
    INF = auto()
    ERROR = auto()
    END_OF_ROW = auto()


class RowDecoder:
    """Re-entrant decoder for one statement's output."""

    def __init__(self) -> None:
        """Start before the header row with an empty buffer."""
        self.columns: list[str] = []
        self.rows_seen = 0

        self._state = Token.NONE
        self._buffer = b""
        self._offset = 0
        self._row: list[Any] = []
        self._fields = 0
        self._text = bytearray()

        self._negative = False
        self._mantissa = 0
        self._scale = 0
        self._exponent = 0
        self._exponent_negative = False
        self._match = 0
        self._error_kind = ErrorKind.GENERIC
        self._failed: Exception | None = None

    @property
    def at_row_start(self) -> bool:
        """True when no field of the current row has been read yet."""
        return self._state is Token.NONE and self._fields == 0

    def feed(self, data: bytes) -> None:
        """Append output bytes for subsequent ``next_row()`` calls."""
        if self._offset >= len(self._buffer):
            self._buffer = bytes(data)
        else:
            self._buffer = self._buffer[self._offset :] + data
        self._offset = 0

    def next_row(self) -> list[Any] | None:
        """Return the next complete data row, or None if more bytes are needed.

        Raises ShellError when the output is an error line, and DecodeError
        when it does not follow the expected format. Both are terminal.
        """
        if self._failed is not None:
            raise self._failed
        try:
            while True:
                if not self._advance():
                    return None
                row = self._row
                self._row = []
                self._fields = 0
                self._state = Token.NONE
                self.rows_seen += 1
                if self.rows_seen > 1:
                    return row
        except (ShellError, DecodeError) as exc:
            self._failed = exc
            raise

    def finish(self) -> None:
        """Check that the output ended on a row boundary."""
        if self._failed is not None:
            raise self._failed
        if self._offset < len(self._buffer) or not self.at_row_start:
            self._failed = DecodeError("output ended mid-row", self._buffer, self._offset)
            raise self._failed

    def _fail(self, reason: str) -> DecodeError:
        return DecodeError(reason, self._buffer, self._offset)

    def _emit(self, value: Any, end_of_row: bool) -> None:
        self._fields += 1
        if self.rows_seen == 0:
            self.columns.append(value if isinstance(value, str) else str(value))
        else:
            self._row.append(value)
        self._state = Token.END_OF_ROW if end_of_row else Token.NONE

    def _number(self) -> int:
        return -self._mantissa if self._negative else self._mantissa

    def _float(self) -> float:
        power = self._exponent_value() - self._scale
        try:
            if self._mantissa == 0 or power < -1100:
                value = 0.0
            elif power > 400:
                value = math.inf
            elif power >= 0:
                value = float(self._mantissa * 10**power)
            else:
                value = self._mantissa / 10**-power
        except OverflowError:
            value = math.inf
        return -value if self._negative else value

    def _exponent_value(self) -> int:
        return -self._exponent if self._exponent_negative else self._exponent

    def _start_number(self) -> None:
        self._negative = False
        self._mantissa = 0
        self._scale = 0
        self._exponent = 0
        self._exponent_negative = False

    def _end_field(self, c: int, value_fn: Any) -> bool:
        """Emit the pending value on ``,`` or newline; False for other bytes."""
        if c == 0x2C:  # ,
            self._emit(value_fn(), end_of_row=False)
            return True
        if c == 0x0A:  # \n
            self._emit(value_fn(), end_of_row=True)
            return True
        return False

    def _advance(self) -> bool:
        """Consume buffered bytes until a row ends (True) or input runs out."""
        buf = self._buffer
        while self._state is not Token.END_OF_ROW:
            if self._offset >= len(buf):
                return False

            state = self._state
            if state is Token.STRING:
                # bulk-copy up to the next quote
                j = buf.find(b"'", self._offset)
                if j < 0:
                    self._text += buf[self._offset :]
                    self._offset = len(buf)
                    continue
                self._text += buf[self._offset : j]
                self._offset = j + 1
                self._state = Token.STRING_QUOTE
                continue

            c = buf[self._offset]
            if state is Token.NONE:
                self._start_field(c)
            elif state is Token.STRING_QUOTE:
                if c == 0x27:  # doubled quote
                    self._text.append(c)
                    self._state = Token.STRING
                elif not self._end_field(c, self._take_text):
                    raise self._fail(f"unexpected character after string: {chr(c)!r}")
            elif state is Token.SIGN:
                if c in _DIGITS:
                    self._mantissa = c - 0x30
                    self._state = Token.NUMBER
                elif c == 0x2E:  # .
                    self._state = Token.DECIMAL
                elif c == 0x49:  # I
                    self._match = 1
                    self._state = Token.INF
                else:
                    raise self._fail("expecting a digit after sign")
            elif state is Token.NUMBER:
                if c in _DIGITS:
                    self._mantissa = self._mantissa * 10 + (c - 0x30)
                elif c == 0x2E:
                    self._state = Token.DECIMAL
                elif c in (0x65, 0x45):  # e E
                    self._state = Token.EXPONENT_SIGN
                elif not self._end_field(c, self._number):
                    raise self._fail("expecting decimal, comma or end of line")
            elif state is Token.DECIMAL:
                if c in _DIGITS:
                    self._mantissa = self._mantissa * 10 + (c - 0x30)
                    self._scale += 1
                elif c in (0x65, 0x45):
                    self._state = Token.EXPONENT_SIGN
                elif not self._end_field(c, self._float):
                    raise self._fail("expecting digits, exponent, comma or end of line")
            elif state is Token.EXPONENT_SIGN:
                if c in (0x2D, 0x2B):  # - +
                    self._exponent_negative = c == 0x2D
                elif c in _DIGITS:
                    self._exponent = c - 0x30
                else:
                    raise self._fail("expecting exponent sign or digit")
                self._state = Token.EXPONENT
            elif state is Token.EXPONENT:
                if c in _DIGITS:
                    self._exponent = self._exponent * 10 + (c - 0x30)
                elif not self._end_field(c, self._float):
                    raise self._fail("expecting digits, comma or end of line")
            elif state is Token.NULL:
                if self._match < len(_NULL):
                    if c != _NULL[self._match]:
                        raise self._fail("NULL misspelled")
                    self._match += 1
                elif not self._end_field(c, lambda: None):
                    raise self._fail("expecting comma or end of line after NULL")
            elif state is Token.INF:
                if self._match < len(_INF):
                    if c != _INF[self._match]:
                        raise self._fail("Inf misspelled")
                    self._match += 1
                elif not self._end_field(c, lambda: -math.inf if self._negative else math.inf):
                    raise self._fail("expecting comma or end of line after Inf")
            elif state is Token.BLOB_X:
                if c != 0x27:
                    raise self._fail("expecting a quote after X")
                self._state = Token.BLOB
            elif state is Token.BLOB:
                if c == 0x27:
                    if len(self._text) % 2:
                        raise self._fail("odd number of hex digits in blob")
                    self._state = Token.BLOB_END
                elif c in b"0123456789abcdefABCDEF":
                    self._text.append(c)
                else:
                    raise self._fail(f"expecting a hex digit but got {chr(c)!r}")
            elif state is Token.BLOB_END:
                if not self._end_field(c, self._take_blob):
                    raise self._fail("expecting comma or end of line after blob")
            elif state is Token.ERROR:
                self._consume_error(c)

            self._offset += 1
        return True

    def _start_field(self, c: int) -> None:
        self._start_number()
        if c == 0x27:
            self._text.clear()
            self._state = Token.STRING
        elif c in _DIGITS:
            self._mantissa = c - 0x30
            self._state = Token.NUMBER
        elif c in (0x2D, 0x2B):
            self._negative = c == 0x2D
            self._state = Token.SIGN
        elif c == 0x2E:
            self._state = Token.DECIMAL
        elif c == 0x4E:  # N
            self._match = 1
            self._state = Token.NULL
        elif c == 0x49:  # I
            self._match = 1
            self._state = Token.INF
        elif c == 0x58:  # X
            self._text.clear()
            self._state = Token.BLOB_X
        elif c in _ERROR_PREFIXES and self.at_row_start:
            self._error_kind = _ERROR_PREFIXES[c]
            self._text.clear()
            self._text.append(c)
            self._match = 1
            self._state = Token.ERROR
        elif c == 0x2C:
            raise self._fail("expecting something before comma")
        else:
            raise self._fail("expecting a number or a string")

    def _consume_error(self, c: int) -> None:
        prefix = self._error_kind.value.encode("ascii")
        if self._match < len(prefix):
            if c != prefix[self._match]:
                raise self._fail("unexpected error token")
            self._match += 1
        if c == 0x0A:
            message = self._text.decode("utf-8", errors="replace")
            raise ShellError(self._error_kind, message)
        self._text.append(c)

    def _take_text(self) -> str:
        text = self._text.decode("utf-8", errors="surrogateescape")
        self._text.clear()
        return text

    def _take_blob(self) -> bytes:
        blob = bytes.fromhex(self._text.decode("ascii"))
        self._text.clear()
        return blob
