"""Encoding Python values as SQL literals for the shell."""

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlshell.errors import BindError


def quote_text(text: str) -> str:
    """Quote ``text`` as a string literal, doubling embedded quotes."""
    return "'" + text.replace("'", "''") + "'"


def encode_literal(value: Any) -> str:
    """Return the SQL literal for ``value``.

    Raises BindError for types the shell has no literal for.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value):
            return "NULL"
        if math.isinf(value):
            return "9e999" if value > 0 else "-9e999"
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise BindError(f"cannot encode non-finite decimal {value}")
        return str(value)
    if isinstance(value, str):
        return quote_text(value)
    if isinstance(value, bytes | bytearray | memoryview):
        return "X'" + bytes(value).hex() + "'"
    if isinstance(value, datetime):
        return quote_text(value.isoformat(sep=" "))
    if isinstance(value, date | time):
        return quote_text(value.isoformat())
    raise BindError(f"unsupported parameter type {type(value).__name__}")
