"""Tests for SQL literal encoding."""

import math
from datetime import date, datetime, time
from decimal import Decimal

import pytest

from sqlshell.encoding import encode_literal, quote_text
from sqlshell.errors import BindError


def test_quote_text():
    assert quote_text("O'Brien") == "'O''Brien'"
    assert quote_text("") == "''"


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, "NULL"),
        (True, "TRUE"),
        (False, "FALSE"),
        (0, "0"),
        (-42, "-42"),
        (2**63 - 1, "9223372036854775807"),
        (1.5, "1.5"),
        (1e20, "1e+20"),
        (math.inf, "9e999"),
        (-math.inf, "-9e999"),
        (math.nan, "NULL"),
        (Decimal("1.10"), "1.10"),
        ("a\nb", "'a\nb'"),
        (b"Hi", "X'4869'"),
        (bytearray(b"\x00"), "X'00'"),
        (memoryview(b"\xff"), "X'ff'"),
        (datetime(2024, 1, 2, 3, 4, 5), "'2024-01-02 03:04:05'"),
        (date(2024, 1, 2), "'2024-01-02'"),
        (time(3, 4, 5), "'03:04:05'"),
    ],
)
def test_encode_literal(value, expected):
    assert encode_literal(value) == expected


def test_bool_is_not_encoded_as_int():
    assert encode_literal(True) != "1"


def test_non_finite_decimal_rejected():
    with pytest.raises(BindError):
        encode_literal(Decimal("NaN"))


def test_unsupported_type_rejected():
    with pytest.raises(BindError, match="unsupported parameter type dict"):
        encode_literal({"a": 1})
