"""Tests for compact output formatters."""

from sqlshell.rows import Row
from sqlshell.tools.formatters import format_table, format_value

# --- format_value ---


def test_value_null():
    assert format_value(None) == "NULL"


def test_value_blob():
    assert format_value(b"\x01\xab") == "X'01ab'"


def test_value_float_keeps_precision():
    assert format_value(0.1) == "0.1"
    assert format_value(float("inf")) == "inf"


def test_value_newline_escaped():
    assert format_value("a\nb") == "a\\nb"


def test_value_invalid_utf8_replaced():
    assert format_value("\udcffA") == "\ufffdA"


def test_value_long_text_truncated():
    result = format_value("x" * 200)
    assert len(result) == 80
    assert result.endswith("...")


# --- format_table ---


def _rows(columns, *values):
    return [Row(columns, list(v)) for v in values]


def test_table_empty():
    assert format_table([], [], 10) == "(no rows)"


def test_table_basic():
    cols = ["id", "name"]
    result = format_table(cols, _rows(cols, (1, "alpha"), (22, None)), 10)
    assert result.splitlines() == [
        "id | name",
        "---+------",
        "1  | alpha",
        "22 | NULL",
        "(2 rows)",
    ]


def test_table_single_row_footer():
    cols = ["a"]
    result = format_table(cols, _rows(cols, (1,)), 10)
    assert result.endswith("(1 row)")


def test_table_truncated():
    cols = ["n"]
    rows = _rows(cols, *[(i,) for i in range(5)])
    result = format_table(cols, rows, 2)
    lines = result.splitlines()
    assert lines[-1] == "(5 rows, showing first 2)"
    assert len(lines) == 5
