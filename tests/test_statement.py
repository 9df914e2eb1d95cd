"""Tests for statement pre-scan and parameter binding."""

import pytest

from sqlshell.errors import BindError
from sqlshell.statement import bind, scan_sql


def test_appends_terminator():
    scanned = scan_sql("SELECT 1")
    assert scanned.text == "SELECT 1;"
    assert scanned.terminators == [8]


def test_keeps_existing_terminator():
    scanned = scan_sql("SELECT 1;")
    assert scanned.text == "SELECT 1;"
    assert scanned.terminators == [8]


def test_trailing_whitespace_after_terminator():
    scanned = scan_sql("SELECT 1;  \n")
    assert scanned.text == "SELECT 1;  \n"


def test_multiple_statements_missing_last_terminator():
    scanned = scan_sql("CREATE TABLE t(a); INSERT INTO t VALUES (1)")
    assert scanned.text.endswith("(1);")
    assert len(scanned.terminators) == 2


def test_semicolon_inside_string_is_ignored():
    scanned = scan_sql("SELECT 'a;b'")
    assert scanned.text == "SELECT 'a;b';"
    assert scanned.terminators == [len("SELECT 'a;b'")]


def test_placeholders_outside_quotes():
    scanned = scan_sql("SELECT ?, '?', \"?\", `?`, ?")
    assert len(scanned.placeholders) == 2


def test_doubled_quote_stays_inside_string():
    scanned = scan_sql("SELECT 'it''s ?', ?")
    assert len(scanned.placeholders) == 1


def test_line_comment_hides_placeholders():
    scanned = scan_sql("SELECT ? -- what about ?\n")
    assert len(scanned.placeholders) == 1


def test_trailing_line_comment_gets_terminator_on_new_line():
    scanned = scan_sql("SELECT 1 -- done")
    assert scanned.text == "SELECT 1 -- done\n;"


def test_terminator_in_comment_does_not_count():
    scanned = scan_sql("SELECT 1 /* ; */")
    assert scanned.text == "SELECT 1 /* ; */;"


def test_block_comment_hides_placeholders():
    scanned = scan_sql("SELECT /* ? */ ?")
    assert len(scanned.placeholders) == 1


def test_bind_in_order():
    scanned = scan_sql("INSERT INTO t VALUES (?, ?, ?)")
    text = bind(scanned, [1, "it's", None])
    assert text == "INSERT INTO t VALUES (1, 'it''s', NULL);"


def test_bind_blob():
    scanned = scan_sql("SELECT ?")
    assert bind(scanned, [b"\x01\xff"]) == "SELECT X'01ff';"


def test_bind_without_params():
    scanned = scan_sql("SELECT 1")
    assert bind(scanned, []) == "SELECT 1;"


def test_bind_count_mismatch():
    scanned = scan_sql("SELECT ?, ?")
    with pytest.raises(BindError, match="got 1 parameters"):
        bind(scanned, [1])
    with pytest.raises(BindError):
        bind(scanned, [1, 2, 3])
