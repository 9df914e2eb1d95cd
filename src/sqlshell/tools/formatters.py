"""Compact output formatters for MCP tool responses."""

from collections.abc import Sequence
from typing import Any

from sqlshell.db.backend import Row

_MAX_CELL = 80


def format_value(value: Any) -> str:
    """Render a decoded value the way the shell would quote it."""
    if value is None:
        return "NULL"
    if isinstance(value, bytes):
        return f"X'{value.hex()}'"
    if isinstance(value, float):
        return repr(value)
    # undecodable bytes come back as lone surrogates
    text = str(value).encode("utf-8", "surrogateescape").decode("utf-8", "replace")
    text = text.replace("\n", "\\n")
    if len(text) > _MAX_CELL:
        text = text[: _MAX_CELL - 3] + "..."
    return text


def format_table(columns: Sequence[str], rows: Sequence[Row], max_rows: int) -> str:
    """Format rows as a pipe-separated table, truncated to ``max_rows``.

    Format:
        a | b
        --+--
        1 | x
        (2 rows)
    """
    if not rows:
        return "(no rows)"

    shown = rows[:max_rows]
    cells = [[format_value(row[i]) for i in range(len(columns))] for row in shown]
    widths = [len(name) for name in columns]
    for line in cells:
        widths = [max(w, len(cell)) for w, cell in zip(widths, line, strict=True)]

    lines = [" | ".join(name.ljust(w) for name, w in zip(columns, widths, strict=True)).rstrip()]
    lines.append("-+-".join("-" * w for w in widths))
    for line in cells:
        lines.append(" | ".join(c.ljust(w) for c, w in zip(line, widths, strict=True)).rstrip())

    footer = f"({len(rows)} row{'s' if len(rows) != 1 else ''}"
    if len(rows) > len(shown):
        footer += f", showing first {len(shown)}"
    lines.append(footer + ")")
    return "\n".join(lines)
