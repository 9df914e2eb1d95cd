"""End-of-statement detection in the shell's merged output stream.

The shell has no native framing, so every statement is followed by a
``.print`` command that emits a marker on a line of its own. The Framer
scans output for that line and splits it into per-statement spans. It
does no I/O and keeps its scan state between ``feed()`` calls, so a
marker split across reads is still recognized.
"""

from __future__ import annotations

import secrets
from typing import NamedTuple

MARKER = b"'''"

_NEWLINE = ord("\n")


def marker_command(marker: bytes) -> bytes:
    """Return the shell input that prints ``marker`` on its own line."""
    return b'\n.print "' + marker + b'"\n'


def unique_marker() -> bytes:
    """Return a random marker that row output cannot plausibly reproduce."""
    return MARKER + secrets.token_hex(16).encode("ascii")


class Frame(NamedTuple):
    """Result of scanning one chunk up to the first boundary."""

    data: bytes
    boundary: bool
    rest: bytes


class Framer:
    """Locates marker lines; matches only at the start of a line."""

    def __init__(self, marker: bytes = MARKER) -> None:
        """Initialize expecting ``marker`` as the first boundary."""
        self._token = marker + b"\n"
        self._matched = 0
        self._line_start = True

    @property
    def marker(self) -> bytes:
        """The marker the next boundary must carry."""
        return self._token[:-1]

    def expect(self, marker: bytes) -> None:
        """Switch to a new marker; only valid between boundaries."""
        if self._matched:
            raise RuntimeError("cannot change marker during a partial match")
        self._token = marker + b"\n"

    def feed(self, data: bytes) -> Frame:
        """Scan ``data`` up to the first marker line.

        Returns the bytes before the marker, whether a marker was found,
        and the unscanned remainder. Bytes that could still be the start of
        a marker are held back until the next call decides them.
        """
        token = self._token
        out = bytearray()
        i = 0
        n = len(data)
        while i < n:
            if not self._matched and not self._line_start:
                j = data.find(b"\n", i)
                if j < 0:
                    out += data[i:]
                    i = n
                    break
                out += data[i : j + 1]
                i = j + 1
                self._line_start = True
                continue

            c = data[i]
            i += 1
            if c == token[self._matched]:
                self._matched += 1
                if self._matched == len(token):
                    self._matched = 0
                    self._line_start = True
                    return Frame(bytes(out), True, data[i:])
                continue

            # mismatch: the held prefix and this byte are ordinary output
            out += token[: self._matched]
            out.append(c)
            self._matched = 0
            self._line_start = c == _NEWLINE

        return Frame(bytes(out), False, b"")
