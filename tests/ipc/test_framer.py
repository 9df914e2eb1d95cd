"""Tests for marker line detection."""

from sqlshell.ipc.framer import MARKER, Framer, marker_command, unique_marker


def _frames(framer: Framer, chunks: list[bytes]) -> list[tuple[bytes, bool]]:
    """Feed chunks and collect (data, boundary) pairs, following rest bytes."""
    out: list[tuple[bytes, bool]] = []
    for chunk in chunks:
        pending = chunk
        while pending:
            frame = framer.feed(pending)
            out.append((frame.data, frame.boundary))
            pending = frame.rest
    return out


def _joined(frames: list[tuple[bytes, bool]]) -> list[bytes]:
    """Merge data between boundaries into one span per statement."""
    spans: list[bytes] = []
    current = b""
    for data, boundary in frames:
        current += data
        if boundary:
            spans.append(current)
            current = b""
    if current:
        spans.append(current)
    return spans


def test_marker_command():
    assert marker_command(MARKER) == b"\n.print \"'''\"\n"


def test_unique_marker_shape():
    marker = unique_marker()
    assert marker.startswith(MARKER)
    assert len(marker) == len(MARKER) + 32
    assert marker != unique_marker()


def test_single_boundary():
    framer = Framer()
    frame = framer.feed(b"'a'\n'''\n")
    assert frame == (b"'a'\n", True, b"")


def test_boundary_with_trailing_bytes():
    framer = Framer()
    frame = framer.feed(b"1\n'''\n2\n")
    assert frame.data == b"1\n"
    assert frame.boundary
    assert frame.rest == b"2\n"


def test_empty_output_before_marker():
    framer = Framer()
    frame = framer.feed(b"'''\n")
    assert frame == (b"", True, b"")


def test_never_reports_early():
    """No boundary until the marker's newline arrives."""
    framer = Framer()
    frame = framer.feed(b"x\n'''")
    assert frame.data == b"x\n"
    assert not frame.boundary
    frame = framer.feed(b"\n")
    assert frame == (b"", True, b"")


def test_marker_mid_line_is_data():
    framer = Framer()
    frame = framer.feed(b"'a''''\n")
    assert frame.data == b"'a''''\n"
    assert not frame.boundary


def test_single_byte_delivery():
    stream = b"'x'\n'''\n"
    framer = Framer()
    frames = _frames(framer, [bytes([b]) for b in stream])
    assert _joined(frames) == [b"'x'\n"]
    assert frames[-1][1]


def test_mismatch_releases_held_prefix():
    """A partial marker followed by other bytes is ordinary output."""
    framer = Framer()
    frame = framer.feed(b"''")
    assert frame.data == b""
    frame = framer.feed(b"x'\n")
    assert frame.data == b"''x'\n"
    assert not frame.boundary


def test_mismatch_on_newline_keeps_line_start():
    framer = Framer()
    frame = framer.feed(b"''\n'''\n")
    assert frame == (b"''\n", True, b"")


def test_two_statements_in_one_chunk():
    framer = Framer()
    frames = _frames(framer, [b"1\n'''\n2\n'''\n"])
    assert _joined(frames) == [b"1\n", b"2\n"]


def test_marker_split_across_reads():
    framer = Framer()
    frames = _frames(framer, [b"a\n'", b"'", b"'\nb\n'''\n"])
    assert _joined(frames) == [b"a\n", b"b\n"]


def test_collision_with_row_output():
    """The default marker can appear in data: a string ending in newline-quote."""
    # SELECT 'x' || char(10) || '''' renders as 'x\n''' on two lines
    output = b"'x\n'''\n"
    framer = Framer()
    frame = framer.feed(output + b"'''\n")
    assert frame.boundary
    assert frame.data == b"'x\n"  # cut short by the colliding line


def test_unique_marker_avoids_collision():
    marker = unique_marker()
    output = b"'x\n'''\n"
    framer = Framer(marker)
    frame = framer.feed(output + marker + b"\n")
    assert frame == (output, True, b"")


def test_expect_switches_marker():
    framer = Framer()
    marker = unique_marker()
    framer.expect(marker)
    assert framer.marker == marker
    frame = framer.feed(b"'''\n" + marker + b"\n")
    assert frame == (b"'''\n", True, b"")
