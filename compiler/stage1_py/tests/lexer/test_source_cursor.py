#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from rus_source import Position, SourceCursor, Span


def test_cursor_tracks_line_column_and_offset():
    cur = SourceCursor("ab\ncd")

    assert cur.position == Position(1, 1, 0)
    assert cur.advance() == "a"
    assert cur.advance() == "b"
    assert cur.position == Position(1, 3, 2)
    assert cur.advance() == "\n"
    assert cur.position == Position(2, 1, 3)
    cur.advance()
    assert cur.position == Position(2, 2, 4)


def test_peek_does_not_move():
    cur = SourceCursor("xyz")

    assert cur.peek() == "x"
    assert cur.peek(2) == "z"
    assert cur.position.offset == 0


def test_reading_past_end_yields_nul_and_keeps_position():
    cur = SourceCursor("a")
    cur.advance()

    assert cur.at_end()
    assert cur.peek() == "\0"
    assert cur.peek(5) == "\0"
    assert cur.advance() == "\0"
    assert cur.position == Position(1, 2, 1)


def test_text_since_and_startswith():
    cur = SourceCursor("&mut x")
    start = cur.position

    assert cur.startswith("&mut")
    for _ in range(4):
        cur.advance()
    assert cur.text_since(start) == "&mut"
    assert not cur.startswith("&mut")


def test_span_accessors_and_text_of():
    src = "fn main"
    span = Span(Position(1, 4, 3), Position(1, 8, 7))

    assert (span.start_line, span.start_column, span.end_line, span.end_column) == (1, 4, 1, 8)
    assert span.text_of(src) == "main"


def test_positions_are_immutable_values():
    assert Position(1, 1, 0) == Position(1, 1, 0)
    assert hash(Position(2, 3, 4)) == hash(Position(2, 3, 4))
