#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass


# ==========================
# Source positions
# ==========================


@dataclass(frozen=True)
class Position:
    line: int  # 1-based
    column: int  # 1-based, counted in characters
    offset: int  # 0-based character offset into the source


@dataclass(frozen=True)
class Span:
    """Half-open source range: `start` is inclusive, `end` is exclusive."""
    start: Position
    end: Position

    @property
    def start_line(self) -> int:
        return self.start.line

    @property
    def start_column(self) -> int:
        return self.start.column

    @property
    def end_line(self) -> int:
        return self.end.line

    @property
    def end_column(self) -> int:
        return self.end.column

    def text_of(self, source: str) -> str:
        return source[self.start.offset:self.end.offset]


class SourceCursor:
    """
    Character cursor over a fully materialized source text.

    Tracks line, column and offset for the next unread character. Reading past
    the end yields "\\0" and leaves the position unchanged.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.length = len(source)
        self.offset = 0
        self.line = 1
        self.column = 1

    def at_end(self) -> bool:
        return self.offset >= self.length

    def peek(self, k: int = 0) -> str:
        i = self.offset + k
        if i >= self.length:
            return "\0"
        return self.source[i]

    def advance(self) -> str:
        c = self.peek()
        if not self.at_end():
            self.offset += 1
            if c == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return c

    def startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.offset)

    @property
    def position(self) -> Position:
        return Position(self.line, self.column, self.offset)

    def text_since(self, start: Position) -> str:
        return self.source[start.offset:self.offset]
