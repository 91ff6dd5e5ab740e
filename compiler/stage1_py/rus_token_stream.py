#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from typing import Iterable, Iterator, List, NewType, Optional

from rus_internal_error import ICELocation, InternalCompilerError
from rus_lexer import Token, TokenKind
from rus_source import Position, Span

Mark = NewType("Mark", int)


class TokenStream:
    """
    Buffered, lookahead-capable view over a token sequence.

    Tokens are pulled from the underlying iterable on demand. Peeking past the
    end always yields the same EOF token; if the source runs dry without one,
    an EOF token is synthesized after the last token.
    """

    def __init__(self, tokens: Iterable[Token], filename: Optional[str] = None) -> None:
        self._source: Optional[Iterator[Token]] = iter(tokens)
        self._buffer: List[Token] = []
        self._index = 0
        self.filename = filename

    def _fill(self, upto: int) -> None:
        """Buffer tokens until index `upto` is available or EOF was reached."""
        while len(self._buffer) <= upto and self._source is not None:
            tok = next(self._source, None)
            if tok is None:
                self._buffer.append(self._synthetic_eof())
            else:
                self._buffer.append(tok)
            if self._buffer[-1].kind is TokenKind.EOF:
                self._source = None

    def _internal_error(self, message: str) -> InternalCompilerError:
        """Build an ICE located at the current token, if it has been buffered."""
        span = self._buffer[self._index].span if self._index < len(self._buffer) else None
        return InternalCompilerError(message, ICELocation(self.filename, span))

    def _synthetic_eof(self) -> Token:
        if self._buffer:
            end = self._buffer[-1].span.end
        else:
            end = Position(1, 1, 0)
        return Token(TokenKind.EOF, "", Span(end, end))

    @property
    def index(self) -> int:
        return self._index

    def peek(self, k: int = 0) -> Token:
        """Return the token `k` positions ahead without consuming anything."""
        if k < 0:
            raise self._internal_error(f"[ICE-0101] negative lookahead {k}")
        self._fill(self._index + k)
        return self._buffer[min(self._index + k, len(self._buffer) - 1)]

    def advance(self) -> Token:
        """Consume and return the current token. At EOF the EOF token is returned and the position stays."""
        tok = self.peek()
        if tok.kind is not TokenKind.EOF:
            self._index += 1
        return tok

    def previous(self) -> Optional[Token]:
        """Most recently consumed token, or None at the start."""
        if self._index == 0:
            return None
        return self._buffer[self._index - 1]

    def at_end(self) -> bool:
        return self.peek().kind is TokenKind.EOF

    def mark(self) -> Mark:
        return Mark(self._index)

    def reset(self, mark: Mark) -> None:
        """Rewind to a position previously returned by `mark()`."""
        if not 0 <= mark <= len(self._buffer):
            raise self._internal_error(f"[ICE-0102] invalid token stream mark {mark}")
        self._index = mark
