#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import math
from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Iterator, List, Optional, Union

from rus_diagnostics import Diagnostic, DiagnosticKind, Severity
from rus_source import Position, SourceCursor, Span
from rus_string_escape import HEX_CHARS, MAX_ASCII_ESCAPE, MAX_UNICODE_DIGITS, decode_literal_body, is_unicode_scalar


# ==========================
# Tokens and lexer
# ==========================

class TokenKind(Enum):
    # Special
    EOF = auto()
    UNKNOWN = auto()  # unrecognized input, already diagnosed

    IDENT = auto()  # identifier, e.g. i, name, etc.
    UNDERSCORE = auto()  # "_"
    INT = auto()  # integer literal, e.g. 42, 0xFF, 0b1010
    FLOAT = auto()  # float literal, e.g. 3.14, 1e10
    STRING = auto()  # string literal, e.g. "hello world"
    CHAR = auto()  # character literal, e.g. 'a', '\n'

    # Keywords
    FN = auto()
    LET = auto()
    VAR = auto()
    WITH = auto()
    CONTRACT = auto()
    IMPL = auto()
    MUT = auto()
    IF = auto()
    ELSE = auto()
    FOR = auto()
    IN = auto()
    LOOP = auto()
    WHILE = auto()
    MATCH = auto()
    BREAK = auto()
    CONTINUE = auto()
    RETURN = auto()
    AS = auto()
    USE = auto()
    PUB = auto()
    ENUM = auto()
    STRUCT = auto()
    TRAIT = auto()
    TRUE = auto()
    FALSE = auto()
    ASYNC = auto()
    AWAIT = auto()
    TRY = auto()
    EFFECT = auto()
    HANDLE = auto()
    EFFECT_GROUP = auto()
    HANDLER_GROUP = auto()
    RESUME = auto()

    # Punctuation
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COMMA = auto()  # ,
    SEMI = auto()  # ;
    COLON = auto()  # :
    DOUBLE_COLON = auto()  # ::
    DOT = auto()  # .
    DOT_DOT = auto()  # ..
    DOT_DOT_EQ = auto()  # ..=
    ARROW = auto()  # ->
    FAT_ARROW = auto()  # =>
    QUESTION = auto()  # ?
    AT = auto()  # @
    HASH = auto()  # #
    DOLLAR = auto()  # $

    # Arithmetic
    PLUS = auto()  # +
    MINUS = auto()  # -
    STAR = auto()  # *
    SLASH = auto()  # /
    PERCENT = auto()  # %

    # Bitwise
    AMP = auto()  # &
    PIPE = auto()  # |
    CARET = auto()  # ^
    SHL = auto()  # <<
    SHR = auto()  # >>

    # Comparison
    EQEQ = auto()  # ==
    NE = auto()  # !=
    LT = auto()  # <
    LE = auto()  # <=
    GT = auto()  # >
    GE = auto()  # >=

    # Logical
    ANDAND = auto()  # &&
    OROR = auto()  # ||
    BANG = auto()  # !

    # Assignment
    EQ = auto()  # =
    PLUS_EQ = auto()  # +=
    MINUS_EQ = auto()  # -=
    STAR_EQ = auto()  # *=
    SLASH_EQ = auto()  # /=
    PERCENT_EQ = auto()  # %=
    AMP_EQ = auto()  # &=
    PIPE_EQ = auto()  # |=
    CARET_EQ = auto()  # ^=
    SHL_EQ = auto()  # <<=
    SHR_EQ = auto()  # >>=

    # Linear reference: "&mut" as one token
    AMP_MUT = auto()


class IntBase(Enum):
    DECIMAL = 10
    HEX = 16
    OCTAL = 8
    BINARY = 2


KEYWORDS = MappingProxyType({
    "fn": TokenKind.FN,
    "let": TokenKind.LET,
    "var": TokenKind.VAR,
    "with": TokenKind.WITH,
    "contract": TokenKind.CONTRACT,
    "impl": TokenKind.IMPL,
    "mut": TokenKind.MUT,
    "if": TokenKind.IF,
    "else": TokenKind.ELSE,
    "for": TokenKind.FOR,
    "in": TokenKind.IN,
    "loop": TokenKind.LOOP,
    "while": TokenKind.WHILE,
    "match": TokenKind.MATCH,
    "break": TokenKind.BREAK,
    "continue": TokenKind.CONTINUE,
    "return": TokenKind.RETURN,
    "as": TokenKind.AS,
    "use": TokenKind.USE,
    "pub": TokenKind.PUB,
    "enum": TokenKind.ENUM,
    "struct": TokenKind.STRUCT,
    "trait": TokenKind.TRAIT,
    "true": TokenKind.TRUE,
    "false": TokenKind.FALSE,
    "async": TokenKind.ASYNC,
    "await": TokenKind.AWAIT,
    "try": TokenKind.TRY,
    "effect": TokenKind.EFFECT,
    "handle": TokenKind.HANDLE,
    "effect_group": TokenKind.EFFECT_GROUP,
    "handler_group": TokenKind.HANDLER_GROUP,
    "resume": TokenKind.RESUME,
})

KEYWORD_KINDS = frozenset(KEYWORDS.values())

# Longest match first: every operator of length N is tried before any of length N-1.
OPERATORS = MappingProxyType({
    3: {
        "..=": TokenKind.DOT_DOT_EQ,
        "<<=": TokenKind.SHL_EQ,
        ">>=": TokenKind.SHR_EQ,
    },
    2: {
        "+=": TokenKind.PLUS_EQ,
        "-=": TokenKind.MINUS_EQ,
        "*=": TokenKind.STAR_EQ,
        "/=": TokenKind.SLASH_EQ,
        "%=": TokenKind.PERCENT_EQ,
        "&=": TokenKind.AMP_EQ,
        "|=": TokenKind.PIPE_EQ,
        "^=": TokenKind.CARET_EQ,
        "==": TokenKind.EQEQ,
        "!=": TokenKind.NE,
        "<=": TokenKind.LE,
        ">=": TokenKind.GE,
        "&&": TokenKind.ANDAND,
        "||": TokenKind.OROR,
        "<<": TokenKind.SHL,
        ">>": TokenKind.SHR,
        "->": TokenKind.ARROW,
        "=>": TokenKind.FAT_ARROW,
        "::": TokenKind.DOUBLE_COLON,
        "..": TokenKind.DOT_DOT,
    },
    1: {
        "+": TokenKind.PLUS,
        "-": TokenKind.MINUS,
        "*": TokenKind.STAR,
        "/": TokenKind.SLASH,
        "%": TokenKind.PERCENT,
        "&": TokenKind.AMP,
        "|": TokenKind.PIPE,
        "^": TokenKind.CARET,
        "!": TokenKind.BANG,
        "=": TokenKind.EQ,
        "<": TokenKind.LT,
        ">": TokenKind.GT,
        ".": TokenKind.DOT,
        ",": TokenKind.COMMA,
        ";": TokenKind.SEMI,
        ":": TokenKind.COLON,
        "(": TokenKind.LPAREN,
        ")": TokenKind.RPAREN,
        "{": TokenKind.LBRACE,
        "}": TokenKind.RBRACE,
        "[": TokenKind.LBRACKET,
        "]": TokenKind.RBRACKET,
        "?": TokenKind.QUESTION,
        "@": TokenKind.AT,
        "#": TokenKind.HASH,
        "$": TokenKind.DOLLAR,
    },
})

AMP_MUT_TEXT = "&mut"

BASE_PREFIXES = MappingProxyType({
    "0x": IntBase.HEX,
    "0o": IntBase.OCTAL,
    "0b": IntBase.BINARY,
})

BASE_DIGITS = MappingProxyType({
    IntBase.DECIMAL: "0123456789",
    IntBase.HEX: HEX_CHARS,
    IntBase.OCTAL: "01234567",
    IntBase.BINARY: "01",
})

BASE_NAMES = MappingProxyType({
    IntBase.DECIMAL: "decimal",
    IntBase.HEX: "hexadecimal",
    IntBase.OCTAL: "octal",
    IntBase.BINARY: "binary",
})

DEFAULT_INT_LITERAL_BITS = 64


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_ident_start(c: str) -> bool:
    return c.isalpha() or c == "_"


def _is_ident_continue(c: str) -> bool:
    return c.isalnum() or c == "_"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str  # exact lexeme
    span: Span
    # Literal payloads: int for INT, float for FLOAT, decoded str for STRING and CHAR
    value: Union[int, float, str, None] = None
    base: Optional[IntBase] = None  # INT only
    digits: Optional[str] = None  # INT only: digit text without prefix
    scientific: bool = False  # FLOAT only: has an exponent

    @property
    def line(self) -> int:
        return self.span.start.line

    @property
    def column(self) -> int:
        return self.span.start.column

    @property
    def is_keyword(self) -> bool:
        return self.kind in KEYWORD_KINDS

    def describe(self) -> str:
        """Human-readable token text for diagnostics."""
        return "end of input" if self.kind is TokenKind.EOF else f"'{self.text}'"


def is_reserved_keyword(word: str) -> bool:
    return word in KEYWORDS


class Lexer:
    """
    Converts source text into tokens.

    Never fails: invalid input produces a diagnostic in `self.diagnostics` and a
    best-effort token (UNKNOWN for unrecognized characters), then scanning
    resumes.
    """

    def __init__(self, source: str, filename: str = "<input>",
                 int_literal_bits: int = DEFAULT_INT_LITERAL_BITS) -> None:
        self.cursor = SourceCursor(source)
        self.filename = filename
        self.int_max = (1 << int_literal_bits) - 1
        self.int_literal_bits = int_literal_bits
        self.diagnostics: List[Diagnostic] = []
        self._eof: Optional[Token] = None

    @classmethod
    def from_source(cls, source: str) -> "Lexer":
        return cls(source)

    # --- diagnostics ---

    def _report(self, kind: DiagnosticKind, message: str, start: Position, end: Optional[Position] = None,
                severity: Severity = Severity.ERROR) -> None:
        span = Span(start, end if end is not None else self.cursor.position)
        self.diagnostics.append(Diagnostic(kind, message, span, severity, self.filename))

    # --- main API ---

    def tokenize(self) -> List[Token]:
        return list(self)

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.kind is TokenKind.EOF:
                return

    def next_token(self) -> Token:
        if self._eof is not None:
            return self._eof

        self._skip_ws_and_comments()
        cur = self.cursor
        start = cur.position

        if cur.at_end():
            self._eof = Token(TokenKind.EOF, "", Span(start, start))
            return self._eof

        c = cur.peek()

        # identifiers / keywords and underscore
        if _is_ident_start(c):
            cur.advance()
            while _is_ident_continue(cur.peek()):
                cur.advance()
            text = cur.text_since(start)
            if text == "_":
                kind = TokenKind.UNDERSCORE
            else:
                kind = KEYWORDS.get(text, TokenKind.IDENT)
            return self._make(kind, start)

        # numbers
        if _is_digit(c):
            return self._read_number(start)

        # strings
        if c == '"':
            return self._read_string_literal(start)

        # char literals
        if c == "'":
            return self._read_char_literal(start)

        # "&mut" is one token unless "mut" continues into a longer identifier
        if cur.startswith(AMP_MUT_TEXT) and not _is_ident_continue(cur.peek(len(AMP_MUT_TEXT))):
            for _ in AMP_MUT_TEXT:
                cur.advance()
            return self._make(TokenKind.AMP_MUT, start)

        for width in (3, 2, 1):
            kind = OPERATORS[width].get(cur.source[cur.offset:cur.offset + width])
            if kind is not None:
                for _ in range(width):
                    cur.advance()
                return self._make(kind, start)

        cur.advance()
        self._report(DiagnosticKind.UNRECOGNIZED_CHARACTER,
                     f"[LEX-0040] unexpected character {c!r} at {start.line}:{start.column}", start)
        return self._make(TokenKind.UNKNOWN, start)

    def _make(self, kind: TokenKind, start: Position, **payload) -> Token:
        end = self.cursor.position
        return Token(kind, self.cursor.text_since(start), Span(start, end), **payload)

    # --- numbers ---

    def _consume_digits(self, allowed: str) -> str:
        digits: List[str] = []
        while True:
            c = self.cursor.peek()
            if c in allowed and c != "\0":
                digits.append(self.cursor.advance())
            elif c == "_":
                self.cursor.advance()  # digit separator
            else:
                break
        return "".join(digits)

    def _read_number(self, start: Position) -> Token:
        cur = self.cursor
        base = BASE_PREFIXES.get(cur.source[cur.offset:cur.offset + 2], IntBase.DECIMAL)
        if base is not IntBase.DECIMAL:
            cur.advance()  # '0'
            cur.advance()  # base letter

        digits = self._consume_digits(BASE_DIGITS[base])
        is_float = False
        scientific = False

        if base is IntBase.DECIMAL:
            # fraction: '.' must be followed by a digit, so "1..2" and "1.foo" stay integers
            if cur.peek() == "." and _is_digit(cur.peek(1)):
                cur.advance()
                self._consume_digits(BASE_DIGITS[IntBase.DECIMAL])
                is_float = True
            # exponent: e/E, optional sign, then at least one digit
            if cur.peek() in ("e", "E"):
                sign = 1 if cur.peek(1) in ("+", "-") else 0
                if _is_digit(cur.peek(1 + sign)):
                    cur.advance()
                    if sign:
                        cur.advance()
                    self._consume_digits(BASE_DIGITS[IntBase.DECIMAL])
                    is_float = True
                    scientific = True

        literal = cur.text_since(start)

        if not digits and not is_float:
            self._report(DiagnosticKind.INVALID_NUMBER,
                         f"[LEX-0062] missing digits after {BASE_NAMES[base]} literal prefix", start)
            self._skip_ident_tail()
            return self._make(TokenKind.INT, start, value=0, base=base, digits="")

        if _is_ident_continue(cur.peek()):
            bad_pos = cur.position
            bad = cur.peek()
            self._skip_ident_tail()
            self._report(DiagnosticKind.INVALID_NUMBER,
                         f"[LEX-0061] invalid character '{bad}' after {BASE_NAMES[base]} literal", bad_pos)

        if is_float:
            value = float(literal.replace("_", ""))
            if math.isinf(value):
                self._report(DiagnosticKind.FLOAT_OUT_OF_RANGE,
                             f"[LEX-0063] float literal '{literal}' is out of range and rounds to infinity",
                             start, severity=Severity.WARNING)
            return self._make(TokenKind.FLOAT, start, value=value, scientific=scientific)

        value = int(digits, base.value)
        if value > self.int_max:
            self._report(DiagnosticKind.INTEGER_OVERFLOW,
                         f"[LEX-0060] integer literal '{literal}' exceeds {self.int_literal_bits}-bit range", start)
        return self._make(TokenKind.INT, start, value=value, base=base, digits=digits)

    def _skip_ident_tail(self) -> None:
        while _is_ident_continue(self.cursor.peek()):
            self.cursor.advance()

    # --- strings and chars ---

    def _read_escape(self) -> None:
        """Consume one escape sequence starting at the backslash, reporting it if invalid."""
        cur = self.cursor
        esc_start = cur.position
        cur.advance()  # '\'
        esc = cur.peek()

        if esc in ("n", "r", "t", "\\", '"', "'", "0"):
            cur.advance()
            return

        if esc == "x":  # \xHH, at most 0x7F
            cur.advance()
            hex_digits = ""
            while len(hex_digits) < 2 and cur.peek() in HEX_CHARS and cur.peek() != "\0":
                hex_digits += cur.advance()
            if len(hex_digits) != 2:
                self._report(DiagnosticKind.INVALID_ESCAPE,
                             "[LEX-0050] invalid hex escape sequence, expected exactly two hex digits", esc_start)
            elif int(hex_digits, 16) > MAX_ASCII_ESCAPE:
                self._report(DiagnosticKind.INVALID_ESCAPE,
                             f"[LEX-0050] hex escape '\\x{hex_digits}' out of range (must be at most \\x7F)",
                             esc_start)
            return

        if esc == "u":  # \u{H...}
            cur.advance()
            if cur.peek() != "{":
                self._report(DiagnosticKind.INVALID_ESCAPE,
                             "[LEX-0051] invalid unicode escape sequence, expected '{' after \\u", esc_start)
                return
            cur.advance()
            hex_digits = ""
            while cur.peek() in HEX_CHARS and cur.peek() != "\0":
                hex_digits += cur.advance()
            if cur.peek() != "}" or not hex_digits or len(hex_digits) > MAX_UNICODE_DIGITS:
                self._report(DiagnosticKind.INVALID_ESCAPE,
                             "[LEX-0051] invalid unicode escape sequence, expected \\u{H} with 1 to 6 hex digits",
                             esc_start)
                if cur.peek() == "}":
                    cur.advance()
                return
            cur.advance()  # '}'
            if not is_unicode_scalar(int(hex_digits, 16)):
                self._report(DiagnosticKind.INVALID_ESCAPE,
                             f"[LEX-0052] unicode escape '\\u{{{hex_digits}}}' is not a valid scalar value",
                             esc_start)
            return

        if cur.at_end() or esc == "\n":
            # Backslash at end of line; the caller reports the unterminated literal.
            return

        cur.advance()
        self._report(DiagnosticKind.INVALID_ESCAPE, f"[LEX-0059] unknown escape sequence \\{esc}", esc_start)

    def _read_literal_body(self, quote: str) -> tuple[str, bool]:
        """Scan up to the closing quote on the same line. Returns (raw body, terminated)."""
        cur = self.cursor
        body_start = cur.offset
        while True:
            ch = cur.peek()
            if cur.at_end() or ch == "\n":
                return cur.source[body_start:cur.offset], False
            if ch == "\\":
                self._read_escape()
                continue
            if ch == quote:
                body = cur.source[body_start:cur.offset]
                cur.advance()
                return body, True
            cur.advance()

    def _read_string_literal(self, start: Position) -> Token:
        self.cursor.advance()  # opening '"'
        body, terminated = self._read_literal_body('"')
        if not terminated:
            self._report(DiagnosticKind.UNTERMINATED_STRING, "[LEX-0010] unterminated string literal", start)
        return self._make(TokenKind.STRING, start, value=decode_literal_body(body))

    def _read_char_literal(self, start: Position) -> Token:
        self.cursor.advance()  # opening "'"
        body, terminated = self._read_literal_body("'")
        value = decode_literal_body(body)
        if not terminated:
            self._report(DiagnosticKind.UNTERMINATED_CHAR, "[LEX-0020] unterminated char literal", start)
        elif not value:
            self._report(DiagnosticKind.INVALID_CHAR_LITERAL, "[LEX-0021] empty char literal", start)
        elif len(value) > 1:
            self._report(DiagnosticKind.INVALID_CHAR_LITERAL,
                         "[LEX-0022] char literal must contain exactly one character", start)
        return self._make(TokenKind.CHAR, start, value=value[:1] if value else "�")

    # --- trivia ---

    def _skip_ws_and_comments(self) -> None:
        cur = self.cursor
        while True:
            c = cur.peek()
            if c in (" ", "\t", "\r", "\n") and not cur.at_end():
                cur.advance()
                continue
            if c == "/" and cur.peek(1) == "/":
                # line comment
                while cur.peek() != "\n" and not cur.at_end():
                    cur.advance()
                continue
            if c == "/" and cur.peek(1) == "*":
                # block comment
                start = cur.position
                cur.advance()  # '/'
                cur.advance()  # '*'
                while True:
                    if cur.at_end():
                        self._report(DiagnosticKind.UNTERMINATED_COMMENT,
                                     "[LEX-0070] unterminated block comment", start)
                        break
                    if cur.peek() == "*" and cur.peek(1) == "/":
                        cur.advance()  # '*'
                        cur.advance()  # '/'
                        break
                    cur.advance()
                continue
            break
