#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from rus_source import Span


DIAGNOSTIC_CODE_FAMILIES = {
    "LEX": [
        "LEX-0010",
        "LEX-0020",
        "LEX-0021",
        "LEX-0022",
        "LEX-0040",
        "LEX-0050",
        "LEX-0051",
        "LEX-0052",
        "LEX-0059",
        "LEX-0060",
        "LEX-0061",
        "LEX-0062",
        "LEX-0063",  # warning: float literal rounds to infinity
        "LEX-0070",
    ],
    "PAR": [
        "PAR-0041",
        "PAR-0042",
        "PAR-0043",
        "PAR-0045",
        "PAR-0047",
        "PAR-0050",
        "PAR-0051",
        "PAR-0052",
        "PAR-0053",
        "PAR-0054",
        "PAR-0055",
        "PAR-0056",
        "PAR-0057",
        "PAR-0058",
        "PAR-0059",
        "PAR-0060",
        "PAR-0061",
        "PAR-0062",
        "PAR-0063",
        "PAR-0064",
        "PAR-0065",
        "PAR-0066",
        "PAR-0070",
        "PAR-0071",
        "PAR-0072",
        "PAR-0073",
        "PAR-0080",
        "PAR-0081",
        "PAR-0082",
        "PAR-0090",
        "PAR-0091",
        "PAR-0100",
        "PAR-0101",
        "PAR-0210",
        "PAR-0212",
        "PAR-0224",
        "PAR-0225",
        "PAR-0300",
        "PAR-0400",
        "PAR-9001",
    ],
}


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


class DiagnosticFamily(Enum):
    LEX_ERROR = "LEX"
    SYNTAX_ERROR = "PAR"


class DiagnosticKind(Enum):
    # LexError family
    UNTERMINATED_STRING = "LEX:unterminated-string"
    UNTERMINATED_CHAR = "LEX:unterminated-char"
    INVALID_CHAR_LITERAL = "LEX:invalid-char-literal"
    INVALID_ESCAPE = "LEX:invalid-escape"
    INTEGER_OVERFLOW = "LEX:integer-overflow"
    INVALID_NUMBER = "LEX:invalid-number"
    FLOAT_OUT_OF_RANGE = "LEX:float-out-of-range"
    UNRECOGNIZED_CHARACTER = "LEX:unrecognized-character"
    UNTERMINATED_COMMENT = "LEX:unterminated-comment"

    # SyntaxError family
    EXPECTED_TOKEN = "PAR:expected-token"
    UNEXPECTED_EOF = "PAR:unexpected-eof"
    MALFORMED_PARAMETERS = "PAR:malformed-parameters"
    MALFORMED_ARGUMENTS = "PAR:malformed-arguments"
    UNTERMINATED_BLOCK = "PAR:unterminated-block"
    UNSUPPORTED_CONSTRUCT = "PAR:unsupported-construct"
    INVALID_ASSIGNMENT_TARGET = "PAR:invalid-assignment-target"
    UNSUPPORTED_FIELD_ACCESS = "PAR:unsupported-field-access"
    RESERVED_NAME = "PAR:reserved-name"
    NESTING_TOO_DEEP = "PAR:nesting-too-deep"

    @property
    def family(self) -> DiagnosticFamily:
        return DiagnosticFamily(self.value.split(":", 1)[0])


@dataclass
class Diagnostic:
    kind: DiagnosticKind
    message: str
    span: Optional[Span] = None
    severity: Severity = Severity.ERROR
    filename: Optional[str] = None  # file path

    @property
    def family(self) -> DiagnosticFamily:
        return self.kind.family

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    # Primary location (start of the span)
    @property
    def line(self) -> Optional[int]:
        return self.span.start.line if self.span is not None else None

    @property
    def column(self) -> Optional[int]:
        return self.span.start.column if self.span is not None else None

    # Return the one-line header; snippets are the caller's business
    def format(self) -> str:
        loc = ""
        if self.filename is not None and not self.filename.startswith("<"):
            loc += f"{os.path.abspath(str(self.filename))}"
        elif self.filename is not None:
            loc += self.filename
        if self.line is not None:
            loc += f":{self.line}"
            if self.column is not None:
                loc += f":{self.column}"
        if loc:
            loc += ": "
        return f"{loc}{self.severity.value}: {self.message}"


def has_errors(diagnostics: Iterable[Diagnostic]) -> bool:
    return any(d.is_error for d in diagnostics)


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    """Stable sort by source position; diagnostics without a span go last."""
    def key(d: Diagnostic) -> int:
        return d.span.start.offset if d.span is not None else 1 << 62

    return sorted(diagnostics, key=key)
