#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os

from rus_diagnostics import (
    Diagnostic,
    DiagnosticFamily,
    DiagnosticKind,
    Severity,
    has_errors,
    sort_diagnostics,
)
from rus_source import Position, Span


def _span(line, column, offset):
    return Span(Position(line, column, offset), Position(line, column + 1, offset + 1))


def test_format_with_pseudo_filename_is_kept_verbatim():
    diag = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "[PAR-0081] expected ';'", _span(2, 7, 12),
                      filename="<input>")

    assert diag.format() == "<input>:2:7: error: [PAR-0081] expected ';'"


def test_format_with_real_filename_uses_absolute_path():
    diag = Diagnostic(DiagnosticKind.UNTERMINATED_STRING, "[LEX-0010] unterminated string literal",
                      _span(1, 9, 8), filename="main.rus")

    assert diag.format() == f"{os.path.abspath('main.rus')}:1:9: error: [LEX-0010] unterminated string literal"


def test_format_without_span_or_filename():
    diag = Diagnostic(DiagnosticKind.UNEXPECTED_EOF, "[PAR-0091] unterminated block")

    assert diag.format() == "error: [PAR-0091] unterminated block"


def test_warning_severity_is_rendered_and_not_an_error():
    diag = Diagnostic(DiagnosticKind.FLOAT_OUT_OF_RANGE, "[LEX-0063] too big", _span(1, 1, 0),
                      severity=Severity.WARNING, filename="<input>")

    assert diag.format() == "<input>:1:1: warning: [LEX-0063] too big"
    assert not diag.is_error
    assert not has_errors([diag])


def test_kind_family():
    assert DiagnosticKind.INVALID_ESCAPE.family is DiagnosticFamily.LEX_ERROR
    assert DiagnosticKind.MALFORMED_ARGUMENTS.family is DiagnosticFamily.SYNTAX_ERROR
    assert Diagnostic(DiagnosticKind.UNTERMINATED_BLOCK, "x").family is DiagnosticFamily.SYNTAX_ERROR


def test_line_and_column_follow_span_start():
    diag = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "x", _span(4, 2, 30))

    assert (diag.line, diag.column) == (4, 2)
    assert Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "x").line is None


def test_sort_is_stable_and_puts_spanless_last():
    late = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "late", _span(3, 1, 20))
    early_a = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "early-a", _span(1, 1, 0))
    spanless = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "spanless")
    early_b = Diagnostic(DiagnosticKind.EXPECTED_TOKEN, "early-b", _span(1, 1, 0))

    ordered = sort_diagnostics([late, spanless, early_a, early_b])

    assert [d.message for d in ordered] == ["early-a", "early-b", "late", "spanless"]
