#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from conftest import codes_of, has_error_code
from rus_ast import FuncDecl, LetDecl
from rus_context import CompilationContext, LogLevel
from rus_frontend import lex, parse
from rus_lexer import TokenKind


def test_lex_ends_with_single_eof():
    tokens, diagnostics = lex("let x = 1;")

    assert [t.kind for t in tokens] == [
        TokenKind.LET, TokenKind.IDENT, TokenKind.EQ, TokenKind.INT, TokenKind.SEMI, TokenKind.EOF,
    ]
    assert diagnostics == []


def test_parse_clean_program():
    program, diagnostics = parse("fn main() { return; }\nlet x = 1;")

    assert diagnostics == []
    assert isinstance(program.items[0], FuncDecl)
    assert isinstance(program.items[1], LetDecl)


def test_parse_merges_diagnostics_in_source_order():
    _, diagnostics = parse('let = 1;\nlet s = "open')

    assert codes_of(diagnostics) == ["PAR-0080", "LEX-0010", "PAR-0081"]


def test_parse_diagnostics_carry_filename():
    _, diagnostics = parse("let x = 1", filename="<stdin>")

    assert diagnostics
    assert all(d.filename == "<stdin>" for d in diagnostics)
    assert diagnostics[0].format().startswith("<stdin>:1:")


def test_int_literal_bits_come_from_context():
    context = CompilationContext(int_literal_bits=32)

    _, narrow = parse("let x = 4294967296;", context=context)
    _, wide = parse("let x = 4294967296;")

    assert has_error_code(narrow, "LEX-0060")
    assert "32-bit" in narrow[0].message
    assert wide == []


def test_default_context_is_silent(capsys):
    parse("let x = 1;")

    assert capsys.readouterr().err == ""


def test_info_logs_stages(capsys):
    parse("let x = 1;", context=CompilationContext(log_level=LogLevel.INFO))

    err = capsys.readouterr().err
    assert "Lexing '<input>'" in err
    assert "Parsing '<input>'" in err
    assert "Lexed" not in err


def test_debug_logs_counts(capsys):
    parse("let x = 1", context=CompilationContext(log_level=LogLevel.DEBUG))

    err = capsys.readouterr().err
    assert "Lexed 5 tokens with 0 diagnostics" in err
    assert "Parsed 1 items with 1 diagnostics" in err
    assert "'<input>' has 1 errors" in err


def test_rich_format_prefixes_level(capsys):
    lex("x", context=CompilationContext(log_level=LogLevel.INFO, log_rich_format=True))

    assert "[INFO] Lexing '<input>'" in capsys.readouterr().err
