#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from conftest import codes_of, has_error_code
from rus_ast import (
    Block, CallExpr, EffectDecl, ErrorDecl, ErrorStmt, ExprStmt, FuncDecl, HandlerDecl, Identifier, IntLiteral,
    LetDecl, ReturnStmt)
from rus_diagnostics import DiagnosticKind, has_errors
from rus_lexer import Lexer
from rus_parser import MAX_NESTING_DEPTH, Parser


def test_missing_paren_in_first_function_does_not_swallow_second(parse_src):
    program, diags = parse_src("""
        fn first(a, b {
            let x = a;
        }

        fn second() {
            return 1;
        }
    """)

    assert len(diags) == 1
    assert diags[0].kind is DiagnosticKind.MALFORMED_PARAMETERS
    assert has_error_code(diags, "PAR-0045")
    assert (diags[0].line, diags[0].column) == (2, 15)
    assert isinstance(program.items[0], ErrorDecl)
    assert program.items[1] == FuncDecl("second", [], None, [], Block([ReturnStmt(IntLiteral(1, "1"))]))


def test_block_recovers_at_statement_boundaries(parse_src):
    program, diags = parse_src("""
        fn main() {
            let a = ;
            let b = 2;
            foo(1, 2;
            bar();
        }
    """)

    assert codes_of(diags) == ["PAR-0225", "PAR-0210"]
    assert diags[1].kind is DiagnosticKind.MALFORMED_ARGUMENTS
    stmts = program.items[0].body.stmts
    assert len(stmts) == 4
    assert isinstance(stmts[0], ErrorDecl)
    assert stmts[1] == LetDecl("b", None, IntLiteral(2, "2"))
    assert isinstance(stmts[2], ErrorStmt)
    assert stmts[3] == ExprStmt(CallExpr(Identifier("bar"), []))


def test_panic_mode_reports_only_first_error_of_a_statement(parse_src):
    _, diags = parse_src("let x = (1 + ;")

    assert len(diags) == 1
    assert has_error_code(diags, "PAR-0225")


def test_unterminated_block_at_eof(parse_src):
    program, diags = parse_src("fn main() { let x = 1;")

    assert len(diags) == 1
    assert diags[0].kind is DiagnosticKind.UNTERMINATED_BLOCK
    assert has_error_code(diags, "PAR-0091")
    assert program.items[0].body.stmts == [LetDecl("x", None, IntLiteral(1, "1"))]


def test_unexpected_end_of_input(parse_src):
    _, diags = parse_src("let x =")

    assert len(diags) == 1
    assert diags[0].kind is DiagnosticKind.UNEXPECTED_EOF
    assert "end of input" in diags[0].message

    _, diags = parse_src("effect IO")
    assert diags[0].kind is DiagnosticKind.UNEXPECTED_EOF
    assert has_error_code(diags, "PAR-0051")


def test_unsupported_construct_is_skipped_as_a_whole(parse_src):
    program, diags = parse_src("""
        struct Point { x: i32, y: i32 }
        fn main() { }
    """)

    assert len(diags) == 1
    assert diags[0].kind is DiagnosticKind.UNSUPPORTED_CONSTRUCT
    assert has_error_code(diags, "PAR-9001")
    assert "'struct'" in diags[0].message
    assert isinstance(program.items[0], ErrorDecl)
    assert program.items[1] == FuncDecl("main", [], None, [], Block([]))


def test_unsupported_statement_inside_block(parse_src):
    program, diags = parse_src("""
        fn main() {
            while x { x -= 1; }
            done();
        }
    """)

    assert codes_of(diags) == ["PAR-9001"]
    stmts = program.items[0].body.stmts
    assert isinstance(stmts[0], ErrorDecl)
    assert stmts[-1] == ExprStmt(CallExpr(Identifier("done"), []))


def test_stray_closing_brace_at_top_level(parse_src):
    program, diags = parse_src("} fn main() { }")

    assert codes_of(diags) == ["PAR-0225"]
    assert isinstance(program.items[0], ErrorStmt)
    assert isinstance(program.items[1], FuncDecl)


def test_bad_effect_operation_keeps_the_rest_of_the_effect(parse_src):
    program, diags = parse_src("""
        effect IO {
            fn read(path) -> String;
            fn write(s: String);
        }
        fn main() { }
    """)

    assert codes_of(diags) == ["PAR-0056"]
    effect = program.items[0]
    assert isinstance(effect, EffectDecl)
    assert [op.name for op in effect.operations] == ["write"]
    assert isinstance(program.items[1], FuncDecl)


def test_bad_effect_entry_without_progress(parse_src):
    program, diags = parse_src("effect IO { let x; fn ok(); }")

    assert codes_of(diags) == ["PAR-0052"]
    assert [op.name for op in program.items[0].operations] == ["ok"]


def test_bad_handler_clause(parse_src):
    program, diags = parse_src("""
        handle IO {
            read(p, ) { }
        }
        let after = 1;
    """)

    assert codes_of(diags) == ["PAR-0064"]
    assert program.items[0] == HandlerDecl("IO", [])
    assert program.items[1] == LetDecl("after", None, IntLiteral(1, "1"))


def test_errors_in_separate_functions_are_all_reported(parse_src):
    _, diags = parse_src("""
        fn a() { let = 1; }
        fn b() { g(; }
        fn c( { }
    """)

    assert codes_of(diags) == ["PAR-0080", "PAR-0225", "PAR-0043"]


def test_unknown_tokens_are_not_reported_twice(parse_src):
    program, diags = parse_src("let x = 1 ` ;")

    assert codes_of(diags) == ["LEX-0040"]
    assert program.items == [LetDecl("x", None, IntLiteral(1, "1"))]


def test_garbage_input_terminates(parse_src):
    program, diags = parse_src(") ) ] , . else in as => } }")

    assert has_errors(diags)
    assert all(isinstance(item, ErrorStmt) for item in program.items)


def test_parser_from_source_collects_diagnostics():
    parser = Parser.from_source("fn (")
    program = parser.parse_program()

    assert codes_of(parser.diagnostics) == ["PAR-0041"]
    assert parser.panic_mode is False
    assert isinstance(program.items[0], ErrorDecl)


def test_parser_accepts_lazy_token_source():
    parser = Parser(Lexer("fn main() { }", filename="lazy.rus"), filename="lazy.rus")
    program = parser.parse_program()

    assert parser.diagnostics == []
    assert program.filename == "lazy.rus"
    assert program.items == [FuncDecl("main", [], None, [], Block([]))]


def test_reserved_keyword_as_variable_name(parse_src):
    program, diags = parse_src("""
        let fn = 1;
        var if = 2;
        let ok = 3;
    """)

    assert codes_of(diags) == ["PAR-0082", "PAR-0082"]
    assert diags[0].kind is DiagnosticKind.RESERVED_NAME
    assert "'fn'" in diags[0].message
    assert (diags[0].line, diags[0].column) == (2, 5)
    assert isinstance(program.items[0], ErrorDecl)
    assert isinstance(program.items[1], ErrorDecl)
    assert program.items[2] == LetDecl("ok", None, IntLiteral(3, "3"))


def test_reserved_keyword_as_function_or_parameter_name(parse_src):
    program, diags = parse_src("""
        fn return() { }
        fn f(effect: Int) { }
        fn g() { }
    """)

    assert codes_of(diags) == ["PAR-0082", "PAR-0082"]
    assert program.items[2] == FuncDecl("g", [], None, [], Block([]))


def test_deeply_nested_parentheses_are_reported_not_raised(parse_src):
    depth = 1000
    program, diags = parse_src("let x = " + "(" * depth + "1" + ")" * depth + ";\nlet y = 2;")

    assert codes_of(diags) == ["PAR-0300"]
    assert diags[0].kind is DiagnosticKind.NESTING_TOO_DEEP
    assert isinstance(program.items[0], ErrorDecl)
    assert program.items[1] == LetDecl("y", None, IntLiteral(2, "2"))


def test_deeply_nested_unary_chain_is_reported_not_raised(parse_src):
    program, diags = parse_src("let x = " + "-" * 1000 + "1;\nlet y = 2;")

    assert codes_of(diags) == ["PAR-0300"]
    assert program.items[1] == LetDecl("y", None, IntLiteral(2, "2"))


def test_deeply_nested_blocks_are_reported_not_raised(parse_src):
    depth = 1000
    program, diags = parse_src("fn f() " + "{" * depth + "}" * depth + "\nfn g() { }")

    assert codes_of(diags) == ["PAR-0300"]
    assert isinstance(program.items[0], FuncDecl)
    assert program.items[1] == FuncDecl("g", [], None, [], Block([]))


def test_nesting_below_limit_is_accepted(parse_src):
    depth = MAX_NESTING_DEPTH // 2
    _, diags = parse_src("fn f() " + "{" * depth + "}" * depth + "\nlet x = " + "(" * depth + "1" + ")" * depth + ";")

    assert diags == []


def test_long_else_if_chain_does_not_count_as_nesting(parse_src):
    program, diags = parse_src("if a { }" + " else if a { }" * 1000 + " else { }")

    assert diags == []
    assert len(program.items) == 1
