#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

"""
Library entry points of the rus front end.

Both functions are total: malformed input shows up as diagnostics, never as an
exception. Deciding whether the diagnostics are fatal is up to the caller.
"""

from typing import List, Optional, Tuple

from rus_ast import Program
from rus_context import CompilationContext
from rus_diagnostics import Diagnostic, has_errors, sort_diagnostics
from rus_lexer import Lexer, Token
from rus_logger import log_debug, log_stage
from rus_parser import Parser


def lex(source: str, filename: str = "<input>",
        context: Optional[CompilationContext] = None) -> Tuple[List[Token], List[Diagnostic]]:
    """Tokenize `source`. The token list always ends with exactly one EOF token."""
    if context is None:
        context = CompilationContext.default()

    log_stage(context, "Lexing", filename)
    lexer = Lexer(source, filename, context.int_literal_bits)
    tokens = lexer.tokenize()
    log_debug(context, f"Lexed {len(tokens)} tokens with {len(lexer.diagnostics)} diagnostics")
    return tokens, lexer.diagnostics


def parse(source: str, filename: str = "<input>",
          context: Optional[CompilationContext] = None) -> Tuple[Program, List[Diagnostic]]:
    """Lex and parse `source`. Diagnostics of both stages are ordered by source position."""
    if context is None:
        context = CompilationContext.default()

    tokens, lex_diagnostics = lex(source, filename, context)

    log_stage(context, "Parsing", filename)
    parser = Parser(tokens, filename)
    program = parser.parse_program()
    diagnostics = sort_diagnostics(lex_diagnostics + parser.diagnostics)
    log_debug(context, f"Parsed {len(program.items)} items with {len(parser.diagnostics)} diagnostics")
    if has_errors(diagnostics):
        log_debug(context, f"'{filename}' has {sum(d.is_error for d in diagnostics)} errors")
    return program, diagnostics
