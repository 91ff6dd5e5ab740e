#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from enum import IntEnum
from types import MappingProxyType
from typing import Iterable, List, Optional, Tuple, Type, Union

from rus_ast import (
    TypeRef, Param, EffectOperation, EffectDecl, HandlerClause, HandlerDecl, EffectGroupDecl, HandlerGroupDecl,
    FuncDecl, LetDecl, VarDecl, ErrorDecl, Program, Block, ExprStmt, AssignStmt, ReturnStmt, IfStmt, ErrorStmt,
    Expr, IntLiteral, FloatLiteral, StringLiteral, CharLiteral, BoolLiteral, Identifier, CallExpr, BinaryOp,
    UnaryOp, Grouping, EffectOp, ErrorExpr, Item, Stmt, Decl)
from rus_diagnostics import Diagnostic, DiagnosticKind
from rus_lexer import Lexer, Token, TokenKind, is_reserved_keyword
from rus_source import Position, Span
from rus_token_stream import TokenStream


# ==========================
# Parser
# ==========================

class Precedence(IntEnum):
    """Binding power, lowest to highest."""
    NONE = 0
    OR = 1  # ||
    AND = 2  # &&
    EQUALITY = 3  # == !=
    RELATIONAL = 4  # < > <= >=
    BIT_OR = 5  # |
    BIT_XOR = 6  # ^
    BIT_AND = 7  # &
    SHIFT = 8  # << >>
    ADDITIVE = 9  # + -
    MULTIPLICATIVE = 10  # * / %
    UNARY = 11  # prefix - ! & &mut
    CALL = 12  # postfix ( )


# All binary operators are left-associative.
BINARY_PRECEDENCE = MappingProxyType({
    TokenKind.OROR: Precedence.OR,
    TokenKind.ANDAND: Precedence.AND,
    TokenKind.EQEQ: Precedence.EQUALITY,
    TokenKind.NE: Precedence.EQUALITY,
    TokenKind.LT: Precedence.RELATIONAL,
    TokenKind.GT: Precedence.RELATIONAL,
    TokenKind.LE: Precedence.RELATIONAL,
    TokenKind.GE: Precedence.RELATIONAL,
    TokenKind.PIPE: Precedence.BIT_OR,
    TokenKind.CARET: Precedence.BIT_XOR,
    TokenKind.AMP: Precedence.BIT_AND,
    TokenKind.SHL: Precedence.SHIFT,
    TokenKind.SHR: Precedence.SHIFT,
    TokenKind.PLUS: Precedence.ADDITIVE,
    TokenKind.MINUS: Precedence.ADDITIVE,
    TokenKind.STAR: Precedence.MULTIPLICATIVE,
    TokenKind.SLASH: Precedence.MULTIPLICATIVE,
    TokenKind.PERCENT: Precedence.MULTIPLICATIVE,
})

PREFIX_OPERATORS = frozenset({TokenKind.MINUS, TokenKind.BANG, TokenKind.AMP, TokenKind.AMP_MUT})

ASSIGNMENT_OPERATORS = frozenset({
    TokenKind.EQ,
    TokenKind.PLUS_EQ,
    TokenKind.MINUS_EQ,
    TokenKind.STAR_EQ,
    TokenKind.SLASH_EQ,
    TokenKind.PERCENT_EQ,
    TokenKind.AMP_EQ,
    TokenKind.PIPE_EQ,
    TokenKind.CARET_EQ,
    TokenKind.SHL_EQ,
    TokenKind.SHR_EQ,
})

DECLARATION_KEYWORDS = frozenset({
    TokenKind.FN,
    TokenKind.LET,
    TokenKind.VAR,
    TokenKind.EFFECT,
    TokenKind.HANDLE,
    TokenKind.EFFECT_GROUP,
    TokenKind.HANDLER_GROUP,
})

# Keywords reserved for constructs this front end does not parse yet
UNSUPPORTED_KEYWORDS = frozenset({
    TokenKind.STRUCT,
    TokenKind.ENUM,
    TokenKind.TRAIT,
    TokenKind.IMPL,
    TokenKind.MATCH,
    TokenKind.LOOP,
    TokenKind.WHILE,
    TokenKind.FOR,
    TokenKind.BREAK,
    TokenKind.CONTINUE,
    TokenKind.WITH,
    TokenKind.RESUME,
    TokenKind.CONTRACT,
    TokenKind.USE,
    TokenKind.PUB,
    TokenKind.ASYNC,
    TokenKind.AWAIT,
    TokenKind.TRY,
})

# Tokens that start a new item; recovery stops in front of them
SYNC_KEYWORDS = DECLARATION_KEYWORDS | UNSUPPORTED_KEYWORDS | {TokenKind.RETURN, TokenKind.IF}

EFFECTS_CLAUSE = "effects"

# Nested items and expressions allowed before PAR-0300; must stay far below the interpreter recursion limit
MAX_NESTING_DEPTH = 100


class Parser:
    """
    Recursive-descent parser for declarations and statements, Pratt parser for expressions.

    Syntax errors are collected in `self.diagnostics`. The first error puts the
    parser in panic mode, which silences further errors; the enclosing item loop
    (program or block) then resynchronizes and clears it.
    """

    def __init__(self, tokens: Iterable[Token], filename: Optional[str] = None) -> None:
        # Unknown tokens were already reported by the lexer.
        self.stream = TokenStream((tok for tok in tokens if tok.kind is not TokenKind.UNKNOWN), filename)
        self.filename = filename
        self.diagnostics: List[Diagnostic] = []
        self.panic_mode = False
        self.depth = 0

    @classmethod
    def from_source(cls, source: str) -> "Parser":
        return cls(Lexer.from_source(source))

    # --- token utilities ---

    def _peek(self, k: int = 0) -> Token:
        return self.stream.peek(k)

    def _last(self) -> Token:
        prev = self.stream.previous()
        return prev if prev is not None else self._peek()

    def _at_end(self) -> bool:
        return self.stream.at_end()

    def _advance(self) -> Token:
        return self.stream.advance()

    def _check(self, kind: TokenKind) -> bool:
        return self._peek().kind is kind

    def _match(self, *kinds: TokenKind) -> bool:
        if self._peek().kind in kinds:
            self._advance()
            return True
        return False

    def _error(self, kind: DiagnosticKind, message: str, span: Optional[Span] = None) -> None:
        if self.panic_mode:
            return
        self.panic_mode = True
        if span is None:
            span = self._peek().span
        self.diagnostics.append(Diagnostic(kind, message, span, filename=self.filename))

    def _expect(self, kind: TokenKind, msg: str,
                diag_kind: DiagnosticKind = DiagnosticKind.EXPECTED_TOKEN) -> Optional[Token]:
        if self._check(kind):
            return self._advance()
        tok = self._peek()
        if tok.kind is TokenKind.EOF and diag_kind is DiagnosticKind.EXPECTED_TOKEN:
            diag_kind = DiagnosticKind.UNEXPECTED_EOF
        self._error(diag_kind, f"{msg}, got {tok.describe()} instead", tok.span)
        return None

    def _expect_name(self, msg: str,
                     diag_kind: DiagnosticKind = DiagnosticKind.EXPECTED_TOKEN) -> Optional[Token]:
        """Like `_expect(IDENT)`, but a keyword in name position is consumed and reported as reserved."""
        tok = self._peek()
        if is_reserved_keyword(tok.text):
            self._advance()
            self._error(DiagnosticKind.RESERVED_NAME,
                        f"[PAR-0082] invalid name '{tok.text}': reserved keyword", tok.span)
            return None
        return self._expect(TokenKind.IDENT, msg, diag_kind)

    def _nesting_too_deep(self) -> Span:
        """Report PAR-0300 at the current token and return a zero-width span for the placeholder."""
        tok = self._peek()
        self._error(DiagnosticKind.NESTING_TOO_DEEP,
                    f"[PAR-0300] expression or block nested too deeply (limit {MAX_NESTING_DEPTH})", tok.span)
        return Span(tok.span.start, tok.span.start)

    def _span_start(self) -> Position:
        return self._peek().span.start

    def _extend_span(self, start: Position) -> Span:
        last = self.stream.previous()
        if last is None or last.span.end.offset <= start.offset:
            return Span(start, start)
        return Span(start, last.span.end)

    # --- recovery ---

    def _synchronize(self, in_block: bool) -> None:
        """
        Skip tokens up to the next safe point and leave panic mode.

        At brace depth 0 the scan stops after ';', in front of an item keyword,
        after a skipped `{ ... }` region, or at '}'. Inside a block that '}' is
        left for the block to close; at top level it is consumed as stray.
        """
        depth = 0
        while not self._at_end():
            kind = self._peek().kind
            if depth == 0:
                if kind is TokenKind.SEMI:
                    self._advance()
                    break
                if kind is TokenKind.RBRACE:
                    if not in_block:
                        self._advance()
                    break
                if kind in SYNC_KEYWORDS:
                    break
            if kind is TokenKind.LBRACE:
                depth += 1
            elif kind is TokenKind.RBRACE:
                depth -= 1
                if depth == 0:
                    self._advance()
                    break
            self._advance()
        self.panic_mode = False

    def _recover(self, before: int, in_block: bool) -> None:
        """Resynchronize after a failed item that started at token index `before`."""
        if self.stream.index == before and self._peek().kind not in (TokenKind.LBRACE, TokenKind.RBRACE):
            self._advance()
        self._synchronize(in_block)

    # --- entry point ---

    def parse_program(self) -> Program:
        start = self._span_start()
        items: List[Item] = []
        while not self._at_end():
            before = self.stream.index
            items.append(self._parse_item())
            if self.panic_mode:
                self._recover(before, in_block=False)
            if self.stream.index == before:
                self._advance()
        return Program(items, span=self._extend_span(start), filename=self.filename)

    # --- items ---

    def _parse_item(self) -> Item:
        if self.depth >= MAX_NESTING_DEPTH:
            return ErrorStmt(span=self._nesting_too_deep())
        self.depth += 1
        try:
            return self._dispatch_item()
        finally:
            self.depth -= 1

    def _dispatch_item(self) -> Item:
        kind = self._peek().kind
        if kind is TokenKind.FN:
            return self._parse_function()
        if kind is TokenKind.EFFECT:
            return self._parse_effect()
        if kind is TokenKind.HANDLE:
            return self._parse_handler()
        if kind is TokenKind.EFFECT_GROUP:
            return self._parse_group(EffectGroupDecl, "effect group", "effect")
        if kind is TokenKind.HANDLER_GROUP:
            return self._parse_group(HandlerGroupDecl, "handler group", "handler")
        if kind is TokenKind.LET:
            return self._parse_binding(LetDecl)
        if kind is TokenKind.VAR:
            return self._parse_binding(VarDecl)
        if kind in UNSUPPORTED_KEYWORDS:
            return self._parse_unsupported()
        return self._parse_statement()

    def _parse_unsupported(self) -> ErrorDecl:
        start = self._span_start()
        tok = self._advance()
        self._error(DiagnosticKind.UNSUPPORTED_CONSTRUCT,
                    f"[PAR-9001] '{tok.text}' is not supported yet", tok.span)
        return ErrorDecl(span=self._extend_span(start))

    # --- declarations ---

    def _parse_function(self) -> Decl:
        # fn <name> ( params ) [-> type] [effects E, ...] <block>
        start = self._span_start()
        self._advance()  # 'fn'
        name_tok = self._expect_name("[PAR-0041] expected function name")
        if name_tok is None:
            return ErrorDecl(span=self._extend_span(start))
        if self._expect(TokenKind.LPAREN, "[PAR-0042] expected '(' after function name") is None:
            return ErrorDecl(span=self._extend_span(start))

        params: List[Param] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                param_start = self._span_start()
                param_tok = self._expect_name("[PAR-0043] expected parameter name",
                                         DiagnosticKind.MALFORMED_PARAMETERS)
                if param_tok is None:
                    return ErrorDecl(span=self._extend_span(start))
                param_type = None
                if self._match(TokenKind.COLON):
                    param_type = self._parse_type()
                    if param_type is None:
                        return ErrorDecl(span=self._extend_span(start))
                params.append(Param(param_tok.text, param_type, span=self._extend_span(param_start)))
                if not self._match(TokenKind.COMMA):
                    break
        if self._expect(TokenKind.RPAREN, "[PAR-0045] expected ')' after parameters",
                        DiagnosticKind.MALFORMED_PARAMETERS) is None:
            return ErrorDecl(span=self._extend_span(start))

        return_type = None
        if self._match(TokenKind.ARROW):
            return_type = self._parse_type()
            if return_type is None:
                return ErrorDecl(span=self._extend_span(start))

        effects: List[str] = []
        if self._check(TokenKind.IDENT) and self._peek().text == EFFECTS_CLAUSE:
            self._advance()
            while True:
                effect_tok = self._expect(TokenKind.IDENT, "[PAR-0047] expected effect name after 'effects'")
                if effect_tok is None:
                    return ErrorDecl(span=self._extend_span(start))
                effects.append(effect_tok.text)
                if not self._match(TokenKind.COMMA):
                    break

        body = self._parse_block()
        if body is None:
            return ErrorDecl(span=self._extend_span(start))
        return FuncDecl(name_tok.text, params, return_type, effects, body, span=self._extend_span(start))

    def _parse_effect(self) -> Decl:
        # effect <Name> { fn op(p: T, ...) [-> T]; ... }
        start = self._span_start()
        self._advance()  # 'effect'
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0050] expected effect name")
        if name_tok is None:
            return ErrorDecl(span=self._extend_span(start))
        if self._expect(TokenKind.LBRACE, "[PAR-0051] expected '{' after effect name") is None:
            return ErrorDecl(span=self._extend_span(start))

        operations: List[EffectOperation] = []
        while not self._check(TokenKind.RBRACE) and not self._at_end():
            before = self.stream.index
            operation = self._parse_effect_operation()
            if operation is not None:
                operations.append(operation)
            if self.panic_mode:
                self._recover(before, in_block=True)

        if self._expect(TokenKind.RBRACE, "[PAR-0059] expected '}' after effect operations") is None:
            return ErrorDecl(span=self._extend_span(start))
        return EffectDecl(name_tok.text, operations, span=self._extend_span(start))

    def _parse_effect_operation(self) -> Optional[EffectOperation]:
        start = self._span_start()
        if self._expect(TokenKind.FN, "[PAR-0052] expected 'fn' in effect declaration") is None:
            return None
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0053] expected operation name")
        if name_tok is None:
            return None
        if self._expect(TokenKind.LPAREN, "[PAR-0054] expected '(' after operation name") is None:
            return None

        params: List[Param] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                param_start = self._span_start()
                param_tok = self._expect(TokenKind.IDENT, "[PAR-0055] expected parameter name",
                                         DiagnosticKind.MALFORMED_PARAMETERS)
                if param_tok is None:
                    return None
                if self._expect(TokenKind.COLON, "[PAR-0056] expected ':' after parameter name",
                                DiagnosticKind.MALFORMED_PARAMETERS) is None:
                    return None
                param_type = self._parse_type()
                if param_type is None:
                    return None
                params.append(Param(param_tok.text, param_type, span=self._extend_span(param_start)))
                if not self._match(TokenKind.COMMA):
                    break
        if self._expect(TokenKind.RPAREN, "[PAR-0057] expected ')' after parameters",
                        DiagnosticKind.MALFORMED_PARAMETERS) is None:
            return None

        return_type = None
        if self._match(TokenKind.ARROW):
            return_type = self._parse_type()
            if return_type is None:
                return None
        if self._expect(TokenKind.SEMI, "[PAR-0058] expected ';' after operation") is None:
            return None
        return EffectOperation(name_tok.text, params, return_type, span=self._extend_span(start))

    def _parse_handler(self) -> Decl:
        # handle <Effect> { op(a, b) { ... } ... }
        start = self._span_start()
        self._advance()  # 'handle'
        effect_tok = self._expect(TokenKind.IDENT, "[PAR-0060] expected effect name after 'handle'")
        if effect_tok is None:
            return ErrorDecl(span=self._extend_span(start))
        if self._expect(TokenKind.LBRACE, "[PAR-0061] expected '{' after effect name") is None:
            return ErrorDecl(span=self._extend_span(start))

        clauses: List[HandlerClause] = []
        while not self._check(TokenKind.RBRACE) and not self._at_end():
            before = self.stream.index
            clause = self._parse_handler_clause()
            if clause is not None:
                clauses.append(clause)
            if self.panic_mode:
                self._recover(before, in_block=True)

        if self._expect(TokenKind.RBRACE, "[PAR-0066] expected '}' after handler clauses") is None:
            return ErrorDecl(span=self._extend_span(start))
        return HandlerDecl(effect_tok.text, clauses, span=self._extend_span(start))

    def _parse_handler_clause(self) -> Optional[HandlerClause]:
        start = self._span_start()
        op_tok = self._expect(TokenKind.IDENT, "[PAR-0062] expected operation name in handler")
        if op_tok is None:
            return None
        if self._expect(TokenKind.LPAREN, "[PAR-0063] expected '(' after operation name") is None:
            return None
        params: List[str] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                param_tok = self._expect(TokenKind.IDENT, "[PAR-0064] expected parameter name",
                                         DiagnosticKind.MALFORMED_PARAMETERS)
                if param_tok is None:
                    return None
                params.append(param_tok.text)
                if not self._match(TokenKind.COMMA):
                    break
        if self._expect(TokenKind.RPAREN, "[PAR-0065] expected ')' after parameters",
                        DiagnosticKind.MALFORMED_PARAMETERS) is None:
            return None
        body = self._parse_block()
        if body is None:
            return None
        return HandlerClause(op_tok.text, params, body, span=self._extend_span(start))

    def _parse_group(self, node_cls: Type[Union[EffectGroupDecl, HandlerGroupDecl]],
                     what: str, member: str) -> Decl:
        # effect_group <Name> = A, B, ... ;   (same shape for handler_group)
        start = self._span_start()
        self._advance()  # 'effect_group' / 'handler_group'
        name_tok = self._expect(TokenKind.IDENT, f"[PAR-0070] expected {what} name")
        if name_tok is None:
            return ErrorDecl(span=self._extend_span(start))
        if self._expect(TokenKind.EQ, f"[PAR-0071] expected '=' after {what} name") is None:
            return ErrorDecl(span=self._extend_span(start))
        members: List[str] = []
        while True:
            member_tok = self._expect(TokenKind.IDENT, f"[PAR-0072] expected {member} name")
            if member_tok is None:
                return ErrorDecl(span=self._extend_span(start))
            members.append(member_tok.text)
            if not self._match(TokenKind.COMMA):
                break
        if self._expect(TokenKind.SEMI, f"[PAR-0073] expected ';' after {what} declaration") is None:
            return ErrorDecl(span=self._extend_span(start))
        return node_cls(name_tok.text, members, span=self._extend_span(start))

    def _parse_binding(self, node_cls: Type[Union[LetDecl, VarDecl]]) -> Decl:
        # let|var <name> [: type] [= expr] ;
        start = self._span_start()
        keyword = self._advance()
        name_tok = self._expect_name(f"[PAR-0080] expected variable name after '{keyword.text}'")
        if name_tok is None:
            return ErrorDecl(span=self._extend_span(start))
        type_ref = None
        if self._match(TokenKind.COLON):
            type_ref = self._parse_type()
            if type_ref is None:
                return ErrorDecl(span=self._extend_span(start))
        value = None
        if self._match(TokenKind.EQ):
            value = self.parse_expression()
            if self.panic_mode:
                return ErrorDecl(span=self._extend_span(start))
        if self._expect(TokenKind.SEMI, "[PAR-0081] expected ';' after variable declaration") is None:
            return ErrorDecl(span=self._extend_span(start))
        return node_cls(name_tok.text, type_ref, value, span=self._extend_span(start))

    def _parse_type(self) -> Optional[TypeRef]:
        start = self._span_start()
        reference = None
        if self._match(TokenKind.AMP_MUT, TokenKind.AMP):
            reference = self._last().text
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0400] expected type name")
        if name_tok is None:
            return None
        return TypeRef(name_tok.text, reference, span=self._extend_span(start))

    # --- statements ---

    def _parse_block(self) -> Optional[Block]:
        """Parse `{ item* }`. Returns None if the opening brace is missing."""
        start = self._span_start()
        if self._expect(TokenKind.LBRACE, "[PAR-0090] expected '{'") is None:
            return None
        stmts: List[Item] = []
        while not self._check(TokenKind.RBRACE) and not self._at_end():
            before = self.stream.index
            stmts.append(self._parse_item())
            if self.panic_mode:
                self._recover(before, in_block=True)
        self._expect(TokenKind.RBRACE, "[PAR-0091] expected '}' to close block", DiagnosticKind.UNTERMINATED_BLOCK)
        return Block(stmts, span=self._extend_span(start))

    def _parse_statement(self) -> Stmt:
        if self._check(TokenKind.LBRACE):
            block = self._parse_block()
            assert block is not None
            return block
        if self._check(TokenKind.RETURN):
            return self._parse_return_stmt()
        if self._check(TokenKind.IF):
            return self._parse_if_stmt()
        return self._parse_expr_or_assign_stmt()

    def _parse_return_stmt(self) -> Stmt:
        start = self._span_start()
        self._advance()  # 'return'
        value = None
        if not self._check(TokenKind.SEMI):
            value = self.parse_expression()
            if self.panic_mode:
                return ErrorStmt(span=self._extend_span(start))
        if self._expect(TokenKind.SEMI, "[PAR-0100] expected ';' after return statement") is None:
            return ErrorStmt(span=self._extend_span(start))
        return ReturnStmt(value, span=self._extend_span(start))

    def _parse_if_stmt(self) -> Stmt:
        # An `else if` chain is read in a loop and folded into nested IfStmts from the inside out.
        start = self._span_start()
        branches: List[Tuple[Position, Expr, Block]] = []
        else_stmt: Optional[Stmt] = None
        while True:
            branch_start = self._span_start()
            self._advance()  # 'if'
            cond = self.parse_expression()
            if self.panic_mode:
                return ErrorStmt(span=self._extend_span(start))
            then_block = self._parse_block()
            if then_block is None:
                return ErrorStmt(span=self._extend_span(start))
            branches.append((branch_start, cond, then_block))
            if not self._match(TokenKind.ELSE):
                break
            if not self._check(TokenKind.IF):
                else_stmt = self._parse_block()
                if else_stmt is None:
                    return ErrorStmt(span=self._extend_span(start))
                break

        for branch_start, cond, then_block in reversed(branches):
            else_stmt = IfStmt(cond, then_block, else_stmt, span=self._extend_span(branch_start))
        return else_stmt

    def _parse_expr_or_assign_stmt(self) -> Stmt:
        start = self._span_start()
        expr = self.parse_expression()
        if self.panic_mode:
            return ErrorStmt(span=self._extend_span(start))

        if self._peek().kind in ASSIGNMENT_OPERATORS:
            op_tok = self._advance()
            if not isinstance(expr, Identifier):
                self._error(DiagnosticKind.INVALID_ASSIGNMENT_TARGET,
                            f"[PAR-0101] invalid assignment target for '{op_tok.text}', expected a variable name",
                            expr.span)
                return ErrorStmt(span=self._extend_span(start))
            value = self.parse_expression()
            if self.panic_mode:
                return ErrorStmt(span=self._extend_span(start))
            if self._expect(TokenKind.SEMI, "[PAR-0100] expected ';' after statement") is None:
                return ErrorStmt(span=self._extend_span(start))
            return AssignStmt(op_tok.text, expr, value, span=self._extend_span(start))

        if self._expect(TokenKind.SEMI, "[PAR-0100] expected ';' after statement") is None:
            return ErrorStmt(span=self._extend_span(start))
        return ExprStmt(expr, span=self._extend_span(start))

    # --- expressions (Pratt) ---

    def parse_expression(self, min_precedence: int = Precedence.OR) -> Expr:
        """Parse an expression whose binary operators all bind at least as tightly as `min_precedence`."""
        if self.depth >= MAX_NESTING_DEPTH:
            return ErrorExpr(span=self._nesting_too_deep())
        self.depth += 1
        try:
            return self._parse_binary(min_precedence)
        finally:
            self.depth -= 1

    def _parse_binary(self, min_precedence: int) -> Expr:
        start = self._span_start()
        expr = self._parse_prefix()
        while not self.panic_mode:
            tok = self._peek()
            if tok.kind is TokenKind.LPAREN and Precedence.CALL >= min_precedence:
                self._advance()
                args = self._parse_arguments()
                if args is None:
                    return ErrorExpr(span=self._extend_span(start))
                expr = CallExpr(expr, args, span=self._extend_span(start))
                continue
            if tok.kind is TokenKind.DOT:
                self._error(DiagnosticKind.UNSUPPORTED_FIELD_ACCESS,
                            "[PAR-0212] field access is not supported, "
                            "only 'effect.operation(...)' may follow a '.'", tok.span)
                return ErrorExpr(span=self._extend_span(start))
            prec = BINARY_PRECEDENCE.get(tok.kind)
            if prec is None or prec < min_precedence:
                break
            self._advance()
            right = self.parse_expression(prec + 1)
            expr = BinaryOp(tok.text, expr, right, span=self._extend_span(start))
        return expr

    def _parse_prefix(self) -> Expr:
        start = self._span_start()
        if self._peek().kind in PREFIX_OPERATORS:
            op_tok = self._advance()
            operand = self.parse_expression(Precedence.UNARY)
            return UnaryOp(op_tok.text, operand, span=self._extend_span(start))
        return self._parse_primary()

    def _parse_arguments(self) -> Optional[List[Expr]]:
        """Parse call arguments after the opening '(' up to and including ')'."""
        args: List[Expr] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                args.append(self.parse_expression())
                if self.panic_mode:
                    return None
                if not self._match(TokenKind.COMMA):
                    break
        if self._expect(TokenKind.RPAREN, "[PAR-0210] expected ')' after arguments",
                        DiagnosticKind.MALFORMED_ARGUMENTS) is None:
            return None
        return args

    def _try_parse_effect_op(self) -> Optional[Expr]:
        """Parse `effect.operation(args)`, or rewind and return None if the tokens do not have that shape."""
        start = self._span_start()
        mark = self.stream.mark()
        effect_tok = self._advance()
        if not self._match(TokenKind.DOT) or not self._check(TokenKind.IDENT):
            self.stream.reset(mark)
            return None
        op_tok = self._advance()
        if not self._match(TokenKind.LPAREN):
            self.stream.reset(mark)
            return None
        args = self._parse_arguments()
        if args is None:
            return ErrorExpr(span=self._extend_span(start))
        return EffectOp(effect_tok.text, op_tok.text, args, span=self._extend_span(start))

    def _parse_primary(self) -> Expr:
        start = self._span_start()
        tok = self._peek()

        # Literals
        if self._match(TokenKind.INT):
            return IntLiteral(tok.value, tok.text, span=self._extend_span(start))
        if self._match(TokenKind.FLOAT):
            return FloatLiteral(tok.value, tok.text, span=self._extend_span(start))
        if self._match(TokenKind.STRING):
            return StringLiteral(tok.value, span=self._extend_span(start))
        if self._match(TokenKind.CHAR):
            return CharLiteral(tok.value, span=self._extend_span(start))
        if self._match(TokenKind.TRUE):
            return BoolLiteral(True, span=self._extend_span(start))
        if self._match(TokenKind.FALSE):
            return BoolLiteral(False, span=self._extend_span(start))

        if self._check(TokenKind.IDENT):
            if self._peek(1).kind is TokenKind.DOT:
                effect_op = self._try_parse_effect_op()
                if effect_op is not None:
                    return effect_op
            self._advance()
            return Identifier(tok.text, span=self._extend_span(start))

        # Parenthesized expression
        if self._match(TokenKind.LPAREN):
            inner = self.parse_expression()
            if self.panic_mode:
                return ErrorExpr(span=self._extend_span(start))
            if self._expect(TokenKind.RPAREN, "[PAR-0224] expected ')' after expression") is None:
                return ErrorExpr(span=self._extend_span(start))
            return Grouping(inner, span=self._extend_span(start))

        kind = DiagnosticKind.UNEXPECTED_EOF if tok.kind is TokenKind.EOF else DiagnosticKind.EXPECTED_TOKEN
        self._error(kind, f"[PAR-0225] expected expression, got {tok.describe()} instead", tok.span)
        return ErrorExpr(span=Span(tok.span.start, tok.span.start))
