#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from typing import List, Optional, Union

from rus_source import Span


# ==========================
# AST definitions
# ==========================


@dataclass
class Node:
    span: Optional[Span] = field(default=None, repr=False, compare=False, kw_only=True)


# --- types ---

@dataclass
class TypeRef(Node):
    name: str  # e.g. "i32", "Buffer"
    reference: Optional[str] = None  # "&", "&mut" or None


# --- declarations ---

class Decl(Node):
    pass


@dataclass
class Param(Node):
    name: str
    type: Optional[TypeRef]


@dataclass
class EffectOperation(Node):
    """`fn name(params) -> T;` inside an effect declaration."""
    name: str
    params: List[Param]
    return_type: Optional[TypeRef]


@dataclass
class EffectDecl(Decl):
    name: str
    operations: List[EffectOperation]


@dataclass
class HandlerClause(Node):
    operation: str
    params: List[str]
    body: "Block"


@dataclass
class HandlerDecl(Decl):
    effect: str
    clauses: List[HandlerClause]


@dataclass
class EffectGroupDecl(Decl):
    name: str
    members: List[str]


@dataclass
class HandlerGroupDecl(Decl):
    name: str
    members: List[str]


@dataclass
class FuncDecl(Decl):
    name: str
    params: List[Param]
    return_type: Optional[TypeRef]
    effects: List[str]
    body: "Block"


@dataclass
class LetDecl(Decl):
    name: str
    type: Optional[TypeRef]
    value: Optional["Expr"]


@dataclass
class VarDecl(Decl):
    name: str
    type: Optional[TypeRef]
    value: Optional["Expr"]


@dataclass
class ErrorDecl(Decl):
    """Placeholder for a declaration abandoned by error recovery."""
    pass


# --- statements ---

@dataclass
class Stmt(Node):
    pass


@dataclass
class Block(Stmt):
    stmts: List["Item"]


@dataclass
class ExprStmt(Stmt):
    expr: "Expr"


@dataclass
class AssignStmt(Stmt):
    op: str  # "=", "+=", ...
    target: "Expr"
    value: "Expr"


@dataclass
class ReturnStmt(Stmt):
    value: Optional["Expr"]


@dataclass
class IfStmt(Stmt):
    cond: "Expr"
    then_block: Block
    else_stmt: Optional[Stmt]  # Block or IfStmt


@dataclass
class ErrorStmt(Stmt):
    """Placeholder for a statement abandoned by error recovery."""
    pass


# --- expressions ---

class Expr(Node):
    pass


@dataclass
class IntLiteral(Expr):
    value: int
    text: str  # raw lexeme, e.g. "0xFF"


@dataclass
class FloatLiteral(Expr):
    value: float
    text: str


@dataclass
class StringLiteral(Expr):
    value: str


@dataclass
class CharLiteral(Expr):
    value: str


@dataclass
class BoolLiteral(Expr):
    value: bool


@dataclass
class Identifier(Expr):
    name: str


@dataclass
class CallExpr(Expr):
    callee: Expr
    args: List[Expr]


@dataclass
class BinaryOp(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class UnaryOp(Expr):
    op: str  # "-", "!", "&", "&mut"
    operand: Expr


@dataclass
class Grouping(Expr):
    inner: Expr


@dataclass
class EffectOp(Expr):
    """`effect.operation(args)`: invocation of an effect operation."""
    effect: str
    operation: str
    args: List[Expr]


@dataclass
class ErrorExpr(Expr):
    """Placeholder for an expression that failed to parse."""
    pass


# Closed sets of node variants
Declaration = Union[EffectDecl, HandlerDecl, EffectGroupDecl, HandlerGroupDecl, FuncDecl, LetDecl, VarDecl, ErrorDecl]
Statement = Union[Block, ExprStmt, AssignStmt, ReturnStmt, IfStmt, ErrorStmt]
Expression = Union[IntLiteral, FloatLiteral, StringLiteral, CharLiteral, BoolLiteral, Identifier, CallExpr,
                   BinaryOp, UnaryOp, Grouping, EffectOp, ErrorExpr]
Item = Union[Declaration, Statement]


@dataclass
class Program(Node):
    items: List[Item]
    filename: Optional[str] = field(default=None, repr=False, compare=False, kw_only=True)

    @property
    def decls(self) -> List[Decl]:
        return [item for item in self.items if isinstance(item, Decl)]
