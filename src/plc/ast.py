"""PLC AST — parse-time node definitions."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


# Implicit receiver binding inside object methods.
SELF_NAME: str = "this"


# ============================================================
# POSITION
# ============================================================


@dataclass
class Pos:
    """Source position, 1-indexed."""

    line: int
    col: int


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    """Base for all statements."""

    pos: Pos


@dataclass
class LetStmt(Stmt):
    """LET name (: Type)? (= expr)?;"""

    name: str
    type_name: str | None
    value: Expr | None


@dataclass
class Param:
    """Function parameter. type_name is None when unannotated."""

    pos: Pos
    name: str
    type_name: str | None


@dataclass
class DefStmt(Stmt):
    """DEF name(params) (: Type)? DO body END"""

    name: str
    params: list[Param]
    return_type_name: str | None
    body: list[Stmt]


@dataclass
class IfStmt(Stmt):
    """IF cond DO ... (ELSE ...)? END"""

    condition: Expr
    then_body: list[Stmt]
    else_body: list[Stmt]


@dataclass
class ForStmt(Stmt):
    """FOR name IN expr DO ... END"""

    name: str
    iterable: Expr
    body: list[Stmt]


@dataclass
class ReturnStmt(Stmt):
    """RETURN expr?;"""

    value: Expr | None


@dataclass
class ExprStmt(Stmt):
    """Bare expression as statement."""

    expr: Expr


@dataclass
class AssignStmt(Stmt):
    """target = value;"""

    target: Expr
    value: Expr


@dataclass
class Source:
    """Top-level program — ordered statements."""

    stmts: list[Stmt]


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    """Base for all expressions."""

    pos: Pos


@dataclass
class Literal(Expr):
    """NIL, TRUE/FALSE, integer, decimal, string (characters included)."""

    value: None | bool | int | Decimal | str


@dataclass
class Group(Expr):
    """( expr )"""

    expr: Expr


@dataclass
class Binary(Expr):
    """left op right, op is the operator token (AND/OR are words)."""

    op: str
    left: Expr
    right: Expr


@dataclass
class Variable(Expr):
    """Bare name reference."""

    name: str


@dataclass
class Property(Expr):
    """receiver.name"""

    receiver: Expr
    name: str


@dataclass
class FunctionCall(Expr):
    """name(args)"""

    name: str
    args: list[Expr]


@dataclass
class MethodCall(Expr):
    """receiver.name(args)"""

    receiver: Expr
    name: str
    args: list[Expr]


@dataclass
class ObjectLit(Expr):
    """OBJECT Name? DO fields methods END"""

    name: str | None
    fields: list[LetStmt]
    methods: list[DefStmt]
