"""PLC typed tree — the analyzer's output and the evaluator's input.

Mirrors `plc.ast`, with a resolved `Ty` on every expression, resolved
parameter/return types on definitions, the loop variable's element type on
FOR, and assignment split by target kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from .ast import Pos
from .types import Ty


# ============================================================
# STATEMENTS
# ============================================================


@dataclass
class Stmt:
    pos: Pos


@dataclass
class LetStmt(Stmt):
    name: str
    typ: Ty
    value: Expr | None


@dataclass
class Parameter:
    name: str
    typ: Ty


@dataclass
class DefStmt(Stmt):
    name: str
    params: list[Parameter]
    returns: Ty
    body: list[Stmt]


@dataclass
class IfStmt(Stmt):
    condition: Expr
    then_body: list[Stmt]
    else_body: list[Stmt]


@dataclass
class ForStmt(Stmt):
    name: str
    typ: Ty
    iterable: Expr
    body: list[Stmt]


@dataclass
class ReturnStmt(Stmt):
    value: Expr | None


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class AssignVariable(Stmt):
    target: Variable
    value: Expr


@dataclass
class AssignProperty(Stmt):
    target: Property
    value: Expr


@dataclass
class Source:
    stmts: list[Stmt]


# ============================================================
# EXPRESSIONS
# ============================================================


@dataclass
class Expr:
    pos: Pos
    typ: Ty


@dataclass
class Literal(Expr):
    value: None | bool | int | Decimal | str


@dataclass
class Group(Expr):
    expr: Expr


@dataclass
class Binary(Expr):
    op: str
    left: Expr
    right: Expr


@dataclass
class Variable(Expr):
    name: str


@dataclass
class Property(Expr):
    receiver: Expr
    name: str


@dataclass
class FunctionCall(Expr):
    name: str
    args: list[Expr]


@dataclass
class MethodCall(Expr):
    receiver: Expr
    name: str
    args: list[Expr]


@dataclass
class ObjectLit(Expr):
    """`typ` is the TyObject whose scope holds the member types."""

    name: str | None
    fields: list[LetStmt]
    methods: list[DefStmt]
