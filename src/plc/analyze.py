"""PLC analyzer — resolves a syntax tree into a typed tree.

One top-down pass. The active frame and the inside-function flag travel as
explicit arguments; there is no cursor state on the analyzer itself.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from . import ast
from . import ir
from .errors import AnalyzeError
from .natives import type_scope
from .scope import Scope, ScopeError
from .types import (
    TY_ANY,
    TY_BOOLEAN,
    TY_COMPARABLE,
    TY_DECIMAL,
    TY_EQUATABLE,
    TY_INTEGER,
    TY_ITERABLE,
    TY_NIL,
    TY_STRING,
    TYPES,
    Ty,
    TyFunc,
    TyIterable,
    TyObject,
    is_numeric,
    is_subtype,
)

logger = logging.getLogger(__name__)

COMPARE_OPS: set[str] = {"<", ">", "<=", ">="}
EQUALITY_OPS: set[str] = {"==", "!="}
LOGICAL_OPS: set[str] = {"AND", "OR"}


# ============================================================
# COMPATIBILITY
# ============================================================


def require_subtype(t: Ty, u: Ty, pos: ast.Pos) -> None:
    """Fail unless a value of type `t` may stand where `u` is expected."""
    if not is_subtype(t, u):
        raise AnalyzeError(
            "type mismatch: expected " + u.display() + ", got " + t.display(), pos
        )


def require_assignable(t: Ty, u: Ty, pos: ast.Pos) -> None:
    """Subtype check for bindings, with NIL rejected unless the target admits it."""
    if t == TY_NIL and u != TY_NIL and u != TY_ANY:
        raise AnalyzeError("cannot assign NIL to type " + u.display(), pos)
    require_subtype(t, u, pos)


def _same_or_mixed_numeric(a: Ty, b: Ty) -> bool:
    return a == b or (is_numeric(a) and is_numeric(b))


# ============================================================
# ANALYZER
# ============================================================


class Analyzer:
    def analyze_source(self, source: ast.Source, scope: Scope[Ty]) -> ir.Source:
        stmts = [self.analyze_stmt(st, scope, in_function=False) for st in source.stmts]
        return ir.Source(stmts)

    def resolve_type(self, name: str | None, pos: ast.Pos) -> Ty:
        """Annotation name -> type; a missing annotation means Any."""
        if name is None:
            return TY_ANY
        typ = TYPES.get(name)
        if typ is None:
            raise AnalyzeError("unknown type '" + name + "'", pos)
        return typ

    def _define(self, scope: Scope[Ty], name: str, typ: Ty, pos: ast.Pos) -> None:
        try:
            scope.define(name, typ)
        except ScopeError as e:
            raise AnalyzeError(str(e), pos) from e

    # ── Statements ──────────────────────────────────────────

    def analyze_stmt(
        self, st: ast.Stmt, scope: Scope[Ty], *, in_function: bool
    ) -> ir.Stmt:
        if isinstance(st, ast.LetStmt):
            return self._let(st, scope)
        if isinstance(st, ast.DefStmt):
            return self._def(st, scope, None)
        if isinstance(st, ast.IfStmt):
            cond = self.analyze_expr(st.condition, scope)
            require_subtype(cond.typ, TY_BOOLEAN, st.condition.pos)
            then_body = self._block(st.then_body, Scope(scope), in_function)
            else_body = self._block(st.else_body, Scope(scope), in_function)
            return ir.IfStmt(st.pos, cond, then_body, else_body)
        if isinstance(st, ast.ForStmt):
            iterable = self.analyze_expr(st.iterable, scope)
            require_subtype(iterable.typ, TY_ITERABLE, st.iterable.pos)
            assert isinstance(iterable.typ, TyIterable)
            element = iterable.typ.element
            child: Scope[Ty] = Scope(scope)
            self._define(child, st.name, element, st.pos)
            body = self._block(st.body, child, in_function)
            return ir.ForStmt(st.pos, st.name, element, iterable, body)
        if isinstance(st, ast.ReturnStmt):
            if not in_function:
                raise AnalyzeError("RETURN outside of a function", st.pos)
            value = None
            if st.value is not None:
                value = self.analyze_expr(st.value, scope)
            return ir.ReturnStmt(st.pos, value)
        if isinstance(st, ast.ExprStmt):
            return ir.ExprStmt(st.pos, self.analyze_expr(st.expr, scope))
        if isinstance(st, ast.AssignStmt):
            return self._assign(st, scope)
        raise AssertionError("unknown statement: " + type(st).__name__)

    def _block(
        self, stmts: list[ast.Stmt], scope: Scope[Ty], in_function: bool
    ) -> list[ir.Stmt]:
        return [self.analyze_stmt(st, scope, in_function=in_function) for st in stmts]

    def _let(self, st: ast.LetStmt, scope: Scope[Ty]) -> ir.LetStmt:
        value = None
        if st.value is not None:
            value = self.analyze_expr(st.value, scope)
        if st.type_name is not None:
            typ = self.resolve_type(st.type_name, st.pos)
        elif value is not None:
            typ = value.typ
        else:
            typ = TY_ANY
        if value is not None:
            require_assignable(value.typ, typ, st.value.pos)
        self._define(scope, st.name, typ, st.pos)
        return ir.LetStmt(st.pos, st.name, typ, value)

    def _def(
        self, st: ast.DefStmt, scope: Scope[Ty], this: TyObject | None
    ) -> ir.DefStmt:
        params = [
            ir.Parameter(p.name, self.resolve_type(p.type_name, p.pos))
            for p in st.params
        ]
        returns = self.resolve_type(st.return_type_name, st.pos)
        fn = TyFunc(tuple(p.typ for p in params), returns)
        # Registered before the body so the function can call itself.
        self._define(scope, st.name, fn, st.pos)
        logger.debug("analyzed signature %s: %s", st.name, fn.display())
        child: Scope[Ty] = Scope(scope)
        if this is not None:
            self._define(child, ast.SELF_NAME, this, st.pos)
        for p, param in zip(st.params, params):
            self._define(child, param.name, param.typ, p.pos)
        body = self._block(st.body, child, True)
        return ir.DefStmt(st.pos, st.name, params, returns, body)

    def _assign(self, st: ast.AssignStmt, scope: Scope[Ty]) -> ir.Stmt:
        target = self.analyze_expr(st.target, scope)
        value = self.analyze_expr(st.value, scope)
        if isinstance(target, ir.Variable):
            require_assignable(value.typ, target.typ, st.value.pos)
            return ir.AssignVariable(st.pos, target, value)
        if isinstance(target, ir.Property):
            require_assignable(value.typ, target.typ, st.value.pos)
            return ir.AssignProperty(st.pos, target, value)
        raise AnalyzeError("invalid assignment target", st.target.pos)

    # ── Expressions ─────────────────────────────────────────

    def analyze_expr(self, expr: ast.Expr, scope: Scope[Ty]) -> ir.Expr:
        if isinstance(expr, ast.Literal):
            return ir.Literal(expr.pos, _literal_type(expr.value), expr.value)
        if isinstance(expr, ast.Group):
            inner = self.analyze_expr(expr.expr, scope)
            return ir.Group(expr.pos, inner.typ, inner)
        if isinstance(expr, ast.Binary):
            return self._binary(expr, scope)
        if isinstance(expr, ast.Variable):
            typ = scope.get(expr.name)
            if typ is None:
                raise AnalyzeError("undefined variable '" + expr.name + "'", expr.pos)
            return ir.Variable(expr.pos, typ, expr.name)
        if isinstance(expr, ast.Property):
            receiver = self.analyze_expr(expr.receiver, scope)
            typ = self._member(receiver, expr.name, expr.pos)
            return ir.Property(expr.pos, typ, receiver, expr.name)
        if isinstance(expr, ast.FunctionCall):
            callee = scope.get(expr.name)
            if callee is None:
                raise AnalyzeError("undefined function '" + expr.name + "'", expr.pos)
            args = [self.analyze_expr(a, scope) for a in expr.args]
            ret = self._check_call(expr.name, callee, args, expr.pos)
            return ir.FunctionCall(expr.pos, ret, expr.name, args)
        if isinstance(expr, ast.MethodCall):
            receiver = self.analyze_expr(expr.receiver, scope)
            callee = self._member(receiver, expr.name, expr.pos)
            args = [self.analyze_expr(a, scope) for a in expr.args]
            ret = self._check_call(expr.name, callee, args, expr.pos)
            return ir.MethodCall(expr.pos, ret, receiver, expr.name, args)
        if isinstance(expr, ast.ObjectLit):
            return self._object(expr)
        raise AssertionError("unknown expression: " + type(expr).__name__)

    def _member(self, receiver: ir.Expr, name: str, pos: ast.Pos) -> Ty:
        """Member type from the receiver object's own frame, no parents."""
        if not isinstance(receiver.typ, TyObject):
            raise AnalyzeError(
                "receiver must be an object, got " + receiver.typ.display(), pos
            )
        typ = receiver.typ.scope.get(name, local_only=True)
        if typ is None:
            raise AnalyzeError("object has no member '" + name + "'", pos)
        return typ

    def _check_call(
        self, name: str, callee: Ty, args: list[ir.Expr], pos: ast.Pos
    ) -> Ty:
        if not isinstance(callee, TyFunc):
            raise AnalyzeError("'" + name + "' is not a function", pos)
        n = len(callee.params)
        if len(args) != n and (callee.variadic is None or len(args) < n):
            raise AnalyzeError(
                name + " expects " + str(n) + " argument(s), got " + str(len(args)),
                pos,
            )
        for i, arg in enumerate(args):
            expected = callee.params[i] if i < n else callee.variadic
            assert expected is not None
            require_subtype(arg.typ, expected, arg.pos)
        return callee.ret

    def _binary(self, expr: ast.Binary, scope: Scope[Ty]) -> ir.Binary:
        left = self.analyze_expr(expr.left, scope)
        right = self.analyze_expr(expr.right, scope)
        op = expr.op
        lt = left.typ
        rt = right.typ
        if op in LOGICAL_OPS:
            require_subtype(lt, TY_BOOLEAN, left.pos)
            require_subtype(rt, TY_BOOLEAN, right.pos)
            typ = TY_BOOLEAN
        elif op == "+":
            if lt == TY_STRING or rt == TY_STRING:
                typ = TY_STRING
            elif lt == TY_INTEGER and rt == TY_INTEGER:
                typ = TY_INTEGER
            elif lt == TY_DECIMAL and rt == TY_DECIMAL:
                typ = TY_DECIMAL
            else:
                raise self._operand_error(op, lt, rt, expr.pos)
        elif op == "-" or op == "*":
            if lt == TY_INTEGER and rt == TY_INTEGER:
                typ = TY_INTEGER
            elif is_numeric(lt) and is_numeric(rt):
                typ = TY_DECIMAL
            else:
                raise self._operand_error(op, lt, rt, expr.pos)
        elif op == "/":
            if not (is_numeric(lt) and is_numeric(rt)):
                raise self._operand_error(op, lt, rt, expr.pos)
            typ = TY_DECIMAL
        elif op in COMPARE_OPS:
            require_subtype(lt, TY_COMPARABLE, left.pos)
            require_subtype(rt, TY_COMPARABLE, right.pos)
            if not _same_or_mixed_numeric(lt, rt):
                raise self._operand_error(op, lt, rt, expr.pos)
            typ = TY_BOOLEAN
        elif op in EQUALITY_OPS:
            require_subtype(lt, TY_EQUATABLE, left.pos)
            require_subtype(rt, TY_EQUATABLE, right.pos)
            if not _same_or_mixed_numeric(lt, rt):
                raise self._operand_error(op, lt, rt, expr.pos)
            typ = TY_BOOLEAN
        else:
            raise AnalyzeError("unknown operator '" + op + "'", expr.pos)
        return ir.Binary(expr.pos, typ, op, left, right)

    def _operand_error(self, op: str, lt: Ty, rt: Ty, pos: ast.Pos) -> AnalyzeError:
        return AnalyzeError(
            "invalid operands for '"
            + op
            + "': "
            + lt.display()
            + " and "
            + rt.display(),
            pos,
        )

    def _object(self, expr: ast.ObjectLit) -> ir.ObjectLit:
        # Parent-less: members see only each other, parameters and `this`.
        members: Scope[Ty] = Scope()
        obj = TyObject(members)
        fields = [self._let(f, members) for f in expr.fields]
        methods = [self._def(m, members, obj) for m in expr.methods]
        return ir.ObjectLit(expr.pos, obj, expr.name, fields, methods)


def _literal_type(value: object) -> Ty:
    if value is None:
        return TY_NIL
    if isinstance(value, bool):
        return TY_BOOLEAN
    if isinstance(value, int):
        return TY_INTEGER
    if isinstance(value, Decimal):
        return TY_DECIMAL
    if isinstance(value, str):
        return TY_STRING
    raise AssertionError("literal payload outside the closed set: " + repr(value))


def analyze(source: ast.Source, scope: Scope[Ty] | None = None) -> ir.Source:
    """Resolve `source` against `scope` (the native type scope by default).

    Top-level bindings land in a child frame, so natives can be shadowed and
    the given scope is left untouched.
    """
    if scope is None:
        scope = type_scope()
    try:
        return Analyzer().analyze_source(source, Scope(scope))
    except RecursionError:
        raise AnalyzeError("maximum nesting depth exceeded") from None
