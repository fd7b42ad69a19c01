"""PLC evaluator — walks the typed tree against chained value frames."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import MAX_EMAX, MAX_PREC, MIN_EMIN, Decimal, localcontext

from . import ir
from .ast import SELF_NAME, Pos
from .errors import EvaluateError
from .natives import value_scope
from .scope import Scope, ScopeError
from .values import NIL, Value, VFunction, VObject, VPrimitive, is_number, values_equal

logger = logging.getLogger(__name__)


# ============================================================
# Control flow signals (internal)
# ============================================================


class _Signal(Exception):
    pass


@dataclass
class _Return(_Signal):
    value: Value
    pos: Pos


# ============================================================
# Results
# ============================================================


@dataclass
class RunResult:
    value: Value
    stdout: bytes


# ============================================================
# Arithmetic
# ============================================================


def _coefficient(d: Decimal) -> tuple[int, int]:
    """Signed integer coefficient and exponent, so d == coefficient * 10**exponent."""
    sign, digits, exponent = d.as_tuple()
    coefficient = int("".join(str(x) for x in digits) or "0")
    assert isinstance(exponent, int)
    return (-coefficient if sign else coefficient), exponent


def _divide(x: int | Decimal, y: int | Decimal, pos: Pos) -> Decimal:
    """Quotient at the dividend's scale, rounded toward negative infinity.

    Computed on integer coefficients, so the result is exact at any size.
    """
    a, scale = _coefficient(Decimal(x))
    b, exponent = _coefficient(Decimal(y))
    if b == 0:
        raise EvaluateError("division by zero", pos)
    if exponent >= 0:
        n = a // (b * 10**exponent)
    else:
        n = (a * 10**-exponent) // b
    digits = tuple(int(c) for c in str(abs(n)))
    return Decimal((1 if n < 0 else 0, digits, scale))


def _exact(op: str, x: int | Decimal, y: int | Decimal) -> int | Decimal:
    """`+`, `-` or `*` without rounding; Integer stays Integer."""
    if isinstance(x, int) and isinstance(y, int):
        if op == "+":
            return x + y
        if op == "-":
            return x - y
        return x * y
    with localcontext() as ctx:
        ctx.prec = MAX_PREC
        ctx.Emax = MAX_EMAX
        ctx.Emin = MIN_EMIN
        dx = Decimal(x)
        dy = Decimal(y)
        if op == "+":
            return dx + dy
        if op == "-":
            return dx - dy
        return dx * dy


def _compare(op: str, a: object, b: object) -> bool:
    if op == "<":
        return a < b  # type: ignore[operator]
    if op == "<=":
        return a <= b  # type: ignore[operator]
    if op == ">":
        return a > b  # type: ignore[operator]
    return a >= b  # type: ignore[operator]


# ============================================================
# Evaluator
# ============================================================


class Evaluator:
    stdout: bytearray

    def __init__(self, scope: Scope[Value]):
        self.scope = scope
        self.stdout = bytearray()

    def write(self, line: str) -> None:
        """Append one line of program output."""
        self.stdout.extend((line + "\n").encode("utf-8"))

    def _define(self, scope: Scope[Value], name: str, value: Value, pos: Pos) -> None:
        try:
            scope.define(name, value)
        except ScopeError as e:
            raise EvaluateError(str(e), pos) from e

    # ---- Running -----------------------------------------------------------

    def run_source(self, source: ir.Source) -> Value:
        """Value of the last statement, NIL for an empty program."""
        result: Value = NIL
        try:
            for st in source.stmts:
                result = self.eval_stmt(st, self.scope)
        except _Return as r:
            raise EvaluateError("RETURN outside of a function", r.pos) from None
        except RecursionError:
            raise EvaluateError("maximum recursion depth exceeded") from None
        return result

    # ---- Functions ---------------------------------------------------------

    def call(
        self, fn: VFunction, args: list[Value], this: VObject | None = None
    ) -> Value:
        """Invoke `fn`. `this` overrides the receiver captured by a method."""
        logger.debug("call %s with %d argument(s)", fn.name, len(args))
        receiver = this if this is not None else fn.receiver
        if fn.native is not None:
            if receiver is not None:
                args = [receiver] + args
            return fn.native(self, args)
        assert fn.body is not None and fn.closure is not None
        frame: Scope[Value] = Scope(fn.closure)
        if receiver is not None:
            frame.define(SELF_NAME, receiver)
        # Extra arguments are dropped; missing parameters stay unbound.
        for name, arg in zip(fn.params, args):
            try:
                frame.define(name, arg)
            except ScopeError as e:
                raise EvaluateError(str(e)) from e
        result: Value = NIL
        try:
            for st in fn.body:
                value = self.eval_stmt(st, frame)
                if not isinstance(st, ir.ExprStmt):
                    result = value
        except _Return as r:
            return r.value
        return result

    # ---- Statements --------------------------------------------------------

    def eval_stmt(self, st: ir.Stmt, scope: Scope[Value]) -> Value:
        if isinstance(st, ir.LetStmt):
            if scope.has(st.name, local_only=True):
                raise EvaluateError(
                    "'" + st.name + "' is already defined in this scope", st.pos
                )
            value = NIL if st.value is None else self.eval_expr(st.value, scope)
            self._define(scope, st.name, value, st.pos)
            return value

        if isinstance(st, ir.DefStmt):
            fn = VFunction(st.name, [p.name for p in st.params], st.body, scope)
            self._define(scope, st.name, fn, st.pos)
            logger.debug("defined function %s", st.name)
            return fn

        if isinstance(st, ir.IfStmt):
            cond = self.eval_expr(st.condition, scope)
            if not isinstance(cond, VPrimitive) or not isinstance(cond.value, bool):
                raise EvaluateError("IF condition must be a Boolean", st.condition.pos)
            body = st.then_body if cond.value else st.else_body
            return self._eval_block(body, Scope(scope))

        if isinstance(st, ir.ForStmt):
            iterable = self.eval_expr(st.iterable, scope)
            if not isinstance(iterable, VPrimitive) or not isinstance(
                iterable.value, list
            ):
                raise EvaluateError("FOR requires an iterable", st.iterable.pos)
            for element in list(iterable.value):
                child: Scope[Value] = Scope(scope)
                child.define(st.name, element)
                self._eval_block(st.body, child)
            return NIL

        if isinstance(st, ir.ReturnStmt):
            value = NIL if st.value is None else self.eval_expr(st.value, scope)
            raise _Return(value, st.pos)

        if isinstance(st, ir.ExprStmt):
            return self.eval_expr(st.expr, scope)

        if isinstance(st, ir.AssignVariable):
            value = self.eval_expr(st.value, scope)
            try:
                scope.set(st.target.name, value)
            except ScopeError as e:
                raise EvaluateError(str(e), st.target.pos) from e
            return value

        if isinstance(st, ir.AssignProperty):
            receiver = self._object(st.target.receiver, scope)
            name = st.target.name
            if not receiver.scope.has(name, local_only=True):
                raise EvaluateError("object has no member '" + name + "'", st.target.pos)
            value = self.eval_expr(st.value, scope)
            receiver.scope.set(name, value)
            return value

        raise AssertionError("unknown statement: " + type(st).__name__)

    def _eval_block(self, stmts: list[ir.Stmt], scope: Scope[Value]) -> Value:
        result: Value = NIL
        for st in stmts:
            result = self.eval_stmt(st, scope)
        return result

    # ---- Expressions -------------------------------------------------------

    def eval_expr(self, expr: ir.Expr, scope: Scope[Value]) -> Value:
        if isinstance(expr, ir.Literal):
            return VPrimitive(expr.value)

        if isinstance(expr, ir.Group):
            return self.eval_expr(expr.expr, scope)

        if isinstance(expr, ir.Binary):
            return self._binary(expr, scope)

        if isinstance(expr, ir.Variable):
            value = scope.get(expr.name)
            if value is None:
                raise EvaluateError("undefined variable '" + expr.name + "'", expr.pos)
            return value

        if isinstance(expr, ir.Property):
            receiver = self._object(expr.receiver, scope)
            member = receiver.scope.get(expr.name, local_only=True)
            if member is None:
                raise EvaluateError("object has no member '" + expr.name + "'", expr.pos)
            return member

        if isinstance(expr, ir.FunctionCall):
            # Resolved before any argument runs.
            fn = scope.get(expr.name)
            if fn is None:
                raise EvaluateError("undefined function '" + expr.name + "'", expr.pos)
            if not isinstance(fn, VFunction):
                raise EvaluateError("'" + expr.name + "' is not a function", expr.pos)
            args = [self.eval_expr(a, scope) for a in expr.args]
            return self.call(fn, args)

        if isinstance(expr, ir.MethodCall):
            receiver = self._object(expr.receiver, scope)
            method = receiver.scope.get(expr.name, local_only=True)
            if method is None:
                raise EvaluateError("object has no member '" + expr.name + "'", expr.pos)
            if not isinstance(method, VFunction):
                raise EvaluateError("'" + expr.name + "' is not a method", expr.pos)
            args = [self.eval_expr(a, scope) for a in expr.args]
            return self.call(method, args, this=receiver)

        if isinstance(expr, ir.ObjectLit):
            frame: Scope[Value] = Scope(scope)
            obj = VObject(expr.name, frame)
            for f in expr.fields:
                self.eval_stmt(f, frame)
            for m in expr.methods:
                method_fn = VFunction(
                    m.name, [p.name for p in m.params], m.body, frame, receiver=obj
                )
                self._define(frame, m.name, method_fn, m.pos)
            return obj

        raise AssertionError("unknown expression: " + type(expr).__name__)

    def _object(self, expr: ir.Expr, scope: Scope[Value]) -> VObject:
        value = self.eval_expr(expr, scope)
        if not isinstance(value, VObject):
            raise EvaluateError("receiver must be an object", expr.pos)
        return value

    def _boolean(self, expr: ir.Expr, scope: Scope[Value]) -> bool:
        value = self.eval_expr(expr, scope)
        if not isinstance(value, VPrimitive) or not isinstance(value.value, bool):
            raise EvaluateError("expected a Boolean operand", expr.pos)
        return value.value

    def _binary(self, expr: ir.Binary, scope: Scope[Value]) -> Value:
        op = expr.op
        if op == "AND":
            if not self._boolean(expr.left, scope):
                return VPrimitive(False)
            return VPrimitive(self._boolean(expr.right, scope))
        if op == "OR":
            if self._boolean(expr.left, scope):
                return VPrimitive(True)
            return VPrimitive(self._boolean(expr.right, scope))

        left = self.eval_expr(expr.left, scope)
        right = self.eval_expr(expr.right, scope)

        if op == "==":
            return VPrimitive(values_equal(left, right))
        if op == "!=":
            return VPrimitive(not values_equal(left, right))

        if op == "+" and (_is_string(left) or _is_string(right)):
            return VPrimitive(left.display() + right.display())

        if op in ("<", "<=", ">", ">="):
            if is_number(left) and is_number(right):
                a: object = Decimal(left.value)  # type: ignore[arg-type, union-attr]
                b: object = Decimal(right.value)  # type: ignore[arg-type, union-attr]
            elif _is_string(left) and _is_string(right):
                a = left.value  # type: ignore[union-attr]
                b = right.value  # type: ignore[union-attr]
            else:
                raise EvaluateError("invalid operands for '" + op + "'", expr.pos)
            return VPrimitive(_compare(op, a, b))

        if not (is_number(left) and is_number(right)):
            raise EvaluateError("invalid operands for '" + op + "'", expr.pos)
        x = left.value  # type: ignore[union-attr]
        y = right.value  # type: ignore[union-attr]
        if op == "+" and isinstance(x, int) != isinstance(y, int):
            raise EvaluateError("cannot add Integer and Decimal", expr.pos)
        if op in ("+", "-", "*"):
            return VPrimitive(_exact(op, x, y))
        if op == "/":
            return VPrimitive(_divide(x, y, expr.pos))
        raise EvaluateError("unknown operator '" + op + "'", expr.pos)


def _is_string(v: Value) -> bool:
    return isinstance(v, VPrimitive) and isinstance(v.value, str)


# ============================================================
# Entry points
# ============================================================


def evaluate(source: ir.Source, scope: Scope[Value] | None = None) -> RunResult:
    """Run a typed tree against `scope` (fresh native values by default)."""
    if scope is None:
        scope = value_scope()
    ev = Evaluator(Scope(scope))
    value = ev.run_source(source)
    return RunResult(value, bytes(ev.stdout))
