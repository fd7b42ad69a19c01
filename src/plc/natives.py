"""PLC native environment — builtins registered in the root frame.

Each native exists twice: as a static type in `type_scope()` for the analyzer
and as a runtime value in `value_scope()` for the evaluator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ArityError, EvaluateError
from .scope import Scope
from .types import (
    TY_ANY,
    TY_INTEGER,
    TY_ITERABLE,
    TY_NIL,
    TY_STRING,
    Ty,
    TyFunc,
    TyIterable,
    TyObject,
)
from .values import NIL, NativeFn, Value, VFunction, VObject, VPrimitive

if TYPE_CHECKING:
    from .evaluate import Evaluator

SAMPLE_OBJECT_NAME: str = "Object"


def _require_arity(name: str, args: list[Value], count: int) -> None:
    if len(args) != count:
        raise ArityError(
            name + " expects " + str(count) + " argument(s), got " + str(len(args))
        )


# ============================================================
# Output
# ============================================================


def _native_debug(ev: Evaluator, args: list[Value]) -> Value:
    """Writes the raw internal representation."""
    _require_arity("debug", args, 1)
    ev.write(repr(args[0]))
    return NIL


def _native_print(ev: Evaluator, args: list[Value]) -> Value:
    _require_arity("print", args, 1)
    ev.write(args[0].display())
    return NIL


def _native_log(ev: Evaluator, args: list[Value]) -> Value:
    """Writes the user-facing form and hands the argument back."""
    _require_arity("log", args, 1)
    ev.write("log: " + args[0].display())
    return args[0]


# ============================================================
# Sequences
# ============================================================


def _native_list(ev: Evaluator, args: list[Value]) -> Value:
    return VPrimitive(list(args))


def _native_range(ev: Evaluator, args: list[Value]) -> Value:
    """Integers in [start, end)."""
    _require_arity("range", args, 2)
    bounds: list[int] = []
    for arg in args:
        if not isinstance(arg, VPrimitive) or type(arg.value) is not int:
            raise EvaluateError("range requires two integer arguments")
        bounds.append(arg.value)
    start, end = bounds
    return VPrimitive([VPrimitive(i) for i in range(start, end)])


# ============================================================
# Conformance samples
# ============================================================


def _native_function(ev: Evaluator, args: list[Value]) -> Value:
    return VPrimitive(list(args))


def _native_method(ev: Evaluator, args: list[Value]) -> Value:
    # args[0] is the receiver.
    return VPrimitive(list(args[1:]))


_VARIADIC_ITERABLE = TyFunc((), TY_ITERABLE, variadic=TY_ANY)

_NATIVE_TYPES: dict[str, Ty] = {
    "debug": TyFunc((TY_ANY,), TY_NIL),
    "print": TyFunc((TY_ANY,), TY_NIL),
    "log": TyFunc((TY_ANY,), TY_ANY),
    "list": _VARIADIC_ITERABLE,
    "range": TyFunc((TY_INTEGER, TY_INTEGER), TyIterable(TY_INTEGER)),
    "variable": TY_STRING,
    "function": _VARIADIC_ITERABLE,
}

_NATIVE_FUNCTIONS: dict[str, NativeFn] = {
    "debug": _native_debug,
    "print": _native_print,
    "log": _native_log,
    "list": _native_list,
    "range": _native_range,
    "function": _native_function,
}


def type_scope() -> Scope[Ty]:
    """Fresh root frame of native types."""
    scope: Scope[Ty] = Scope()
    for name, typ in _NATIVE_TYPES.items():
        scope.define(name, typ)
    members: Scope[Ty] = Scope()
    members.define("property", TY_STRING)
    members.define("method", _VARIADIC_ITERABLE)
    scope.define("object", TyObject(members))
    return scope


def value_scope() -> Scope[Value]:
    """Fresh root frame of native values."""
    scope: Scope[Value] = Scope()
    for name, fn in _NATIVE_FUNCTIONS.items():
        scope.define(name, VFunction(name, [], native=fn))
    scope.define("variable", VPrimitive("variable"))
    obj = VObject(SAMPLE_OBJECT_NAME, Scope())
    obj.scope.define("property", VPrimitive("property"))
    obj.scope.define(
        "method", VFunction("method", [], native=_native_method, receiver=obj)
    )
    scope.define("object", obj)
    return scope
