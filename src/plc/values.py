"""PLC runtime values — primitives, functions/closures and objects."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Union

from .scope import Scope

if TYPE_CHECKING:
    from . import ir
    from .evaluate import Evaluator

Payload = Union[None, bool, int, Decimal, str, "list[Value]"]
NativeFn = Callable[["Evaluator", "list[Value]"], "Value"]


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def display(self) -> str:
        """User-facing form, as written by `print` and string concatenation."""
        return self._display(set())

    def _display(self, seen: set[int]) -> str:
        raise NotImplementedError


@dataclass(eq=False)
class VPrimitive(Value):
    value: Payload

    def _display(self, seen: set[int]) -> str:
        v = self.value
        if v is None:
            return "NIL"
        if isinstance(v, bool):
            return "TRUE" if v else "FALSE"
        if isinstance(v, Decimal):
            return format(v, "f")
        if isinstance(v, list):
            return "[" + ", ".join(e._display(seen) for e in v) + "]"
        return str(v)

    def __repr__(self) -> str:
        return f"Primitive({self.value!r})"


@dataclass(eq=False)
class VFunction(Value):
    """A user closure (`body` + `closure`) or a native (`native`).

    Methods also carry the object they were defined in as `receiver`, so the
    function value keeps binding `this` after it is pulled off the object.
    """

    name: str
    params: list[str]
    body: list[ir.Stmt] | None = None
    closure: Scope[Value] | None = None
    native: NativeFn | None = None
    receiver: VObject | None = None

    @property
    def is_native(self) -> bool:
        return self.native is not None

    def signature(self) -> str:
        if self.is_native:
            return "(...)"
        return "(" + ", ".join(self.params) + ")"

    def _display(self, seen: set[int]) -> str:
        return f"DEF {self.name}{self.signature()} DO ... END"

    def __repr__(self) -> str:
        kind = "native" if self.is_native else "closure"
        return f"Function(name={self.name!r}, params={self.params!r}, {kind})"


@dataclass(eq=False)
class VObject(Value):
    name: str | None
    scope: Scope[Value]

    def _display(self, seen: set[int]) -> str:
        head = "OBJECT " + self.name if self.name is not None else "OBJECT"
        if id(self) in seen:
            return head + " DO ... END"
        seen = seen | {id(self)}
        members: list[str] = []
        for name, value in self.scope.items():
            if isinstance(value, VFunction):
                members.append(f"DEF {name}{value.signature()} ... END")
            else:
                members.append(f"LET {name} = {value._display(seen)};")
        return " ".join([head, "DO"] + members + ["END"])

    def __repr__(self) -> str:
        return f"Object(name={self.name!r}, members={self.scope.names()!r})"


NIL = VPrimitive(None)


# ============================================================
# Equality
# ============================================================


def is_number(v: Value) -> bool:
    """Integer or Decimal payload; booleans are not numbers."""
    if not isinstance(v, VPrimitive):
        return False
    x = v.value
    return isinstance(x, (int, Decimal)) and not isinstance(x, bool)


def values_equal(a: Value, b: Value) -> bool:
    """Structural equality. NIL equals only NIL; booleans never equal numbers."""
    if isinstance(a, VPrimitive) and isinstance(b, VPrimitive):
        x = a.value
        y = b.value
        if x is None or y is None:
            return x is None and y is None
        if isinstance(x, bool) or isinstance(y, bool):
            return isinstance(x, bool) and isinstance(y, bool) and x == y
        if is_number(a) and is_number(b):
            return Decimal(x) == Decimal(y)
        if isinstance(x, str) and isinstance(y, str):
            return x == y
        if isinstance(x, list) and isinstance(y, list):
            if len(x) != len(y):
                return False
            return all(values_equal(p, q) for p, q in zip(x, y))
        return False
    if isinstance(a, VObject) and isinstance(b, VObject):
        if a is b:
            return True
        if a.name != b.name or a.scope.names() != b.scope.names():
            return False
        return all(
            values_equal(v, b.scope.get(n, local_only=True)) for n, v in a.scope.items()
        )
    if isinstance(a, VFunction) and isinstance(b, VFunction):
        return a is b
    return False
