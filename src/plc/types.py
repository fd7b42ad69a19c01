"""PLC type lattice — resolved types and the subtyping predicate."""

from __future__ import annotations

from dataclasses import dataclass

from .scope import Scope


# ============================================================
# Types
# ============================================================


class Ty:
    """Base type for the analyzer and the typed tree."""

    def display(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.display()


@dataclass(frozen=True)
class TyPrim(Ty):
    """Nominal types, capability types and Any, told apart by name."""

    kind: str

    def display(self) -> str:
        return self.kind


@dataclass(frozen=True)
class TyIterable(Ty):
    element: Ty

    def display(self) -> str:
        if self.element == TY_ANY:
            return "Iterable"
        return f"Iterable[{self.element.display()}]"


@dataclass(frozen=True)
class TyFunc(Ty):
    params: tuple[Ty, ...]
    ret: Ty
    # Natives only: type of each argument past `params`, any count allowed.
    variadic: Ty | None = None

    def display(self) -> str:
        parts = [t.display() for t in self.params]
        if self.variadic is not None:
            parts.append(self.variadic.display() + "...")
        return f"Function({', '.join(parts)}) -> {self.ret.display()}"


class TyObject(Ty):
    """Structural object type; members live in a parent-less type scope."""

    def __init__(self, scope: Scope[Ty]) -> None:
        self.scope = scope

    def display(self) -> str:
        members = ", ".join(f"{n}: {t.display()}" for n, t in self.scope.items())
        return "Object{" + members + "}"

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, TyObject):
            return False
        return dict(self.scope.items()) == dict(other.scope.items())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"TyObject({self.display()})"


TY_ANY = TyPrim("Any")
TY_NIL = TyPrim("Nil")
TY_BOOLEAN = TyPrim("Boolean")
TY_INTEGER = TyPrim("Integer")
TY_DECIMAL = TyPrim("Decimal")
TY_STRING = TyPrim("String")
TY_EQUATABLE = TyPrim("Equatable")
TY_COMPARABLE = TyPrim("Comparable")
TY_ITERABLE = TyIterable(TY_ANY)

# Annotation name -> type, for LET/DEF type names.
TYPES: dict[str, Ty] = {
    "Any": TY_ANY,
    "Nil": TY_NIL,
    "Boolean": TY_BOOLEAN,
    "Integer": TY_INTEGER,
    "Decimal": TY_DECIMAL,
    "String": TY_STRING,
    "Equatable": TY_EQUATABLE,
    "Comparable": TY_COMPARABLE,
    "Iterable": TY_ITERABLE,
}

_EQUATABLE: tuple[Ty, ...] = (TY_BOOLEAN, TY_INTEGER, TY_DECIMAL, TY_STRING)
_COMPARABLE: tuple[Ty, ...] = (TY_INTEGER, TY_DECIMAL, TY_STRING)
_NUMERIC: tuple[Ty, ...] = (TY_INTEGER, TY_DECIMAL)


# ============================================================
# Subtyping
# ============================================================


def is_subtype(t: Ty, u: Ty) -> bool:
    """Can a value of type `t` stand where `u` is expected?"""
    if t == u:
        return True
    if u == TY_ANY:
        return True
    if u == TY_EQUATABLE:
        return t in _EQUATABLE
    if u == TY_COMPARABLE:
        return t in _COMPARABLE
    if u == TY_ITERABLE:
        return isinstance(t, TyIterable)
    return False


def is_numeric(t: Ty) -> bool:
    return t in _NUMERIC
