"""Tests for the type lattice."""

import pytest

from plc.scope import Scope
from plc.types import (
    TY_ANY,
    TY_BOOLEAN,
    TY_COMPARABLE,
    TY_DECIMAL,
    TY_EQUATABLE,
    TY_INTEGER,
    TY_ITERABLE,
    TY_NIL,
    TY_STRING,
    TyFunc,
    TyIterable,
    TyObject,
    is_subtype,
)

NOMINAL = [TY_NIL, TY_BOOLEAN, TY_INTEGER, TY_DECIMAL, TY_STRING]


@pytest.mark.parametrize("t", NOMINAL + [TY_EQUATABLE, TY_COMPARABLE, TY_ITERABLE])
def test_everything_is_any(t):
    assert is_subtype(t, TY_ANY)
    assert is_subtype(t, t)


@pytest.mark.parametrize(
    "t,expected",
    [
        (TY_NIL, False),
        (TY_BOOLEAN, True),
        (TY_INTEGER, True),
        (TY_DECIMAL, True),
        (TY_STRING, True),
        (TY_ANY, False),
    ],
)
def test_equatable(t, expected):
    assert is_subtype(t, TY_EQUATABLE) is expected


@pytest.mark.parametrize(
    "t,expected",
    [
        (TY_NIL, False),
        (TY_BOOLEAN, False),
        (TY_INTEGER, True),
        (TY_DECIMAL, True),
        (TY_STRING, True),
    ],
)
def test_comparable(t, expected):
    assert is_subtype(t, TY_COMPARABLE) is expected


def test_no_relation_between_nominal_types():
    assert not is_subtype(TY_INTEGER, TY_DECIMAL)
    assert not is_subtype(TY_DECIMAL, TY_INTEGER)
    assert not is_subtype(TY_ANY, TY_INTEGER)
    assert not is_subtype(TY_COMPARABLE, TY_EQUATABLE)


def test_iterable_capability():
    assert is_subtype(TyIterable(TY_INTEGER), TY_ITERABLE)
    assert not is_subtype(TY_ITERABLE, TyIterable(TY_INTEGER))
    assert not is_subtype(TY_STRING, TY_ITERABLE)


def test_function_types_match_exactly():
    f = TyFunc((TY_INTEGER,), TY_STRING)
    assert is_subtype(f, TyFunc((TY_INTEGER,), TY_STRING))
    assert not is_subtype(f, TyFunc((TY_ANY,), TY_STRING))
    assert not is_subtype(f, TyFunc((TY_INTEGER,), TY_ANY))


def test_object_types_are_structural():
    a = Scope()
    a.define("n", TY_INTEGER)
    b = Scope()
    b.define("n", TY_INTEGER)
    c = Scope()
    c.define("n", TY_STRING)
    assert is_subtype(TyObject(a), TyObject(b))
    assert not is_subtype(TyObject(a), TyObject(c))
    assert not is_subtype(TyObject(a), TY_INTEGER)


def test_display():
    assert TY_INTEGER.display() == "Integer"
    assert TY_ITERABLE.display() == "Iterable"
    assert TyIterable(TY_INTEGER).display() == "Iterable[Integer]"
    f = TyFunc((TY_ANY, TY_STRING), TY_NIL)
    assert f.display() == "Function(Any, String) -> Nil"
    assert TyFunc((), TY_ITERABLE, variadic=TY_ANY).display() == (
        "Function(Any...) -> Iterable"
    )
    s = Scope()
    s.define("x", TY_DECIMAL)
    assert str(TyObject(s)) == "Object{x: Decimal}"
