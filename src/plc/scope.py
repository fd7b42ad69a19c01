"""Chained name→binding frames shared by the analyzer and the evaluator."""

from __future__ import annotations

from typing import Generic, Iterator, TypeVar

V = TypeVar("V")


class ScopeError(Exception):
    """Redefinition in one frame, or assignment to a name bound nowhere."""


class Scope(Generic[V]):
    """One frame: ordered local bindings plus an optional parent frame.

    The analyzer instantiates it with static types and the evaluator with
    runtime values. Closures and objects hold frames by reference, so a frame
    lives as long as its longest-lived referrer.
    """

    def __init__(self, parent: Scope[V] | None = None) -> None:
        self.parent = parent
        self._bindings: dict[str, V] = {}

    def define(self, name: str, value: V) -> None:
        """Bind `name` in this frame. Shadowing an ancestor is fine."""
        if name in self._bindings:
            raise ScopeError(f"'{name}' is already defined in this scope")
        self._bindings[name] = value

    def get(self, name: str, local_only: bool = False) -> V | None:
        """Nearest binding for `name`, or None.

        With `local_only`, ancestors are not searched (object members).
        """
        scope: Scope[V] | None = self
        while scope is not None:
            if name in scope._bindings:
                return scope._bindings[name]
            if local_only:
                return None
            scope = scope.parent
        return None

    def has(self, name: str, local_only: bool = False) -> bool:
        return self.get(name, local_only) is not None

    def set(self, name: str, value: V) -> None:
        """Rebind `name` in the nearest frame that already holds it."""
        scope: Scope[V] | None = self
        while scope is not None:
            if name in scope._bindings:
                scope._bindings[name] = value
                return
            scope = scope.parent
        raise ScopeError(f"'{name}' is not defined")

    def items(self) -> Iterator[tuple[str, V]]:
        """Local bindings in definition order."""
        return iter(list(self._bindings.items()))

    def names(self) -> list[str]:
        return list(self._bindings)

    def __repr__(self) -> str:
        return f"Scope({', '.join(self._bindings)})"
