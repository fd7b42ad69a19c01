"""PLC diagnostics — one error kind per phase."""

from __future__ import annotations

from .ast import Pos


class PlcError(Exception):
    """Base error for lexing, parsing, analysis and evaluation."""

    def __init__(self, msg: str, pos: Pos | None = None):
        if pos is None:
            super().__init__(msg)
        else:
            super().__init__(f"{msg} at line {pos.line} col {pos.col}")
        self.msg = msg
        self.pos = pos


class LexError(PlcError):
    """Malformed token in the source text."""


class ParseError(PlcError):
    """Token stream does not match the grammar."""


class AnalyzeError(PlcError):
    """Static error: undefined name, type mismatch, arity, misplaced RETURN."""


class EvaluateError(PlcError):
    """Runtime error: unbound name, bad receiver, division by zero, etc."""


class ArityError(EvaluateError):
    """A native was called with the wrong number of arguments."""
