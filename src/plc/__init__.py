"""PLC interpreter — tokenizer, parser, analyzer and evaluator — public API."""

from __future__ import annotations

from .analyze import analyze as analyze
from .ast import Source
from .errors import (
    AnalyzeError as AnalyzeError,
    ArityError as ArityError,
    EvaluateError as EvaluateError,
    LexError as LexError,
    ParseError as ParseError,
    PlcError as PlcError,
)
from .evaluate import RunResult as RunResult, evaluate as evaluate
from .parse import parse as parse
from .tokens import tokenize as tokenize


def check(source: str) -> list[PlcError]:
    """Parse and analyze PLC source. Returns list of errors (empty = ok)."""
    try:
        analyze(parse(source))
    except PlcError as e:
        return [e]
    return []


def run(source: str) -> RunResult:
    """Parse, analyze and evaluate PLC source against the native environment."""
    tree: Source = parse(source)
    return evaluate(analyze(tree))
