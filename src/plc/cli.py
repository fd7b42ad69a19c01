"""PLC CLI — check and run PLC programs."""

from __future__ import annotations

import logging
import sys

from .analyze import analyze
from .errors import AnalyzeError, EvaluateError, LexError, ParseError, PlcError
from .evaluate import Evaluator
from .natives import value_scope
from .parse import parse
from .scope import Scope

logger = logging.getLogger(__name__)


USAGE: str = """\
plc [OPTIONS] [FILE]

Run a PLC program. Reads standard input when FILE is omitted or '-'.

Options:
  --check         Analyze only; do not run
  --print-result  Print the value of the last statement
  --verbose       Log debug output to stderr
  --help          Show this help message
"""


def _phase(e: PlcError) -> str:
    if isinstance(e, LexError):
        return "lex"
    if isinstance(e, ParseError):
        return "parse"
    if isinstance(e, AnalyzeError):
        return "analysis"
    if isinstance(e, EvaluateError):
        return "evaluation"
    return "internal"


def _read_source(filepath: str) -> str | None:
    if filepath == "" or filepath == "-":
        return sys.stdin.read()
    try:
        with open(filepath, "rb") as f:
            raw = f.read()
    except FileNotFoundError:
        print("plc: " + filepath + ": No such file or directory", file=sys.stderr)
        return None
    except OSError as e:
        print("plc: " + filepath + ": " + str(e), file=sys.stderr)
        return None
    try:
        return raw.decode("utf-8")
    except ValueError:
        print("plc: " + filepath + ": invalid utf-8", file=sys.stderr)
        return None


def main(argv: list[str] | None = None) -> int:
    args = argv if argv is not None else sys.argv[1:]
    filepath: str = ""
    check_only = False
    print_result = False
    verbose = False
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            return 0
        elif arg == "--check":
            check_only = True
            i += 1
        elif arg == "--print-result":
            print_result = True
            i += 1
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg.startswith("-") and arg != "-":
            print("plc: unknown flag '" + arg + "'", file=sys.stderr)
            return 2
        elif filepath == "":
            filepath = arg
            i += 1
        else:
            print("plc: unexpected argument '" + arg + "'", file=sys.stderr)
            return 2

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(name)s: %(levelname)s: %(message)s",
    )

    source = _read_source(filepath)
    if source is None:
        return 1

    try:
        program = analyze(parse(source))
    except PlcError as e:
        print("plc: " + _phase(e) + " error: " + str(e), file=sys.stderr)
        return 1
    if check_only:
        logger.debug("analysis ok: %d statement(s)", len(program.stmts))
        return 0

    ev = Evaluator(Scope(value_scope()))
    try:
        value = ev.run_source(program)
    except PlcError as e:
        sys.stdout.buffer.write(ev.stdout)
        sys.stdout.flush()
        print("plc: " + _phase(e) + " error: " + str(e), file=sys.stderr)
        return 1

    sys.stdout.buffer.write(ev.stdout)
    sys.stdout.flush()
    if print_result:
        print(value.display())
    return 0


if __name__ == "__main__":
    sys.exit(main())
