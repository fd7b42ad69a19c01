"""Evaluator tests on typed trees built by hand, plus the run/evaluate entry points."""

from decimal import Decimal

import pytest

from plc import EvaluateError, RunResult, analyze, evaluate, parse, run
from plc import ir
from plc.ast import Pos
from plc.evaluate import Evaluator, _divide
from plc.natives import value_scope
from plc.scope import Scope
from plc.types import TY_ANY, TY_INTEGER, TY_STRING
from plc.values import NIL, VFunction, VObject, VPrimitive

P = Pos(1, 1)


def _int(n: int) -> ir.Literal:
    return ir.Literal(P, TY_INTEGER, n)


def _var(name: str) -> ir.Variable:
    return ir.Variable(P, TY_ANY, name)


def _call(name: str, *args: ir.Expr) -> ir.FunctionCall:
    return ir.FunctionCall(P, TY_ANY, name, list(args))


def _expr(e: ir.Expr) -> ir.ExprStmt:
    return ir.ExprStmt(P, e)


def _run(*stmts: ir.Stmt) -> RunResult:
    return evaluate(ir.Source(list(stmts)))


# ============================================================
# Entry points
# ============================================================


def test_run_result():
    result = run('print("hi"); 1 + 2;')
    assert isinstance(result.stdout, bytes)
    assert result.stdout == b"hi\n"
    assert result.value.value == 3


def test_empty_program_is_nil():
    assert run("").value is NIL


def test_evaluate_with_custom_scope():
    scope = Scope()
    scope.define("seven", VPrimitive(7))
    program = ir.Source([_expr(_var("seven"))])
    assert evaluate(program, scope).value.value == 7
    assert scope.names() == ["seven"]


def test_top_level_bindings_do_not_leak_into_given_scope():
    scope = value_scope()
    evaluate(analyze(parse("LET x = 1;")), scope)
    assert not scope.has("x")


def test_recursion_limit_is_an_evaluation_error():
    with pytest.raises(EvaluateError, match="maximum recursion depth exceeded"):
        run("DEF f(n: Integer): Integer DO RETURN f(n); END f(1);")


# ============================================================
# Runtime checks the analyzer normally prevents
# ============================================================


def test_undefined_function_fails_before_arguments_run():
    ev = Evaluator(Scope(value_scope()))
    program = ir.Source([_expr(_call("nope", _call("print", _int(1))))])
    with pytest.raises(EvaluateError, match="undefined function 'nope'") as exc:
        ev.run_source(program)
    assert exc.value.pos == P
    assert bytes(ev.stdout) == b""


def test_missing_arguments_stay_unbound():
    fn = ir.DefStmt(
        P,
        "f",
        [ir.Parameter("a", TY_ANY), ir.Parameter("b", TY_ANY)],
        TY_ANY,
        [ir.ReturnStmt(P, _var("a"))],
    )
    assert _run(fn, _expr(_call("f", _int(1)))).value.value == 1

    uses_b = ir.DefStmt(
        P, "g", [ir.Parameter("b", TY_ANY)], TY_ANY, [ir.ReturnStmt(P, _var("b"))]
    )
    with pytest.raises(EvaluateError, match="undefined variable 'b'"):
        _run(uses_b, _expr(_call("g")))


def test_extra_arguments_are_dropped():
    fn = ir.DefStmt(
        P, "f", [ir.Parameter("a", TY_ANY)], TY_ANY, [ir.ReturnStmt(P, _var("a"))]
    )
    assert _run(fn, _expr(_call("f", _int(1), _int(2), _int(3)))).value.value == 1


def test_return_at_top_level():
    with pytest.raises(EvaluateError, match="RETURN outside of a function"):
        _run(ir.ReturnStmt(P, _int(1)))


def test_redefinition_in_one_frame_fails():
    first = ir.LetStmt(P, "x", TY_INTEGER, _int(1))
    second = ir.LetStmt(P, "x", TY_INTEGER, _int(2))
    with pytest.raises(EvaluateError, match="already defined"):
        _run(first, second)


def test_redefinition_in_nested_block_shadows():
    outer = ir.LetStmt(P, "x", TY_INTEGER, _int(1))
    cond = ir.Literal(P, TY_ANY, True)
    inner = ir.LetStmt(P, "x", TY_INTEGER, _int(2))
    branch = ir.IfStmt(P, cond, [inner, _expr(_var("x"))], [])
    assert _run(outer, branch).value.value == 2
    assert _run(outer, branch, _expr(_var("x"))).value.value == 1


def test_assignment_never_creates_a_binding():
    target = ir.Variable(P, TY_INTEGER, "ghost")
    with pytest.raises(EvaluateError, match="'ghost' is not defined"):
        _run(ir.AssignVariable(P, target, _int(1)))


def test_object_frame_sees_defining_frame():
    let_x = ir.LetStmt(P, "x", TY_INTEGER, _int(5))
    field = ir.LetStmt(P, "y", TY_INTEGER, _var("x"))
    obj = ir.ObjectLit(P, TY_ANY, None, [field], [])
    prop = ir.Property(P, TY_INTEGER, obj, "y")
    assert _run(let_x, _expr(prop)).value.value == 5


def test_member_lookup_does_not_reach_defining_frame():
    let_x = ir.LetStmt(P, "x", TY_INTEGER, _int(5))
    obj = ir.ObjectLit(P, TY_ANY, None, [], [])
    with pytest.raises(EvaluateError, match="object has no member 'x'"):
        _run(let_x, _expr(ir.Property(P, TY_ANY, obj, "x")))


def test_receiver_must_be_object():
    prop = ir.Property(P, TY_ANY, _int(1), "x")
    with pytest.raises(EvaluateError, match="receiver must be an object"):
        _run(_expr(prop))


def test_if_condition_must_be_boolean():
    st = ir.IfStmt(P, _int(1), [], [])
    with pytest.raises(EvaluateError, match="IF condition must be a Boolean"):
        _run(st)


def test_mixed_addition_fails():
    add = ir.Binary(P, TY_ANY, "+", _int(1), ir.Literal(P, TY_ANY, Decimal("1.5")))
    with pytest.raises(EvaluateError, match="cannot add Integer and Decimal"):
        _run(_expr(add))


def test_string_concatenation_uses_display_form():
    left = ir.Literal(P, TY_STRING, "n=")
    add = ir.Binary(P, TY_STRING, "+", left, ir.Literal(P, TY_ANY, None))
    assert _run(_expr(add)).value.value == "n=NIL"


# ============================================================
# Calls and receivers
# ============================================================


def test_method_value_keeps_its_receiver():
    result = run(
        "LET o = OBJECT DO LET n = 2; DEF get() DO RETURN this.n; END END;\n"
        "LET g = o.get;\n"
        "g();"
    )
    assert result.value.value == 2


def test_call_with_explicit_receiver():
    ev = Evaluator(Scope(value_scope()))
    fn = VFunction("get", [], [ir.ReturnStmt(P, _var("this"))], Scope())
    obj = VObject(None, Scope())
    assert ev.call(fn, [], this=obj) is obj


def test_native_method_value_keeps_receiver():
    ev = Evaluator(Scope(value_scope()))
    obj = ev.scope.get("object")
    method = obj.scope.get("method")
    assert method.receiver is obj
    result = ev.call(method, [VPrimitive(1), VPrimitive(2)])
    assert [v.value for v in result.value] == [1, 2]


def test_native_receives_receiver_first():
    ev = Evaluator(Scope(value_scope()))
    seen = []

    def native(_ev, args):
        seen.extend(args)
        return NIL

    obj = VObject("O", Scope())
    ev.call(VFunction("m", [], native=native), [VPrimitive(1)], this=obj)
    assert seen[0] is obj
    assert seen[1].value == 1


# ============================================================
# Division
# ============================================================


@pytest.mark.parametrize(
    "x,y,expected",
    [
        (7, 2, Decimal("3")),
        (-7, 2, Decimal("-4")),
        (Decimal("1.0"), 3, Decimal("0.3")),
        (Decimal("-1.00"), 3, Decimal("-0.34")),
        (6, Decimal("1.5"), Decimal("4")),
    ],
)
def test_divide(x, y, expected):
    result = _divide(x, y, P)
    assert result == expected
    assert result.as_tuple().exponent == expected.as_tuple().exponent


def test_divide_is_exact_beyond_context_precision():
    big = 10**40
    assert _divide(big, 1, P) == Decimal(big)
    dividend = Decimal("1" + "0" * 40 + ".00")
    assert _divide(dividend, 3, P) == Decimal("3" * 40 + ".33")


def test_divide_by_zero():
    with pytest.raises(EvaluateError, match="division by zero"):
        _divide(1, 0, P)
    with pytest.raises(EvaluateError, match="division by zero"):
        _divide(Decimal("1.0"), Decimal("0.0"), P)
