"""
Evaluator tests for lang417
Programs are parsed from source and run with captured output
"""

import io
import logging
import sys

import pytest

from ast_nodes import Apply, ExprStatement, Literal, Program
from error_handling import (
  ArityMismatch,
  DivisionByZero,
  LangRuntimeError,
  TypeMismatch,
  UndefinedFunction,
  UndefinedVariable
)
from interpreter import create_debug_interpreter, create_interpreter, evaluate_deep
from parsing import create_parser
from values import Float, Int, Str, Unit


class TestBasics:

  def test_hello_world(self, output_of):
    assert output_of('{ print("hello_world!"); }') == "hello_world!\n"

  def test_program_value_is_last_statement(self, run):
    value, _ = run("let x = 2; mul(x, 21);")
    assert value == Int(42)

  def test_let_yields_unit(self, run):
    value, _ = run("let x = 2;")
    assert value is Unit

  def test_print_several_values(self, output_of):
    assert output_of('print("n", 1, true);') == "n 1 true\n"

  def test_print_nothing(self, output_of):
    assert output_of("print();") == "\n"

  def test_nested_arithmetic(self, output_of):
    assert output_of("print(sub(mul(add(1, 2), 10), 12));") == "18\n"

  def test_negative_literal(self, output_of):
    assert output_of("print(abs(-2));") == "2\n"

  def test_mean_prints_float(self, output_of):
    assert output_of("print(mean(intArray(1, 2, 3, 4)));") == "2.5\n"


class TestScoping:

  def test_inner_let_shadows(self, output_of):
    source = """
    let x = 1;
    { let x = 2; print(x); }
    print(x);
    """
    assert output_of(source) == "2\n1\n"

  def test_inner_assignment_updates_outer(self, output_of):
    source = """
    let x = 1;
    { x = 2; }
    print(x);
    """
    assert output_of(source) == "2\n"

  def test_assign_undefined(self, run):
    with pytest.raises(UndefinedVariable):
      run("y = 1;")

  def test_block_bindings_do_not_leak(self, run):
    with pytest.raises(UndefinedVariable):
      run("{ let z = 1; } print(z);")

  def test_builtin_can_be_shadowed(self, output_of):
    source = """
    {
      let print = lambda(v) { v; };
      print(1);
    }
    print("outer");
    """
    assert output_of(source) == "outer\n"


class TestClosures:

  def test_closure_captures_environment(self, output_of):
    source = """
    let makeAdder = lambda(n) { lambda(m) { add(n, m); }; };
    let add5 = makeAdder(5);
    print(add5(10));
    """
    assert output_of(source) == "15\n"

  def test_counter_sees_mutation(self, output_of):
    source = """
    let makeCounter = lambda() {
      let count = 0;
      lambda() { count = add(count, 1); count; };
    };
    let c = makeCounter();
    c();
    c();
    print(c());
    """
    assert output_of(source) == "3\n"

  def test_closure_sees_later_assignment(self, output_of):
    source = """
    let x = 1;
    let getX = lambda() { x; };
    x = 7;
    print(getX());
    """
    assert output_of(source) == "7\n"

  def test_recursion_through_enclosing_scope(self, output_of):
    source = """
    let fib = lambda(n) {
      if (<(n, 2)) { n; } else { add(fib(sub(n, 1)), fib(sub(n, 2))); }
    };
    print(fib(10));
    """
    assert output_of(source) == "55\n"

  def test_user_factorial(self, output_of):
    source = """
    let f = lambda(n) { if (zero?(n)) { 1; } else { mul(n, f(sub(n, 1))); } };
    print(f(10));
    """
    assert output_of(source) == "3628800\n"

  def test_parameters_are_local(self, output_of):
    source = """
    let n = 100;
    let id = lambda(n) { n; };
    print(id(1), n);
    """
    assert output_of(source) == "1 100\n"


class TestHigherOrder:

  def test_map_filter_fold(self, output_of):
    source = """
    let a = intArray(1, 2, 3);
    print(map(lambda(n) { add(n, 1); }, a));
    print(filter(lambda(n) { >(n, 10); }, intArray(5, 15, 20)));
    print(fold(lambda(n, acc) { add(n, acc); }, 0, a), sum(a));
    """
    assert output_of(source) == "[2, 3, 4]\n[15, 20]\n6 6\n"

  def test_builtin_passed_as_value(self, output_of):
    assert output_of("print(fold(add, 0, intArray(1, 2, 3)));") == "6\n"

  def test_operator_passed_as_value(self, output_of):
    assert output_of("print(fold(*, 1, intArray(2, 3, 4)));") == "24\n"

  def test_filter_non_bool(self, run):
    with pytest.raises(TypeMismatch):
      run("filter(lambda(n) { n; }, intArray(1));")


class TestArraysValueSemantics:

  def test_sort_leaves_binding(self, output_of):
    source = """
    let a = intArray(3, 6, 9, 3, 1, 32, 76, 143, 8);
    let s = sort(a);
    print(s);
    print(len(a), get(a, 0));
    """
    assert output_of(source) == "[1, 3, 3, 6, 8, 9, 32, 76, 143]\n9 3\n"

  def test_rebinding_idiom(self, output_of):
    source = """
    let exAr = intArray(1, 2);
    exAr = set(exAr, 0, 5);
    exAr = append(exAr, 6);
    print(exAr);
    """
    assert output_of(source) == "[5, 2, 6]\n"


class TestConditionals:

  def test_else_if_chain(self, output_of):
    source = """
    let classify = lambda(n) {
      if (<(n, 0)) { "neg"; } else if (zero?(n)) { "zero"; } else { "pos"; }
    };
    print(classify(-3), classify(0), classify(8));
    """
    assert output_of(source) == "neg zero pos\n"

  def test_no_clause_taken(self, run):
    value, _ = run("if (false) { 1; }")
    assert value is Unit

  def test_non_bool_condition(self, run):
    with pytest.raises(TypeMismatch):
      run("if (1) { 1; }")


class TestRuntimeErrors:

  def test_division_by_zero(self, run):
    with pytest.raises(DivisionByZero) as excinfo:
      run("print(div(10, 0));")
    assert excinfo.value.span.start_line == 1

  def test_output_before_error_is_kept(self):
    output = io.StringIO()
    program = create_parser().parse_string('print("before"); div(1, 0); print("after");')
    with pytest.raises(DivisionByZero):
      create_interpreter(output=output).evaluate(program)
    assert output.getvalue() == "before\n"

  def test_undefined_variable(self, run):
    with pytest.raises(UndefinedVariable):
      run("print(nope);")

  def test_undefined_function(self, run):
    with pytest.raises(UndefinedFunction):
      run("nope(1);")

  def test_calling_non_function(self, run):
    with pytest.raises(UndefinedFunction) as excinfo:
      run("let x = 1; x(2);")
    assert "not a function" in excinfo.value.message

  def test_applying_non_function(self):
    program = Program((ExprStatement(Apply(Literal(Int(5)), (Literal(Int(1)),))),))
    with pytest.raises(UndefinedFunction):
      create_interpreter(output=io.StringIO()).evaluate(program)

  def test_closure_arity(self, run):
    with pytest.raises(ArityMismatch):
      run("let f = lambda(a, b) { a; }; f(1);")

  def test_builtin_arity(self, run):
    with pytest.raises(ArityMismatch):
      run("add(1, 2, 3);")

  def test_arguments_evaluated_left_to_right(self, output_of):
    source = """
    let show = lambda(v) { print(v); v; };
    add(show(1), show(2));
    """
    assert output_of(source) == "1\n2\n"

  def test_runaway_recursion(self, run):
    with pytest.raises(LangRuntimeError) as excinfo:
      run("let loop = lambda(n) { loop(add(n, 1)); }; loop(0);")
    assert "recursion" in excinfo.value.message


class TestDeepRecursion:

  def test_deep_evaluation_returns_value(self):
    program = create_parser().parse_string(
        "let f = lambda(n) { if (zero?(n)) { 0; } else { add(1, f(sub(n, 1))); } }; f(3000);")
    assert evaluate_deep(create_interpreter(output=io.StringIO()), program) == Int(3000)

  def test_limits_are_restored(self):
    before = sys.getrecursionlimit()
    evaluate_deep(create_interpreter(output=io.StringIO()), create_parser().parse_string("1;"))
    assert sys.getrecursionlimit() == before

  def test_errors_reach_the_caller(self):
    program = create_parser().parse_string("div(1, 0);")
    with pytest.raises(DivisionByZero):
      evaluate_deep(create_interpreter(output=io.StringIO()), program)


class TestWait:

  def test_wait_uses_injected_sleep(self, run):
    slept = []
    value, _ = run("wait(10);", sleep=slept.append)
    assert value is Unit
    assert slept == [0.01]


class TestValues:

  def test_string_value(self, run):
    value, _ = run('"abc";')
    assert value == Str("abc")

  def test_median_float(self, run):
    value, _ = run("median(intArray(1, 3, 2, 4));")
    assert value == Float(2.5)


class TestDebugTracing:

  def test_debug_interpreter_logs_evaluation(self, caplog):
    caplog.set_level(logging.DEBUG, logger="interpreter")
    program = create_parser().parse_string("let f = lambda(x) { x; }; f(1);")
    create_debug_interpreter(output=io.StringIO()).evaluate(program)
    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("Evaluating: LetDecl") for m in messages)
    assert "call f(1)" in messages

  def test_quiet_by_default(self, caplog):
    caplog.set_level(logging.DEBUG, logger="interpreter")
    create_interpreter(output=io.StringIO()).evaluate(create_parser().parse_string("1;"))
    assert not caplog.records
