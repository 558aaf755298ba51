"""
Parser tests for lang417
Tests statement forms, expressions and parse errors
"""

import pytest

from ast_nodes import (
  Assign,
  Block,
  Call,
  Cond,
  ExprStatement,
  Identifier,
  Lambda,
  LetDecl,
  Literal,
  find_nodes_by_type,
  pretty_print_ast
)
from error_handling import LexError, ParseError
from values import FALSE, TRUE, Int, Str


class TestStatements:
  """Statement forms and program shape"""

  def test_let_declaration(self, parser):
    program = parser.parse_string("let x = 5;")
    assert program.statements == (LetDecl("x", Literal(Int(5))),)

  def test_assignment(self, parser):
    program = parser.parse_string("x = add(x, 1);")
    stmt = program.statements[0]
    assert isinstance(stmt, Assign)
    assert stmt.name == "x"
    assert stmt.expr == Call("add", (Identifier("x"), Literal(Int(1))))

  def test_expression_statement(self, parser):
    program = parser.parse_string('print("hi");')
    assert program.statements == (ExprStatement(Call("print", (Literal(Str("hi")),))),)

  def test_outer_block_is_unwrapped(self, parser):
    program = parser.parse_string("{ let x = 1; print(x); }")
    assert len(program.statements) == 2
    assert isinstance(program.statements[0], LetDecl)

  def test_nested_block_statement(self, parser):
    program = parser.parse_string("let x = 1; { let x = 2; } print(x);")
    assert isinstance(program.statements[1], Block)
    assert len(program.statements) == 3

  def test_empty_program(self, parser):
    assert parser.parse_string("").statements == ()

  def test_spans_do_not_affect_equality(self, parser):
    a = parser.parse_string("let x = 1;")
    b = parser.parse_string("\n\n   let   x =\n 1 ;")
    assert a.statements == b.statements

  def test_statement_span(self, parser):
    stmt = parser.parse_string("\n  let x = 1;").statements[0]
    assert stmt.span.start_line == 2
    assert stmt.span.start_col == 3


class TestExpressions:
  """Literals, calls, lambdas and conditionals"""

  def test_literals(self, parser):
    assert parser.parse_expression("42") == Literal(Int(42))
    assert parser.parse_expression('"s"') == Literal(Str("s"))
    assert parser.parse_expression("true") == Literal(TRUE)
    assert parser.parse_expression("false") == Literal(FALSE)

  def test_negative_literal(self, parser):
    assert parser.parse_expression("-7") == Literal(Int(-7))

  def test_nested_calls(self, parser):
    expr = parser.parse_expression("add(mul(2, 3), 4)")
    assert expr == Call("add", (
        Call("mul", (Literal(Int(2)), Literal(Int(3)))),
        Literal(Int(4))
    ))

  def test_call_without_arguments(self, parser):
    assert parser.parse_expression("f()") == Call("f", ())

  def test_operator_call(self, parser):
    expr = parser.parse_expression(">(x, 1)")
    assert expr == Call(">", (Identifier("x"), Literal(Int(1))))

  def test_operator_as_value(self, parser):
    expr = parser.parse_expression("fold(+, 0, a)")
    assert expr.args[0] == Identifier("+")

  def test_question_mark_function(self, parser):
    assert parser.parse_expression("zero?(n)") == Call("zero?", (Identifier("n"),))

  def test_lambda(self, parser):
    expr = parser.parse_expression("lambda(a, b) { add(a, b); }")
    assert isinstance(expr, Lambda)
    assert expr.params == ("a", "b")
    assert expr.body == Block((ExprStatement(Call("add", (Identifier("a"), Identifier("b")))),))

  def test_lambda_without_parameters(self, parser):
    expr = parser.parse_expression("lambda() { 1; }")
    assert expr.params == ()

  def test_if_else_chain_flattens(self, parser):
    expr = parser.parse_expression(
        "if (a) { 1; } else if (b) { 2; } else { 3; }")
    assert isinstance(expr, Cond)
    assert len(expr.clauses) == 3
    assert expr.clauses[0][0] == Identifier("a")
    assert expr.clauses[1][0] == Identifier("b")
    assert expr.clauses[2][0] == Literal(TRUE)

  def test_if_without_else(self, parser):
    expr = parser.parse_expression("if (a) { 1; }")
    assert len(expr.clauses) == 1

  def test_semicolon_optional_after_brace(self, parser):
    program = parser.parse_string("if (true) { print(1); } print(2);")
    assert len(program.statements) == 2

  def test_find_nodes_by_type(self, parser):
    program = parser.parse_string("let f = lambda(x) { g(h(x)); };")
    calls = find_nodes_by_type(program, Call)
    assert [c.callee for c in calls] == ["g", "h"]

  def test_pretty_print(self, parser):
    text = pretty_print_ast(parser.parse_string("let x = add(1, 2);"))
    assert "LetDecl(x)" in text
    assert "Call(add)" in text


class TestParseErrors:
  """Malformed programs"""

  def test_missing_semicolon(self, parser):
    with pytest.raises(ParseError) as excinfo:
      parser.parse_string("let x = 5\nprint(x);")
    assert excinfo.value.span.start_line == 2
    assert excinfo.value.span.start_col == 1

  def test_unclosed_block(self, parser):
    with pytest.raises(ParseError) as excinfo:
      parser.parse_string("{ let x = 1;")
    assert "'}'" in excinfo.value.message

  def test_unclosed_call(self, parser):
    with pytest.raises(ParseError):
      parser.parse_string("add(1, 2;")

  def test_let_needs_name(self, parser):
    with pytest.raises(ParseError):
      parser.parse_string("let 5 = 1;")

  def test_duplicate_lambda_parameter(self, parser):
    with pytest.raises(ParseError) as excinfo:
      parser.parse_string("let f = lambda(a, a) { a; };")
    assert "Duplicate" in excinfo.value.message

  def test_trailing_comma(self, parser):
    with pytest.raises(ParseError):
      parser.parse_string("add(1, );")

  def test_lex_errors_propagate(self, parser):
    with pytest.raises(LexError):
      parser.parse_string("let x = #;")

  def test_trailing_input_after_expression(self, parser):
    with pytest.raises(ParseError):
      parser.parse_expression("1 2")
