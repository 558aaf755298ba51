"""
lang417 Interpreter
Tree-walking evaluation over the AST. Arguments are evaluated eagerly, left
to right; the first error aborts the whole program.
"""

import logging
import sys
import threading
from typing import Callable, Dict, List, Optional, TextIO

from ast_nodes import (
  Apply,
  Assign,
  Block,
  Call,
  Cond,
  ExprStatement,
  Identifier,
  Lambda,
  LetDecl,
  Literal,
  Node,
  Program
)
from environment import Environment
from error_handling import (
  LangRuntimeError,
  SourceSpan,
  TypeMismatch,
  UndefinedFunction
)
from stdlib import create_global_environment, make_execution_context
from utilities import arity_error, check_arity
from values import Bool, Builtin, Closure, Unit, Value, is_callable, show_value
from wire import decode_program

logger = logging.getLogger(__name__)

# One user-level call nests about 17 Python frames
MAX_CALL_DEPTH = 10000
FRAMES_PER_CALL = 20
EVAL_STACK_SIZE = 512 * 1024 * 1024


class Interpreter:
  """Evaluates programs against a chain of environments"""

  def __init__(self, debug: bool = False, output: Optional[TextIO] = None,
               sleep: Optional[Callable[[float], None]] = None):
    self.debug = debug
    self.context = make_execution_context(self.apply_function, output, sleep)
    self.dispatch: Dict[type, Callable[[Node, Environment], Value]] = {
        Literal: self.eval_literal,
        Identifier: self.eval_identifier,
        Call: self.eval_call,
        Apply: self.eval_apply,
        Lambda: self.eval_lambda,
        Block: self.eval_block,
        Cond: self.eval_cond,
        LetDecl: self.eval_let_decl,
        Assign: self.eval_assign,
        ExprStatement: self.eval_expr_statement,
    }

  # ==========================================================================
  # PROGRAM EVALUATION
  # ==========================================================================

  def evaluate(self, program: Program, env: Optional[Environment] = None) -> Value:
    """
    Run a program and return the value of its last statement.
    Without an env the program runs in a fresh scope under a new global scope.
    """
    if env is None:
      env = create_global_environment().child()

    try:
      return self.eval_statements(program.statements, env)
    except RecursionError:
      raise LangRuntimeError("Maximum recursion depth exceeded") from None

  def eval_statements(self, statements, env: Environment) -> Value:
    result: Value = Unit
    for statement in statements:
      result = self.eval_ast(statement, env)
    return result

  def eval_ast(self, node: Node, env: Environment) -> Value:
    if self.debug:
      logger.debug("Evaluating: %s (scope depth %d)", type(node).__name__, env.depth())

    handler = self.dispatch.get(type(node))
    if handler is None:
      raise LangRuntimeError(f"Cannot evaluate node {type(node).__name__}", getattr(node, 'span', None))
    return handler(node, env)

  # ==========================================================================
  # STATEMENTS
  # ==========================================================================

  def eval_let_decl(self, node: LetDecl, env: Environment) -> Value:
    value = self.eval_ast(node.init, env)
    env.define(node.name, value)
    if self.debug:
      logger.debug("let %s = %s", node.name, show_value(value))
    return Unit

  def eval_assign(self, node: Assign, env: Environment) -> Value:
    value = self.eval_ast(node.expr, env)
    env.assign(node.name, value, node.span)
    return Unit

  def eval_expr_statement(self, node: ExprStatement, env: Environment) -> Value:
    return self.eval_ast(node.expr, env)

  def eval_block(self, node: Block, env: Environment) -> Value:
    return self.eval_statements(node.statements, env.child())

  # ==========================================================================
  # EXPRESSIONS
  # ==========================================================================

  def eval_literal(self, node: Literal, env: Environment) -> Value:
    return node.value

  def eval_identifier(self, node: Identifier, env: Environment) -> Value:
    return env.lookup(node.name, node.span)

  def eval_lambda(self, node: Lambda, env: Environment) -> Value:
    return Closure(node.params, node.body, env)

  def eval_cond(self, node: Cond, env: Environment) -> Value:
    for test, body in node.clauses:
      outcome = self.eval_ast(test, env)
      if not isinstance(outcome, Bool):
        raise TypeMismatch(f"Condition must be Bool, got {outcome.type_name}", node.span)
      if outcome.value:
        return self.eval_ast(body, env)
    return Unit

  def eval_call(self, node: Call, env: Environment) -> Value:
    scope = env.find_scope(node.callee)
    if scope is None:
      raise UndefinedFunction(f"Undefined function '{node.callee}'", node.span)

    func = scope.bindings[node.callee]
    if not is_callable(func):
      raise UndefinedFunction(f"'{node.callee}' is a {func.type_name}, not a function", node.span)

    args = [self.eval_ast(arg, env) for arg in node.args]
    return self.apply_function(func, args, node.callee, node.span)

  def eval_apply(self, node: Apply, env: Environment) -> Value:
    func = self.eval_ast(node.function, env)
    if not is_callable(func):
      raise UndefinedFunction(f"Cannot call a {func.type_name}", node.span)

    args = [self.eval_ast(arg, env) for arg in node.args]
    return self.apply_function(func, args, span=node.span)

  # ==========================================================================
  # FUNCTION APPLICATION
  # ==========================================================================

  def apply_function(self, func: Value, args: List[Value], name: Optional[str] = None,
                     span: Optional[SourceSpan] = None) -> Value:
    """Call a closure or builtin with already-evaluated arguments"""
    if isinstance(func, Closure):
      return self.apply_closure(func, args, name or "lambda", span)
    if isinstance(func, Builtin):
      return self.apply_builtin(func, args, span)
    raise UndefinedFunction(f"Cannot call a {func.type_name}", span)

  def apply_closure(self, func: Closure, args: List[Value], name: str,
                    span: Optional[SourceSpan]) -> Value:
    if len(args) != len(func.params):
      error = arity_error(name, len(func.params), len(args))
      error.span = span
      raise error

    call_env = func.env.child()
    for param, arg in zip(func.params, args):
      call_env.define(param, arg)

    if self.debug:
      logger.debug("call %s(%s)", name, ", ".join(show_value(a) for a in args))
    return self.eval_statements(func.body.statements, call_env)

  def apply_builtin(self, func: Builtin, args: List[Value], span: Optional[SourceSpan]) -> Value:
    try:
      check_arity(func.name, args, func.arity)
      if func.needs_context:
        return func.impl(self.context, *args)
      return func.impl(*args)
    except LangRuntimeError as e:
      if e.span is None:
        e.span = span
      raise


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False, output: Optional[TextIO] = None,
                       sleep: Optional[Callable[[float], None]] = None) -> Interpreter:
  """Factory function returning an interpreter"""
  return Interpreter(debug, output, sleep)


def create_debug_interpreter(output: Optional[TextIO] = None) -> Interpreter:
  """Factory function returning a debug interpreter"""
  return create_interpreter(debug=True, output=output)


def evaluate_deep(interpreter: Interpreter, program: Program,
                  env: Optional[Environment] = None) -> Value:
  """
  Run interpreter.evaluate on a worker thread whose stack and recursion
  limit leave room for MAX_CALL_DEPTH nested calls. Errors raised by the
  program are re-raised here; the previous limits are restored afterwards.
  """
  outcome = {}

  def run():
    try:
      outcome['value'] = interpreter.evaluate(program, env)
    except Exception as e:
      outcome['error'] = e

  previous_limit = sys.getrecursionlimit()
  previous_stack = threading.stack_size(EVAL_STACK_SIZE)
  sys.setrecursionlimit(max(previous_limit, MAX_CALL_DEPTH * FRAMES_PER_CALL))
  try:
    worker = threading.Thread(target=run, name="lang417-eval")
    worker.start()
    worker.join()
  finally:
    threading.stack_size(previous_stack)
    sys.setrecursionlimit(previous_limit)

  if 'error' in outcome:
    raise outcome['error']
  return outcome['value']


def run_serialized(text: str, output: Optional[TextIO] = None, debug: bool = False) -> Value:
  """Decode the serialized representation and evaluate it"""
  program = decode_program(text)
  return create_interpreter(debug, output).evaluate(program)
