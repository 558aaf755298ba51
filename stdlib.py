"""
lang417 Standard Library
Builtin functions registered under fixed global names. Every array function
returns a new array; none of them touches its argument.
"""

import logging
import math
import sys
import time
from fractions import Fraction
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, TextIO

from environment import Environment
from error_handling import DivisionByZero, DomainError, TypeMismatch
from utilities import (
  NUMBER_TYPES,
  expect_array,
  expect_index,
  expect_int,
  expect_non_empty,
  expect_number,
  expect_type,
  numbers_of,
  sort_key_for,
  type_mismatch_error
)
from values import (
  Array,
  Bool,
  Builtin,
  Float,
  Int,
  Str,
  Unit,
  Value,
  format_value,
  is_callable,
  make_array,
  make_bool,
  make_number
)

logger = logging.getLogger(__name__)


# ============================================================================
# EXECUTION CONTEXT
# ============================================================================

def make_execution_context(
  apply: Callable,
  output: Optional[TextIO] = None,
  sleep: Optional[Callable[[float], None]] = None
) -> Dict:
  """What effectful and higher-order builtins need from the evaluator"""
  return {
      'apply': apply,
      'output': output if output is not None else sys.stdout,
      'sleep': sleep if sleep is not None else time.sleep
  }


def _float_result(func_name: str, compute: Callable[[], object]) -> Value:
  """Run arithmetic that produces a float; overflow becomes a DomainError"""
  try:
    return Float(float(compute()))
  except OverflowError:
    raise DomainError(f"{func_name}: result is too large for a float") from None


def _number_result(func_name: str, compute: Callable[[], object], *operands: Value) -> Value:
  """Int when every operand was an Int, Float otherwise"""
  if all(isinstance(op, Int) for op in operands):
    return Int(compute())
  return _float_result(func_name, compute)


def _truncating_div(a: int, b: int) -> int:
  quotient = abs(a) // abs(b)
  return quotient if (a >= 0) == (b > 0) else -quotient


# ============================================================================
# ARITHMETIC FUNCTIONS
# ============================================================================

def lang_add(x: Value, y: Value) -> Value:
  a, b = expect_number("add", x, 1), expect_number("add", y, 2)
  return _number_result("add", lambda: a + b, x, y)


def lang_sub(x: Value, y: Value) -> Value:
  a, b = expect_number("sub", x, 1), expect_number("sub", y, 2)
  return _number_result("sub", lambda: a - b, x, y)


def lang_mul(x: Value, y: Value) -> Value:
  a, b = expect_number("mul", x, 1), expect_number("mul", y, 2)
  return _number_result("mul", lambda: a * b, x, y)


def lang_div(x: Value, y: Value) -> Value:
  """Integer division truncates toward zero"""
  a, b = expect_number("div", x, 1), expect_number("div", y, 2)
  if b == 0:
    raise DivisionByZero("Division by zero")
  if isinstance(x, Int) and isinstance(y, Int):
    return Int(_truncating_div(a, b))
  return _float_result("div", lambda: a / b)


def lang_mod(x: Value, y: Value) -> Value:
  """Remainder takes the sign of the dividend"""
  a, b = expect_number("mod", x, 1), expect_number("mod", y, 2)
  if b == 0:
    raise DivisionByZero("Modulo by zero")
  if isinstance(x, Int) and isinstance(y, Int):
    return Int(a - b * _truncating_div(a, b))
  return _float_result("mod", lambda: math.fmod(a, b))


def lang_max(x: Value, y: Value) -> Value:
  return x if expect_number("max", x, 1) >= expect_number("max", y, 2) else y


def lang_min(x: Value, y: Value) -> Value:
  return x if expect_number("min", x, 1) <= expect_number("min", y, 2) else y


def lang_abs(x: Value) -> Value:
  number = expect_number("abs", x)
  return _number_result("abs", lambda: abs(number), x)


def lang_fact(n: Value) -> Value:
  value = expect_int("fact", n)
  if value < 0:
    raise DomainError(f"Factorial of a negative number is undefined: {value}")
  return Int(math.factorial(value))


def lang_pow(x: Value, y: Value) -> Value:
  base, exponent = expect_int("pow", x, 1), expect_int("pow", y, 2)
  if exponent < 0:
    raise DomainError(f"pow requires a non-negative exponent, got {exponent}")
  return Int(base ** exponent)


def lang_is_zero(x: Value) -> Value:
  return make_bool(expect_number("zero?", x) == 0)


# ============================================================================
# COMPARISON FUNCTIONS
# ============================================================================

def values_equal(x: Value, y: Value) -> bool:
  """Structural equality; numbers compare by magnitude"""
  if isinstance(x, NUMBER_TYPES) and isinstance(y, NUMBER_TYPES):
    return x.value == y.value
  if isinstance(x, Array) and isinstance(y, Array):
    return len(x.items) == len(y.items) and all(
        values_equal(a, b) for a, b in zip(x.items, y.items))
  return x == y


def lang_eq(x: Value, y: Value) -> Value:
  return make_bool(values_equal(x, y))


def lang_ne(x: Value, y: Value) -> Value:
  return make_bool(not values_equal(x, y))


def _ordering(op_name: str, op: Callable) -> Callable[[Value, Value], Value]:
  """Factory for relational builtins over numbers or strings"""
  def comparison(x: Value, y: Value) -> Value:
    if isinstance(x, NUMBER_TYPES) and isinstance(y, NUMBER_TYPES):
      return make_bool(op(x.value, y.value))
    if isinstance(x, Str) and isinstance(y, Str):
      return make_bool(op(x.value, y.value))
    raise TypeMismatch(f"Cannot compare {x.type_name} and {y.type_name} with '{op_name}'")
  return comparison


lang_gt = _ordering(">", lambda a, b: a > b)
lang_lt = _ordering("<", lambda a, b: a < b)
lang_ge = _ordering(">=", lambda a, b: a >= b)
lang_le = _ordering("<=", lambda a, b: a <= b)


# ============================================================================
# ARRAY CONSTRUCTION AND INSPECTION
# ============================================================================

def lang_int_array(*values: Value) -> Value:
  for i, value in enumerate(values, 1):
    expect_type("intArray", value, Int, i)
  return make_array(values)


def lang_string_array(*values: Value) -> Value:
  for i, value in enumerate(values, 1):
    expect_type("stringArray", value, Str, i)
  return make_array(values)


def lang_len(value: Value) -> Value:
  """Length of an array or string"""
  if isinstance(value, Array):
    return Int(len(value.items))
  if isinstance(value, Str):
    return Int(len(value.value))
  raise type_mismatch_error("len", "argument 1", "Array", value)


def lang_get(arr: Value, index: Value) -> Value:
  array = expect_array("get", arr)
  return array.items[expect_index("get", array, index)]


def lang_head(arr: Value) -> Value:
  return expect_non_empty("head", expect_array("head", arr)).items[0]


def lang_last(arr: Value) -> Value:
  return expect_non_empty("last", expect_array("last", arr)).items[-1]


def lang_tail(arr: Value) -> Value:
  return make_array(expect_non_empty("tail", expect_array("tail", arr)).items[1:])


def lang_is_empty(arr: Value) -> Value:
  return make_bool(not expect_array("empty?", arr).items)


# ============================================================================
# ARRAY TRANSFORMS
# ============================================================================

def lang_sort(arr: Value) -> Value:
  """Ascending, stable"""
  array = expect_array("sort", arr)
  return make_array(sorted(array.items, key=sort_key_for("sort", array)))


def lang_set(arr: Value, index: Value, value: Value) -> Value:
  array = expect_array("set", arr)
  i = expect_index("set", array, index)
  return make_array(array.items[:i] + (value,) + array.items[i + 1:])


def lang_append(arr: Value, value: Value) -> Value:
  return make_array(expect_array("append", arr).items + (value,))


def lang_remove(arr: Value, index: Value) -> Value:
  array = expect_array("remove", arr)
  i = expect_index("remove", array, index)
  return make_array(array.items[:i] + array.items[i + 1:])


def lang_rev(arr: Value) -> Value:
  return make_array(reversed(expect_array("rev", arr).items))


# ============================================================================
# HIGHER-ORDER FUNCTIONS
# ============================================================================

def _expect_function(func_name: str, value: Value) -> Value:
  if not is_callable(value):
    raise type_mismatch_error(func_name, "argument 1", "Function", value)
  return value


def lang_map(context: Dict, func: Value, arr: Value) -> Value:
  """Apply func to every element"""
  _expect_function("map", func)
  array = expect_array("map", arr, 2)
  apply = context['apply']
  return make_array(apply(func, [item]) for item in array.items)


def lang_filter(context: Dict, pred: Value, arr: Value) -> Value:
  """Keep the elements for which pred yields true"""
  _expect_function("filter", pred)
  array = expect_array("filter", arr, 2)
  apply = context['apply']

  results = []
  for item in array.items:
    keep = apply(pred, [item])
    if not isinstance(keep, Bool):
      raise TypeMismatch(f"filter predicate must return Bool, got {keep.type_name}")
    if keep.value:
      results.append(item)
  return make_array(results)


def lang_fold(context: Dict, func: Value, init: Value, arr: Value) -> Value:
  """Left fold; func receives (element, accumulator)"""
  _expect_function("fold", func)
  array = expect_array("fold", arr, 3)
  apply = context['apply']

  acc = init
  for item in array.items:
    acc = apply(func, [item, acc])
  return acc


# ============================================================================
# REDUCTIONS
# ============================================================================

def _reduction_input(func_name: str, arr: Value) -> List:
  array = expect_non_empty(func_name, expect_array(func_name, arr))
  return numbers_of(func_name, array)


def _average(func_name: str, numbers: List) -> Value:
  """Int when the average is integral, Float otherwise"""
  if all(isinstance(n, int) for n in numbers):
    mean = Fraction(sum(numbers), len(numbers))
    if mean.denominator == 1:
      return Int(mean.numerator)
    return Float(_float_result(func_name, lambda: mean).value, mean)
  return make_number(_float_result(func_name, lambda: sum(numbers) / len(numbers)).value)


def lang_sum(arr: Value) -> Value:
  numbers = _reduction_input("sum", arr)
  return _number_result("sum", lambda: sum(numbers), *expect_array("sum", arr).items)


def lang_product(arr: Value) -> Value:
  numbers = _reduction_input("product", arr)
  return _number_result("product", lambda: math.prod(numbers), *expect_array("product", arr).items)


def lang_mean(arr: Value) -> Value:
  return _average("mean", _reduction_input("mean", arr))


def lang_median(arr: Value) -> Value:
  """Middle of a sorted copy; mean of the two middles for even lengths"""
  numbers = sorted(_reduction_input("median", arr))
  mid = len(numbers) // 2
  if len(numbers) % 2 == 1:
    return make_number(numbers[mid])
  return _average("median", numbers[mid - 1:mid + 1])


def lang_max_array(arr: Value) -> Value:
  _reduction_input("maxArray", arr)
  return max(arr.items, key=lambda item: item.value)


def lang_min_array(arr: Value) -> Value:
  _reduction_input("minArray", arr)
  return min(arr.items, key=lambda item: item.value)


# ============================================================================
# EFFECTS
# ============================================================================

def lang_print(context: Dict, *values: Value) -> Value:
  """Write the arguments space-separated, then a newline"""
  output = context['output']
  output.write(" ".join(format_value(value) for value in values) + "\n")
  output.flush()
  return Unit


def lang_wait(context: Dict, ms: Value) -> Value:
  """Block for ms milliseconds"""
  millis = expect_int("wait", ms)
  if millis < 0:
    raise DomainError(f"wait requires a non-negative duration, got {millis}")
  logger.debug("wait: sleeping %d ms", millis)
  context['sleep'](millis / 1000)
  return Unit


# ============================================================================
# REGISTRY
# ============================================================================

def _entries():
  # (name, implementation, arity, needs_context); arity None = variadic
  table = [
      ('add', lang_add, 2, False),
      ('sub', lang_sub, 2, False),
      ('mul', lang_mul, 2, False),
      ('div', lang_div, 2, False),
      ('mod', lang_mod, 2, False),
      ('max', lang_max, 2, False),
      ('min', lang_min, 2, False),
      ('abs', lang_abs, 1, False),
      ('fact', lang_fact, 1, False),
      ('pow', lang_pow, 2, False),
      ('zero?', lang_is_zero, 1, False),
      ('eq', lang_eq, 2, False),
      ('>', lang_gt, 2, False),
      ('<', lang_lt, 2, False),
      ('>=', lang_ge, 2, False),
      ('<=', lang_le, 2, False),
      ('==', lang_eq, 2, False),
      ('!=', lang_ne, 2, False),
      ('+', lang_add, 2, False),
      ('-', lang_sub, 2, False),
      ('*', lang_mul, 2, False),
      ('/', lang_div, 2, False),
      ('%', lang_mod, 2, False),
      ('intArray', lang_int_array, None, False),
      ('stringArray', lang_string_array, None, False),
      ('len', lang_len, 1, False),
      ('get', lang_get, 2, False),
      ('head', lang_head, 1, False),
      ('last', lang_last, 1, False),
      ('tail', lang_tail, 1, False),
      ('empty?', lang_is_empty, 1, False),
      ('sort', lang_sort, 1, False),
      ('set', lang_set, 3, False),
      ('append', lang_append, 2, False),
      ('remove', lang_remove, 2, False),
      ('rev', lang_rev, 1, False),
      ('map', lang_map, 2, True),
      ('filter', lang_filter, 2, True),
      ('fold', lang_fold, 3, True),
      ('sum', lang_sum, 1, False),
      ('product', lang_product, 1, False),
      ('mean', lang_mean, 1, False),
      ('median', lang_median, 1, False),
      ('maxArray', lang_max_array, 1, False),
      ('minArray', lang_min_array, 1, False),
      ('print', lang_print, None, True),
      ('wait', lang_wait, 1, True),
  ]
  return {name: Builtin(name, impl, arity, needs_context)
          for name, impl, arity, needs_context in table}


BUILTINS = MappingProxyType(_entries())


def create_global_environment() -> Environment:
  """Fresh global scope holding every builtin"""
  return Environment(bindings=dict(BUILTINS))
