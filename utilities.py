"""
Utilities module for the lang417 interpreter
Argument validation and error builders shared by the builtins and evaluator
"""

from typing import List, Optional, Sequence, Tuple, Type, Union

from error_handling import (
  ArityMismatch,
  EmptyArray,
  IndexOutOfRange,
  TypeMismatch
)
from values import Array, Float, Int, Str, Value


NUMBER_TYPES = (Int, Float)


# ==================== ERROR MESSAGE BUILDERS ====================

def type_mismatch_error(
  func_name: str,
  param_name: str,
  expected: str,
  actual: Value
) -> TypeMismatch:
  """
  Generate type mismatch error

  Args:
    func_name: Function name
    param_name: Parameter name
    expected: Expected type
    actual: Actual value

  Returns:
    TypeMismatch with formatted message
  """
  return TypeMismatch(
    f"{func_name} requires {expected} for {param_name}, got {actual.type_name}"
  )


def arity_error(func_name: str, expected: int, got: int) -> ArityMismatch:
  """
  Generate arity mismatch error

  Args:
    func_name: Function name
    expected: Expected number of arguments
    got: Actual number of arguments

  Returns:
    ArityMismatch with formatted message
  """
  noun = "argument" if expected == 1 else "arguments"
  return ArityMismatch(
    f"{func_name} expects {expected} {noun}, got {got}"
  )


# ==================== VALIDATION UTILITIES ====================

def check_arity(func_name: str, args: Sequence[Value], expected: Optional[int]) -> None:
  """None means the function is variadic"""
  if expected is not None and len(args) != expected:
    raise arity_error(func_name, expected, len(args))


def expect_type(
  func_name: str,
  value: Value,
  expected: Union[Type[Value], Tuple[Type[Value], ...]],
  position: int = 1
) -> Value:
  """
  Validate one argument's kind

  Raises:
    TypeMismatch if the value is not an instance of expected
  """
  if not isinstance(value, expected):
    if isinstance(expected, tuple):
      expected_name = " or ".join(t.__name__ for t in expected)
    else:
      expected_name = expected.__name__
    raise type_mismatch_error(func_name, f"argument {position}", expected_name, value)
  return value


def expect_int(func_name: str, value: Value, position: int = 1) -> int:
  return expect_type(func_name, value, Int, position).value


def expect_number(func_name: str, value: Value, position: int = 1):
  if not isinstance(value, NUMBER_TYPES):
    raise type_mismatch_error(func_name, f"argument {position}", "Number", value)
  return value.value


def expect_array(func_name: str, value: Value, position: int = 1) -> Array:
  return expect_type(func_name, value, Array, position)


def expect_non_empty(func_name: str, array: Array) -> Array:
  if not array.items:
    raise EmptyArray(f"{func_name} of an empty array")
  return array


def expect_index(func_name: str, array: Array, index: Value, position: int = 2) -> int:
  """Index must lie in [0, len)"""
  i = expect_int(func_name, index, position)
  if i < 0 or i >= len(array.items):
    raise IndexOutOfRange(
      f"{func_name}: index {i} out of range for array of length {len(array.items)}"
    )
  return i


def numbers_of(func_name: str, array: Array) -> List:
  """Raw numbers of an all-number array"""
  numbers = []
  for i, item in enumerate(array.items):
    if not isinstance(item, NUMBER_TYPES):
      raise TypeMismatch(
        f"{func_name} requires an array of numbers, element {i} is {item.type_name}"
      )
    numbers.append(item.value)
  return numbers


def sort_key_for(func_name: str, array: Array):
  """Key function for sorting; elements must be all numbers or all strings"""
  items = array.items
  if all(isinstance(item, NUMBER_TYPES) for item in items):
    return lambda item: item.value
  if all(isinstance(item, Str) for item in items):
    return lambda item: item.value
  kinds = sorted({item.type_name for item in items})
  raise TypeMismatch(f"{func_name} cannot order an array of {', '.join(kinds)}")
