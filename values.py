"""
lang417 runtime values
A closed set of tagged variants; arrays are immutable tuples so every
array operation produces a new value
"""

from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Any, Callable, Optional, Tuple


@dataclass(frozen=True)
class Value:
  """Base class for runtime values"""

  @property
  def type_name(self) -> str:
    return type(self).__name__


@dataclass(frozen=True)
class Int(Value):
  value: int


@dataclass(frozen=True)
class Float(Value):
  """exact holds the Fraction an average rounded from, when there is one"""
  value: float
  exact: Optional[Fraction] = field(default=None, compare=False)


@dataclass(frozen=True)
class Bool(Value):
  value: bool


@dataclass(frozen=True)
class Str(Value):
  value: str


@dataclass(frozen=True)
class Array(Value):
  items: Tuple[Value, ...] = ()

  def __len__(self) -> int:
    return len(self.items)


@dataclass(frozen=True)
class UnitValue(Value):

  @property
  def type_name(self) -> str:
    return "Unit"


@dataclass(frozen=True, eq=False)
class Closure(Value):
  """Lambda paired with the environment it was created in (shared, not copied)"""
  params: Tuple[str, ...]
  body: Any  # ast_nodes.Block
  env: Any  # environment.Environment

  @property
  def type_name(self) -> str:
    return "Function"


@dataclass(frozen=True)
class Builtin(Value):
  """Function implemented by the runtime; arity None means variadic"""
  name: str
  impl: Callable = field(compare=False)
  arity: Optional[int] = None
  needs_context: bool = False

  @property
  def type_name(self) -> str:
    return "Function"


Unit = UnitValue()
TRUE = Bool(True)
FALSE = Bool(False)


# ============================================================================
# CONSTRUCTION HELPERS
# ============================================================================

def make_bool(flag: bool) -> Bool:
  return TRUE if flag else FALSE


def make_number(number) -> Value:
  """Int when the number is integral, Float otherwise"""
  if isinstance(number, int):
    return Int(number)
  if float(number).is_integer():
    return Int(int(number))
  return Float(float(number))


def make_array(items) -> Array:
  return Array(tuple(items))


def is_callable(value: Value) -> bool:
  return isinstance(value, (Closure, Builtin))


def is_number(value: Value) -> bool:
  return isinstance(value, (Int, Float))


# ============================================================================
# FORMATTING
# ============================================================================

def format_value(value: Value) -> str:
  """Text written by print for a value"""
  if isinstance(value, Bool):
    return "true" if value.value else "false"
  elif isinstance(value, (Int, Str)):
    return str(value.value)
  elif isinstance(value, Float):
    return format_float(value)
  elif isinstance(value, Array):
    return "[" + ", ".join(format_value(item) for item in value.items) + "]"
  elif isinstance(value, UnitValue):
    return "()"
  elif isinstance(value, Closure):
    return f"<lambda({', '.join(value.params)})>"
  elif isinstance(value, Builtin):
    return f"<builtin {value.name}>"
  raise ValueError(f"Unknown value kind: {value!r}")


def _terminating_decimal(number: Fraction) -> Optional[str]:
  """Digits of a fraction whose decimal expansion ends, None otherwise"""
  rest, twos, fives = number.denominator, 0, 0
  while rest % 2 == 0:
    rest //= 2
    twos += 1
  while rest % 5 == 0:
    rest //= 5
    fives += 1
  if rest != 1:
    return None
  places = max(twos, fives)
  if places == 0:
    return str(number.numerator)
  scaled = abs(number.numerator) * 10 ** places // number.denominator
  whole, fraction = divmod(scaled, 10 ** places)
  sign = "-" if number < 0 else ""
  return f"{sign}{whole}.{fraction:0{places}d}"


def format_float(value: Float) -> str:
  """Positional notation; the exact decimal when the float had to round it"""
  if value.exact is not None and Fraction(value.value) != value.exact:
    digits = _terminating_decimal(value.exact)
    if digits is not None:
      return digits
  text = repr(value.value)
  if 'e' in text:
    text = format(Decimal(text), 'f')
    if '.' not in text:
      text += '.0'
  return text


def show_value(value: Value) -> str:
  """Like format_value but quotes strings; used by the REPL and debug traces"""
  if isinstance(value, Str):
    return '"' + value.value.replace('\\', '\\\\').replace('"', '\\"') + '"'
  if isinstance(value, Array):
    return "[" + ", ".join(show_value(item) for item in value.items) + "]"
  return format_value(value)
