"""
Stackvar runtime values
Nothing, 64-bit signed integers and strings as immutable dataclasses
"""

from dataclasses import dataclass
from typing import Union


INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1


def fits_int64(number: int) -> bool:
  """Check that a Python int is representable as a signed 64-bit integer"""
  return INT_MIN <= number <= INT_MAX


# ============================================================================
# VALUE VARIANTS
# ============================================================================

@dataclass(frozen=True)
class Nothing:
  """The value of a script that never produced any output"""

  def __repr__(self) -> str:
    return "Nothing"


@dataclass(frozen=True)
class Int:
  """Signed 64-bit integer"""
  value: int

  def __post_init__(self):
    if isinstance(self.value, bool) or not isinstance(self.value, int):
      raise TypeError(f"Int requires an int, got {type(self.value).__name__}")
    if not fits_int64(self.value):
      raise ValueError(f"{self.value} does not fit in a signed 64-bit integer")

  def __repr__(self) -> str:
    return f"Int({self.value})"


@dataclass(frozen=True)
class String:
  """Text value"""
  value: str

  def __post_init__(self):
    if not isinstance(self.value, str):
      raise TypeError(f"String requires a str, got {type(self.value).__name__}")

  def __repr__(self) -> str:
    return f"String({quote_string(self.value)})"


Value = Union[Nothing, Int, String]

NOTHING = Nothing()


# ============================================================================
# DISPLAY
# ============================================================================

_ESCAPES = {
    '\\': '\\\\',
    '"': '\\"',
    '\n': '\\n',
    '\r': '\\r',
    '\t': '\\t',
    '\0': '\\0',
}


def quote_string(text: str) -> str:
  """Render text as a double-quoted literal with the usual escapes"""
  return '"' + ''.join(_ESCAPES.get(ch, ch) for ch in text) + '"'


def show(value: Value) -> str:
  """Debug form of a value, e.g. Int(5) or String("hi")"""
  return repr(value)


def type_name(value: Value) -> str:
  """Variant name of a value, used in error messages"""
  return type(value).__name__
