"""
Lox Standard Library
Native functions pre-registered in the global scope, and value rendering
"""

from typing import Any
import math
import time

from callables import NativeFunction
from environment import Environment


# ============================================================================
# VALUE RENDERING
# ============================================================================

def format_number(value: float) -> str:
  """Integral numbers render without a trailing .0"""
  if math.isnan(value):
    return "NaN"
  if math.isinf(value):
    return "inf" if value > 0 else "-inf"
  if value.is_integer():
    return str(int(value))
  return repr(value)


def stringify(value: Any) -> str:
  """Render a runtime value the way `print` shows it"""
  if value is None:
    return "nil"
  if isinstance(value, bool):
    return "true" if value else "false"
  if isinstance(value, float):
    return format_number(value)
  return str(value)


# ============================================================================
# NATIVE FUNCTIONS
# ============================================================================

def lox_clock() -> float:
  """Milliseconds since the Unix epoch"""
  return float(time.time_ns() // 1_000_000)


def lox_print(value: Any) -> None:
  """Print a value with newline"""
  print(stringify(value))
  return None


NATIVES = (
  NativeFunction("clock", 0, lox_clock),
  NativeFunction("print", 1, lox_print),
)


def create_builtin_env() -> Environment:
  """Create the global environment with the native functions defined"""
  env = Environment()
  for native in NATIVES:
    env.define(native.name, native)
  return env
