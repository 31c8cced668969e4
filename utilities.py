"""
Utilities module for the Lox interpreter
Runtime value helpers: truthiness, equality, operator factories and error builders
"""

from typing import Any, Callable
import math
import operator

from scanning import Token
from error_handling import LoxRuntimeError
from stdlib import stringify


# ==================== VALUE PREDICATES ====================

def is_number(value: Any) -> bool:
  """Numbers are always floats; bool is excluded even though it subclasses int"""
  return isinstance(value, float)


def is_truthy(value: Any) -> bool:
  """nil and false are falsy, everything else (0 and "" included) is truthy"""
  if value is None:
    return False
  if isinstance(value, bool):
    return value
  return True


def is_equal(left: Any, right: Any) -> bool:
  """
  Value equality between two runtime values

  Only nil, numbers, strings and booleans compare by value. Operands of
  different kinds are never equal, and neither are callables or instances,
  not even with themselves. Never raises.
  """
  if left is None or right is None:
    return left is None and right is None
  if type(left) is not type(right):
    return False
  if isinstance(left, (float, str, bool)):
    return left == right
  return False


# ==================== ERROR MESSAGE BUILDERS ====================

def operation_error(op: Token, left: Any, right: Any, expected: str) -> LoxRuntimeError:
  """
  Generate operand type error for a binary operator

  Args:
    op: Operator token (used for the line and the operator symbol)
    left: Left operand value
    right: Right operand value
    expected: Description of the operands the operator accepts

  Returns:
    LoxRuntimeError with both operand renderings
  """
  return LoxRuntimeError(
    op,
    f"Operands of '{op.lexeme}' must be {expected}, "
    f"got {stringify(left)} and {stringify(right)}."
  )


def arity_error(paren: Token, expected: int, got: int) -> LoxRuntimeError:
  """Generate arity mismatch error"""
  return LoxRuntimeError(paren, f"Expected {expected} arguments but got {got}.")


def check_number_operand(op: Token, operand: Any) -> None:
  """Raise unless a unary operand is a number"""
  if not is_number(operand):
    raise LoxRuntimeError(
      op, f"Operand of '{op.lexeme}' must be a number, got {stringify(operand)}."
    )


# ==================== IEEE-754 ARITHMETIC ====================

def divide(left: float, right: float) -> float:
  """Float division that yields inf/NaN on a zero divisor instead of raising"""
  if right == 0.0:
    if left == 0.0 or math.isnan(left):
      return math.nan
    return math.copysign(math.inf, left) * math.copysign(1.0, right)
  return left / right


def modulo(left: float, right: float) -> float:
  """Truncated remainder (sign of the dividend), NaN where it is undefined"""
  if right == 0.0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
    return math.nan
  return math.fmod(left, right)


# ==================== BINARY OPERATION FACTORIES ====================

def binary_arithmetic_op(
  op: Callable[[float, float], float]
) -> Callable[[Token, Any, Any], Any]:
  """
  Factory for numeric binary operations

  Args:
    op: Function applied to two float operands (e.g., operator.sub)

  Returns:
    Function (operator_token, left, right) -> number

  Examples:
    lox_sub = binary_arithmetic_op(operator.sub)
    lox_sub(minus_token, 3.0, 1.0) -> 2.0
  """
  def arithmetic(token: Token, left: Any, right: Any) -> float:
    if not (is_number(left) and is_number(right)):
      raise operation_error(token, left, right, "numbers")
    return op(left, right)

  return arithmetic


def binary_comparison_op(
  op: Callable[[float, float], bool]
) -> Callable[[Token, Any, Any], bool]:
  """
  Factory for numeric comparisons

  Args:
    op: Python operator function (e.g., operator.lt)

  Returns:
    Function (operator_token, left, right) -> bool
  """
  def comparison(token: Token, left: Any, right: Any) -> bool:
    if not (is_number(left) and is_number(right)):
      raise operation_error(token, left, right, "numbers")
    return op(left, right)

  return comparison


def lox_add(token: Token, left: Any, right: Any) -> Any:
  """`+` adds two numbers or concatenates two strings, nothing else"""
  if is_number(left) and is_number(right):
    return left + right
  if isinstance(left, str) and isinstance(right, str):
    return left + right
  raise operation_error(token, left, right, "two numbers or two strings")


lox_sub = binary_arithmetic_op(operator.sub)
lox_mul = binary_arithmetic_op(operator.mul)
lox_div = binary_arithmetic_op(divide)
lox_mod = binary_arithmetic_op(modulo)

lox_gt = binary_comparison_op(operator.gt)
lox_ge = binary_comparison_op(operator.ge)
lox_lt = binary_comparison_op(operator.lt)
lox_le = binary_comparison_op(operator.le)


def lox_eq(token: Token, left: Any, right: Any) -> bool:
  return is_equal(left, right)


def lox_ne(token: Token, left: Any, right: Any) -> bool:
  return not is_equal(left, right)
