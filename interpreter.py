"""
Lox Interpreter - tree walking evaluator
Executes resolved statements against a chain of environments
"""

from typing import Any, Callable, Dict, List, Optional
from concurrent.futures import ThreadPoolExecutor
import sys
import threading

from scanning import Token, TokenType
from syntax import (
  Assign, Binary, Block, Call, Class, Expr, Expression, Function, Get,
  Grouping, If, Literal, Logical, Return, SelfExpr, Set, Stmt, Super, Unary,
  Var, Variable, While, EXPR_TYPES, STMT_TYPES, make_dispatch_table,
)
from environment import Environment
from callables import (
  INITIALIZER_NAME, LoxCallable, LoxClass, LoxFunction, LoxInstance, ReturnSignal,
)
from error_handling import LoxRuntimeError
from stdlib import create_builtin_env
from utilities import (
  arity_error,
  check_number_operand,
  is_truthy,
  lox_add, lox_sub, lox_mul, lox_div, lox_mod,
  lox_gt, lox_ge, lox_lt, lox_le,
  lox_eq, lox_ne,
)


BINARY_OPERATORS = {
  TokenType.PLUS: lox_add,
  TokenType.MINUS: lox_sub,
  TokenType.STAR: lox_mul,
  TokenType.SLASH: lox_div,
  TokenType.PERCENT: lox_mod,
  TokenType.GREATER: lox_gt,
  TokenType.GREATER_EQUAL: lox_ge,
  TokenType.LESS: lox_lt,
  TokenType.LESS_EQUAL: lox_le,
  TokenType.EQUAL_EQUAL: lox_eq,
  TokenType.BANG_EQUAL: lox_ne,
}

OR_OPERATORS = (TokenType.OR, TokenType.BAR_BAR)

# Each Lox call costs roughly ten host frames
RECURSION_LIMIT = 100_000
THREAD_STACK_SIZE = 512 * 1024 * 1024


class Interpreter:
  """
  Tree-walking interpreter.

  `globals` is the root frame holding the natives and every top-level
  declaration; `environment` is the frame currently executing. `locals` is the
  side table filled by the resolver: expression -> number of hops outward to
  the frame that binds it. Expressions absent from it live in `globals`.
  """

  def __init__(self, debug: bool = False):
    self.debug = debug
    self.globals = create_builtin_env()
    self.environment = self.globals
    self.locals: Dict[Expr, int] = {}
    self._expr_handlers = make_dispatch_table(self, "visit", EXPR_TYPES)
    self._stmt_handlers = make_dispatch_table(self, "visit", STMT_TYPES)

  def resolve(self, expr: Expr, depth: int) -> None:
    """Called by the resolver for every local reference"""
    self.locals[expr] = depth

  def interpret(self, statements: List[Stmt]) -> None:
    """
    Execute a program.

    Raises LoxRuntimeError on the first runtime failure; definitions made
    before the failure stay in `globals`.
    """
    try:
      for statement in statements:
        self.execute(statement)
    except RecursionError:
      self.environment = self.globals
      raise LoxRuntimeError(None, "Stack overflow.") from None
    except ReturnSignal as signal:
      raise RuntimeError("return escaped every function call") from signal

  def execute(self, stmt: Stmt) -> None:
    if self.debug:
      print(f"[exec] {type(stmt).__name__}", file=sys.stderr)
    self._stmt_handlers[type(stmt)](stmt)

  def evaluate(self, expr: Expr) -> Any:
    return self._expr_handlers[type(expr)](expr)

  def execute_block(self, statements: List[Stmt], environment: Environment) -> None:
    """Run statements in environment, restoring the previous frame on any exit"""
    previous = self.environment
    try:
      self.environment = environment
      for statement in statements:
        self.execute(statement)
    finally:
      self.environment = previous

  def look_up_variable(self, name: Token, expr: Expr) -> Any:
    distance = self.locals.get(expr)
    if distance is not None:
      return self.environment.get_at(distance, name.lexeme)
    return self.globals.get(name)

  # ============================================================================
  # STATEMENTS
  # ============================================================================

  def visit_block(self, stmt: Block) -> None:
    self.execute_block(stmt.statements, Environment(self.environment))

  def visit_class(self, stmt: Class) -> None:
    self.environment.define(stmt.name.lexeme, None)

    superclass: Optional[LoxClass] = None
    if stmt.superclass is not None:
      superclass = self.evaluate(stmt.superclass)
      if not isinstance(superclass, LoxClass):
        raise LoxRuntimeError(stmt.superclass.name, "Superclass must be a class.")

    if superclass is not None:
      self.environment = Environment(self.environment)
      self.environment.define("super", superclass)

    methods: Dict[str, LoxFunction] = {}
    for method in stmt.methods:
      methods[method.name.lexeme] = LoxFunction(
        method, self.environment, method.name.lexeme == INITIALIZER_NAME
      )

    klass = LoxClass(stmt.name.lexeme, superclass, methods)

    if superclass is not None:
      self.environment = self.environment.enclosing

    self.environment.assign(stmt.name, klass)

  def visit_expression(self, stmt: Expression) -> None:
    self.evaluate(stmt.expression)

  def visit_function(self, stmt: Function) -> None:
    self.environment.define(stmt.name.lexeme, LoxFunction(stmt, self.environment))

  def visit_if(self, stmt: If) -> None:
    if is_truthy(self.evaluate(stmt.condition)):
      self.execute(stmt.then_branch)
    elif stmt.else_branch is not None:
      self.execute(stmt.else_branch)

  def visit_return(self, stmt: Return) -> None:
    value = None
    if stmt.value is not None:
      value = self.evaluate(stmt.value)
    raise ReturnSignal(value)

  def visit_var(self, stmt: Var) -> None:
    value = None
    if stmt.initializer is not None:
      value = self.evaluate(stmt.initializer)
    self.environment.define(stmt.name.lexeme, value)

  def visit_while(self, stmt: While) -> None:
    while is_truthy(self.evaluate(stmt.condition)):
      self.execute(stmt.body)

  # ============================================================================
  # EXPRESSIONS
  # ============================================================================

  def visit_assign(self, expr: Assign) -> Any:
    value = self.evaluate(expr.value)
    distance = self.locals.get(expr)
    if distance is not None:
      self.environment.assign_at(distance, expr.name, value)
    else:
      self.globals.assign(expr.name, value)
    return value

  def visit_binary(self, expr: Binary) -> Any:
    left = self.evaluate(expr.left)
    right = self.evaluate(expr.right)
    return BINARY_OPERATORS[expr.operator.type](expr.operator, left, right)

  def visit_call(self, expr: Call) -> Any:
    callee = self.evaluate(expr.callee)
    arguments = [self.evaluate(argument) for argument in expr.arguments]

    if not isinstance(callee, LoxCallable):
      raise LoxRuntimeError(expr.paren, "Can only call functions and classes.")

    if len(arguments) != callee.arity():
      raise arity_error(expr.paren, callee.arity(), len(arguments))

    return callee.call(self, arguments)

  def visit_get(self, expr: Get) -> Any:
    obj = self.evaluate(expr.object)
    if isinstance(obj, LoxInstance):
      return obj.get(expr.name)
    raise LoxRuntimeError(expr.name, "Only instances have properties.")

  def visit_grouping(self, expr: Grouping) -> Any:
    return self.evaluate(expr.expression)

  def visit_literal(self, expr: Literal) -> Any:
    return expr.value

  def visit_logical(self, expr: Logical) -> Any:
    left = self.evaluate(expr.left)
    # Short circuit returns the deciding operand itself, not a boolean
    if expr.operator.type in OR_OPERATORS:
      if is_truthy(left):
        return left
    elif not is_truthy(left):
      return left
    return self.evaluate(expr.right)

  def visit_set(self, expr: Set) -> Any:
    obj = self.evaluate(expr.object)
    if not isinstance(obj, LoxInstance):
      raise LoxRuntimeError(expr.name, "Only instances have fields.")
    value = self.evaluate(expr.value)
    obj.set(expr.name, value)
    return value

  def visit_self_expr(self, expr: SelfExpr) -> Any:
    return self.look_up_variable(expr.keyword, expr)

  def visit_super(self, expr: Super) -> Any:
    distance = self.locals[expr]
    superclass: LoxClass = self.environment.get_at(distance, "super")
    # The `self` frame always sits directly inside the `super` frame
    instance = self.environment.get_at(distance - 1, "self")

    method = superclass.find_method(expr.method.lexeme)
    if method is None:
      raise LoxRuntimeError(expr.method, f"Undefined property '{expr.method.lexeme}'.")
    return method.bind(instance)

  def visit_unary(self, expr: Unary) -> Any:
    right = self.evaluate(expr.right)
    if expr.operator.type == TokenType.MINUS:
      check_number_operand(expr.operator, right)
      return -right
    return not is_truthy(right)

  def visit_variable(self, expr: Variable) -> Any:
    return self.look_up_variable(expr.name, expr)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_interpreter(debug: bool = False) -> Interpreter:
  """Factory function for creating interpreter instances"""
  return Interpreter(debug)


def create_debug_interpreter() -> Interpreter:
  """Factory function for creating debug interpreter instances"""
  return create_interpreter(debug=True)


# ============================================================================
# EXECUTION STACK
# ============================================================================

def run_on_deep_stack(function: Callable[..., Any], *args: Any) -> Any:
  """
  Run function(*args) on a worker thread sized for deep Lox recursion.

  The host recursion limit is raised for the duration of the call and
  restored afterwards; the worker's result or exception is passed through.
  """
  previous_limit = sys.getrecursionlimit()
  previous_size = threading.stack_size(THREAD_STACK_SIZE)
  try:
    sys.setrecursionlimit(max(previous_limit, RECURSION_LIMIT))
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="lox") as executor:
      return executor.submit(function, *args).result()
  finally:
    threading.stack_size(previous_size)
    sys.setrecursionlimit(previous_limit)
