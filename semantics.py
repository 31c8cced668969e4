"""
Lox Semantics Analysis - static variable resolution
Computes the hop count of every local variable reference and rejects the
fixed set of static errors before the program runs
"""

from typing import Dict, List, TYPE_CHECKING
from enum import Enum, auto
import sys

from scanning import Token
from syntax import (
  Assign, Binary, Block, Call, Class, Expr, Expression, Function, Get,
  Grouping, If, Literal, Logical, Return, SelfExpr, Set, Stmt, Super, Unary,
  Var, Variable, While, EXPR_TYPES, STMT_TYPES, make_dispatch_table,
)
from callables import INITIALIZER_NAME
from parsing import NESTING_TOO_DEEP
from error_handling import LoxResolveError, LoxStaticError, token_location

if TYPE_CHECKING:
  from interpreter import Interpreter


class FunctionType(Enum):
  NONE = auto()
  FUNCTION = auto()
  INITIALIZER = auto()
  METHOD = auto()


class ClassType(Enum):
  NONE = auto()
  CLASS = auto()
  SUBCLASS = auto()


class Resolver:
  """
  Walks the AST once with a stack of lexical scopes.

  Each scope maps a name to whether its initializer has finished. A variable
  reference found in a scope records its distance from the innermost scope in
  the interpreter's side table; references found nowhere are left for the
  global environment.
  """

  def __init__(self, interpreter: 'Interpreter', debug: bool = False):
    self.interpreter = interpreter
    self.debug = debug
    self.scopes: List[Dict[str, bool]] = []
    self.current_function = FunctionType.NONE
    self.current_class = ClassType.NONE
    self.errors: List[LoxResolveError] = []
    self._expr_handlers = make_dispatch_table(self, "visit", EXPR_TYPES)
    self._stmt_handlers = make_dispatch_table(self, "visit", STMT_TYPES)

  def resolve(self, statements: List[Stmt]) -> None:
    """Resolve a whole program; raises LoxStaticError if any check failed"""
    self.errors = []
    try:
      self.resolve_statements(statements)
    except RecursionError:
      self.scopes = []
      self.current_function = FunctionType.NONE
      self.current_class = ClassType.NONE
      self.errors.append(LoxResolveError(0, "", NESTING_TOO_DEEP))
    if self.errors:
      raise LoxStaticError("resolve", self.errors)

  def resolve_statements(self, statements: List[Stmt]) -> None:
    for statement in statements:
      self.resolve_stmt(statement)

  def resolve_stmt(self, stmt: Stmt) -> None:
    self._stmt_handlers[type(stmt)](stmt)

  def resolve_expr(self, expr: Expr) -> None:
    self._expr_handlers[type(expr)](expr)

  # ============================================================================
  # SCOPE BOOKKEEPING
  # ============================================================================

  def begin_scope(self) -> None:
    self.scopes.append({})

  def end_scope(self) -> None:
    self.scopes.pop()

  def declare(self, name: Token) -> None:
    if not self.scopes:
      return
    scope = self.scopes[-1]
    if name.lexeme in scope:
      self.error(name, "Already a variable with this name in this scope.")
    scope[name.lexeme] = False

  def define(self, name: Token) -> None:
    if not self.scopes:
      return
    self.scopes[-1][name.lexeme] = True

  def resolve_local(self, expr: Expr, name: Token) -> None:
    """Record the hop count of the innermost scope binding name"""
    for depth, scope in enumerate(reversed(self.scopes)):
      if name.lexeme in scope:
        self.interpreter.resolve(expr, depth)
        if self.debug:
          print(f"[line {name.line}] '{name.lexeme}' resolved at depth {depth}",
                file=sys.stderr)
        return

  def resolve_function(self, function: Function, function_type: FunctionType) -> None:
    enclosing_function = self.current_function
    self.current_function = function_type

    self.begin_scope()
    for param in function.params:
      self.declare(param)
      self.define(param)
    self.resolve_statements(function.body)
    self.end_scope()

    self.current_function = enclosing_function

  def error(self, token: Token, message: str) -> None:
    """Record a static error and keep going to find more"""
    self.errors.append(LoxResolveError(token.line, token_location(token), message))

  # ============================================================================
  # STATEMENTS
  # ============================================================================

  def visit_block(self, stmt: Block) -> None:
    self.begin_scope()
    self.resolve_statements(stmt.statements)
    self.end_scope()

  def visit_class(self, stmt: Class) -> None:
    enclosing_class = self.current_class
    self.current_class = ClassType.CLASS

    self.declare(stmt.name)
    self.define(stmt.name)

    if stmt.superclass is not None:
      if stmt.superclass.name.lexeme == stmt.name.lexeme:
        self.error(stmt.superclass.name, "A class can't inherit from itself.")
      self.current_class = ClassType.SUBCLASS
      self.resolve_expr(stmt.superclass)
      self.begin_scope()
      self.scopes[-1]["super"] = True

    self.begin_scope()
    self.scopes[-1]["self"] = True

    for method in stmt.methods:
      if method.name.lexeme == INITIALIZER_NAME:
        declaration = FunctionType.INITIALIZER
      else:
        declaration = FunctionType.METHOD
      self.resolve_function(method, declaration)

    self.end_scope()

    if stmt.superclass is not None:
      self.end_scope()

    self.current_class = enclosing_class

  def visit_expression(self, stmt: Expression) -> None:
    self.resolve_expr(stmt.expression)

  def visit_function(self, stmt: Function) -> None:
    # Defined before the body so the function can refer to itself
    self.declare(stmt.name)
    self.define(stmt.name)
    self.resolve_function(stmt, FunctionType.FUNCTION)

  def visit_if(self, stmt: If) -> None:
    self.resolve_expr(stmt.condition)
    self.resolve_stmt(stmt.then_branch)
    if stmt.else_branch is not None:
      self.resolve_stmt(stmt.else_branch)

  def visit_return(self, stmt: Return) -> None:
    if self.current_function == FunctionType.NONE:
      self.error(stmt.keyword, "Can't return from top-level code.")

    if stmt.value is not None:
      if self.current_function == FunctionType.INITIALIZER:
        self.error(stmt.keyword, "Can't return a value from an initializer.")
      self.resolve_expr(stmt.value)

  def visit_var(self, stmt: Var) -> None:
    self.declare(stmt.name)
    if stmt.initializer is not None:
      self.resolve_expr(stmt.initializer)
    self.define(stmt.name)

  def visit_while(self, stmt: While) -> None:
    self.resolve_expr(stmt.condition)
    self.resolve_stmt(stmt.body)

  # ============================================================================
  # EXPRESSIONS
  # ============================================================================

  def visit_assign(self, expr: Assign) -> None:
    self.resolve_expr(expr.value)
    self.resolve_local(expr, expr.name)

  def visit_binary(self, expr: Binary) -> None:
    self.resolve_expr(expr.left)
    self.resolve_expr(expr.right)

  def visit_call(self, expr: Call) -> None:
    self.resolve_expr(expr.callee)
    for argument in expr.arguments:
      self.resolve_expr(argument)

  def visit_get(self, expr: Get) -> None:
    self.resolve_expr(expr.object)

  def visit_grouping(self, expr: Grouping) -> None:
    self.resolve_expr(expr.expression)

  def visit_literal(self, expr: Literal) -> None:
    return None

  def visit_logical(self, expr: Logical) -> None:
    self.resolve_expr(expr.left)
    self.resolve_expr(expr.right)

  def visit_set(self, expr: Set) -> None:
    self.resolve_expr(expr.value)
    self.resolve_expr(expr.object)

  def visit_self_expr(self, expr: SelfExpr) -> None:
    if self.current_class == ClassType.NONE:
      self.error(expr.keyword, "Can't use 'self' outside of a class.")
      return
    self.resolve_local(expr, expr.keyword)

  def visit_super(self, expr: Super) -> None:
    if self.current_class == ClassType.NONE:
      self.error(expr.keyword, "Can't use 'super' outside of a class.")
    elif self.current_class != ClassType.SUBCLASS:
      self.error(expr.keyword, "Can't use 'super' in a class with no superclass.")
    self.resolve_local(expr, expr.keyword)

  def visit_unary(self, expr: Unary) -> None:
    self.resolve_expr(expr.right)

  def visit_variable(self, expr: Variable) -> None:
    if self.scopes and self.scopes[-1].get(expr.name.lexeme) is False:
      self.error(expr.name, "Can't read local variable in its own initializer.")
    self.resolve_local(expr, expr.name)


# ============================================================================
# FACTORY FUNCTIONS
# ============================================================================

def create_analyzer(interpreter: 'Interpreter', debug: bool = False) -> Resolver:
  """Factory function returning a resolver that writes into interpreter's table"""
  return Resolver(interpreter, debug)


def create_debug_analyzer(interpreter: 'Interpreter') -> Resolver:
  """Factory function returning a debug resolver"""
  return create_analyzer(interpreter, debug=True)
