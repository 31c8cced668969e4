"""
Lox callable and object model
User functions (closures), classes, instances and native functions
"""

from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from environment import Environment
from error_handling import LoxRuntimeError
from scanning import Token
from syntax import Function

if TYPE_CHECKING:
  from interpreter import Interpreter


INITIALIZER_NAME = "new"


class ReturnSignal(Exception):
  """Non-local exit of a `return` statement, caught by the enclosing call"""

  def __init__(self, value: Any):
    super().__init__("return")
    self.value = value


class LoxCallable:
  """Anything that can appear as the callee of a call expression"""

  def arity(self) -> int:
    raise NotImplementedError

  def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
    raise NotImplementedError


class LoxFunction(LoxCallable):
  """A function declaration closed over the environment it was declared in"""

  def __init__(self, declaration: Function, closure: Environment, is_initializer: bool = False):
    self.declaration = declaration
    self.closure = closure
    self.is_initializer = is_initializer

  @property
  def name(self) -> str:
    return self.declaration.name.lexeme

  def bind(self, instance: 'LoxInstance') -> 'LoxFunction':
    """Fresh closure whose extra frame binds `self` to instance"""
    environment = Environment(self.closure)
    environment.define("self", instance)
    return LoxFunction(self.declaration, environment, self.is_initializer)

  def arity(self) -> int:
    return len(self.declaration.params)

  def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
    environment = Environment(self.closure)
    for param, argument in zip(self.declaration.params, arguments):
      environment.define(param.lexeme, argument)

    try:
      interpreter.execute_block(self.declaration.body, environment)
    except ReturnSignal as signal:
      if self.is_initializer:
        return self.closure.get_at(0, "self")
      return signal.value

    if self.is_initializer:
      return self.closure.get_at(0, "self")
    return None

  def __str__(self) -> str:
    return f"<fn {self.name}>"


class LoxClass(LoxCallable):
  """A class: calling it allocates an instance and runs the initializer"""

  def __init__(self, name: str, superclass: Optional['LoxClass'], methods: Dict[str, LoxFunction]):
    self.name = name
    self.superclass = superclass
    self.methods = methods

  def find_method(self, name: str) -> Optional[LoxFunction]:
    """Search this class, then each superclass in turn"""
    klass = self
    while klass is not None:
      if name in klass.methods:
        return klass.methods[name]
      klass = klass.superclass
    return None

  def arity(self) -> int:
    initializer = self.find_method(INITIALIZER_NAME)
    if initializer is None:
      return 0
    return initializer.arity()

  def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
    instance = LoxInstance(self)
    initializer = self.find_method(INITIALIZER_NAME)
    if initializer is not None:
      initializer.bind(instance).call(interpreter, arguments)
    return instance

  def __str__(self) -> str:
    return self.name


class LoxInstance:
  """Instance state: a reference to its class plus a mutable field table"""

  def __init__(self, klass: LoxClass):
    self.klass = klass
    self.fields: Dict[str, Any] = {}

  def get(self, name: Token) -> Any:
    """Fields shadow methods; methods are bound anew on every access"""
    if name.lexeme in self.fields:
      return self.fields[name.lexeme]

    method = self.klass.find_method(name.lexeme)
    if method is not None:
      return method.bind(self)

    raise LoxRuntimeError(name, f"Undefined property '{name.lexeme}'.")

  def set(self, name: Token, value: Any) -> None:
    self.fields[name.lexeme] = value

  def __str__(self) -> str:
    return f"<{self.klass.name} instance>"


class NativeFunction(LoxCallable):
  """A host function exposed to Lox code"""

  def __init__(self, name: str, arity: int, function: Callable[..., Any]):
    self.name = name
    self._arity = arity
    self.function = function

  def arity(self) -> int:
    return self._arity

  def call(self, interpreter: 'Interpreter', arguments: List[Any]) -> Any:
    return self.function(*arguments)

  def __str__(self) -> str:
    return f"<native fn {self.name}>"
