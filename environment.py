"""
Lox runtime environments
A chain of scope frames: name -> value plus a link to the enclosing frame
"""

from typing import Any, Dict, Optional

from scanning import Token
from error_handling import LoxRuntimeError


class Environment:
  """One scope frame; the root of every chain is the global environment"""

  def __init__(self, enclosing: Optional['Environment'] = None):
    self.values: Dict[str, Any] = {}
    self.enclosing = enclosing

  def define(self, name: str, value: Any) -> None:
    """Bind name in this frame, overwriting any existing binding"""
    self.values[name] = value

  def get(self, name: Token) -> Any:
    """Look name up in this frame, then outward along the chain"""
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        return environment.values[name.lexeme]
      environment = environment.enclosing
    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def assign(self, name: Token, value: Any) -> None:
    """Rebind an existing name in the nearest frame that defines it"""
    environment = self
    while environment is not None:
      if name.lexeme in environment.values:
        environment.values[name.lexeme] = value
        return
      environment = environment.enclosing
    raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

  def ancestor(self, distance: int) -> 'Environment':
    """The frame exactly `distance` hops outward"""
    environment = self
    for _ in range(distance):
      environment = environment.enclosing
    return environment

  def get_at(self, distance: int, name: str) -> Any:
    return self.ancestor(distance).values[name]

  def assign_at(self, distance: int, name: Token, value: Any) -> None:
    self.ancestor(distance).values[name.lexeme] = value

  def __repr__(self) -> str:
    depth = 0
    environment = self.enclosing
    while environment is not None:
      depth += 1
      environment = environment.enclosing
    return f"<Environment depth={depth} names={sorted(self.values)}>"
