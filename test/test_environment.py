"""
Environment tests for pylox
"""

import pytest
from environment import Environment
from scanning import Token, TokenType
from error_handling import LoxRuntimeError


def name(lexeme, line=1):
  return Token(TokenType.IDENTIFIER, lexeme, None, line)


class TestEnvironment:
  """Test scope frames and chain walking"""

  @pytest.fixture
  def chain(self):
    """globals <- middle <- inner"""
    globals_env = Environment()
    middle = Environment(globals_env)
    inner = Environment(middle)
    return globals_env, middle, inner

  def test_define_then_get(self):
    env = Environment()
    env.define("a", 1.0)
    assert env.get(name("a")) == 1.0

  def test_define_overwrites(self):
    env = Environment()
    env.define("a", 1.0)
    env.define("a", 2.0)
    assert env.get(name("a")) == 2.0

  def test_get_walks_outward(self, chain):
    globals_env, _, inner = chain
    globals_env.define("a", "outer")
    assert inner.get(name("a")) == "outer"

  def test_assign_updates_defining_frame(self, chain):
    globals_env, middle, inner = chain
    middle.define("a", 1.0)
    inner.assign(name("a"), 5.0)
    assert middle.values["a"] == 5.0
    assert "a" not in inner.values

  def test_undefined_variable(self, chain):
    _, _, inner = chain
    with pytest.raises(LoxRuntimeError) as excinfo:
      inner.get(name("missing", line=7))
    assert str(excinfo.value) == "[line 7] Error at 'missing': Undefined variable 'missing'."

  def test_assign_to_undefined_variable(self):
    with pytest.raises(LoxRuntimeError, match="Undefined variable 'b'."):
      Environment().assign(name("b"), 1.0)

  def test_ancestor_and_direct_access(self, chain):
    globals_env, middle, inner = chain
    assert inner.ancestor(0) is inner
    assert inner.ancestor(2) is globals_env
    middle.define("a", 1.0)
    assert inner.get_at(1, "a") == 1.0
    inner.assign_at(1, name("a"), 9.0)
    assert middle.values["a"] == 9.0

  def test_get_at_skips_shadowing_frames(self, chain):
    globals_env, _, inner = chain
    globals_env.define("a", "global")
    inner.define("a", "local")
    assert inner.get_at(2, "a") == "global"
    assert inner.get_at(0, "a") == "local"
