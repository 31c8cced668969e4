"""
Resolver tests for pylox
Tests hop counts recorded for local references and every static error
"""

import sys
import pytest
from parsing import create_parser
from semantics import create_analyzer
from interpreter import create_interpreter
from syntax import Assign, Expression, Grouping, Literal, SelfExpr, Super, Variable
from error_handling import LoxStaticError


def resolve_source(source):
  """Parse and resolve source; returns the interpreter holding the side table"""
  interpreter = create_interpreter()
  statements = create_parser().parse_string(source)
  create_analyzer(interpreter).resolve(statements)
  return interpreter


def depths_by_name(interpreter):
  """(name, depth) pairs in parse order"""
  pairs = []
  for expr in sorted(interpreter.locals, key=lambda e: e.node_id):
    if isinstance(expr, (Variable, Assign)):
      name = expr.name.lexeme
    else:
      name = expr.keyword.lexeme
    pairs.append((name, interpreter.locals[expr]))
  return pairs


class TestHopCounts:
  """Test the distances written into the interpreter's side table"""

  def test_globals_are_left_unresolved(self):
    interpreter = resolve_source("var a = 1; print(a); a = 2;")
    assert interpreter.locals == {}

  def test_block_local_is_depth_zero(self):
    interpreter = resolve_source("{ var a = 1; print(a); }")
    assert depths_by_name(interpreter) == [("a", 0)]

  def test_enclosing_block_adds_a_hop(self):
    interpreter = resolve_source("{ var a = 1; { { print(a); } } }")
    assert depths_by_name(interpreter) == [("a", 2)]

  def test_innermost_binding_wins(self):
    interpreter = resolve_source("{ var a = 1; { var a = 2; print(a); } }")
    assert depths_by_name(interpreter) == [("a", 0)]

  def test_parameters_and_closures(self):
    source = """
    fun outer(x) {
      fun inner() { return x; }
      return inner;
    }
    """
    interpreter = resolve_source(source)
    assert depths_by_name(interpreter) == [("x", 1), ("inner", 0)]

  def test_assignment_is_resolved(self):
    interpreter = resolve_source("{ var a; { a = 3; } }")
    exprs = list(interpreter.locals)
    assert isinstance(exprs[0], Assign)
    assert interpreter.locals[exprs[0]] == 1

  def test_self_sits_one_hop_outside_method_body(self):
    interpreter = resolve_source("class A { get() { return self; } }")
    [(expr, depth)] = interpreter.locals.items()
    assert isinstance(expr, SelfExpr)
    assert depth == 1

  def test_super_sits_two_hops_outside_method_body(self):
    source = "class A { go() {} } class B < A { go() { return super.go; } }"
    interpreter = resolve_source(source)
    supers = [d for e, d in interpreter.locals.items() if isinstance(e, Super)]
    assert supers == [2]

  def test_resolution_is_deterministic(self):
    source = "{ var a = 1; fun f(b) { return a + b; } print(f(a)); }"
    assert depths_by_name(resolve_source(source)) == depths_by_name(resolve_source(source))


class TestStaticErrors:
  """Test static errors are recorded with their location"""

  def errors(self, source):
    interpreter = create_interpreter()
    statements = create_parser().parse_string(source)
    with pytest.raises(LoxStaticError) as excinfo:
      create_analyzer(interpreter).resolve(statements)
    assert excinfo.value.stage == "resolve"
    return [str(error) for error in excinfo.value.errors]

  def test_redeclaration_in_same_scope(self):
    assert self.errors("{ var a = 1; var a = 2; }") == [
      "[line 1] Error at 'a': Already a variable with this name in this scope."
    ]

  def test_global_redeclaration_is_allowed(self):
    resolve_source("var a = 1; var a = 2;")

  def test_shadowing_in_nested_scope_is_allowed(self):
    resolve_source("{ var a = 1; { var a = 2; } }")

  def test_read_in_own_initializer(self):
    assert self.errors("{ var a = a; }") == [
      "[line 1] Error at 'a': Can't read local variable in its own initializer."
    ]

  def test_top_level_return(self):
    assert self.errors("return 1;") == [
      "[line 1] Error at 'return': Can't return from top-level code."
    ]

  def test_value_returned_from_initializer(self):
    assert self.errors("class A { new() { return 1; } }") == [
      "[line 1] Error at 'return': Can't return a value from an initializer."
    ]

  def test_bare_return_in_initializer_is_allowed(self):
    resolve_source("class A { new() { return; } }")

  def test_self_outside_class(self):
    assert self.errors("fun f() { return self; }") == [
      "[line 1] Error at 'self': Can't use 'self' outside of a class."
    ]

  def test_class_inheriting_from_itself(self):
    assert self.errors("class A < A {}") == [
      "[line 1] Error at 'A': A class can't inherit from itself."
    ]

  def test_super_outside_class(self):
    assert self.errors("fun f() { super.go(); }") == [
      "[line 1] Error at 'super': Can't use 'super' outside of a class."
    ]

  def test_super_without_superclass(self):
    assert self.errors("class A { go() { super.go(); } }") == [
      "[line 1] Error at 'super': Can't use 'super' in a class with no superclass."
    ]

  def test_every_error_is_collected(self):
    source = "return 1;\n{ var a = 1; var a = 2; }\nprint(self);"
    messages = self.errors(source)
    assert [m[:8] for m in messages] == ["[line 1]", "[line 2]", "[line 3]"]

  def test_runaway_nesting_is_a_resolve_error(self):
    expr = Literal(1.0)
    for _ in range(sys.getrecursionlimit()):
      expr = Grouping(expr)
    resolver = create_analyzer(create_interpreter())
    with pytest.raises(LoxStaticError) as excinfo:
      resolver.resolve([Expression(expr)])
    assert excinfo.value.stage == "resolve"
    assert str(excinfo.value.errors[0]) == "[line 0] Error: Too much nesting."
    assert resolver.scopes == []
