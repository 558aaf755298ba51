"""
Scope chain tests for lang417
"""

import pytest

from environment import Environment
from error_handling import UndefinedVariable
from values import Int


@pytest.fixture
def globals_env():
  return Environment(bindings={"x": Int(1)})


class TestLookup:

  def test_lookup_walks_parents(self, globals_env):
    inner = globals_env.child().child()
    assert inner.lookup("x") == Int(1)

  def test_missing_name(self, globals_env):
    with pytest.raises(UndefinedVariable) as excinfo:
      globals_env.lookup("nope")
    assert "nope" in excinfo.value.message

  def test_contains(self, globals_env):
    assert "x" in globals_env.child()
    assert "y" not in globals_env


class TestDefineAndAssign:

  def test_define_shadows(self, globals_env):
    inner = globals_env.child()
    inner.define("x", Int(2))
    assert inner.lookup("x") == Int(2)
    assert globals_env.lookup("x") == Int(1)

  def test_assign_updates_defining_scope(self, globals_env):
    inner = globals_env.child()
    inner.assign("x", Int(5))
    assert globals_env.lookup("x") == Int(5)
    assert "x" not in inner.bindings

  def test_assign_undefined(self, globals_env):
    with pytest.raises(UndefinedVariable):
      globals_env.child().assign("y", Int(0))

  def test_redefine_in_same_scope(self, globals_env):
    globals_env.define("x", Int(9))
    assert globals_env.lookup("x") == Int(9)


class TestIntrospection:

  def test_depth(self, globals_env):
    inner = globals_env.child().child()
    assert inner.depth() == 2
    assert globals_env.depth() == 0

  def test_contains_sees_enclosing_scopes(self, globals_env):
    globals_env.define("x", Int(3))
    inner = globals_env.child()
    assert "x" in inner
    assert "y" not in inner
