"""
Lexical environments for lang417
A chain of mutable scopes; closures keep a reference to the scope they were
created in, so later mutation through that scope stays visible to them
"""

from typing import Dict, Optional

from error_handling import UndefinedVariable, SourceSpan
from values import Value


class Environment:
  """One scope: a name -> value mapping plus the enclosing scope"""

  def __init__(self, parent: Optional['Environment'] = None, bindings: Optional[Dict[str, Value]] = None):
    self.parent = parent
    self.bindings: Dict[str, Value] = dict(bindings or {})

  def child(self) -> 'Environment':
    """Fresh nested scope (block entry, function call)"""
    return Environment(parent=self)

  def define(self, name: str, value: Value) -> None:
    """Bind name in this scope, shadowing any outer binding"""
    self.bindings[name] = value

  def lookup(self, name: str, span: Optional[SourceSpan] = None) -> Value:
    scope = self.find_scope(name)
    if scope is None:
      raise UndefinedVariable(f"Undefined variable '{name}'", span)
    return scope.bindings[name]

  def assign(self, name: str, value: Value, span: Optional[SourceSpan] = None) -> None:
    """Mutate the nearest scope that already defines name"""
    scope = self.find_scope(name)
    if scope is None:
      raise UndefinedVariable(f"Cannot assign to undefined variable '{name}'", span)
    scope.bindings[name] = value

  def find_scope(self, name: str) -> Optional['Environment']:
    scope = self
    while scope is not None:
      if name in scope.bindings:
        return scope
      scope = scope.parent
    return None

  def is_defined(self, name: str) -> bool:
    return self.find_scope(name) is not None

  def depth(self) -> int:
    depth, scope = 0, self.parent
    while scope is not None:
      depth += 1
      scope = scope.parent
    return depth

  def __contains__(self, name: str) -> bool:
    return self.is_defined(name)

  def __repr__(self) -> str:
    return f"<Environment depth={self.depth()} names={sorted(self.bindings)}>"
