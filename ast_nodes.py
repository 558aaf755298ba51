"""
Abstract syntax tree for lang417
Nodes are immutable; the parser and the wire reader both produce them
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from error_handling import SourceSpan


@dataclass(frozen=True)
class Node:
    """Base class; span is excluded from equality so trees compare by shape"""
    pass


@dataclass(frozen=True)
class Literal(Node):
    value: Any  # a values.Int / Bool / Str
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Identifier(Node):
    name: str
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Call(Node):
    callee: str
    args: Tuple[Node, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Apply(Node):
    """Application whose head is an arbitrary expression"""
    function: Node
    args: Tuple[Node, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Block(Node):
    statements: Tuple[Node, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Lambda(Node):
    params: Tuple[str, ...]
    body: Block
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Cond(Node):
    """Ordered (test, body) clauses; the first true test wins"""
    clauses: Tuple[Tuple[Node, Node], ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class LetDecl(Node):
    name: str
    init: Node
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Assign(Node):
    name: str
    expr: Node
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class ExprStatement(Node):
    expr: Node
    span: Optional[SourceSpan] = field(default=None, compare=False)


@dataclass(frozen=True)
class Program(Node):
    statements: Tuple[Node, ...]
    span: Optional[SourceSpan] = field(default=None, compare=False)


# ============================================================================
# DEBUG HELPERS
# ============================================================================

def find_nodes_by_type(node: Node, node_type: type) -> List[Node]:
    """Find all nodes of a specific class in the tree"""
    results = []

    def search(current):
        if isinstance(current, node_type):
            results.append(current)
        for child in children(current):
            search(child)

    search(node)
    return results


def children(node: Node) -> List[Node]:
    if isinstance(node, (Program, Block)):
        return list(node.statements)
    if isinstance(node, LetDecl):
        return [node.init]
    if isinstance(node, (Assign, ExprStatement)):
        return [node.expr]
    if isinstance(node, Call):
        return list(node.args)
    if isinstance(node, Apply):
        return [node.function, *node.args]
    if isinstance(node, Lambda):
        return [node.body]
    if isinstance(node, Cond):
        return [part for clause in node.clauses for part in clause]
    return []


def pretty_print_ast(node: Node, indent: int = 0) -> str:
    """Pretty print an AST for debugging"""
    prefix = "  " * indent
    if isinstance(node, Literal):
        return f"{prefix}Literal({node.value!r})"
    if isinstance(node, Identifier):
        return f"{prefix}Identifier({node.name})"

    if isinstance(node, Call):
        header = f"Call({node.callee})"
    elif isinstance(node, Lambda):
        header = f"Lambda({', '.join(node.params)})"
    elif isinstance(node, (LetDecl, Assign)):
        header = f"{type(node).__name__}({node.name})"
    else:
        header = type(node).__name__

    result = f"{prefix}{header}"
    for child in children(node):
        result += "\n" + pretty_print_ast(child, indent + 1)
    return result
