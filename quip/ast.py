"""Expression AST definitions for the Quip language.

Statements are dispatched line by line and never become tree nodes; only
the expression language is parsed into the node classes below, which the
expression evaluator walks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Tuple


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


@dataclass
class Literal(Node):
    value: Any


@dataclass
class Name(Node):
    name: str


@dataclass
class ListLit(Node):
    elements: List[Node]


@dataclass
class MapLit(Node):
    entries: List[Tuple[str, Node]]


@dataclass
class Index(Node):
    target: Node
    index: Node


@dataclass
class Call(Node):
    name: str
    args: List[Node]


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class Logical(Node):
    op: str  # '&&' or '||'
    left: Node
    right: Node


@dataclass
class Conditional(Node):
    condition: Node
    then_expr: Node
    else_expr: Node
