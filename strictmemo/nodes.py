"""strictmemo/nodes.py – AST node variants for the Ruby subset we read.

The parser produces a tree of frozen dataclasses.  The set of variants is
closed and every class carries a ``kind`` tag, so matchers are written as
plain tag checks plus field comparisons rather than visitor dispatch.

Design invariants
-----------------
* Every node is immutable and records its ``span`` (a
  :class:`~strictmemo.source.SourceRange`) in the file it came from.
* Children are held in tuples, never lists.
* Statement sequences (method bodies, branches, block bodies) are tuples
  of nodes in source order.  Blank lines produce no node; comments do.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum, auto
from typing import Callable, ClassVar, Iterator, Optional, Tuple

from strictmemo.source import SourceRange


class NodeKind(Enum):
    INSTANCE_VAR = auto()
    IDENTIFIER = auto()
    SPECIAL_VAR = auto()
    CONSTANT = auto()
    NIL = auto()
    LITERAL = auto()
    STRING = auto()
    CALL = auto()
    INDEX = auto()
    ARRAY = auto()
    HASH = auto()
    PAIR = auto()
    BINARY = auto()
    UNARY = auto()
    TERNARY = auto()
    PAREN = auto()
    BEGIN = auto()
    BLOCK = auto()
    ASSIGN = auto()
    OR_ASSIGN = auto()
    OP_ASSIGN = auto()
    RETURN = auto()
    CONDITIONAL = auto()
    RESCUE = auto()
    COMMENT = auto()
    METHOD_DEF = auto()
    CLASS_DEF = auto()
    MODULE_DEF = auto()
    PROGRAM = auto()


@dataclass(frozen=True, slots=True)
class Node:
    """Base of all variants."""

    span: SourceRange
    kind: ClassVar[NodeKind]


Body = Tuple[Node, ...]


# ════════════════════════════════════════════════════════════════════════
#  Expressions
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class InstanceVar(Node):
    """``@name`` – ``name`` keeps the sigil."""

    name: str
    kind: ClassVar[NodeKind] = NodeKind.INSTANCE_VAR


@dataclass(frozen=True, slots=True)
class Identifier(Node):
    name: str
    kind: ClassVar[NodeKind] = NodeKind.IDENTIFIER


@dataclass(frozen=True, slots=True)
class SpecialVar(Node):
    """Class (``@@x``) and global (``$x``) variables."""

    name: str
    kind: ClassVar[NodeKind] = NodeKind.SPECIAL_VAR


@dataclass(frozen=True, slots=True)
class Constant(Node):
    """
    A constant reference.

    ``T`` is ``Constant("T")``, ``::T`` sets ``cbase`` and ``T::Hash`` is
    ``Constant("Hash", scope=Constant("T"))``.
    """

    name: str
    scope: Optional[Node] = None
    cbase: bool = False
    kind: ClassVar[NodeKind] = NodeKind.CONSTANT

    @property
    def qualified_name(self) -> str:
        prefix = "::" if self.cbase else ""
        if isinstance(self.scope, Constant):
            return f"{self.scope.qualified_name}::{self.name}"
        return f"{prefix}{self.name}"


@dataclass(frozen=True, slots=True)
class NilLiteral(Node):
    kind: ClassVar[NodeKind] = NodeKind.NIL


@dataclass(frozen=True, slots=True)
class Literal(Node):
    """Booleans, ``self``, numbers, symbols and hash labels, as written."""

    value: str
    kind: ClassVar[NodeKind] = NodeKind.LITERAL


@dataclass(frozen=True, slots=True)
class StringLiteral(Node):
    value: str
    kind: ClassVar[NodeKind] = NodeKind.STRING

    @property
    def is_multiline(self) -> bool:
        return "\n" in self.value


@dataclass(frozen=True, slots=True)
class Block(Node):
    params: str
    body: Body
    kind: ClassVar[NodeKind] = NodeKind.BLOCK


@dataclass(frozen=True, slots=True)
class Call(Node):
    """
    A method send.

    ``receiver`` is ``None`` for receiverless calls.  ``parenthesized`` is
    true when the arguments were written inside ``(...)``; command calls
    such as ``extend T::Sig`` leave it false.
    """

    receiver: Optional[Node]
    method: str
    args: Tuple[Node, ...] = ()
    block: Optional[Block] = None
    parenthesized: bool = False
    kind: ClassVar[NodeKind] = NodeKind.CALL


@dataclass(frozen=True, slots=True)
class Index(Node):
    receiver: Node
    args: Tuple[Node, ...]
    kind: ClassVar[NodeKind] = NodeKind.INDEX


@dataclass(frozen=True, slots=True)
class ArrayLiteral(Node):
    items: Tuple[Node, ...]
    kind: ClassVar[NodeKind] = NodeKind.ARRAY


@dataclass(frozen=True, slots=True)
class HashLiteral(Node):
    items: Tuple[Node, ...]
    kind: ClassVar[NodeKind] = NodeKind.HASH


@dataclass(frozen=True, slots=True)
class Pair(Node):
    key: Node
    value: Node
    kind: ClassVar[NodeKind] = NodeKind.PAIR


@dataclass(frozen=True, slots=True)
class Binary(Node):
    op: str
    left: Node
    right: Node
    kind: ClassVar[NodeKind] = NodeKind.BINARY


@dataclass(frozen=True, slots=True)
class Unary(Node):
    """``!x`` and the splat/block-pass prefixes ``*``, ``**``, ``&``."""

    op: str
    operand: Node
    kind: ClassVar[NodeKind] = NodeKind.UNARY


@dataclass(frozen=True, slots=True)
class Ternary(Node):
    condition: Node
    if_true: Node
    if_false: Node
    kind: ClassVar[NodeKind] = NodeKind.TERNARY


@dataclass(frozen=True, slots=True)
class Paren(Node):
    expr: Node
    kind: ClassVar[NodeKind] = NodeKind.PAREN


@dataclass(frozen=True, slots=True)
class Begin(Node):
    """``begin ... end`` used as an expression."""

    body: Body
    kind: ClassVar[NodeKind] = NodeKind.BEGIN


# ════════════════════════════════════════════════════════════════════════
#  Statements
# ════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Assign(Node):
    target: Node
    value: Node
    kind: ClassVar[NodeKind] = NodeKind.ASSIGN


@dataclass(frozen=True, slots=True)
class OrAssign(Node):
    """``target ||= value``"""

    target: Node
    value: Node
    kind: ClassVar[NodeKind] = NodeKind.OR_ASSIGN


@dataclass(frozen=True, slots=True)
class OpAssign(Node):
    """``+=``, ``&&=`` and friends; ``op`` excludes the ``=``."""

    op: str
    target: Node
    value: Node
    kind: ClassVar[NodeKind] = NodeKind.OP_ASSIGN


@dataclass(frozen=True, slots=True)
class Return(Node):
    value: Optional[Node] = None
    kind: ClassVar[NodeKind] = NodeKind.RETURN


@dataclass(frozen=True, slots=True)
class Conditional(Node):
    """
    ``if``/``unless``/``while``/``until``/``elsif`` and their modifier forms.

    An ``elsif`` chain is a nested ``Conditional`` alone in ``else_body``.
    """

    keyword: str
    condition: Node
    body: Body
    else_body: Body = ()
    modifier: bool = False
    kind: ClassVar[NodeKind] = NodeKind.CONDITIONAL


@dataclass(frozen=True, slots=True)
class RescueClause(Node):
    """
    A ``rescue`` or ``ensure`` section closing a ``def``, ``begin`` or
    ``do`` body.  ``spec`` is the raw text after ``rescue`` (exception
    classes and the ``=> e`` binding).
    """

    keyword: str
    spec: str
    body: Body
    kind: ClassVar[NodeKind] = NodeKind.RESCUE


@dataclass(frozen=True, slots=True)
class Comment(Node):
    text: str
    kind: ClassVar[NodeKind] = NodeKind.COMMENT


@dataclass(frozen=True, slots=True)
class MethodDef(Node):
    name: str
    params: str
    body: Body
    singleton: bool = False
    kind: ClassVar[NodeKind] = NodeKind.METHOD_DEF


@dataclass(frozen=True, slots=True)
class ClassDef(Node):
    name: str
    superclass: Optional[Node]
    body: Body
    kind: ClassVar[NodeKind] = NodeKind.CLASS_DEF


@dataclass(frozen=True, slots=True)
class ModuleDef(Node):
    name: str
    body: Body
    kind: ClassVar[NodeKind] = NodeKind.MODULE_DEF


@dataclass(frozen=True, slots=True)
class Program(Node):
    body: Body
    kind: ClassVar[NodeKind] = NodeKind.PROGRAM


# ════════════════════════════════════════════════════════════════════════
#  Traversal
# ════════════════════════════════════════════════════════════════════════

_SCOPE_KINDS = frozenset({NodeKind.METHOD_DEF, NodeKind.CLASS_DEF, NodeKind.MODULE_DEF})


def children(node: Node) -> Iterator[Node]:
    """Direct child nodes in field order."""
    for f in fields(node):
        if f.name == "span":
            continue
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node, prune: Optional[Callable[[Node], bool]] = None) -> Iterator[Node]:
    """
    Pre-order traversal of ``node`` and its descendants.

    Descendants of a node for which ``prune`` returns true are skipped
    (the node itself is still yielded).
    """
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        if prune is not None and current is not node and prune(current):
            continue
        stack.extend(reversed(list(children(current))))


def iter_methods(program: Node) -> Iterator[MethodDef]:
    """Every ``def`` in the tree, including ones nested in blocks."""
    for node in walk(program):
        if isinstance(node, MethodDef):
            yield node


def iter_statement_sequences(method: MethodDef) -> Iterator[Body]:
    """
    Statement sequences that belong to ``method``'s body.

    The method body itself comes first, followed by the branches of
    conditionals and the bodies of blocks, ``begin`` expressions and
    ``rescue`` sections nested in it.  Nested ``def``, ``class`` and
    ``module`` bodies are left to their own scopes.
    """
    yield method.body
    for stmt in method.body:
        if stmt.kind in _SCOPE_KINDS:
            continue
        for node in walk(stmt, prune=lambda n: n.kind in _SCOPE_KINDS):
            if node.kind in _SCOPE_KINDS:
                continue
            if isinstance(node, Conditional):
                if not node.modifier:
                    yield node.body
                if node.else_body:
                    yield node.else_body
            elif isinstance(node, (Block, Begin, RescueClause)):
                yield node.body
