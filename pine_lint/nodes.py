"""Syntax tree node types.

Every node is an immutable dataclass owning a ``range`` and exposing its child
nodes, in source order, through ``children``. Nodes never point back at their
parent; use ``build_parent_index`` when a rule needs upward lookups.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterator

from pine_lint import tokens


class LiteralKind(enum.Enum):
    NUMBER = "number"
    STRING = "string"
    BOOL = "bool"
    COLOR = "color"


@dataclasses.dataclass(frozen=True)
class Node:
    """Base class for all syntax tree nodes."""

    range: tokens.Range

    @property
    def children(self) -> tuple[Node, ...]:
        return ()


@dataclasses.dataclass(frozen=True)
class Program(Node):
    """Root of the tree; owns every other node."""

    body: tuple[Node, ...]

    @property
    def children(self) -> tuple[Node, ...]:
        return self.body


@dataclasses.dataclass(frozen=True)
class Block(Node):
    """Indented sequence of statements under a compound statement header."""

    statements: tuple[Node, ...]

    @property
    def children(self) -> tuple[Node, ...]:
        return self.statements


@dataclasses.dataclass(frozen=True)
class Identifier(Node):
    name: str


@dataclasses.dataclass(frozen=True)
class Literal(Node):
    kind: LiteralKind
    value: str


@dataclasses.dataclass(frozen=True)
class Comment(Node):
    text: str


@dataclasses.dataclass(frozen=True)
class ErrorNode(Node):
    """Placeholder for a statement the parser could not reduce."""

    message: str


@dataclasses.dataclass(frozen=True)
class KeywordArgument(Node):
    name: Identifier
    value: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.name, self.value)


@dataclasses.dataclass(frozen=True)
class FunctionCall(Node):
    callee: Node
    arguments: tuple[Node, ...]

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.callee, *self.arguments)


@dataclasses.dataclass(frozen=True)
class IndexExpression(Node):
    """History reference such as ``close[1]``."""

    target: Node
    index: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.target, self.index)


@dataclasses.dataclass(frozen=True)
class UnaryExpression(Node):
    operator: str
    operand: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.operand,)


@dataclasses.dataclass(frozen=True)
class BinaryExpression(Node):
    operator: str
    left: Node
    right: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.left, self.right)


@dataclasses.dataclass(frozen=True)
class TernaryExpression(Node):
    condition: Node
    when_true: Node
    when_false: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.condition, self.when_true, self.when_false)


@dataclasses.dataclass(frozen=True)
class VariableDeclaration(Node):
    """``[var|varip] [type] name = value``."""

    name: Identifier
    value: Node
    modifier: str | None = None
    type_name: str | None = None

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.name, self.value)


@dataclasses.dataclass(frozen=True)
class Assignment(Node):
    """Reassignment of an existing variable with ``:=`` or a compound operator."""

    target: Identifier
    operator: str
    value: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.target, self.value)


@dataclasses.dataclass(frozen=True)
class IfStatement(Node):
    condition: Node
    body: Block
    # Either a plain ``else`` block or the IfStatement of an ``else if``.
    orelse: Block | IfStatement | None = None

    @property
    def children(self) -> tuple[Node, ...]:
        if self.orelse is None:
            return (self.condition, self.body)
        return (self.condition, self.body, self.orelse)


@dataclasses.dataclass(frozen=True)
class ForStatement(Node):
    """Counting loop (``for i = a to b by s``) or iteration (``for x in xs``).

    For iteration loops ``start`` holds the iterated collection and ``end`` is
    None.
    """

    variable: Identifier
    start: Node
    end: Node | None
    step: Node | None
    body: Block

    @property
    def is_iteration(self) -> bool:
        return self.end is None

    @property
    def children(self) -> tuple[Node, ...]:
        header = [self.variable, self.start]
        if self.end is not None:
            header.append(self.end)
        if self.step is not None:
            header.append(self.step)
        return (*header, self.body)


@dataclasses.dataclass(frozen=True)
class WhileStatement(Node):
    condition: Node
    body: Block

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.condition, self.body)


@dataclasses.dataclass(frozen=True)
class JumpStatement(Node):
    """``return``, ``break`` or ``continue``."""

    keyword: str
    value: Node | None = None

    @property
    def children(self) -> tuple[Node, ...]:
        return () if self.value is None else (self.value,)


@dataclasses.dataclass(frozen=True)
class Parameter(Node):
    name: Identifier
    default: Node | None = None
    type_name: str | None = None

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.name,) if self.default is None else (self.name, self.default)


@dataclasses.dataclass(frozen=True)
class FunctionDefinition(Node):
    """``name(params) =>`` followed by an expression or an indented block."""

    name: Identifier
    parameters: tuple[Parameter, ...]
    body: Node

    @property
    def children(self) -> tuple[Node, ...]:
        return (self.name, *self.parameters, self.body)


_COMPOUND: tuple[type[Node], ...] = (
    IfStatement,
    ForStatement,
    WhileStatement,
    FunctionDefinition,
)


def walk(node: Node) -> Iterator[Node]:
    """Yield *node* and all of its descendants in pre-order (source order)."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def build_parent_index(program: Program) -> dict[int, Node]:
    """Map ``id(child)`` to its parent node for every node under *program*.

    The index is only valid for the lifetime of *program*; node identities
    are reused by the interpreter once the tree is discarded.
    """
    index: dict[int, Node] = {}
    for node in walk(program):
        for child in node.children:
            index[id(child)] = node
    return index


def statements(program: Program) -> Iterator[Node]:
    """Yield every statement in the tree, including ``else if`` branches."""
    for node in walk(program):
        if isinstance(node, (Program, Block)):
            yield from node.children
        elif isinstance(node, IfStatement) and isinstance(node.orelse, IfStatement):
            yield node.orelse


def header_range(node: Node) -> tokens.Range:
    """Return the range of a statement's logical line.

    For compound statements this is the header (from the keyword to the end of
    the condition or loop bounds) rather than the whole statement including
    its body. Simple statements return their own range.
    """
    if not isinstance(node, _COMPOUND):
        return node.range
    if isinstance(node, (IfStatement, WhileStatement)):
        return tokens.Range(node.range.start, node.condition.range.end)
    if isinstance(node, ForStatement):
        return tokens.Range(node.range.start, node.children[-2].range.end)
    if isinstance(node, FunctionDefinition) and not isinstance(node.body, Block):
        return node.range
    last = node.parameters[-1] if node.parameters else node.name
    return tokens.Range(node.range.start, last.range.end)
