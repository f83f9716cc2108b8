"""AST node variants.

Every construct is an expression with a defined value, so the tree is a plain
tagged variant: one dataclass per node kind, each owning its children. Two
attributes ride along on every node and are excluded from structural equality:

- `span`: where the node came from, for diagnostics.
- `static_type`: set exactly once by the binder through `annotate`.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Union

from ysh.errors import AnnotationError
from ysh.syntax.span import Span
from ysh.types.lattice import Type


@dataclass
class Node:
    span: Span | None = field(default=None, compare=False, repr=False, kw_only=True)
    static_type: Type | None = field(default=None, compare=False, repr=False, kw_only=True)

    def annotate(self, t: Type) -> Type:
        """Attach the binder's type to this node. Types are write-once."""
        if self.static_type is not None:
            raise AnnotationError(f"{type(self).__name__} at {self.span} is already typed {self.static_type}")
        self.static_type = t
        return t


@dataclass(eq=False)
class Literal(Node):
    value: Any

    def __eq__(self, other: object) -> bool:
        # 1 == True and 1 == 1.0 in Python; literals of different kinds must differ
        if not isinstance(other, Literal):
            return NotImplemented
        return type(self.value) is type(other.value) and self.value == other.value

    __hash__ = None  # type: ignore[assignment]


@dataclass
class VariableRef(Node):
    name: str
    # `${name:-default}`: used when the name is unbound or its text is empty
    default: str | None = None


@dataclass
class Substitution(Node):
    """`$(...)`: runs its entries and yields the result as text."""

    body: list[Node] = field(default_factory=list)


@dataclass
class Interpolation(Node):
    """A double-quoted string with embedded `$name` references and substitutions."""

    parts: list[Union[str, VariableRef, Substitution]]


class CommandTarget(enum.Enum):
    """How a Command node dispatches; decided by the binder."""

    EXTERNAL = "external"
    FUNCTION = "function"


@dataclass
class EnvBinding(Node):
    """`KEY=value` in front of a command: one environment variable for that command only."""

    name: str
    value: Node


@dataclass
class Command(Node):
    name: str
    args: list[Node] = field(default_factory=list)
    env: list[EnvBinding] = field(default_factory=list)
    target: CommandTarget = field(default=CommandTarget.EXTERNAL, compare=False, repr=False)


@dataclass
class FunctionCall(Node):
    callee: Node
    args: list[Node] = field(default_factory=list)


@dataclass
class If(Node):
    condition: Node
    then_branch: Node
    else_branch: Node | None = None


@dataclass
class Block(Node):
    body: list[Node] = field(default_factory=list)


@dataclass
class Param(Node):
    name: str
    declared: Type | None = None


@dataclass
class FunctionDef(Node):
    name: str | None
    params: list[Param]
    returns: Type | None
    body: Block


@dataclass
class BinaryOp(Node):
    op: str
    left: Node
    right: Node


@dataclass
class UnaryOp(Node):
    op: str
    operand: Node


@dataclass
class Return(Node):
    value: Node | None = None


@dataclass
class Let(Node):
    name: str
    declared: Type | None
    value: Node


@dataclass
class Assign(Node):
    name: str
    value: Node


@dataclass
class Program(Node):
    body: list[Node] = field(default_factory=list)


def walk(node: Node):
    """Yield `node` and all of its descendants, parents first."""
    yield node
    for child in children(node):
        yield from walk(child)


def children(node: Node) -> list[Node]:
    match node:
        case Interpolation(parts=parts):
            return [p for p in parts if isinstance(p, Node)]
        case Command(args=args, env=env):
            return [*env, *args]
        case EnvBinding(value=value):
            return [value]
        case Substitution(body=body):
            return list(body)
        case FunctionCall(callee=callee, args=args):
            return [callee, *args]
        case If(condition=c, then_branch=t, else_branch=e):
            return [c, t] + ([e] if e is not None else [])
        case Block(body=body) | Program(body=body):
            return list(body)
        case FunctionDef(params=params, body=body):
            return [*params, body]
        case BinaryOp(left=left, right=right):
            return [left, right]
        case UnaryOp(operand=operand):
            return [operand]
        case Return(value=value):
            return [value] if value is not None else []
        case Let(value=value) | Assign(value=value):
            return [value]
    return []
