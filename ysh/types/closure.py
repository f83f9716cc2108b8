"""Closure representation and parameter binding for ysh functions."""

from __future__ import annotations

from io import StringIO

from ysh import Value
from ysh.syntax.nodes import FunctionDef
from ysh.types.environment import Environment
from ysh.types.lattice import FunctionType, function_type


class Closure:
    """A first-class function: its definition node plus the captured environment."""

    __slots__ = ("definition", "env")

    def __init__(self, definition: FunctionDef, env: Environment):
        self.definition: FunctionDef = definition
        # shared with the defining scope, never copied
        self.env: Environment = env

    @property
    def name(self) -> str | None:
        return self.definition.name

    @property
    def params(self):
        return self.definition.params

    @property
    def arity(self) -> int:
        return len(self.definition.params)

    @property
    def signature(self) -> FunctionType:
        return function_type((p.declared for p in self.params), self.definition.returns)

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("<fn")
            if self.name:
                buffer.write(f" {self.name}")
            buffer.write("(")
            buffer.write(", ".join(
                f"${p.name}: {p.declared}" if p.declared is not None else f"${p.name}"
                for p in self.params
            ))
            buffer.write(")")
            if self.definition.returns is not None:
                buffer.write(f" -> {self.definition.returns}")
            buffer.write(">")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)

    def extend_env(self, args: list[Value]) -> Environment:
        """Bind argument values to fresh parameter slots in a new scope whose
        parent is the captured environment. The caller has checked arity."""
        frame = Environment(self.env)
        for param, value in zip(self.params, args):
            frame.define(param.name, value, param.declared)
        return frame
