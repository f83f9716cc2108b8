"""Runtime environment for ysh.

The Environment stores bindings of names to slots and supports nested scopes
via an `outer` link fixed at construction. Each slot carries the evaluated
value and the type declared for it (None when unannotated), so assignment can
enforce the declaration. Closures keep a reference to the Environment they were
defined in, never a copy.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import StringIO
from typing import Iterator, Optional

from ysh import Value
from ysh.errors import UnboundName
from ysh.syntax.span import Span
from ysh.types.lattice import Type


@dataclass
class Slot:
    value: Value
    declared: Type | None = None


class Environment:
    """Hierarchical mapping from names to Slots."""

    __slots__ = ("vars", "outer")

    def __init__(self, outer: Optional[Environment] = None):
        self.vars: dict[str, Slot] = {}
        self.outer: Environment | None = outer

    def define(self, name: str, value: Value, declared: Type | None = None) -> None:
        """Bind `name` in this frame. An existing binding in this frame is replaced."""
        self.vars[name] = Slot(value, declared)

    def find(self, name: str) -> Optional[Environment]:
        """Find the nearest environment in the chain that contains `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.outer
        return None

    def slot(self, name: str, span: Span | None = None) -> Slot:
        env = self.find(name)
        if env is None:
            raise UnboundName(f"${name} is not bound", span)
        return env.vars[name]

    def lookup(self, name: str, span: Span | None = None) -> Value:
        """Look up the value bound to `name`.

        Raises UnboundName if no enclosing scope binds it.
        """
        return self.slot(name, span).value

    def assign(self, name: str, value: Value, span: Span | None = None) -> Slot:
        """Update the nearest existing binding for `name`; the caller checks the
        slot's declared type first."""
        slot = self.slot(name, span)
        slot.value = value
        return slot

    def root(self) -> Environment:
        env = self
        while env.outer is not None:
            env = env.outer
        return env

    def names(self) -> Iterator[str]:
        """All visible names, innermost first, each once."""
        seen: set[str] = set()
        env: Optional[Environment] = self
        while env is not None:
            for name in env.vars:
                if name not in seen:
                    seen.add(name)
                    yield name
            env = env.outer

    def _write_vars(self, buffer: StringIO) -> None:
        """Write this frame's variables into the buffer in a compact form."""
        buffer.write("{")
        first = True
        for k, slot in self.vars.items():
            if not first:
                buffer.write(", ")
            buffer.write(f"${k}: {slot.value!r}")
            first = False
        buffer.write("}")

    def __str__(self) -> str:
        """Human-readable single-frame view with an indicator for parent."""
        with StringIO() as buffer:
            self._write_vars(buffer)
            if self.outer is not None:
                buffer.write(" -> ...")
            return buffer.getvalue()

    def __repr__(self) -> str:
        with StringIO() as buffer:
            buffer.write("<Environment chain: ")
            env = self
            chain = []
            while env is not None:
                env_buf = StringIO()
                env._write_vars(env_buf)
                chain.append(env_buf.getvalue())
                env = env.outer
            buffer.write(" -> ".join(chain))
            buffer.write(">")
            return buffer.getvalue()
