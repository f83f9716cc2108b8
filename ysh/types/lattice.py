"""Static types for gradual checking.

The lattice has one universal element, Dynamic, which is compatible with every
other type in both directions. Unknown marks an expression whose inference
failed; it behaves exactly like Dynamic but lets tooling tell the two apart.
Primitive types are compared by name, and function types structurally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class Type:
    """Base class for static types."""

    @property
    def is_dynamic(self) -> bool:
        return False


@dataclass(frozen=True)
class DynamicType(Type):
    def __str__(self) -> str:
        return "Any"

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass(frozen=True)
class UnknownType(Type):
    def __str__(self) -> str:
        return "Unknown"

    @property
    def is_dynamic(self) -> bool:
        return True


@dataclass(frozen=True)
class Primitive(Type):
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class FunctionType(Type):
    params: tuple[Type, ...]
    returns: Type

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.params)
        return f"Fn({params}) -> {self.returns}"

    @property
    def arity(self) -> int:
        return len(self.params)


Dynamic = DynamicType()
Unknown = UnknownType()

UNIT = Primitive("Unit")
BOOL = Primitive("Bool")
INT = Primitive("Int")
FLOAT = Primitive("Float")
STRING = Primitive("String")
COMMAND = Primitive("Command")

PRIMITIVES: dict[str, Type] = {
    t.name: t for t in (UNIT, BOOL, INT, FLOAT, STRING, COMMAND)
}

NUMERIC = (INT, FLOAT)


def type_from_name(name: str) -> Type | None:
    """Resolve a type name as written in source; `Any` spells Dynamic."""
    if name == "Any":
        return Dynamic
    return PRIMITIVES.get(name)


def is_compatible(expected: Type, actual: Type) -> bool:
    """True when a value of type `actual` may be used where `expected` is required."""
    if expected.is_dynamic or actual.is_dynamic:
        return True
    if expected == actual:
        return True
    # Int widens to Float
    if expected == FLOAT and actual == INT:
        return True
    if isinstance(expected, FunctionType) and isinstance(actual, FunctionType):
        if expected.arity != actual.arity:
            return False
        # parameters are checked in the caller's direction; Dynamic keeps this lenient
        params_ok = all(is_compatible(a, e) for e, a in zip(expected.params, actual.params))
        return params_ok and is_compatible(expected.returns, actual.returns)
    return False


def join(*types: Type) -> Type:
    """Least upper bound: the common type when all agree, otherwise Dynamic."""
    present = [t for t in types if t is not None]
    if not present:
        return UNIT
    first = present[0]
    if all(t == first for t in present[1:]):
        return first
    if all(t in NUMERIC for t in present):
        return FLOAT
    return Dynamic


def is_numeric(t: Type) -> bool:
    return t in NUMERIC


def function_type(params: Iterable[Type | None], returns: Type | None) -> FunctionType:
    return FunctionType(
        tuple(p if p is not None else Dynamic for p in params),
        returns if returns is not None else Dynamic,
    )
