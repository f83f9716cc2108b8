"""Runtime value helpers: dynamic types, rendering and string coercion."""

from __future__ import annotations

from ysh import Value
from ysh.errors import ShellRuntimeError
from ysh.syntax.printer import quote_string
from ysh.types.closure import Closure
from ysh.types.command import CommandHandle
from ysh.types.lattice import BOOL, COMMAND, FLOAT, INT, STRING, UNIT, Dynamic, Type, is_compatible
from ysh.types.unit import UnitType


def type_of(value: Value) -> Type:
    """The dynamic type of a runtime value."""
    match value:
        case bool():
            return BOOL
        case int():
            return INT
        case float():
            return FLOAT
        case str():
            return STRING
        case UnitType():
            return UNIT
        case CommandHandle():
            return COMMAND
        case Closure():
            return value.signature
    return Dynamic


def type_name(value: Value) -> str:
    return str(type_of(value))


def is_number(value: Value) -> bool:
    # bools are not numbers
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def text_of(value: Value) -> str | None:
    """The text a value stands for in string contexts, or None."""
    if isinstance(value, str):
        return value
    if isinstance(value, CommandHandle):
        return value.text
    return None


def accepts(declared: Type | None, value: Value) -> bool:
    """True when `value` may be stored in a slot (or returned) declared `declared`."""
    if declared is None:
        return True
    if declared == STRING and isinstance(value, CommandHandle):
        return True
    return is_compatible(declared, type_of(value))


def render_argument(value: Value) -> str:
    """The string handed to an external command for an argument value."""
    match value:
        case bool():
            return "true" if value else "false"
        case int():
            try:
                return str(value)
            except ValueError:
                # past the interpreter's limit on integer string conversion
                raise ShellRuntimeError("integer is too large to render as text") from None
        case float():
            return repr(value)
        case str():
            return value
        case CommandHandle():
            return value.text
    return str(value)


def render(value: Value) -> str:
    """REPL display text, independent of the internal representation."""
    match value:
        case str():
            return quote_string(value)
        case CommandHandle():
            return value.text
        case UnitType():
            return "()"
        case Closure():
            return str(value)
    return render_argument(value)
