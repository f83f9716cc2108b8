"""Render AST nodes back to source text.

`to_source(parse_program(s))` is source that parses to a structurally equal
tree. Compound operands are parenthesized rather than relying on precedence,
so the output is unambiguous without being minimal.
"""

from __future__ import annotations

import math

from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    EnvBinding,
    FunctionCall,
    FunctionDef,
    If,
    Interpolation,
    Let,
    Literal,
    Node,
    Param,
    Program,
    Return,
    Substitution,
    UnaryOp,
    VariableRef,
)
from ysh.types.unit import UnitType

_QUOTE_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "$": "\\$",
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "\0": "\\0",
}


def _escape(text: str) -> str:
    return "".join(_QUOTE_ESCAPES.get(c, c) for c in text)


def quote_string(text: str) -> str:
    """Double-quote `text`, escaping whatever the lexer would otherwise interpret."""
    return f'"{_escape(text)}"'


def literal_source(value) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case float():
            # an overflowing literal; `inf` would read back as a command
            return "1e999" if value == math.inf else repr(value)
        case str():
            return quote_string(value)
        case UnitType():
            return "()"
    raise TypeError(f"not a literal value: {value!r}")


def _is_simple(node: Node) -> bool:
    return isinstance(node, (Literal, VariableRef, Interpolation, Substitution, Block, FunctionCall))


def _group(node: Node) -> str:
    text = to_source(node)
    return text if _is_simple(node) else f"({text})"


def _argument(node: Node) -> str:
    text = to_source(node)
    return text if isinstance(node, (Literal, VariableRef, Interpolation, Substitution)) else f"({text})"


def _callee(node: Node) -> str:
    text = to_source(node)
    return text if isinstance(node, (VariableRef, FunctionCall)) else f"({text})"


def _unary_operand(node: Node) -> str:
    text = to_source(node)
    if isinstance(node, (VariableRef, Interpolation, Substitution)):
        return text
    # `-true` would lex as a flag word
    if isinstance(node, Literal) and isinstance(node.value, (int, float, str)) \
            and not isinstance(node.value, bool):
        return text
    return f"({text})"


def _default(text: str) -> str:
    # the lexer strips one pair of matching quotes from a default
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        quote = "'" if text[0] == '"' else '"'
        return f"{quote}{text}{quote}"
    return text


def _variable(node: VariableRef, braced: bool) -> str:
    if node.default is not None:
        return f"${{{node.name}:-{_default(node.default)}}}"
    return f"${{{node.name}}}" if braced else f"${node.name}"


def _interpolated(part) -> str:
    if isinstance(part, VariableRef):
        return _variable(part, braced=True)
    if isinstance(part, Substitution):
        return to_source(part)
    return _escape(part)


def _entries(body: list[Node]) -> str:
    return "; ".join(to_source(n) for n in body)


def to_source(node: Node) -> str:
    match node:
        case Literal(value=value):
            return literal_source(value)
        case VariableRef():
            return _variable(node, braced=False)
        case Interpolation(parts=parts):
            return f'"{"".join(_interpolated(p) for p in parts)}"'
        case Substitution(body=body):
            return f"$({_entries(body)})"
        case Command(name=name, args=args, env=env):
            return " ".join([*(to_source(b) for b in env), name, *(_argument(a) for a in args)])
        case EnvBinding(name=name, value=value):
            return f"{name}={_argument(value)}"
        case FunctionCall(callee=callee, args=args):
            return f"{_callee(callee)}({', '.join(to_source(a) for a in args)})"
        case If(condition=c, then_branch=t, else_branch=e):
            text = f"if {_group(c)} then {_group(t)}"
            return text if e is None else f"{text} else {to_source(e)}"
        case Block(body=body):
            return f"{{ {_entries(body)} }}" if body else "{ }"
        case Param(name=name, declared=declared):
            return f"${name}" if declared is None else f"${name}: {declared}"
        case FunctionDef(name=name, params=params, returns=returns, body=body):
            head = "fn" if name is None else f"fn {name}"
            text = f"{head}({', '.join(to_source(p) for p in params)})"
            if returns is not None:
                text += f" -> {returns}"
            return f"{text} {to_source(body)}"
        case BinaryOp(op=op, left=left, right=right):
            return f"{_group(left)} {op} {_group(right)}"
        case UnaryOp(op=op, operand=operand):
            return f"{op}{_unary_operand(operand)}"
        case Return(value=None):
            return "return"
        case Return(value=value):
            return f"return {to_source(value)}"
        case Let(name=name, declared=declared, value=value):
            target = f"${name}" if declared is None else f"${name}: {declared}"
            return f"let {target} = {to_source(value)}"
        case Assign(name=name, value=value):
            return f"${name} = {to_source(value)}"
        case Program(body=body):
            return _entries(body)
    raise TypeError(f"cannot render {type(node).__name__}")
