"""Name resolution and gradual type resolution.

A single pass over a tree that annotates every node with a static type and
reports problems to a DiagnosticSink. Nothing here is fatal except `return`
outside a function: unbound names, mismatched operands and wrong arities are
warnings, the affected expression is typed Dynamic (or Unknown), and the
evaluator decides at run time.

Scopes mirror the evaluator's: a Block pushes one TypeScope, a function body
pushes one for its parameters (and its Block pushes another). The session's
root TypeScope lives across submissions, so a REPL entry sees the bindings
made by earlier entries.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ysh.diagnostics import Diagnostic, DiagnosticCode, DiagnosticSink
from ysh.errors import BindError
from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    CommandTarget,
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
from ysh.syntax.span import Span
from ysh.types.lattice import (
    BOOL,
    FLOAT,
    INT,
    STRING,
    UNIT,
    Dynamic,
    FunctionType,
    Type,
    Unknown,
    function_type,
    is_compatible,
    is_numeric,
    join,
)
from ysh.types.unit import UnitType

ARITHMETIC_OPS = ("+", "-", "*", "/", "%")
ORDERING_OPS = ("<", "<=", ">", ">=")
EQUALITY_OPS = ("==", "!=")
LOGICAL_OPS = ("&&", "||")


@dataclass
class TypeBinding:
    type: Type
    declared: Type | None = None
    kind: str = "let"  # let | param | fn
    span: Span | None = None
    used: bool = False


class TypeScope:
    """Static counterpart of Environment: name -> TypeBinding, with an outer link."""

    __slots__ = ("names", "outer")

    def __init__(self, outer: Optional[TypeScope] = None):
        self.names: dict[str, TypeBinding] = {}
        self.outer = outer

    def define(self, name: str, binding: TypeBinding) -> TypeBinding:
        self.names[name] = binding
        return binding

    def resolve(self, name: str) -> Optional[TypeBinding]:
        scope: Optional[TypeScope] = self
        while scope is not None:
            binding = scope.names.get(name)
            if binding is not None:
                return binding
            scope = scope.outer
        return None

    @property
    def is_root(self) -> bool:
        return self.outer is None


@dataclass
class BindResult:
    node: Node
    diagnostics: list[Diagnostic] = field(default_factory=list)
    type: Type = Dynamic


def literal_type(value) -> Type:
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
    return Dynamic


class Binder:
    def __init__(self, sink: DiagnosticSink):
        self.sink = sink
        # one list of collected `return` types per enclosing function
        self._returns: list[list[Type]] = []

    # ------------------------
    # Reporting
    # ------------------------
    def _warn(self, code: DiagnosticCode, message: str, span: Span | None) -> None:
        self.sink.warning(code, message, span)

    def _mismatch(self, message: str, span: Span | None) -> Type:
        self._warn(DiagnosticCode.TYPE_MISMATCH, message, span)
        return Unknown

    # ------------------------
    # Scopes
    # ------------------------
    def _pop(self, scope: TypeScope) -> None:
        for name, binding in scope.names.items():
            if binding.kind == "let" and not binding.used and not name.startswith("_"):
                self._warn(DiagnosticCode.UNUSED_NAME, f"${name} is never used", binding.span)

    def _resolve(self, name: str, scope: TypeScope, span: Span | None) -> Optional[TypeBinding]:
        binding = scope.resolve(name)
        if binding is None:
            self._warn(DiagnosticCode.UNBOUND_NAME, f"${name} is not bound", span)
            return None
        binding.used = True
        return binding

    # ------------------------
    # Entry point
    # ------------------------
    def bind(self, node: Node, scope: TypeScope) -> Type:
        return node.annotate(self._infer(node, scope))

    def _bind_all(self, nodes: list[Node], scope: TypeScope) -> list[Type]:
        return [self.bind(n, scope) for n in nodes]

    def _infer(self, node: Node, scope: TypeScope) -> Type:
        match node:
            case Literal(value=value):
                return literal_type(value)
            case VariableRef(name=name, default=None):
                binding = self._resolve(name, scope, node.span)
                return binding.type if binding is not None else Dynamic
            case VariableRef(name=name):
                # a defaulted reference may name something never bound
                binding = scope.resolve(name)
                if binding is None:
                    return STRING
                binding.used = True
                return join(binding.type, STRING)
            case Interpolation(parts=parts):
                for part in parts:
                    if isinstance(part, Node):
                        self.bind(part, scope)
                return STRING
            case Substitution(body=body):
                inner = TypeScope(scope)
                self._bind_all(body, inner)
                self._pop(inner)
                return STRING
            case EnvBinding(value=value):
                self.bind(value, scope)
                return STRING
            case Command():
                return self._command(node, scope)
            case FunctionCall(callee=callee, args=args):
                callee_type = self.bind(callee, scope)
                arg_types = self._bind_all(args, scope)
                return self._call_type(callee_type, arg_types, node.span)
            case If(condition=c, then_branch=t, else_branch=e):
                cond = self.bind(c, scope)
                if not is_compatible(BOOL, cond):
                    self._mismatch(f"condition must be Bool, found {cond}", c.span)
                then_type = self.bind(t, scope)
                else_type = self.bind(e, scope) if e is not None else UNIT
                return join(then_type, else_type)
            case Block(body=body):
                inner = TypeScope(scope)
                types = self._bind_all(body, inner)
                self._pop(inner)
                return types[-1] if types else UNIT
            case FunctionDef():
                return self._function(node, scope)
            case Param(declared=declared):
                return declared if declared is not None else Dynamic
            case BinaryOp(op=op, left=left, right=right):
                return self._binary(op, self.bind(left, scope), self.bind(right, scope), node.span)
            case UnaryOp(op=op, operand=operand):
                return self._unary(op, self.bind(operand, scope), node.span)
            case Return(value=value):
                if not self._returns:
                    self.sink.error(DiagnosticCode.RETURN_OUTSIDE_FUNCTION,
                                    "return outside of a function", node.span)
                    raise BindError("return outside of a function", node.span)
                value_type = self.bind(value, scope) if value is not None else UNIT
                self._returns[-1].append(value_type)
                return value_type
            case Let(name=name, declared=declared, value=value):
                value_type = self.bind(value, scope)
                if declared is not None and not is_compatible(declared, value_type):
                    self._mismatch(f"${name} is declared {declared} but initialized with {value_type}",
                                   value.span)
                bound = declared if declared is not None else value_type
                scope.define(name, TypeBinding(bound, declared, "let", node.span))
                return bound
            case Assign(name=name, value=value):
                value_type = self.bind(value, scope)
                binding = scope.resolve(name)
                if binding is None:
                    self._warn(DiagnosticCode.UNBOUND_NAME, f"${name} is not bound", node.span)
                elif binding.declared is not None:
                    if not is_compatible(binding.declared, value_type):
                        self._mismatch(f"${name} is declared {binding.declared}, cannot assign {value_type}",
                                       value.span)
                else:
                    binding.type = join(binding.type, value_type)
                return value_type
            case Program(body=body):
                types = self._bind_all(body, scope)
                return types[-1] if types else UNIT
        return Dynamic

    # ------------------------
    # Rules
    # ------------------------
    def _command(self, node: Command, scope: TypeScope) -> Type:
        self._bind_all(node.env, scope)
        binding = scope.resolve(node.name)
        arg_types = self._bind_all(node.args, scope)
        if binding is None or node.env:
            # environment assignments always mean an external command
            return Dynamic
        if isinstance(binding.type, FunctionType) or binding.kind == "fn":
            binding.used = True
            node.target = CommandTarget.FUNCTION
            return self._call_type(binding.type, arg_types, node.span)
        # a name bound to a non-function (or not yet known) value does not
        # shadow the command; the evaluator still calls a closure found there
        if binding.type.is_dynamic:
            binding.used = True
        return Dynamic

    def _call_type(self, callee: Type, args: list[Type], span: Span | None) -> Type:
        if callee.is_dynamic:
            return Dynamic
        if not isinstance(callee, FunctionType):
            return self._mismatch(f"{callee} is not a function", span)
        if callee.arity != len(args):
            self._warn(DiagnosticCode.ARITY_MISMATCH,
                       f"expected {callee.arity} argument(s), found {len(args)}", span)
            return callee.returns
        for i, (param, arg) in enumerate(zip(callee.params, args), start=1):
            if not is_compatible(param, arg):
                self._mismatch(f"argument {i} must be {param}, found {arg}", span)
        return callee.returns

    def _function(self, node: FunctionDef, scope: TypeScope) -> Type:
        declared = function_type((p.declared for p in node.params), node.returns)
        binding = None
        if node.name is not None:
            # bound before the body so the function can call itself
            binding = scope.define(node.name, TypeBinding(declared, None, "fn", node.span))

        frame = TypeScope(scope)
        for param in node.params:
            frame.define(param.name, TypeBinding(self.bind(param, frame), param.declared, "param", param.span))

        self._returns.append([])
        try:
            body_type = self.bind(node.body, frame)
        finally:
            returns = self._returns.pop()
        self._pop(frame)

        ends_with_return = bool(node.body.body) and isinstance(node.body.body[-1], Return)
        results = returns if ends_with_return else [*returns, body_type]
        if node.returns is not None:
            for result in results:
                if not is_compatible(node.returns, result):
                    self._mismatch(f"function returns {result}, declared {node.returns}", node.span)
            return declared

        inferred = FunctionType(declared.params, join(*results))
        if binding is not None:
            binding.type = inferred
        return inferred

    def _binary(self, op: str, left: Type, right: Type, span: Span | None) -> Type:
        if op in EQUALITY_OPS:
            return BOOL
        if op in LOGICAL_OPS:
            for side in (left, right):
                if not is_compatible(BOOL, side):
                    self._mismatch(f"'{op}' needs Bool operands, found {side}", span)
            return BOOL
        if op in ORDERING_OPS:
            if not (left.is_dynamic or right.is_dynamic) and not (
                (is_numeric(left) and is_numeric(right)) or (left == STRING and right == STRING)
            ):
                self._mismatch(f"cannot compare {left} {op} {right}", span)
            return BOOL
        # arithmetic
        if left.is_dynamic or right.is_dynamic:
            return Dynamic
        if is_numeric(left) and is_numeric(right):
            return INT if left == INT and right == INT else FLOAT
        if op == "+" and left == STRING and right == STRING:
            return STRING
        return self._mismatch(f"cannot apply '{op}' to {left} and {right}", span)

    def _unary(self, op: str, operand: Type, span: Span | None) -> Type:
        if op == "!":
            if not is_compatible(BOOL, operand):
                self._mismatch(f"'!' needs a Bool operand, found {operand}", span)
            return BOOL
        if operand.is_dynamic or is_numeric(operand):
            return operand
        return self._mismatch(f"cannot negate {operand}", span)


def bind(node: Node, scope: TypeScope | None = None, sink: DiagnosticSink | None = None) -> BindResult:
    """Resolve names and annotate `node` in place.

    Raises BindError for `return` outside a function (also recorded in `sink`).
    """
    sink = sink if sink is not None else DiagnosticSink()
    scope = scope if scope is not None else TypeScope()
    mark = sink.mark()
    node_type = Binder(sink).bind(node, scope)
    return BindResult(node, sink.since(mark), node_type)
