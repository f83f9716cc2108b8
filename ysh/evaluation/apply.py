"""Application engine for ysh.

Closure application is shared by `FunctionCall` nodes and by `Command` nodes
that resolve to a function, so arity checks, parameter binding, declared-type
checks and `return` handling live in one place.
"""

from __future__ import annotations

from ysh import EvaluatorFn, Value
from ysh.errors import ArityMismatch, TypeMismatch
from ysh.evaluation.context import EvalContext
from ysh.syntax.span import Span
from ysh.types.closure import Closure
from ysh.types.values import accepts, type_name


class ReturnSignal(Exception):
    """Non-local exit raised by `return`, caught by the enclosing call frame only."""

    def __init__(self, value: Value):
        super().__init__("return")
        self.value: Value = value


def _describe(fn: Closure) -> str:
    return fn.name if fn.name else "anonymous function"


def apply_closure(
    fn: Closure,
    args: list[Value],
    context: EvalContext,
    evaluate_fn: EvaluatorFn,
    span: Span | None = None,
) -> Value:
    """Call `fn` with already-evaluated arguments.

    - Arity must match exactly; there are no defaults.
    - Each argument is checked against its parameter's declared type.
    - The body runs in a new scope whose parent is the captured environment.
    - The declared return type, if any, is checked on the way out.
    """
    if len(args) != fn.arity:
        raise ArityMismatch(
            f"{_describe(fn)} takes {fn.arity} argument(s) but {len(args)} were given", span
        )
    for param, value in zip(fn.params, args):
        if not accepts(param.declared, value):
            raise TypeMismatch(
                f"${param.name} of {_describe(fn)} must be {param.declared}, found {type_name(value)}",
                span,
            )

    frame = fn.extend_env(args)
    try:
        result = evaluate_fn(fn.definition.body, frame, context)
    except ReturnSignal as ret:
        result = ret.value

    returns = fn.definition.returns
    if not accepts(returns, result):
        raise TypeMismatch(f"{_describe(fn)} must return {returns}, found {type_name(result)}", span)
    return result


def apply(fn: Value, args: list[Value], context: EvalContext, evaluate_fn: EvaluatorFn,
          span: Span | None = None) -> Value:
    """Apply any callee value; only closures are callable."""
    if isinstance(fn, Closure):
        return apply_closure(fn, args, context, evaluate_fn, span)
    raise TypeMismatch(f"{type_name(fn)} is not a function", span)
