from ysh import EvaluatorFn, Value
from ysh.evaluation.apply import ReturnSignal, apply
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import FunctionCall, FunctionDef, Return
from ysh.types.closure import Closure
from ysh.types.environment import Environment
from ysh.types.unit import Unit


def function_def_form(
    node: FunctionDef, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn
) -> Value:
    """
    fn name($a: T, ...) -> R { body }
    Captures `env` itself; a named function is also defined in it.
    """
    closure = Closure(node, env)
    if node.name is not None:
        env.define(node.name, closure)
    return closure


def function_call_form(
    node: FunctionCall, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn
) -> Value:
    fn = evaluate_fn(node.callee, env, context)
    args = [evaluate_fn(arg, env, context) for arg in node.args]
    return apply(fn, args, context, evaluate_fn, node.span)


def return_form(node: Return, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    value = evaluate_fn(node.value, env, context) if node.value is not None else Unit
    raise ReturnSignal(value)
