from ysh import EvaluatorFn, Value
from ysh.errors import TypeMismatch
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import If
from ysh.types.environment import Environment
from ysh.types.unit import Unit
from ysh.types.values import type_name


def if_form(node: If, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    cond = evaluate_fn(node.condition, env, context)
    # no truthiness: only Bool decides
    if not isinstance(cond, bool):
        raise TypeMismatch(f"if condition must be Bool, found {type_name(cond)}", node.condition.span)

    if cond:
        return evaluate_fn(node.then_branch, env, context)
    elif node.else_branch is not None:
        return evaluate_fn(node.else_branch, env, context)
    else:
        return Unit
