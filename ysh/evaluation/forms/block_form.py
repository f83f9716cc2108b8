from ysh import EvaluatorFn, Value
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import Block, Program, Substitution
from ysh.types.environment import Environment
from ysh.types.unit import Unit
from ysh.types.values import render_argument


def block_form(node: Block, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    scope = Environment(env)
    result: Value = Unit
    for entry in node.body:
        result = evaluate_fn(entry, scope, context)
    return result


def program_form(node: Program, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    # top-level entries share the root scope
    result: Value = Unit
    for entry in node.body:
        result = evaluate_fn(entry, env, context)
    return result


def substitution_form(
    node: Substitution, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn
) -> Value:
    """
    $( entries )
    Scoped like a block; the result is its text, and Unit is the empty string.
    """
    scope = Environment(env)
    result: Value = Unit
    for entry in node.body:
        result = evaluate_fn(entry, scope, context)
    return "" if result is Unit else render_argument(result)
