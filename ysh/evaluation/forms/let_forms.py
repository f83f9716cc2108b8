from ysh import EvaluatorFn, Value
from ysh.errors import TypeMismatch
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import Assign, Let
from ysh.types.environment import Environment
from ysh.types.values import accepts, type_name


def let_form(node: Let, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    """
    let $name[: T] = value
    Defines in the current scope; a redefinition replaces the existing slot.
    """
    value = evaluate_fn(node.value, env, context)
    if not accepts(node.declared, value):
        raise TypeMismatch(f"${node.name} is declared {node.declared}, found {type_name(value)}", node.span)
    env.define(node.name, value, node.declared)
    return value


def assign_form(node: Assign, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    value = evaluate_fn(node.value, env, context)
    declared = env.slot(node.name, node.span).declared
    if not accepts(declared, value):
        raise TypeMismatch(f"${node.name} is declared {declared}, cannot assign {type_name(value)}", node.span)
    env.assign(node.name, value, node.span)
    return value
