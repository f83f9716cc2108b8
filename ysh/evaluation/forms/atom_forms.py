from ysh import EvaluatorFn, Value
from ysh.evaluation.context import EvalContext
from ysh.syntax.nodes import Interpolation, Literal, Node, VariableRef
from ysh.types.environment import Environment
from ysh.types.values import render_argument, text_of


def literal_form(node: Literal, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    return node.value


def variable_form(node: VariableRef, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    """
    $name | ${name:-default}
    The default stands in for an unbound name or one whose text is empty.
    """
    if node.default is None:
        return env.lookup(node.name, node.span)
    home = env.find(node.name)
    if home is None:
        return node.default
    value = home.vars[node.name].value
    return node.default if text_of(value) == "" else value


def interpolation_form(
    node: Interpolation, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn
) -> Value:
    return "".join(
        render_argument(evaluate_fn(part, env, context)) if isinstance(part, Node) else part
        for part in node.parts
    )
