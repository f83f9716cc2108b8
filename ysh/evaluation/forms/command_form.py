import logging

from ysh import EvaluatorFn, Value
from ysh.errors import ExternalCommandFailure
from ysh.evaluation.apply import apply_closure
from ysh.evaluation.context import EvalContext
from ysh.host import COMMAND_NOT_FOUND
from ysh.syntax.nodes import Command
from ysh.types.closure import Closure
from ysh.types.command import CommandHandle
from ysh.types.environment import Environment
from ysh.types.values import render_argument

logger = logging.getLogger(__name__)


def command_form(node: Command, env: Environment, context: EvalContext, evaluate_fn: EvaluatorFn) -> Value:
    """
    [KEY=value ...] name arg ...
    A name bound to a function is a call, even when the binder could not see
    the binding (e.g. a function defined later in the same script). Anything
    else, including a name bound to a non-function value, runs as an external
    command. Environment assignments always mean an external command.
    """
    if not node.env:
        home = env.find(node.name)
        if home is not None:
            value = home.vars[node.name].value
            if isinstance(value, Closure):
                args = [evaluate_fn(arg, env, context) for arg in node.args]
                return apply_closure(value, args, context, evaluate_fn, node.span)

    overrides = {b.name: render_argument(evaluate_fn(b.value, env, context)) for b in node.env}
    args = [render_argument(evaluate_fn(arg, env, context)) for arg in node.args]
    return run_external(node.name, args, context, node, overrides)


def run_external(
    name: str, args: list[str], context: EvalContext, node: Command, env: dict[str, str] | None = None
) -> CommandHandle:
    if context.invoker is None:
        raise ExternalCommandFailure(f"no command host is available to run {name}", node.span)

    logger.debug("dispatch %s %s env=%s", name, args, env)
    try:
        result = context.invoker.invoke(name, args, env=env or None)
    except Exception as exc:
        raise ExternalCommandFailure(f"{name}: {exc}", node.span) from exc

    if result.status == COMMAND_NOT_FOUND:
        raise ExternalCommandFailure(f"command not found: {name}", node.span, result.status, result.output)
    if result.status != 0:
        raise ExternalCommandFailure(
            f"{name} exited with status {result.status}", node.span, result.status, result.output
        )
    return CommandHandle(name, tuple(args), result.status, result.output)
