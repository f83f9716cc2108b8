"""Core evaluator for ysh.

A tree walk: each node class maps to a form handler in FORMS, and every handler
receives the evaluator itself so forms never import this module.
"""

from __future__ import annotations

from ysh import Value
from ysh.errors import ShellRuntimeError
from ysh.evaluation.context import EvalContext
from ysh.evaluation.forms import FORMS
from ysh.syntax.nodes import Node
from ysh.types.environment import Environment


def evaluate(node: Node, env: Environment, context: EvalContext | None = None) -> Value:
    if context is None:
        context = EvalContext()
    form = FORMS.get(type(node))
    if form is None:
        raise ShellRuntimeError(f"cannot evaluate {type(node).__name__}", node.span)
    return form(node, env, context, evaluate)
