# Core type aliases for ysh's data model.
# Runtime values are plain Python values wherever Python has one (bool, int,
# float, str). Unit, Closure and CommandHandle (see ysh.types) cover the rest.
#
# Naming guidance:
# - Value: use in evaluator/runtime code to denote evaluated values.
# - EvaluatorFn: the evaluator entry point handed to each form handler, so
#   forms never import the evaluator module directly.

from typing import Any, Callable

__version__ = "0.1.0"

# Runtime value alias
Value = Any

# Evaluator function type: (node, env, context) -> Value
EvaluatorFn = Callable[..., Value]
