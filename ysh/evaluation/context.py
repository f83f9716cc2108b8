"""Per-session state the evaluator threads through every form."""

from __future__ import annotations

from dataclasses import dataclass

from ysh.host import CommandInvoker


@dataclass
class EvalContext:
    # None: external commands fail with ExternalCommandFailure
    invoker: CommandInvoker | None = None
