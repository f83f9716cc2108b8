"""Interactive and batch evaluation sessions.

A Session keeps its root Environment, the binder's root TypeScope, the history
of top-level entries and one DiagnosticSink across submissions, so each REPL
entry sees every binding made before it.

    session = Session(invoker=SubprocessInvoker())
    session.submit("let $x = 5")
    session.submit("$x + 1").display   # '6'

Every submission is parsed in full before anything in it runs. Entries then
run in order; a runtime error stops the submission but keeps the bindings the
earlier entries made.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal, Optional, Protocol

from ysh import Value
from ysh.binding.binder import TypeScope, bind
from ysh.diagnostics import Diagnostic, DiagnosticCode, DiagnosticSink
from ysh.errors import BindError, LexError, NeedsMoreInput, ParseError, ShellRuntimeError, YshError
from ysh.evaluation.context import EvalContext
from ysh.evaluation.evaluator import evaluate
from ysh.host import CommandInvoker
from ysh.reader.lexer import tokenize
from ysh.reader.parser import Parser
from ysh.syntax.nodes import Node
from ysh.types.environment import Environment
from ysh.types.unit import Unit
from ysh.types.values import render

logger = logging.getLogger(__name__)

Status = Literal["ok", "incomplete", "error", "interrupted"]


class InterruptFlag(Protocol):
    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class HistoryEntry:
    source: str
    node: Node


@dataclass
class EvalResult:
    status: Status
    value: Optional[Value] = None
    display: Optional[str] = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    error: Optional[YshError] = None
    source: str = ""

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    def format_error(self, source: str | None = None) -> str:
        """Formats the error with its line and column, the source line and a caret."""
        if self.status != "error" or self.error is None:
            return ""
        source = self.source if source is None else source
        msg = self.error.detail
        if isinstance(self.error, ShellRuntimeError):
            msg = str(self.error)
        pos = self.error.position
        if pos is None:
            return msg
        text = f"Error on line {pos.line}, col {pos.column}: {msg}"
        lines = source.split("\n")
        if 0 < pos.line <= len(lines):
            text += f"\n  {lines[pos.line - 1]}\n  {' ' * (pos.column - 1)}^"
        return text


class Session:
    """
    Orchestrates reading, binding and evaluating ysh code.
    Maintains an Environment and a TypeScope across calls.
    """

    def __init__(
        self,
        invoker: CommandInvoker | None = None,
        interrupt: InterruptFlag | None = None,
        prelude: str | None = None,
    ):
        self.env: Environment = Environment()
        self.scope: TypeScope = TypeScope()
        self.sink: DiagnosticSink = DiagnosticSink()
        self.history: list[HistoryEntry] = []
        self.context = EvalContext(invoker)
        self.interrupt = interrupt
        self.pending: str = ""

        if prelude:
            self.eval_prelude(prelude)

    @property
    def invoker(self) -> CommandInvoker | None:
        return self.context.invoker

    @property
    def is_pending(self) -> bool:
        return bool(self.pending)

    def eval_prelude(self, code: str) -> EvalResult:
        result = self.run_script(code)
        if result.status == "error":
            logger.warning("prelude failed: %s", result.format_error())
        return result

    def reset_input(self) -> None:
        """Discard text buffered by earlier incomplete submissions."""
        self.pending = ""

    def run_script(self, text: str) -> EvalResult:
        return self.submit(text, partial=False)

    def _parse(self, source: str, partial: bool) -> list[HistoryEntry]:
        parser = Parser(tokenize(source), partial)
        entries: list[HistoryEntry] = []
        while (node := parser.parse_entry()) is not None:
            entries.append(HistoryEntry(node.span.text(source) if node.span else "", node))
        return entries

    def _failed(self, exc: YshError, code: DiagnosticCode, mark: int, source: str) -> EvalResult:
        if code is not DiagnosticCode.RETURN_OUTSIDE_FUNCTION:
            # the binder records its own error
            self.sink.error(code, exc.detail if not isinstance(exc, ShellRuntimeError) else str(exc), exc.span)
        logger.debug("submission failed: %s", exc)
        return EvalResult("error", diagnostics=self.sink.since(mark), error=exc, source=source)

    def submit(self, text: str, partial: bool = True) -> EvalResult:
        source = self.pending + text
        mark = self.sink.mark()
        logger.debug("submit %r (partial=%s)", text, partial)

        try:
            entries = self._parse(source, partial)
        except NeedsMoreInput as more:
            logger.debug("incomplete input: %s", more.expected)
            self.pending = source + "\n"
            return EvalResult("incomplete", source=source)
        except LexError as exc:
            self.pending = ""
            return self._failed(exc, DiagnosticCode.LEX_ERROR, mark, source)
        except ParseError as exc:
            self.pending = ""
            return self._failed(exc, DiagnosticCode.PARSE_ERROR, mark, source)
        self.pending = ""

        value: Value = None
        for entry in entries:
            if self.interrupt is not None and self.interrupt.is_set():
                logger.info("interrupted before %r", entry.source)
                return EvalResult("interrupted", diagnostics=self.sink.since(mark), source=source)
            self.history.append(entry)
            try:
                bind(entry.node, self.scope, self.sink)
            except BindError as exc:
                return self._failed(exc, DiagnosticCode.RETURN_OUTSIDE_FUNCTION, mark, source)
            try:
                value = evaluate(entry.node, self.env, self.context)
            except ShellRuntimeError as exc:
                return self._failed(exc, DiagnosticCode.RUNTIME_ERROR, mark, source)
            except RecursionError:
                exc = ShellRuntimeError("maximum call depth exceeded", entry.node.span)
                return self._failed(exc, DiagnosticCode.RUNTIME_ERROR, mark, source)

        try:
            display = render(value) if value is not None and value is not Unit else None
        except ShellRuntimeError as exc:
            return self._failed(exc, DiagnosticCode.RUNTIME_ERROR, mark, source)
        return EvalResult("ok", value, display, self.sink.since(mark), source=source)
