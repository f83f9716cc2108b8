"""Diagnostics reported by the lexer, parser, binder and evaluator.

A Session owns one `DiagnosticSink` and appends to it for its whole life;
`mark()` / `since(mark)` slice out the diagnostics of a single submission.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterator

from ysh.syntax.span import Span


class Severity(enum.Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCode(enum.Enum):
    UNBOUND_NAME = "UnboundName"
    UNUSED_NAME = "UnusedName"
    TYPE_MISMATCH = "TypeMismatch"
    ARITY_MISMATCH = "ArityMismatch"
    RETURN_OUTSIDE_FUNCTION = "ReturnOutsideFunction"
    LEX_ERROR = "LexError"
    PARSE_ERROR = "ParseError"
    RUNTIME_ERROR = "RuntimeError"


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    code: DiagnosticCode
    message: str
    span: Span | None = None

    def __str__(self) -> str:
        where = f"{self.span}: " if self.span is not None else ""
        return f"{where}{self.severity.value}[{self.code.value}]: {self.message}"


class DiagnosticSink:
    """Ordered, append-only collection of diagnostics."""

    def __init__(self):
        self._items: list[Diagnostic] = []

    def add(self, diagnostic: Diagnostic) -> Diagnostic:
        self._items.append(diagnostic)
        return diagnostic

    def warning(self, code: DiagnosticCode, message: str, span: Span | None = None) -> Diagnostic:
        return self.add(Diagnostic(Severity.WARNING, code, message, span))

    def error(self, code: DiagnosticCode, message: str, span: Span | None = None) -> Diagnostic:
        return self.add(Diagnostic(Severity.ERROR, code, message, span))

    def mark(self) -> int:
        return len(self._items)

    def since(self, mark: int) -> list[Diagnostic]:
        return list(self._items[mark:])

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity is Severity.ERROR]

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def clear(self) -> None:
        self._items.clear()
