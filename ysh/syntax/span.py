"""Source positions and spans used by tokens, nodes and diagnostics."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class Position:
    """A point in the source text. `line` and `column` are 1-based."""

    offset: int
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Span:
    start: Position
    end: Position

    def __str__(self) -> str:
        return str(self.start)

    def merge(self, other: Span | None) -> Span:
        if other is None:
            return self
        return Span(min(self.start, other.start), max(self.end, other.end))

    def text(self, source: str) -> str:
        return source[self.start.offset:self.end.offset]
