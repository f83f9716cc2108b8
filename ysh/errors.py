from __future__ import annotations

from ysh.syntax.span import Position, Span


class YshError(Exception):
    """ Base class for all ysh errors"""

    span: Span | None = None

    @property
    def position(self) -> Position | None:
        return self.span.start if self.span is not None else None

    @property
    def detail(self) -> str:
        """The message without its source location."""
        return str(self)


class LexError(YshError):
    """ Raised when the source text cannot be split into tokens"""

    def __init__(self, reason: str, position: Position, incomplete: bool = False):
        super().__init__(f"{reason} at {position}")
        self.reason = reason
        self.span = Span(position, position)
        # True when more text could still complete the token (open string, open ${)
        self.incomplete = incomplete

    @property
    def detail(self) -> str:
        return self.reason


class ParseError(YshError):
    """ Raised when the token stream violates the grammar"""

    def __init__(self, expected: str, found: str, position: Position):
        super().__init__(f"expected {expected}, found {found} at {position}")
        self.expected = expected
        self.found = found
        self.span = Span(position, position)

    @property
    def detail(self) -> str:
        return f"expected {self.expected}, found {self.found}"


class NeedsMoreInput(Exception):
    """ Raised in partial mode when input ends inside an open construct.

    Not a YshError: it tells a REPL to wait for continuation text.
    """

    def __init__(self, expected: str):
        super().__init__(f"more input needed: expected {expected}")
        self.expected = expected


class BindError(YshError):
    """ Raised by the binder for structural errors, e.g. `return` outside a function"""

    def __init__(self, message: str, span: Span | None = None):
        super().__init__(message)
        self.span = span


class AnnotationError(YshError):
    """ Raised when a node's type annotation would be written twice"""


class ShellRuntimeError(YshError):
    """ Base class for errors raised while evaluating a program"""

    kind = "RuntimeError"

    def __init__(self, message: str, span: Span | None = None):
        super().__init__(message)
        self.span = span

    def __str__(self) -> str:
        return f"{self.kind}: {self.args[0]}"


class TypeMismatch(ShellRuntimeError):
    """ Raised when a value has the wrong type at its point of use"""

    kind = "TypeMismatch"


class UnboundName(ShellRuntimeError):
    """ Raised when a name is used but not bound in any enclosing scope"""

    kind = "UnboundName"


class DivisionByZero(ShellRuntimeError):
    """ Raised when dividing (or taking a remainder) by zero"""

    kind = "DivisionByZero"


class ArityMismatch(ShellRuntimeError):
    """ Raised when a function is called with the wrong number of arguments"""

    kind = "ArityMismatch"


class ExternalCommandFailure(ShellRuntimeError):
    """ Raised when an external command cannot run or exits non-zero"""

    kind = "ExternalCommandFailure"

    def __init__(self, message: str, span: Span | None = None, status: int | None = None, output: str = ""):
        super().__init__(message, span)
        self.status = status
        self.output = output
