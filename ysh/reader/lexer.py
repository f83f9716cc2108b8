"""
  ysh lexer

- Lazy: `lex` is a generator, `tokenize` wraps it in a restartable iterable
- Newlines are whitespace; `#` comments run to end of line
- `$name` / `${name}` are VARIABLE tokens (the sigil is not part of the value);
  `${name:-default}` is a DEFAULTED token
- `$(` opens a command substitution and is a DELIMITER token
- Bare words are WORD tokens; the parser decides whether a word is a keyword
  or a command name
- Double-quoted strings process escapes and split into parts around embedded
  `$name` references and `$(...)` substitutions; single-quoted strings are raw

Token values:

    - VARIABLE -> name (str)
    - DEFAULTED -> StringVariable carrying the default text
    - WORD     -> the word (str)
    - INTEGER  -> int
    - FLOAT    -> float
    - STRING   -> tuple of parts: str, StringVariable or StringSubstitution
    - OPERATOR / DELIMITER -> the lexeme
"""


from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Any, Iterator

from ysh.errors import LexError
from ysh.syntax.span import Position, Span


class TokenKind(enum.Enum):
    VARIABLE = "variable"
    DEFAULTED = "defaulted variable"
    WORD = "word"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    OPERATOR = "operator"
    DELIMITER = "delimiter"
    EOF = "end of input"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    start: Position
    end: Position
    value: Any = None

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)

    def describe(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end of input"
        return f"{self.kind.value} {self.lexeme!r}"


@dataclass(frozen=True)
class StringVariable:
    """A `$name` reference, with the text of its `:-` default if it has one."""

    name: str
    span: Span
    default: str | None = None


@dataclass(frozen=True)
class StringSubstitution:
    """A `$(...)` embedded in a double-quoted string; `tokens` lexes its inside."""

    tokens: Tokens
    span: Span


KEYWORDS = frozenset({"let", "fn", "if", "then", "else", "return", "true", "false"})

# Longest first, so that `==` wins over `=`
OPERATORS = ("==", "!=", "<=", ">=", "&&", "||", "->", "<", ">", "+", "-", "*", "/", "%", "!", "=", ":")
DELIMITERS = "(){},;"
SUBSTITUTION_OPEN = "$("

ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "$": "$",
}

SKIP_RE = re.compile(r"(?:\s+|#[^\n]*)+")
NUMBER_RE = re.compile(r"[0-9]+(?P<fraction>\.[0-9]+)?(?P<exponent>[eE][+-]?[0-9]+)?")
NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
BRACED_NAME_RE = re.compile(r"\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}")
OPEN_BRACED_NAME_RE = re.compile(r"\{[A-Za-z0-9_]*(?::(?:-[^}]*)?)?\Z")
WORD_RE = re.compile(
    r"(?:[A-Za-z_.~]"  # ordinary start
    r"|/[A-Za-z_.~/]"  # absolute paths, not the division operator
    r"|-[A-Za-z-])"  # flags such as -la and --help, not negation
    r"[A-Za-z0-9_.\-/~+:@]*"
)


class _Cursor:
    """Tracks offset, line and column while the lexer advances."""

    __slots__ = ("source", "offset", "line", "line_start")

    def __init__(self, source: str, start: int = 0):
        self.source = source
        self.offset = start
        self.line = source.count("\n", 0, start) + 1
        self.line_start = source.rfind("\n", 0, start) + 1

    def position(self, offset: int | None = None) -> Position:
        if offset is None or offset == self.offset:
            return Position(self.offset, self.line, self.offset - self.line_start + 1)
        # only used for offsets inside the current token
        line = self.line + self.source.count("\n", self.offset, offset)
        nl = self.source.rfind("\n", 0, offset)
        line_start = self.line_start if nl < self.line_start else nl + 1
        return Position(offset, line, offset - line_start + 1)

    def advance_to(self, end: int) -> None:
        nl = self.source.find("\n", self.offset, end)
        while nl != -1:
            self.line += 1
            self.line_start = nl + 1
            nl = self.source.find("\n", nl + 1, end)
        self.offset = end


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1]
    return text


def _read_sigil(source: str, pos: int, cursor: _Cursor) -> tuple[str, str | None, int]:
    """Read `$name`, `${name}` or `${name:-default}` starting at `pos` (which holds `$`)."""
    after = pos + 1
    if after < len(source) and source[after] == "{":
        m = BRACED_NAME_RE.match(source, after)
        if m:
            default = m.group("default")
            return m.group("name"), None if default is None else _strip_quotes(default), m.end()
        if OPEN_BRACED_NAME_RE.match(source, after):
            raise LexError("unterminated '${' variable reference", cursor.position(pos), incomplete=True)
        raise LexError("malformed '${...}' variable reference", cursor.position(pos))
    m = NAME_RE.match(source, after)
    if m:
        return m.group(0), None, m.end()
    if after >= len(source):
        raise LexError("expected a variable name after '$'", cursor.position(pos))
    raise LexError(f"expected a variable name after '$', found {source[after]!r}", cursor.position(pos))


def _skip_dquote(source: str, pos: int, cursor: _Cursor) -> int:
    """Index just past the string opened at `pos`, without decoding it."""
    i = pos + 1
    n = len(source)
    while i < n:
        c = source[i]
        if c == "\\":
            i += 2
            continue
        if c == '"':
            return i + 1
        if source.startswith(SUBSTITUTION_OPEN, i):
            i = _substitution_end(source, i, cursor) + 1
            continue
        i += 1
    raise LexError("unterminated string literal", cursor.position(pos), incomplete=True)


def _substitution_end(source: str, pos: int, cursor: _Cursor) -> int:
    """Index of the `)` closing the `$(` at `pos`; nested strings and parens are skipped."""
    depth = 0
    i = pos + 1
    n = len(source)
    while i < n:
        c = source[i]
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
            if depth == 0:
                return i
        elif c == '"':
            i = _skip_dquote(source, i, cursor)
            continue
        elif c == "'":
            close = source.find("'", i + 1)
            if close == -1:
                break
            i = close
        i += 1
    raise LexError("unterminated '$(' command substitution", cursor.position(pos), incomplete=True)


def _read_dquote(source: str, pos: int, cursor: _Cursor) -> tuple[tuple, int]:
    parts: list = []
    buf: list[str] = []
    i = pos + 1
    n = len(source)

    def flush() -> None:
        if buf:
            parts.append("".join(buf))
            buf.clear()

    while i < n:
        c = source[i]
        if c == '"':
            flush()
            return tuple(parts), i + 1
        if c == "\\":
            if i + 1 >= n:
                break
            esc = source[i + 1]
            if esc not in ESCAPES:
                raise LexError(f"invalid escape sequence '\\{esc}'", cursor.position(i))
            buf.append(ESCAPES[esc])
            i += 2
            continue
        if source.startswith(SUBSTITUTION_OPEN, i):
            close = _substitution_end(source, i, cursor)
            flush()
            span = Span(cursor.position(i), cursor.position(close + 1))
            parts.append(StringSubstitution(Tokens(source, i + len(SUBSTITUTION_OPEN), close), span))
            i = close + 1
            continue
        if c == "$":
            name, default, end = _read_sigil(source, i, cursor)
            flush()
            parts.append(StringVariable(name, Span(cursor.position(i), cursor.position(end)), default))
            i = end
            continue
        buf.append(c)
        i += 1
    raise LexError("unterminated string literal", cursor.position(pos), incomplete=True)


def _read_squote(source: str, pos: int, cursor: _Cursor) -> tuple[tuple, int]:
    end = source.find("'", pos + 1)
    if end == -1:
        raise LexError("unterminated string literal", cursor.position(pos), incomplete=True)
    text = source[pos + 1:end]
    return ((text,) if text else ()), end + 1


def _number(text: str, is_float: bool, cursor: _Cursor) -> int | float:
    if is_float:
        return float(text)
    try:
        return int(text)
    except ValueError:
        # past the interpreter's limit on integer string conversion
        raise LexError("integer literal too large", cursor.position()) from None


def lex(source: str, start: int = 0, end: int | None = None) -> Iterator[Token]:
    """Token generator over `source[start:end]`: yields Tokens, always ending with EOF.

    Positions are always relative to the whole of `source`.
    """
    cursor = _Cursor(source, start)
    n = len(source) if end is None else end

    def emit(kind: TokenKind, stop: int, value: Any = None) -> Token:
        begin = cursor.position()
        lexeme = source[cursor.offset:stop]
        cursor.advance_to(stop)
        return Token(kind, lexeme, begin, cursor.position(), lexeme if value is None else value)

    while True:
        m = SKIP_RE.match(source, cursor.offset, n)
        if m:
            cursor.advance_to(m.end())
        pos = cursor.offset
        if pos >= n:
            break
        c = source[pos]

        if source.startswith(SUBSTITUTION_OPEN, pos, n):
            yield emit(TokenKind.DELIMITER, pos + len(SUBSTITUTION_OPEN))
            continue

        if c == "$":
            name, default, stop = _read_sigil(source, pos, cursor)
            if default is None:
                yield emit(TokenKind.VARIABLE, stop, name)
            else:
                span = Span(cursor.position(), cursor.position(stop))
                yield emit(TokenKind.DEFAULTED, stop, StringVariable(name, span, default))
            continue

        if c == '"':
            parts, stop = _read_dquote(source, pos, cursor)
            yield emit(TokenKind.STRING, stop, parts)
            continue

        if c == "'":
            parts, stop = _read_squote(source, pos, cursor)
            yield emit(TokenKind.STRING, stop, parts)
            continue

        m = NUMBER_RE.match(source, pos, n)
        if m:
            is_float = bool(m.group("fraction") or m.group("exponent"))
            yield emit(TokenKind.FLOAT if is_float else TokenKind.INTEGER, m.end(),
                       _number(m.group(0), is_float, cursor))
            continue

        m = WORD_RE.match(source, pos, n)
        if m:
            yield emit(TokenKind.WORD, m.end())
            continue

        op = next((o for o in OPERATORS if source.startswith(o, pos, n)), None)
        if op is not None:
            yield emit(TokenKind.OPERATOR, pos + len(op))
            continue

        if c in DELIMITERS:
            yield emit(TokenKind.DELIMITER, pos + 1)
            continue

        raise LexError(f"unexpected character {c!r}", cursor.position())

    eof = cursor.position()
    yield Token(TokenKind.EOF, "", eof, eof)


class Tokens:
    """A lazy, restartable token sequence: each iteration lexes afresh."""

    __slots__ = ("source", "start", "end")

    def __init__(self, source: str, start: int = 0, end: int | None = None):
        self.source = source
        self.start = start
        self.end = end

    def __iter__(self) -> Iterator[Token]:
        return lex(self.source, self.start, self.end)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tokens):
            return NotImplemented
        return (self.source, self.start, self.end) == (other.source, other.start, other.end)

    def __hash__(self) -> int:
        return hash((self.source, self.start, self.end))

    def __repr__(self) -> str:
        if self.start == 0 and self.end is None:
            return f"Tokens({self.source!r})"
        return f"Tokens({self.source[self.start:self.end]!r})"


def tokenize(source: str) -> Tokens:
    return Tokens(source)
