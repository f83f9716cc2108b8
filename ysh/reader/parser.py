"""
  ysh parser

Recursive descent over a `TokenStream`. The grammar is newline-insensitive:
top-level entries and block entries are separated by `;`, which may be left out
after an entry that ends with `}`.

Two entry points:

- `parse_program(tokens)` parses a whole script into a `Program`.
- `parse_one_entry(tokens, partial)` parses one top-level entry for a REPL.
  With `partial=True`, running out of input inside an open construct raises
  `NeedsMoreInput` instead of `ParseError`.

Commands take `KEY=value` prefixes (no spaces around `=`) that set environment
variables for that command alone. `$( ... )` holds entries like a block and
yields their result as text.

Precedence, tightest first: command application, call, unary, `* / %`,
`+ -`, comparison (non-associative), `&&`, `||`, `let` / assignment.
"""

from __future__ import annotations

import itertools
from typing import Iterable, Iterator, Optional

from ysh.errors import LexError, NeedsMoreInput, ParseError
from ysh.reader.lexer import (
    KEYWORDS,
    NAME_RE,
    SUBSTITUTION_OPEN,
    StringSubstitution,
    StringVariable,
    Token,
    TokenKind,
    tokenize,
)
from ysh.syntax.nodes import (
    Assign,
    BinaryOp,
    Block,
    Command,
    EnvBinding,
    FunctionCall,
    FunctionDef,
    If,
    Interpolation,
    Let,
    Literal,
    Node,
    Param,
    Program,
    Return,
    Substitution,
    UnaryOp,
    VariableRef,
)
from ysh.syntax.span import Position, Span
from ysh.types.lattice import FunctionType, Type, type_from_name
from ysh.types.unit import Unit

COMPARISON_OPS = ("==", "!=", "<", "<=", ">", ">=")
ADDITIVE_OPS = ("+", "-")
MULTIPLICATIVE_OPS = ("*", "/", "%")
UNARY_OPS = ("-", "!")

# Keywords that may begin an expression
EXPRESSION_KEYWORDS = frozenset({"let", "fn", "if", "return", "true", "false"})

ATOM_KINDS = (TokenKind.INTEGER, TokenKind.FLOAT, TokenKind.STRING, TokenKind.VARIABLE, TokenKind.DEFAULTED)


class TokenStream:
    def __init__(self, token_iter: Iterable[Token], partial: bool = False, start: int = 0):
        # skipped tokens are still lexed lazily, so errors surface in `_fill`
        self.tokens: Iterator[Token] = itertools.islice(token_iter, start, None)
        self.buffer: list[Token] = []
        self.partial = partial
        self.previous: Optional[Token] = None
        self.consumed = 0

    def _fill(self, k: int) -> bool:
        while len(self.buffer) <= k:
            try:
                tok = next(self.tokens)
            except StopIteration:
                return False
            except LexError as exc:
                if exc.incomplete and self.partial:
                    raise NeedsMoreInput(exc.reason) from exc
                raise
            self.buffer.append(tok)
        return True

    def peek(self, k: int = 0) -> Token:
        if not self._fill(k):
            if not self.buffer:
                # started past the end of the source
                return self._end_token()
            # token sources always end with EOF; repeat it past the end
            return self.buffer[-1]
        return self.buffer[k]

    def _end_token(self) -> Token:
        pos = self.previous.end if self.previous is not None else Position(0, 1, 1)
        return Token(TokenKind.EOF, "", pos, pos)

    def advance(self) -> Token:
        tok = self.peek()
        if tok.kind is not TokenKind.EOF:
            self.buffer.pop(0)
            self.consumed += 1
        self.previous = tok
        return tok


class Parser:
    def __init__(self, tokens: Iterable[Token], partial: bool = False, start: int = 0):
        self.stream = TokenStream(tokens, partial, start)
        self.partial = partial

    # ------------------------
    # Token helpers
    # ------------------------
    def _error(self, expected: str) -> ParseError:
        tok = self.stream.peek()
        if tok.kind is TokenKind.EOF and self.partial:
            raise NeedsMoreInput(expected)
        return ParseError(expected, tok.describe(), tok.start)

    def _check(self, kind: TokenKind, *lexemes: str, k: int = 0) -> bool:
        tok = self.stream.peek(k)
        return tok.kind is kind and (not lexemes or tok.lexeme in lexemes)

    def _check_op(self, *ops: str) -> bool:
        return self._check(TokenKind.OPERATOR, *ops)

    def _check_delim(self, *delims: str) -> bool:
        return self._check(TokenKind.DELIMITER, *delims)

    def _check_keyword(self, *words: str) -> bool:
        return self._check(TokenKind.WORD, *words) and self.stream.peek().lexeme in KEYWORDS

    def _expect_op(self, op: str) -> Token:
        if not self._check_op(op):
            raise self._error(f"'{op}'")
        return self.stream.advance()

    def _expect_delim(self, delim: str) -> Token:
        if not self._check_delim(delim):
            raise self._error(f"'{delim}'")
        return self.stream.advance()

    def _expect_keyword(self, word: str) -> Token:
        if not self._check_keyword(word):
            raise self._error(f"'{word}'")
        return self.stream.advance()

    def _span_from(self, start: Token) -> Span:
        end = self.stream.previous or start
        return Span(start.start, end.end)

    def _is_command_word(self, tok: Token) -> bool:
        return tok.kind is TokenKind.WORD and tok.lexeme not in KEYWORDS

    def _can_start_expr(self, tok: Token) -> bool:
        if tok.kind in ATOM_KINDS:
            return True
        if tok.kind is TokenKind.WORD:
            return tok.lexeme not in KEYWORDS or tok.lexeme in EXPRESSION_KEYWORDS
        if tok.kind is TokenKind.DELIMITER:
            return tok.lexeme in ("(", "{", SUBSTITUTION_OPEN)
        if tok.kind is TokenKind.OPERATOR:
            return tok.lexeme in UNARY_OPS
        return False

    def _can_start_argument(self, tok: Token) -> bool:
        if tok.kind in ATOM_KINDS:
            return True
        if tok.kind is TokenKind.WORD:
            return tok.lexeme not in KEYWORDS or tok.lexeme in ("true", "false")
        return tok.kind is TokenKind.DELIMITER and tok.lexeme in ("(", SUBSTITUTION_OPEN)

    def _at_env_binding(self) -> bool:
        """True at `KEY=value`, written without spaces, in front of a command."""
        key = self.stream.peek()
        if not (self._is_command_word(key) and NAME_RE.fullmatch(key.lexeme)):
            return False
        eq = self.stream.peek(1)
        if not (eq.kind is TokenKind.OPERATOR and eq.lexeme == "=" and eq.start.offset == key.end.offset):
            return False
        value = self.stream.peek(2)
        return value.start.offset == eq.end.offset and self._can_start_argument(value)

    # ------------------------
    # Entries
    # ------------------------
    def parse_program(self) -> Program:
        start = self.stream.peek()
        body = self._parse_entries(closing=None)
        if not self._check(TokenKind.EOF):
            raise self._error("';' or end of input")
        return Program(body, span=self._span_from(start))

    def parse_entry(self) -> Optional[Node]:
        """Parse one top-level entry and its separator; None at end of input."""
        while self._check_delim(";"):
            self.stream.advance()
        if self._check(TokenKind.EOF):
            return None
        node = self.parse_expr()
        self._finish_entry(closing=None)
        return node

    def _parse_entries(self, closing: Optional[str]) -> list[Node]:
        entries: list[Node] = []
        while True:
            while self._check_delim(";"):
                self.stream.advance()
            if self._at_closing(closing):
                return entries
            entries.append(self.parse_expr())
            self._finish_entry(closing)

    def _at_closing(self, closing: Optional[str]) -> bool:
        if closing is None:
            return self._check(TokenKind.EOF)
        return self._check_delim(closing)

    def _finish_entry(self, closing: Optional[str]) -> None:
        if self._check_delim(";"):
            self.stream.advance()
            return
        if self._at_closing(closing):
            return
        prev = self.stream.previous
        if prev is not None and prev.kind is TokenKind.DELIMITER and prev.lexeme == "}":
            return
        raise self._error("';'" if closing is None else f"';' or '{closing}'")

    # ------------------------
    # Expressions
    # ------------------------
    def parse_expr(self) -> Node:
        if self._check_keyword("let"):
            return self._parse_let()
        if self._check(TokenKind.VARIABLE) and self.stream.peek(1).kind is TokenKind.OPERATOR \
                and self.stream.peek(1).lexeme == "=":
            start = self.stream.advance()
            self.stream.advance()  # '='
            value = self.parse_expr()
            return Assign(start.value, value, span=self._span_from(start))
        return self._parse_or()

    def _parse_let(self) -> Let:
        start = self._expect_keyword("let")
        if not self._check(TokenKind.VARIABLE):
            raise self._error("a $variable after 'let'")
        name = self.stream.advance().value
        declared = None
        if self._check_op(":"):
            self.stream.advance()
            declared = self._parse_type()
        self._expect_op("=")
        value = self.parse_expr()
        return Let(name, declared, value, span=self._span_from(start))

    def _parse_binary(self, ops: tuple[str, ...], operand) -> Node:
        start = self.stream.peek()
        left = operand()
        while self._check_op(*ops):
            op = self.stream.advance().lexeme
            right = operand()
            left = BinaryOp(op, left, right, span=self._span_from(start))
        return left

    def _parse_or(self) -> Node:
        return self._parse_binary(("||",), self._parse_and)

    def _parse_and(self) -> Node:
        return self._parse_binary(("&&",), self._parse_comparison)

    def _parse_comparison(self) -> Node:
        start = self.stream.peek()
        left = self._parse_additive()
        if self._check_op(*COMPARISON_OPS):
            op = self.stream.advance().lexeme
            right = self._parse_additive()
            left = BinaryOp(op, left, right, span=self._span_from(start))
            if self._check_op(*COMPARISON_OPS):
                raise ParseError("'&&', '||' or parentheses between comparisons",
                                 self.stream.peek().describe(), self.stream.peek().start)
        return left

    def _parse_additive(self) -> Node:
        return self._parse_binary(ADDITIVE_OPS, self._parse_multiplicative)

    def _parse_multiplicative(self) -> Node:
        return self._parse_binary(MULTIPLICATIVE_OPS, self._parse_unary)

    def _parse_unary(self) -> Node:
        if self._check_op(*UNARY_OPS):
            start = self.stream.advance()
            operand = self._parse_unary()
            return UnaryOp(start.lexeme, operand, span=self._span_from(start))
        return self._parse_postfix()

    def _parse_postfix(self) -> Node:
        start = self.stream.peek()
        node = self._parse_application()
        while self._check_delim("("):
            args = self._parse_call_args()
            node = FunctionCall(node, args, span=self._span_from(start))
        return node

    def _parse_call_args(self) -> list[Node]:
        self._expect_delim("(")
        args: list[Node] = []
        if self._check_delim(")"):
            self.stream.advance()
            return args
        while True:
            args.append(self.parse_expr())
            if self._check_delim(","):
                self.stream.advance()
                continue
            self._expect_delim(")")
            return args

    def _parse_application(self) -> Node:
        tok = self.stream.peek()
        if not self._is_command_word(tok):
            return self._parse_primary()
        env: list[EnvBinding] = []
        while self._at_env_binding():
            env.append(self._parse_env_binding())
        if env and not self._is_command_word(self.stream.peek()):
            found = self.stream.peek()
            raise ParseError("a command after environment assignments", found.describe(), found.start)
        name = self.stream.advance()
        nxt = self.stream.peek()
        if nxt.kind is TokenKind.DELIMITER and nxt.lexeme == "(" and nxt.start.offset == name.end.offset:
            # name(arg, ...) with no space before '(' is the same command
            args = self._parse_call_args()
        else:
            args = []
            while self._can_start_argument(self.stream.peek()):
                args.append(self._parse_argument())
        return Command(name.lexeme, args, env, span=self._span_from(tok))

    def _parse_env_binding(self) -> EnvBinding:
        key = self.stream.advance()
        self.stream.advance()  # '='
        value = self._parse_argument()
        return EnvBinding(key.lexeme, value, span=self._span_from(key))

    def _parse_argument(self) -> Node:
        tok = self.stream.peek()
        if tok.kind is TokenKind.WORD and tok.lexeme not in KEYWORDS:
            self.stream.advance()
            return Literal(tok.lexeme, span=tok.span)
        if tok.kind is TokenKind.DELIMITER and tok.lexeme == "(":
            return self._parse_parenthesized()
        return self._parse_primary()

    # ------------------------
    # Primaries
    # ------------------------
    def _parse_primary(self) -> Node:
        tok = self.stream.peek()
        match tok.kind:
            case TokenKind.INTEGER | TokenKind.FLOAT:
                self.stream.advance()
                return Literal(tok.value, span=tok.span)
            case TokenKind.STRING:
                self.stream.advance()
                return self._string_node(tok)
            case TokenKind.VARIABLE:
                self.stream.advance()
                return VariableRef(tok.value, span=tok.span)
            case TokenKind.DEFAULTED:
                self.stream.advance()
                return VariableRef(tok.value.name, tok.value.default, span=tok.span)
            case TokenKind.DELIMITER if tok.lexeme == "(":
                return self._parse_parenthesized()
            case TokenKind.DELIMITER if tok.lexeme == SUBSTITUTION_OPEN:
                return self._parse_substitution()
            case TokenKind.DELIMITER if tok.lexeme == "{":
                return self._parse_block()
            case TokenKind.WORD if tok.lexeme in ("true", "false"):
                self.stream.advance()
                return Literal(tok.lexeme == "true", span=tok.span)
            case TokenKind.WORD if tok.lexeme == "if":
                return self._parse_if()
            case TokenKind.WORD if tok.lexeme == "fn":
                return self._parse_function()
            case TokenKind.WORD if tok.lexeme == "return":
                return self._parse_return()
            case TokenKind.WORD if tok.lexeme == "let":
                return self._parse_let()
        raise self._error("an expression")

    def _string_node(self, tok: Token) -> Node:
        parts = tok.value
        if all(isinstance(p, str) for p in parts):
            return Literal("".join(parts), span=tok.span)
        return Interpolation([self._string_part(p) for p in parts], span=tok.span)

    def _string_part(self, part) -> str | Node:
        if isinstance(part, StringVariable):
            return VariableRef(part.name, part.default, span=part.span)
        if isinstance(part, StringSubstitution):
            # the enclosing string is closed, so the inside is complete input
            inner = Parser(part.tokens).parse_program()
            return Substitution(inner.body, span=part.span)
        return part

    def _parse_substitution(self) -> Substitution:
        start = self._expect_delim(SUBSTITUTION_OPEN)
        body = self._parse_entries(closing=")")
        self._expect_delim(")")
        return Substitution(body, span=self._span_from(start))

    def _parse_parenthesized(self) -> Node:
        start = self._expect_delim("(")
        if self._check_delim(")"):
            self.stream.advance()
            return Literal(Unit, span=self._span_from(start))
        node = self.parse_expr()
        self._expect_delim(")")
        return node

    def _parse_block(self) -> Block:
        start = self._expect_delim("{")
        body = self._parse_entries(closing="}")
        self._expect_delim("}")
        return Block(body, span=self._span_from(start))

    def _parse_if(self) -> If:
        start = self._expect_keyword("if")
        condition = self.parse_expr()
        if self._check_keyword("then"):
            self.stream.advance()
            then_branch = self.parse_expr()
        elif self._check_delim("{"):
            then_branch = self._parse_block()
        else:
            raise self._error("'then' or '{'")
        else_branch = None
        if self._check_keyword("else"):
            self.stream.advance()
            else_branch = self.parse_expr()
        return If(condition, then_branch, else_branch, span=self._span_from(start))

    def _parse_function(self) -> FunctionDef:
        start = self._expect_keyword("fn")
        name = None
        if self._is_command_word(self.stream.peek()):
            name = self.stream.advance().lexeme
        self._expect_delim("(")
        params: list[Param] = []
        if not self._check_delim(")"):
            while True:
                params.append(self._parse_param())
                if self._check_delim(","):
                    self.stream.advance()
                    continue
                break
        self._expect_delim(")")
        returns = None
        if self._check_op("->"):
            self.stream.advance()
            returns = self._parse_type()
        if not self._check_delim("{"):
            raise self._error("'{' to start the function body")
        body = self._parse_block()
        return FunctionDef(name, params, returns, body, span=self._span_from(start))

    def _parse_param(self) -> Param:
        if not self._check(TokenKind.VARIABLE):
            raise self._error("a $parameter")
        start = self.stream.advance()
        declared = None
        if self._check_op(":"):
            self.stream.advance()
            declared = self._parse_type()
        return Param(start.value, declared, span=self._span_from(start))

    def _parse_return(self) -> Return:
        start = self._expect_keyword("return")
        value = None
        if self._can_start_expr(self.stream.peek()):
            value = self.parse_expr()
        return Return(value, span=self._span_from(start))

    def _parse_type(self) -> Type:
        tok = self.stream.peek()
        if tok.kind is not TokenKind.WORD:
            raise self._error("a type")
        self.stream.advance()
        if tok.lexeme == "Fn":
            self._expect_delim("(")
            params: list[Type] = []
            if not self._check_delim(")"):
                while True:
                    params.append(self._parse_type())
                    if self._check_delim(","):
                        self.stream.advance()
                        continue
                    break
            self._expect_delim(")")
            self._expect_op("->")
            return FunctionType(tuple(params), self._parse_type())
        resolved = type_from_name(tok.lexeme)
        if resolved is None:
            raise ParseError("a type name", tok.describe(), tok.start)
        return resolved


def _as_tokens(tokens: Iterable[Token] | str) -> Iterable[Token]:
    return tokenize(tokens) if isinstance(tokens, str) else tokens


def parse_program(tokens: Iterable[Token] | str) -> Program:
    """Parse a complete script. Raises ParseError (or LexError) on bad input."""
    return Parser(_as_tokens(tokens)).parse_program()


def parse_one_entry(
    tokens: Iterable[Token] | str, partial: bool = False, start: int = 0
) -> tuple[Optional[Node], int]:
    """Parse one top-level entry beginning at token index `start`.

    Returns the entry (None at end of input) and the number of tokens consumed,
    including a trailing `;`.
    """
    parser = Parser(_as_tokens(tokens), partial, start)
    node = parser.parse_entry()
    return node, parser.stream.consumed
