"""
Static index of a ysh document for editor features.

The document is lexed, parsed and bound exactly as a script would be, but never
evaluated. Lex and parse errors leave an index with one error diagnostic and no
symbols; bind diagnostics (unbound names, type mismatches, `return` outside a
function) are collected alongside the symbols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ysh.binding.binder import TypeScope, bind
from ysh.diagnostics import Diagnostic, DiagnosticCode, DiagnosticSink
from ysh.errors import BindError, LexError, ParseError
from ysh.reader.lexer import KEYWORDS
from ysh.reader.parser import parse_program
from ysh.syntax.nodes import FunctionDef, Let, Program, walk

TYPE_NAMES = ("Int", "Float", "Bool", "String", "Unit", "Command", "Any", "Fn")


@dataclass
class SymbolDef:
    name: str
    kind: str  # "var" | "function"
    line: int  # 0-based
    col: int  # 0-based
    detail: str = ""


@dataclass
class DocumentIndex:
    symbols: Dict[str, SymbolDef] = field(default_factory=dict)
    diagnostics: List[Diagnostic] = field(default_factory=list)
    program: Optional[Program] = None


def _symbol(name: str, kind: str, node) -> SymbolDef:
    start = node.span.start
    return SymbolDef(name, kind, start.line - 1, start.column - 1, str(node.static_type or ""))


def build_index(text: str) -> DocumentIndex:
    idx = DocumentIndex()
    sink = DiagnosticSink()
    try:
        program = parse_program(text)
    except LexError as exc:
        sink.error(DiagnosticCode.LEX_ERROR, exc.detail, exc.span)
        idx.diagnostics = list(sink)
        return idx
    except ParseError as exc:
        sink.error(DiagnosticCode.PARSE_ERROR, exc.detail, exc.span)
        idx.diagnostics = list(sink)
        return idx

    idx.program = program
    try:
        bind(program, TypeScope(), sink)
    except BindError:
        # recorded in the sink; the partially typed tree still yields symbols
        pass
    idx.diagnostics = list(sink)

    for node in walk(program):
        if isinstance(node, FunctionDef) and node.name is not None and node.span is not None:
            idx.symbols.setdefault(node.name, _symbol(node.name, "function", node))
        elif isinstance(node, Let) and node.span is not None:
            idx.symbols.setdefault(node.name, _symbol(node.name, "var", node))
    return idx


def completion_words(idx: DocumentIndex) -> List[str]:
    return sorted(KEYWORDS) + list(TYPE_NAMES) + [
        f"${name}" if sdef.kind == "var" else name for name, sdef in idx.symbols.items()
    ]
