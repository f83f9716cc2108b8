from __future__ import annotations

"""
A minimal pygls-based Language Server for ysh.

Features:
- Text synchronization and document store
- Diagnostics: lex, parse and bind diagnostics from the indexer
- Hover: type of functions and `let` bindings defined in the document
- Completion: keywords, type names, document symbols
- Document Symbols: from indexer

Note: We never evaluate the buffer, so no external command runs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from pygls.server import LanguageServer
from lsprotocol.types import (
    CompletionItem,
    CompletionItemKind,
    CompletionList,
    CompletionParams,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidCloseTextDocumentParams,
    DidOpenTextDocumentParams,
    DocumentSymbol,
    DocumentSymbolParams,
    Hover,
    HoverParams,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
    SymbolKind,
)

from ysh import __version__
from ysh import diagnostics as ysh_diagnostics
from ysh.reader.lexer import KEYWORDS
from ysh_lsp.indexer import TYPE_NAMES, DocumentIndex, build_index

logger = logging.getLogger(__name__)

SOURCE = "ysh-ls"


@dataclass
class DocumentState:
    text: str
    index: DocumentIndex


class YshLanguageServer(LanguageServer):
    CMD_NAME = "ysh-ls"

    def __init__(self):
        super().__init__(self.CMD_NAME, __version__)
        self.documents: Dict[str, DocumentState] = {}


ls = YshLanguageServer()


# --- Text sync ---
@ls.feature("textDocument/didOpen")
def did_open(params: DidOpenTextDocumentParams):
    uri = params.text_document.uri
    _update(uri, params.text_document.text or "")


@ls.feature("textDocument/didChange")
def did_change(params: DidChangeTextDocumentParams):
    uri = params.text_document.uri
    if params.content_changes:
        text = params.content_changes[-1].text
    else:
        text = ls.documents[uri].text if uri in ls.documents else ""
    _update(uri, text)


@ls.feature("textDocument/didClose")
def did_close(params: DidCloseTextDocumentParams):
    uri = params.text_document.uri
    if uri in ls.documents:
        del ls.documents[uri]
    ls.publish_diagnostics(uri, [])


def _update(uri: str, text: str) -> None:
    idx = build_index(text)
    ls.documents[uri] = DocumentState(text=text, index=idx)
    logger.debug("indexed %s: %d symbol(s), %d diagnostic(s)", uri, len(idx.symbols), len(idx.diagnostics))
    ls.publish_diagnostics(uri, [to_lsp_diagnostic(d) for d in idx.diagnostics])


# --- Diagnostics ---
def to_lsp_diagnostic(diagnostic: ysh_diagnostics.Diagnostic) -> Diagnostic:
    if diagnostic.span is not None:
        start, end = diagnostic.span.start, diagnostic.span.end
        rng = Range(
            start=Position(line=start.line - 1, character=start.column - 1),
            end=Position(line=end.line - 1, character=max(end.column - 1, start.column)),
        )
    else:
        rng = Range(start=Position(line=0, character=0), end=Position(line=0, character=1))
    severity = (
        DiagnosticSeverity.Error
        if diagnostic.severity is ysh_diagnostics.Severity.ERROR
        else DiagnosticSeverity.Warning
    )
    return Diagnostic(
        range=rng,
        message=diagnostic.message,
        severity=severity,
        code=diagnostic.code.value,
        source=SOURCE,
    )


# --- Hover ---
@ls.feature("textDocument/hover")
def on_hover(params: HoverParams) -> Optional[Hover]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None

    word = _extract_word_at(state.text, params.position)
    if not word:
        return None
    sdef = state.index.symbols.get(word.lstrip("$"))
    if sdef is None:
        return None
    label = f"${sdef.name}" if sdef.kind == "var" else sdef.name
    contents = f"{label}: {sdef.detail} ({sdef.kind}, defined at {sdef.line + 1}:{sdef.col + 1})"
    return Hover(contents=MarkupContent(kind=MarkupKind.PlainText, value=contents))


# --- Completion ---
@ls.feature("textDocument/completion")
def on_completion(params: CompletionParams) -> CompletionList:
    items: List[CompletionItem] = [
        CompletionItem(label=k, kind=CompletionItemKind.Keyword) for k in sorted(KEYWORDS)
    ]
    items += [CompletionItem(label=t, kind=CompletionItemKind.TypeParameter) for t in TYPE_NAMES]
    state = ls.documents.get(params.text_document.uri)
    if state:
        for name, sdef in state.index.symbols.items():
            if sdef.kind == "function":
                items.append(CompletionItem(label=name, kind=CompletionItemKind.Function, detail=sdef.detail))
            else:
                items.append(CompletionItem(label=f"${name}", kind=CompletionItemKind.Variable, detail=sdef.detail))
    return CompletionList(is_incomplete=False, items=items)


# --- Document Symbols ---
@ls.feature("textDocument/documentSymbol")
def on_document_symbols(params: DocumentSymbolParams) -> Optional[List[DocumentSymbol]]:
    state = ls.documents.get(params.text_document.uri)
    if not state:
        return None
    return [
        DocumentSymbol(
            name=name,
            detail=sdef.detail,
            kind=SymbolKind.Function if sdef.kind == "function" else SymbolKind.Variable,
            range=_symbol_range(sdef.line, sdef.col, len(name)),
            selection_range=_symbol_range(sdef.line, sdef.col, len(name)),
        )
        for name, sdef in state.index.symbols.items()
    ]


# --- Helpers ---
def _symbol_range(line: int, col: int, length: int) -> Range:
    return Range(start=Position(line=line, character=col), end=Position(line=line, character=col + length))


def _extract_word_at(text: str, pos: Position) -> Optional[str]:
    lines = text.splitlines(True)
    if pos.line >= len(lines):
        return None
    line = lines[pos.line]
    stops = " \t()\n\r{};,:\"'"
    start = pos.character
    while start > 0 and line[start - 1] not in stops:
        start -= 1
    end = pos.character
    while end < len(line) and line[end] not in stops:
        end += 1
    word = line[start:end]
    return word or None


def main() -> None:
    # Run the language server over stdio
    ls.start_io()


if __name__ == "__main__":
    main()
