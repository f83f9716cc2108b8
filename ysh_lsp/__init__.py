"""ysh Language Server and REPL integration package.

This package provides:
- A pygls-based Language Server for ysh scripts.
- An indexer that lexes, parses and binds a document (without evaluating it)
  to collect diagnostics and top-level symbols.
- A simple TCP REPL server that evaluates code in one persistent Session.
"""

__all__ = [
    "server",
    "indexer",
    "repl_server",
]
