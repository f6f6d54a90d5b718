"""Append-only call graph of Python callables, keyed by qualified name, with one edge per call site."""

__all__ = [
    "graph",
    "digester",
    "utils",
]
