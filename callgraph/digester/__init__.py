# callgraph/digester/__init__.py
from .call_graph_visitor import CallGraphVisitor, build_call_graph_for_source, walk_module
from .repository_digester import ParsedFileResult, RepositoryDigester

__all__ = [
    "CallGraphVisitor",
    "build_call_graph_for_source",
    "walk_module",
    "ParsedFileResult",
    "RepositoryDigester",
]
