# callgraph/graph/__init__.py
from .exceptions import InvalidArgumentError, GraphSealedError
from .graph_structures import QualifiedName, Position, Range
from .call_graph_base import (
    CallGraphBase,
    CallGraphEdgeBase,
    CallGraphEdgeLike,
    CallGraphNodeBase,
    CallGraphNodeLike,
)
from .call_graph import CallGraph, CallGraphEdge, CallGraphNode

__all__ = [
    "InvalidArgumentError",
    "GraphSealedError",
    "QualifiedName",
    "Position",
    "Range",
    "CallGraphBase",
    "CallGraphEdgeBase",
    "CallGraphEdgeLike",
    "CallGraphNodeBase",
    "CallGraphNodeLike",
    "CallGraph",
    "CallGraphEdge",
    "CallGraphNode",
]
