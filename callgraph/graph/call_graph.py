# callgraph/graph/call_graph.py
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Optional, Union

from .call_graph_base import CallGraphBase, CallGraphEdgeBase, CallGraphNodeBase
from .exceptions import InvalidArgumentError
from .graph_structures import QualifiedName, Range

NameLike = Union[QualifiedName, str]


def _as_qualified_name(value: Optional[NameLike], argument_name: str) -> QualifiedName:
    if value is None:
        raise InvalidArgumentError(argument_name)
    if isinstance(value, QualifiedName):
        return value
    return QualifiedName.from_dotted(value)


@dataclass(frozen=True, eq=False)
class CallGraphNode(CallGraphNodeBase):
    """Call graph node for a Python callable. ``kind`` and ``file_path`` are informational only."""

    kind: str = "function"  # "function", "method", "class" or "external"
    file_path: Optional[str] = None


@dataclass(frozen=True, eq=False)
class CallGraphEdge(CallGraphEdgeBase):
    """Call graph edge for one call site. ``call_text`` is the call expression's source, kept for reports."""

    call_text: Optional[str] = None


class CallGraph(CallGraphBase[CallGraphNode, CallGraphEdge]):
    """Call graph of Python callables, populated by source walkers through ``add_call`` / ``add_callable``."""

    def __init__(self) -> None:
        super().__init__()
        # First node instance seen per name; that instance is the key held by the base graph
        self._nodes_by_name: Dict[QualifiedName, CallGraphNode] = {}

    def add_call(
        self,
        caller: NameLike,
        callee: NameLike,
        reference_range: Range,
        call_text: Optional[str] = None,
    ) -> CallGraphEdge:
        """
        Records one call site from ``caller`` to ``callee``.

        Callables not seen before are registered. A callee first seen here is
        registered with kind "external"; node payload is fixed at first registration,
        so builders register definitions before recording calls.

        Returns:
            The edge that was appended.
        """
        caller_name = _as_qualified_name(caller, "caller")
        callee_name = _as_qualified_name(callee, "callee")
        if reference_range is None:
            raise InvalidArgumentError("reference_range")

        edge = CallGraphEdge(caller_name, callee_name, reference_range, call_text=call_text)
        from_node = self._nodes_by_name.get(caller_name) or CallGraphNode(caller_name)
        to_node = self._nodes_by_name.get(callee_name) or CallGraphNode(callee_name, kind="external")
        self._add_dependency(from_node, to_node, edge)
        self._nodes_by_name.setdefault(caller_name, from_node)
        self._nodes_by_name.setdefault(callee_name, to_node)
        return edge

    def add_callable(
        self,
        name: NameLike,
        kind: str = "function",
        file_path: Optional[str] = None,
    ) -> CallGraphNode:
        """Registers a defined callable, returning the node the graph holds for it."""
        node = CallGraphNode(_as_qualified_name(name, "name"), kind=kind, file_path=file_path)
        self._add_node(node)
        return self._nodes_by_name.setdefault(node.callable_name, node)

    def get_node(self, name: NameLike) -> Optional[CallGraphNode]:
        """Returns the registered node for ``name`` (with its payload), or None."""
        return self._nodes_by_name.get(_as_qualified_name(name, "name"))

    def callers_of(self, node: CallGraphNode) -> FrozenSet[CallGraphNode]:
        """Distinct nodes with at least one edge into ``node``. Scans the whole graph."""
        if node is None:
            raise InvalidArgumentError("node")
        return frozenset(source for source, deps in self._dependencies.items() if node in deps)

    def summary(self) -> Dict[str, Any]:
        return {
            "nodes": self.count,
            "edges": self.edge_count,
            "sealed": self.is_sealed,
        }
