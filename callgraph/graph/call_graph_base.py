# callgraph/graph/call_graph_base.py
from dataclasses import dataclass
from typing import Dict, FrozenSet, Generic, Iterator, List, Protocol, Tuple, TypeVar

from .exceptions import GraphSealedError, InvalidArgumentError
from .graph_structures import QualifiedName, Range


class CallGraphNodeLike(Protocol):
    """Anything exposing a stable, value-comparable identity key can be a call graph node."""

    @property
    def callable_name(self) -> QualifiedName: ...

    def __hash__(self) -> int: ...

    def __eq__(self, other: object) -> bool: ...


class CallGraphEdgeLike(Protocol):
    """Anything exposing source/target keys and a comparable range, with value equality, can be an edge."""

    @property
    def from_callable_name(self) -> QualifiedName: ...

    @property
    def to_callable_name(self) -> QualifiedName: ...

    @property
    def reference_range(self) -> Range: ...

    def __eq__(self, other: object) -> bool: ...


TNode = TypeVar("TNode", bound=CallGraphNodeLike)
TEdge = TypeVar("TEdge", bound=CallGraphEdgeLike)


def _require_qualified_name(value: object, argument_name: str) -> None:
    # A dotted str would never compare equal to the QualifiedName of the same callable
    if not isinstance(value, QualifiedName):
        raise InvalidArgumentError(
            argument_name, f"must be a QualifiedName, got {type(value).__name__}"
        )


@dataclass(frozen=True, eq=False)
class CallGraphNodeBase:
    """
    Node representing one callable.

    Identity is the qualified name only: fields added by subclasses are payload and
    never affect equality or hashing, so two nodes built independently for the same
    callable always collide as graph keys.
    """

    callable_name: QualifiedName

    def __post_init__(self) -> None:
        if self.callable_name is None:
            raise InvalidArgumentError("callable_name")
        _require_qualified_name(self.callable_name, "callable_name")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallGraphNodeBase):
            return NotImplemented
        return self.callable_name == other.callable_name

    def __hash__(self) -> int:
        return hash(self.callable_name)


@dataclass(frozen=True, eq=False)
class CallGraphEdgeBase:
    """
    Edge representing a single reference from one callable to another.

    Equality is structural over (from_callable_name, to_callable_name, reference_range).
    Two references between the same pair of callables are told apart by their range.
    """

    from_callable_name: QualifiedName
    to_callable_name: QualifiedName
    reference_range: Range

    def __post_init__(self) -> None:
        if self.from_callable_name is None:
            raise InvalidArgumentError("from_callable_name")
        if self.to_callable_name is None:
            raise InvalidArgumentError("to_callable_name")
        if self.reference_range is None:
            raise InvalidArgumentError("reference_range")
        _require_qualified_name(self.from_callable_name, "from_callable_name")
        _require_qualified_name(self.to_callable_name, "to_callable_name")

    def _identity(self) -> Tuple[QualifiedName, QualifiedName, Range]:
        return (self.from_callable_name, self.to_callable_name, self.reference_range)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CallGraphEdgeBase):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())


class CallGraphBase(Generic[TNode, TEdge]):
    """
    Append-only directed multigraph of callables.

    Adjacency is kept as source node -> target node -> edges (in insertion order).
    Every node that is the target of an edge is also a top-level key, so ``nodes``
    is complete whatever role a node plays.

    The graph is written by a single builder through ``_add_dependency`` / ``_add_node``
    and then read. ``seal()`` marks the end of the build: afterwards the mutation
    primitives raise GraphSealedError and the graph can be shared between readers
    without locking.
    """

    def __init__(self) -> None:
        self._dependencies: Dict[TNode, Dict[TNode, List[TEdge]]] = {}
        self._sealed: bool = False

    @property
    def count(self) -> int:
        """Number of distinct nodes in the graph."""
        return len(self._dependencies)

    def __len__(self) -> int:
        return self.count

    def __contains__(self, node: object) -> bool:
        return node in self._dependencies

    @property
    def nodes(self) -> FrozenSet[TNode]:
        return frozenset(self._dependencies.keys())

    @property
    def edge_count(self) -> int:
        return sum(len(edges) for deps in self._dependencies.values() for edges in deps.values())

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    def seal(self) -> None:
        """Ends the build phase. Irreversible; sealing an already sealed graph does nothing."""
        self._sealed = True

    def get_direct_dependencies(self, node: TNode) -> Dict[TNode, Tuple[TEdge, ...]]:
        """
        Returns the children of ``node``.

        Each key of the returned dict is a node reachable in one hop from ``node``; its
        value holds every edge recorded from ``node`` to that child, in insertion order.
        The result is a snapshot, so modifying it does not touch the graph.

        Args:
            node: The node whose dependencies are requested.

        Returns:
            An empty dict if the node is unknown or has no outgoing edges.

        Raises:
            InvalidArgumentError: if ``node`` is None.
        """
        if node is None:
            raise InvalidArgumentError("node")
        deps = self._dependencies.get(node)
        if not deps:
            return {}
        return {child: tuple(edges) for child, edges in deps.items()}

    def edges(self) -> Iterator[TEdge]:
        """Yields every recorded edge, grouped by source node then target node."""
        for deps in self._dependencies.values():
            for edges in deps.values():
                yield from edges

    def _add_dependency(self, from_node: TNode, to_node: TNode, edge: TEdge) -> None:
        """
        Records ``edge`` from ``from_node`` to ``to_node``.

        Both nodes are registered if needed. The edge is always appended, never merged
        with or substituted for an edge already recorded for the pair.

        Raises:
            InvalidArgumentError: if any argument is None.
            GraphSealedError: if the graph has been sealed.
        """
        if from_node is None:
            raise InvalidArgumentError("from_node")
        if to_node is None:
            raise InvalidArgumentError("to_node")
        if edge is None:
            raise InvalidArgumentError("edge")
        self._check_not_sealed()

        self._dependencies.setdefault(from_node, {}).setdefault(to_node, []).append(edge)
        # The target must be a key too, even if it never gets outgoing edges
        self._add_node(to_node)

    def _add_node(self, node: TNode) -> None:
        """
        Registers ``node`` with no dependencies unless it is already in the graph.

        Raises:
            InvalidArgumentError: if ``node`` is None.
            GraphSealedError: if the graph has been sealed.
        """
        if node is None:
            raise InvalidArgumentError("node")
        self._check_not_sealed()

        if node not in self._dependencies:
            self._dependencies[node] = {}

    def _check_not_sealed(self) -> None:
        if self._sealed:
            raise GraphSealedError(f"{type(self).__name__} is sealed; no further nodes or edges can be added.")
