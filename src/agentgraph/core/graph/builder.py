"""Graph - mutable registry of nodes and transitions.

A Graph is built up incrementally and then compiled into an immutable
CompiledGraph, which is what callers execute.

    graph = Graph()
    graph.add_node("generate", generate)
    graph.add_node("improve", improve)
    graph.add_edge(START, "generate")
    graph.add_conditional_edges("generate", needs_work, {"yes": "improve", "no": END})
    graph.add_edge("improve", "generate")
    compiled = graph.compile()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Generic, TypeVar

from agentgraph.core.graph.constants import END, START, NodeId
from agentgraph.core.graph.edges import ConditionalEdge, Edge, Predicate, Transform
from agentgraph.core.graph.errors import NodeNotFoundError
from agentgraph.core.graph.mermaid import draw_mermaid
from agentgraph.core.validation import validate_node_name

if TYPE_CHECKING:
    from agentgraph.core.graph.compiled import CompiledGraph

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Graph(Generic[T]):
    """Mutable builder for a state graph.

    Nodes are async transforms over a single caller-defined state type.
    Transitions are either unconditional edges or conditional edges whose
    predicate picks a target by label. Builder calls never validate
    references; that happens once, in compile().

    All builder methods return self for chaining.

    Example:
        >>> async def increment(n: int) -> int:
        ...     return n + 1
        >>>
        >>> compiled = (
        ...     Graph[int]()
        ...     .add_node("a", increment)
        ...     .add_node("b", increment)
        ...     .set_entry_point("a")
        ...     .add_edge("a", "b")
        ...     .set_finish_point("b")
        ...     .compile()
        ... )
        >>> await compiled.execute(0)
        2
    """

    def __init__(self) -> None:
        self._nodes: dict[str, Transform[T]] = {}
        self._edges: list[Edge] = []
        self._conditional_edges: list[ConditionalEdge[T]] = []
        self._entry_point: str | None = None
        self._finish_point: str | None = None

    @property
    def nodes(self) -> Mapping[str, Transform[T]]:
        """Registered nodes (read-only view)."""
        return MappingProxyType(self._nodes)

    @property
    def edges(self) -> tuple[Edge, ...]:
        return tuple(self._edges)

    @property
    def conditional_edges(self) -> tuple[ConditionalEdge[T], ...]:
        return tuple(self._conditional_edges)

    @property
    def entry_point(self) -> str | None:
        return self._entry_point

    @property
    def finish_point(self) -> str | None:
        return self._finish_point

    def list_nodes(self) -> list[str]:
        """List registered node names in registration order."""
        return list(self._nodes.keys())

    def add_node(self, name: str, transform: Transform[T]) -> Graph[T]:
        """Register a node.

        Registering an existing name replaces the previous transform.

        Args:
            name: Unique node name. "__start__" and "__end__" are reserved.
            transform: Async callable taking the state and returning the new state.

        Returns:
            Self for chaining.

        Raises:
            ValueError: If the name is empty or reserved.
            TypeError: If transform is not callable.
        """
        validate_node_name(name)
        if not callable(transform):
            raise TypeError(f"Transform for node '{name}' must be callable")

        if name in self._nodes:
            logger.debug("node_replaced: name=%s", name)
        self._nodes[name] = transform
        return self

    def node(self, name: str | None = None) -> Callable[[Transform[T]], Transform[T]]:
        """Decorator form of add_node().

        Args:
            name: Node name. Defaults to the function's __name__.

        Example:
            >>> @graph.node()
            ... async def call_model(state: AgentState) -> AgentState:
            ...     ...
        """

        def decorator(fn: Transform[T]) -> Transform[T]:
            self.add_node(name or fn.__name__, fn)
            return fn

        return decorator

    def add_edge(self, source: NodeId, target: NodeId) -> Graph[T]:
        """Add an unconditional transition.

        Args:
            source: Node name or START.
            target: Node name or END.

        Returns:
            Self for chaining.
        """
        self._edges.append(Edge(source=source, target=target))
        return self

    def add_conditional_edges(
        self,
        source: str,
        condition: Predicate[T],
        mapping: Mapping[str, NodeId],
    ) -> Graph[T]:
        """Add a predicate-gated transition out of `source`.

        After `source` runs, `condition` is called with the new state
        (it must not mutate it) and its label is looked up in `mapping`.
        Conditional edges are consulted before unconditional ones, in the
        order they were added.

        Args:
            source: Node the condition follows.
            condition: Sync or async callable returning a label.
            mapping: Label to target node name (or END).

        Returns:
            Self for chaining.
        """
        if not callable(condition):
            raise TypeError(f"Condition for node '{source}' must be callable")

        self._conditional_edges.append(
            ConditionalEdge(source=source, condition=condition, mapping=mapping)
        )
        return self

    def set_entry_point(self, name: str) -> Graph[T]:
        """Mark `name` as the entry point and add START -> name."""
        self._entry_point = name
        return self.add_edge(START, name)

    def set_finish_point(self, name: str) -> Graph[T]:
        """Mark `name` as the finish point and add name -> END."""
        self._finish_point = name
        return self.add_edge(name, END)

    def chain(self, *names: str) -> Graph[T]:
        """Add unconditional edges along a sequence of nodes.

        Example:
            >>> graph.chain("fetch", "process", "output")
            # fetch -> process -> output
        """
        for previous, current in zip(names, names[1:]):
            self.add_edge(previous, current)
        return self

    def _is_registered(self, value: NodeId) -> bool:
        return isinstance(value, str) and value in self._nodes

    def validate(self) -> None:
        """Check that every reference resolves to a registered node.

        Checks, in declaration order:
        - Edge sources are START or a registered node
        - Edge targets are END or a registered node
        - Conditional edge sources are registered nodes
        - Conditional edge mapping targets are END or registered nodes
        - Entry and finish points, if set, are registered nodes

        Raises:
            NodeNotFoundError: Naming the first dangling reference found.
        """
        for edge in self._edges:
            if edge.source is not START and not self._is_registered(edge.source):
                raise NodeNotFoundError(edge.source)
            if edge.target is not END and not self._is_registered(edge.target):
                raise NodeNotFoundError(edge.target)

        for conditional in self._conditional_edges:
            if not self._is_registered(conditional.source):
                raise NodeNotFoundError(conditional.source)
            for target in conditional.mapping.values():
                if target is not END and not self._is_registered(target):
                    raise NodeNotFoundError(target)

        for marker in (self._entry_point, self._finish_point):
            if marker is not None and not self._is_registered(marker):
                raise NodeNotFoundError(marker)

    def compile(
        self,
        *,
        max_steps: int | None = None,
        strict_conditions: bool = False,
    ) -> CompiledGraph[T]:
        """Validate the graph and freeze it for execution.

        Later changes to this Graph do not affect the returned object.

        Args:
            max_steps: Default step limit for every run (None = unbounded).
            strict_conditions: Raise UnmappedConditionError when a run would
                end only because a predicate returned an unmapped label.

        Returns:
            An immutable, repeatedly executable CompiledGraph.

        Raises:
            NodeNotFoundError: If any reference is dangling.
            ValueError: If max_steps is not positive.
        """
        from agentgraph.core.graph.compiled import CompiledGraph

        self.validate()

        logger.debug(
            "graph_compiled: nodes=%d, edges=%d, conditional_edges=%d",
            len(self._nodes),
            len(self._edges),
            len(self._conditional_edges),
        )

        return CompiledGraph(
            nodes=dict(self._nodes),
            edges=tuple(self._edges),
            conditional_edges=tuple(self._conditional_edges),
            entry_point=self._entry_point,
            finish_point=self._finish_point,
            max_steps=max_steps,
            strict_conditions=strict_conditions,
        )

    def draw_mermaid(self) -> str:
        """Render the graph as a Mermaid flowchart."""
        return draw_mermaid(self._nodes, self._edges, self._conditional_edges)

    def __repr__(self) -> str:
        return f"Graph(nodes={self.list_nodes()}, edges={len(self._edges) + len(self._conditional_edges)})"
