"""Tests for Graph.validate() and compile()."""

import pytest

from agentgraph.core.graph import END, START, Graph, NodeNotFound, NodeNotFoundError


async def noop(state):
    return state


def make_graph(*names):
    graph = Graph()
    for name in names:
        graph.add_node(name, noop)
    return graph


class TestValidate:
    """Tests for reference validation."""

    def test_valid_graph_compiles(self):
        """Sentinels and registered names are all valid endpoints."""
        graph = make_graph("a", "b", "c")
        graph.add_edge(START, "a")
        graph.add_conditional_edges("a", lambda s: "x", {"x": "b", "y": END})
        graph.add_edge("b", "c")
        graph.add_edge("c", END)

        compiled = graph.compile()

        assert compiled.list_nodes() == ["a", "b", "c"]

    def test_dangling_edge_target(self):
        graph = make_graph("a").add_edge("a", "ghost")

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name == "ghost"
        assert str(exc_info.value) == "Node not found: ghost"

    def test_dangling_edge_source(self):
        graph = make_graph("a").add_edge("ghost", "a")

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name == "ghost"

    def test_dangling_conditional_source(self):
        graph = make_graph("a").add_conditional_edges("ghost", lambda s: "x", {"x": "a"})

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name == "ghost"

    def test_dangling_mapping_target(self):
        graph = make_graph("a").add_conditional_edges("a", lambda s: "x", {"x": "ghost"})

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name == "ghost"

    def test_dangling_entry_point(self):
        graph = make_graph("a").set_entry_point("ghost")

        with pytest.raises(NodeNotFoundError, match="ghost"):
            graph.compile()

    def test_first_violation_reported(self):
        """Edges are checked before conditional edges, in declaration order."""
        graph = make_graph("a")
        graph.add_conditional_edges("a", lambda s: "x", {"x": "second"})
        graph.add_edge("a", "first")

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name == "first"

    def test_start_as_target_is_rejected(self):
        graph = make_graph("a").add_edge("a", START)

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name is START

    def test_end_as_source_is_rejected(self):
        graph = make_graph("a").add_edge(END, "a")

        with pytest.raises(NodeNotFoundError) as exc_info:
            graph.compile()

        assert exc_info.value.name is END

    def test_alias(self):
        assert NodeNotFound is NodeNotFoundError
