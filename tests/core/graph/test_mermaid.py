"""Tests for Mermaid export."""

from agentgraph.core.graph import END, START, Graph


async def noop(state):
    return state


class TestDrawMermaid:
    """Tests for draw_mermaid()."""

    def test_full_output(self):
        graph = Graph()
        graph.add_node("generate", noop)
        graph.add_node("improve", noop)
        graph.add_edge(START, "generate")
        graph.add_conditional_edges(
            "generate",
            lambda s: "done",
            {"more": "improve", "done": END},
        )
        graph.add_edge("improve", "generate")

        expected = (
            "flowchart TD\n"
            "    __start__([START])\n"
            "    __end__([END])\n"
            "    generate[generate]\n"
            "    improve[improve]\n"
            "    __start__ --> generate\n"
            "    improve --> generate\n"
            "    generate -->|more| improve\n"
            "    generate -->|done| __end__\n"
            "    classDef startEnd fill:#e1f5fe,stroke:#01579b,stroke-width:2px\n"
            "    class __start__,__end__ startEnd\n"
        )
        assert graph.draw_mermaid() == expected

    def test_compiled_matches_builder(self):
        graph = Graph().add_node("a", noop).set_entry_point("a").set_finish_point("a")

        assert graph.compile().draw_mermaid() == graph.draw_mermaid()

    def test_empty_graph(self):
        lines = Graph().draw_mermaid().splitlines()

        assert lines[0] == "flowchart TD"
        assert lines[1:3] == ["    __start__([START])", "    __end__([END])"]
        assert len(lines) == 5

    def test_draw_does_not_validate(self):
        text = Graph().add_edge("a", "ghost").draw_mermaid()
        assert "    a --> ghost" in text
