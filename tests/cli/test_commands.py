"""Tests for the agentgraph CLI."""

from __future__ import annotations

import json
import sys
import textwrap

import pytest
from click.testing import CliRunner

from agentgraph.core.graph import CompiledGraph, Graph
from agentgraph.frontends.cli import cli
from agentgraph.frontends.cli.graph import draw, run
from agentgraph.frontends.cli.loader import GraphLoadError, load_compiled, load_graph

GRAPH_SOURCE = textwrap.dedent(
    """
    from agentgraph import END, Graph


    async def generate(state):
        return {**state, "quality": state.get("quality", 0) + 3}


    async def polish(state):
        return {**state, "polished": True}


    graph = Graph()
    graph.add_node("generate", generate)
    graph.add_node("polish", polish)
    graph.set_entry_point("generate")
    graph.add_conditional_edges(
        "generate",
        lambda s: "again" if s["quality"] < 9 else "done",
        {"again": "generate", "done": "polish"},
    )
    graph.set_finish_point("polish")

    compiled = graph.compile()


    def build():
        return graph


    broken = Graph().add_edge("a", "ghost")


    def needs_config(config):
        return graph


    not_a_graph = 42
    """
)


@pytest.fixture
def graph_file(tmp_path):
    path = tmp_path / "pipeline.py"
    path.write_text(GRAPH_SOURCE)
    return path


@pytest.fixture
def runner():
    return CliRunner()


class TestCommandDefinitions:
    """Tests for command registration and options."""

    def test_commands_registered(self):
        assert set(cli.commands) >= {"draw", "run"}

    def test_run_options(self):
        param_names = [p.name for p in run.params]
        for name in ("target", "input_json", "start", "max_steps", "show_trace", "json_output"):
            assert name in param_names

    def test_draw_options(self):
        param_names = [p.name for p in draw.params]
        assert "target" in param_names
        assert "plain" in param_names

    def test_group_log_level_option(self):
        assert "log_level" in [p.name for p in cli.params]


class TestLoader:
    """Tests for target resolution."""

    def test_load_graph_from_file(self, graph_file):
        graph = load_graph(f"{graph_file}:graph")
        assert isinstance(graph, Graph)

    def test_load_compiled_attribute(self, graph_file):
        assert isinstance(load_graph(f"{graph_file}:compiled"), CompiledGraph)

    def test_load_factory(self, graph_file):
        assert isinstance(load_graph(f"{graph_file}:build"), Graph)

    def test_default_attribute(self, graph_file):
        assert isinstance(load_graph(str(graph_file)), Graph)

    def test_load_from_module(self, graph_file, monkeypatch):
        monkeypatch.syspath_prepend(str(graph_file.parent))

        compiled = load_compiled("pipeline:graph")

        assert isinstance(compiled, CompiledGraph)
        assert compiled.max_steps is None

    def test_missing_attribute(self, graph_file):
        with pytest.raises(ValueError, match="No 'nothing' found"):
            load_graph(f"{graph_file}:nothing")

    def test_not_a_graph(self, graph_file):
        with pytest.raises(ValueError, match="not a Graph"):
            load_graph(f"{graph_file}:not_a_graph")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ValueError, match="File not found"):
            load_graph(f"{tmp_path / 'missing.py'}:graph")

    def test_failing_factory(self, graph_file):
        with pytest.raises(GraphLoadError, match="'needs_config' in .* raised") as exc_info:
            load_graph(f"{graph_file}:needs_config")

        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_failing_module_not_cached(self, tmp_path):
        path = tmp_path / "explodes.py"
        path.write_text("raise RuntimeError('missing API key')\n")

        with pytest.raises(GraphLoadError, match="missing API key"):
            load_graph(f"{path}:graph")

        assert "_agentgraph_target_explodes" not in sys.modules

    def test_unknown_module(self):
        with pytest.raises(GraphLoadError, match="Failed to import"):
            load_graph("agentgraph_no_such_module:graph")


class TestDrawCommand:
    """Tests for `agentgraph draw`."""

    def test_draw_plain(self, runner, graph_file):
        result = runner.invoke(cli, ["draw", f"{graph_file}:graph", "--plain"])

        assert result.exit_code == 0
        assert result.output.startswith("flowchart TD\n")
        assert "    generate -->|done| polish" in result.output
        assert "    polish --> __end__" in result.output

    def test_draw_rich(self, runner, graph_file):
        result = runner.invoke(cli, ["draw", f"{graph_file}:compiled"])

        assert result.exit_code == 0
        assert "generate[generate]" in result.output

    def test_draw_failing_factory(self, runner, graph_file):
        result = runner.invoke(cli, ["draw", f"{graph_file}:needs_config"])

        assert result.exit_code == 1
        assert "Error: 'needs_config'" in result.output
        assert "Traceback" not in result.output

    def test_draw_bad_target(self, runner, graph_file):
        result = runner.invoke(cli, ["draw", f"{graph_file}:nothing"])

        assert result.exit_code == 1
        assert "Error: No 'nothing' found" in result.output


class TestRunCommand:
    """Tests for `agentgraph run`."""

    def test_run_json(self, runner, graph_file):
        result = runner.invoke(
            cli, ["run", f"{graph_file}:graph", "--input", '{"quality": 0}', "--json"]
        )

        assert result.exit_code == 0
        assert json.loads(result.output) == {"quality": 9, "polished": True}

    def test_run_pretty(self, runner, graph_file):
        result = runner.invoke(cli, ["run", f"{graph_file}:graph", "--input", "{}"])

        assert result.exit_code == 0
        assert "polished" in result.output

    def test_run_with_start(self, runner, graph_file):
        result = runner.invoke(
            cli,
            ["run", f"{graph_file}:graph", "-i", '{"quality": 1}', "--start", "polish", "--json"],
        )

        assert result.exit_code == 0
        assert json.loads(result.output) == {"quality": 1, "polished": True}

    def test_run_max_steps_exceeded(self, runner, graph_file):
        result = runner.invoke(
            cli, ["run", f"{graph_file}:graph", "--input", '{"quality": 0}', "--max-steps", "2"]
        )

        assert result.exit_code == 1
        assert "Error: Maximum of 2 steps exceeded" in result.output

    def test_run_failing_factory(self, runner, graph_file):
        result = runner.invoke(cli, ["run", f"{graph_file}:needs_config", "--input", "{}"])

        assert result.exit_code == 1
        assert "raised:" in result.output
        assert not isinstance(result.exception, TypeError)

    def test_run_invalid_json(self, runner, graph_file):
        result = runner.invoke(cli, ["run", f"{graph_file}:graph", "--input", "{oops"])

        assert result.exit_code == 1
        assert "Error: Invalid --input JSON" in result.output

    def test_run_dangling_graph(self, runner, graph_file):
        result = runner.invoke(cli, ["run", f"{graph_file}:broken", "--input", "{}"])

        assert result.exit_code == 1
        assert "Error: Node not found: a" in result.output

    def test_run_unknown_start(self, runner, graph_file):
        result = runner.invoke(
            cli, ["run", f"{graph_file}:graph", "--input", "{}", "--start", "ghost"]
        )

        assert result.exit_code == 1
        assert "Error: Node not found: ghost" in result.output

    def test_run_node_error(self, runner, graph_file):
        """A transform failure is reported, not raised."""
        result = runner.invoke(cli, ["run", f"{graph_file}:graph", "--input", "[]"])

        assert result.exit_code == 1
        assert "Error: Execution error in node 'generate'" in result.output

    def test_run_with_trace(self, runner, graph_file):
        result = runner.invoke(
            cli, ["run", f"{graph_file}:graph", "--input", '{"quality": 6}', "--trace"]
        )

        assert result.exit_code == 0
        assert "1. generate -> polish" in result.output
