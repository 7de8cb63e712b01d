"""Load graphs for CLI commands.

A target is "<module or file.py>:<attribute>". The attribute may be a
Graph, a CompiledGraph, or a zero-argument callable returning either.

    agentgraph draw my_project.agents:build_graph
    agentgraph run examples/graph_example.py:graph --input '{}'
"""

from __future__ import annotations

import importlib
import importlib.util
import sys
from pathlib import Path
from typing import Any

from agentgraph.core.graph import CompiledGraph, Graph


class GraphLoadError(ValueError):
    """A target could not be imported or did not produce a graph."""

    pass


def _load_namespace(location: str) -> dict[str, Any]:
    if location.endswith(".py") or "/" in location:
        path = Path(location)
        if not path.is_file():
            raise GraphLoadError(f"File not found: {location}")
        # dataclasses look the defining module up in sys.modules
        module_name = f"_agentgraph_target_{path.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise GraphLoadError(f"Cannot load {location}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise GraphLoadError(f"Failed to load {location}: {e}") from e
        return vars(module)

    try:
        module = importlib.import_module(location)
    except Exception as e:
        raise GraphLoadError(f"Failed to import {location}: {e}") from e
    return vars(module)


def load_graph(target: str) -> Graph[Any] | CompiledGraph[Any]:
    """Resolve a CLI target to a Graph or CompiledGraph.

    Args:
        target: "<module or path>:<attribute>"; the attribute defaults to "graph".

    Returns:
        The loaded graph object.

    Raises:
        GraphLoadError: If the target cannot be loaded or resolved to a graph.
    """
    location, _, attribute = target.rpartition(":")
    if not location:
        location, attribute = attribute, "graph"

    namespace = _load_namespace(location)
    if attribute not in namespace:
        raise GraphLoadError(f"No '{attribute}' found in {location}")

    obj = namespace[attribute]
    if callable(obj) and not isinstance(obj, (Graph, CompiledGraph)):
        try:
            obj = obj()
        except Exception as e:
            raise GraphLoadError(f"'{attribute}' in {location} raised: {e}") from e

    if not isinstance(obj, (Graph, CompiledGraph)):
        raise GraphLoadError(f"'{attribute}' in {location} is not a Graph or CompiledGraph")
    return obj


def load_compiled(target: str) -> CompiledGraph[Any]:
    """Like load_graph(), compiling a plain Graph when needed."""
    obj = load_graph(target)
    if isinstance(obj, Graph):
        return obj.compile()
    return obj
