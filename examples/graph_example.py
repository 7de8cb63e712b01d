"""Content pipeline with a conditional branch.

    generate_content --(quality < 8)--> improve_content --> polish_content --> END
                     \\-(otherwise)----------------------/

Run directly:
    python examples/graph_example.py

Or through the CLI:
    agentgraph draw examples/graph_example.py:graph
    agentgraph run examples/graph_example.py:graph --input '{"message": "Hello World"}'
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from agentgraph import END, START, Graph, configure_logging


@dataclass
class State:
    message: str
    count: int = 0
    quality_score: int = 0


def as_state(state: State | dict) -> State:
    # The CLI hands over decoded JSON
    return state if isinstance(state, State) else State(**state)


async def generate_content(state: State | dict) -> State:
    state = as_state(state)
    state.message = f"Generated content: {state.message}"
    state.quality_score = 6
    print(f"Generate: {state.message}")
    return state


async def improve_content(state: State) -> State:
    state.message = f"Improved: {state.message}"
    state.quality_score += 3
    state.count += 1
    print(f"Improve: {state.message} (quality: {state.quality_score})")

    if state.count > 5:
        raise RuntimeError("Too many improvement attempts")
    return state


async def polish_content(state: State) -> State:
    state.message = f"Polished: {state.message}"
    state.quality_score = 10
    print(f"Polish: {state.message} (final quality: {state.quality_score})")
    return state


async def review(state: State) -> str:
    await asyncio.sleep(0.01)
    return "improve" if state.quality_score < 8 else "polish"


graph = Graph[State]()
graph.add_node("generate_content", generate_content)
graph.add_node("improve_content", improve_content)
graph.add_node("polish_content", polish_content)
graph.add_edge(START, "generate_content")
graph.add_conditional_edges(
    "generate_content",
    review,
    {"improve": "improve_content", "polish": "polish_content"},
)
graph.add_edge("improve_content", "polish_content")
graph.add_edge("polish_content", END)


async def main() -> None:
    configure_logging(level="DEBUG")
    compiled = graph.compile()

    result = await compiled.execute(State(message="Hello World"))
    print(f"Final result: {result}")


if __name__ == "__main__":
    asyncio.run(main())
