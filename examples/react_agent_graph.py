"""ReAct agent as a graph: the model and the tools take turns.

    call_model --(tool calls pending)--> execute_tools --> call_model
               \\-(final answer)--> END

The loop is bounded by the state (max_iterations) and, as a second line
of defence, by the compile-time max_steps guard.

Environment:
    OPENAI_BASE_URL   e.g. https://api.openai.com/v1 or http://localhost:11434/v1
    OPENAI_API_KEY    optional for local servers
    OPENAI_MODEL      e.g. gpt-4o-mini or qwen3

Usage:
    python examples/react_agent_graph.py "Who is older, Cristiano Ronaldo or Lionel Messi?"
"""

from __future__ import annotations

import asyncio
import sys
from dataclasses import dataclass, field

from agentgraph import END, START, Graph, configure_logging
from agentgraph.clients import (
    ChatCompletionProvider,
    ChatMessage,
    LLMClient,
    LLMClientConfig,
    StreamAccumulator,
    ToolCall,
)

SYSTEM_PROMPT = """You are a ReAct (Reasoning and Acting) agent. When you need information \
to answer a question, use the available tools to gather that information.

Think step by step:
1. Analyze what information you need
2. Use tools to gather the required information
3. Continue until you have enough information to provide a complete answer
4. Provide a comprehensive final answer"""

TOOLS = [
    {
        "type": "function",
        "function": {
            "name": "web_search",
            "description": "Search the web for information about people, events, or facts.",
            "parameters": {
                "type": "object",
                "properties": {
                    "query": {"type": "string", "description": "Search query."},
                },
                "required": ["query"],
                "additionalProperties": False,
            },
            "strict": True,
        },
    }
]


@dataclass
class AgentState:
    messages: list[ChatMessage]
    pending_tool_calls: list[ToolCall] = field(default_factory=list)
    iteration: int = 0
    max_iterations: int = 5
    final_answer: str | None = None

    @classmethod
    def for_question(cls, question: str, max_iterations: int = 5) -> AgentState:
        return cls(
            messages=[ChatMessage.system(SYSTEM_PROMPT), ChatMessage.user(f"Question: {question}")],
            max_iterations=max_iterations,
        )


async def web_search(query: str) -> str:
    """Canned search results, enough to exercise the loop."""
    q = query.lower()
    if "ronaldo" in q:
        return "Cristiano Ronaldo was born on February 5, 1985, in Funchal, Madeira, Portugal."
    if "messi" in q:
        return "Lionel Messi was born on June 24, 1987, in Rosario, Argentina."
    if "birth" in q or "age" in q or "older" in q:
        return "Search results: Cristiano Ronaldo - Born February 5, 1985. Lionel Messi - Born June 24, 1987"
    return f"Search simulation: No specific information found for query '{query}'"


def build_graph(client: ChatCompletionProvider) -> Graph[AgentState]:
    graph = Graph[AgentState]()

    @graph.node()
    async def call_model(state: AgentState) -> AgentState:
        state.iteration += 1
        print(f"--- Iteration {state.iteration} ---")
        if state.iteration > state.max_iterations:
            raise RuntimeError("Maximum iterations reached without finding answer")

        request = {
            "messages": [m.to_dict() for m in state.messages],
            "tools": TOOLS,
            "temperature": 0.0,
        }
        acc = StreamAccumulator()
        print("Agent thinking: ", end="", flush=True)
        async for chunk in client.stream(request):
            if chunk.type == "text" and chunk.content:
                print(chunk.content, end="", flush=True)
            acc.add(chunk)
        print()

        response = acc.result()
        state.messages.append(response.to_message())
        if response.tool_calls:
            print(f"Tool calls requested: {len(response.tool_calls)}")
            state.pending_tool_calls = response.tool_calls
        else:
            state.final_answer = response.content
        return state

    @graph.node()
    async def execute_tools(state: AgentState) -> AgentState:
        for call in state.pending_tool_calls:
            if call.name != "web_search":
                result = f"Unknown tool: {call.name}"
            else:
                result = await web_search(call.parsed_arguments().get("query", ""))
            print(f"  {call.name} -> {result}")
            state.messages.append(ChatMessage.tool(call.id, result))
        state.pending_tool_calls = []
        return state

    def should_continue(state: AgentState) -> str:
        return "tools" if state.pending_tool_calls else "end"

    graph.add_edge(START, "call_model")
    graph.add_conditional_edges("call_model", should_continue, {"tools": "execute_tools", "end": END})
    graph.add_edge("execute_tools", "call_model")
    return graph


async def main(question: str) -> None:
    configure_logging(level="INFO")
    config = LLMClientConfig.from_env()

    async with LLMClient(config=config) as client:
        compiled = build_graph(client).compile(max_steps=20)
        result = await compiled.execute(AgentState.for_question(question))

    print(f"\nFinal answer: {result.final_answer}")


if __name__ == "__main__":
    asyncio.run(main(" ".join(sys.argv[1:]) or "Who is older, Cristiano Ronaldo or Lionel Messi?"))
