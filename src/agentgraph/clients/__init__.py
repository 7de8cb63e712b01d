"""Chat-completion client used from inside graph nodes.

The graph engine never calls a provider itself; nodes do, through a
ChatCompletionProvider such as LLMClient.

Example:
    >>> from agentgraph.clients import ChatMessage, LLMClient, LLMClientConfig
    >>>
    >>> config = LLMClientConfig(base_url="http://localhost:11434/v1", api_key="", model="qwen3")
    >>> async with LLMClient(config=config) as client:
    ...     response = await client.send({"messages": [ChatMessage.user("Hello!").to_dict()]})
    ...     print(response.content)
"""

from agentgraph.clients.cancellation import CancellationToken, StreamCancelledError
from agentgraph.clients.llm_client import (
    ChatCompletionProvider,
    CircuitBreaker,
    CircuitOpenError,
    CircuitState,
    LLMClient,
    LLMClientConfig,
    UpstreamError,
)
from agentgraph.clients.types import (
    ChatMessage,
    ChatResponse,
    StreamAccumulator,
    StreamChunk,
    TokenUsage,
    ToolCall,
    parse_sse_line,
)

__all__ = [
    # Client
    "ChatCompletionProvider",
    "LLMClient",
    "LLMClientConfig",
    "CircuitBreaker",
    "CircuitState",
    # Errors
    "CircuitOpenError",
    "UpstreamError",
    "StreamCancelledError",
    # Cancellation
    "CancellationToken",
    # Types
    "ChatMessage",
    "ChatResponse",
    "StreamChunk",
    "StreamAccumulator",
    "TokenUsage",
    "ToolCall",
    "parse_sse_line",
]
