"""Data types for chat-completion requests and responses.

These mirror the OpenAI chat-completions wire format closely enough to
build requests and read responses from any compatible endpoint
(OpenAI, Azure OpenAI deployments, Ollama's /v1 API, ...).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]


@dataclass
class ToolCall:
    """A function call requested by the model.

    Attributes:
        id: Call identifier, echoed back in the tool result message.
        name: Function name.
        arguments: JSON-encoded arguments (may be partial while streaming).
    """

    id: str
    name: str
    arguments: str = ""

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode the arguments JSON.

        Raises:
            ValueError: If the arguments are not a JSON object.
        """
        if not self.arguments:
            return {}
        value = json.loads(self.arguments)
        if not isinstance(value, dict):
            raise ValueError(f"Arguments for tool '{self.name}' are not a JSON object")
        return value

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        function = data.get("function") or {}
        return cls(
            id=data.get("id") or "",
            name=function.get("name") or "",
            arguments=function.get("arguments") or "",
        )


@dataclass
class ChatMessage:
    """One message in a conversation."""

    role: Role
    content: str | None = None
    name: str | None = None
    tool_call_id: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)

    @classmethod
    def system(cls, content: str) -> ChatMessage:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> ChatMessage:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str | None, tool_calls: list[ToolCall] | None = None) -> ChatMessage:
        return cls(role="assistant", content=content, tool_calls=list(tool_calls or []))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> ChatMessage:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format, omitting unset fields."""
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name:
            data["name"] = self.name
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            data["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return data


@dataclass
class TokenUsage:
    """Token counts reported by the provider."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> TokenUsage | None:
        if not data:
            return None
        return cls(
            input_tokens=data.get("prompt_tokens", 0) or 0,
            output_tokens=data.get("completion_tokens", 0) or 0,
        )


@dataclass
class ChatResponse:
    """A complete (non-streamed or accumulated) chat completion.

    Attributes:
        content: Assistant text, empty string if none.
        tool_calls: Requested tool calls.
        finish_reason: "stop", "tool_calls", "length", ... or None.
        usage: Token usage if reported.
        model: Model that produced the response.
    """

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str | None = None
    usage: TokenUsage | None = None
    model: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatResponse:
        """Parse an OpenAI-format response body."""
        choices = data.get("choices") or []
        choice = choices[0] if choices else {}
        message = choice.get("message") or {}
        return cls(
            content=message.get("content") or "",
            tool_calls=[ToolCall.from_dict(tc) for tc in message.get("tool_calls") or []],
            finish_reason=choice.get("finish_reason"),
            usage=TokenUsage.from_dict(data.get("usage")),
            model=data.get("model"),
        )

    def to_message(self) -> ChatMessage:
        """The assistant message to append to the conversation."""
        return ChatMessage.assistant(self.content or None, self.tool_calls)


@dataclass
class StreamChunk:
    """One parsed piece of a streamed response.

    Attributes:
        type: "text" for content deltas, "tool_call" for tool call deltas,
            "done" at the end of the stream.
        content: Text delta (type "text").
        tool_call: Tool call delta (type "tool_call"); id and name are only
            present on the first delta for a given index.
        index: Tool call index the delta belongs to.
        finish_reason: Set on the chunk that carried one.
        usage: Token usage (usually only on the final chunk).
    """

    type: Literal["text", "tool_call", "done"]
    content: str | None = None
    tool_call: ToolCall | None = None
    index: int = 0
    finish_reason: str | None = None
    usage: TokenUsage | None = None


class StreamAccumulator:
    """Assemble streamed chunks into a ChatResponse.

    Example:
        >>> acc = StreamAccumulator()
        >>> async for chunk in client.stream(request):
        ...     acc.add(chunk)
        >>> response = acc.result()
    """

    def __init__(self) -> None:
        self._text: list[str] = []
        self._tool_calls: dict[int, ToolCall] = {}
        self._finish_reason: str | None = None
        self._usage: TokenUsage | None = None

    def add(self, chunk: StreamChunk) -> None:
        if chunk.type == "text" and chunk.content:
            self._text.append(chunk.content)
        elif chunk.type == "tool_call" and chunk.tool_call is not None:
            existing = self._tool_calls.get(chunk.index)
            if existing is None:
                self._tool_calls[chunk.index] = ToolCall(
                    id=chunk.tool_call.id,
                    name=chunk.tool_call.name,
                    arguments=chunk.tool_call.arguments,
                )
            else:
                existing.id = existing.id or chunk.tool_call.id
                existing.name = existing.name or chunk.tool_call.name
                existing.arguments += chunk.tool_call.arguments

        if chunk.finish_reason:
            self._finish_reason = chunk.finish_reason
        if chunk.usage:
            self._usage = chunk.usage

    @property
    def text(self) -> str:
        return "".join(self._text)

    def result(self) -> ChatResponse:
        return ChatResponse(
            content=self.text,
            tool_calls=[self._tool_calls[i] for i in sorted(self._tool_calls)],
            finish_reason=self._finish_reason,
            usage=self._usage,
        )


def parse_sse_line(line: str) -> list[StreamChunk]:
    """Parse one server-sent-events line of an OpenAI-format stream.

    Args:
        line: Raw SSE line (only "data: ..." lines carry payload).

    Returns:
        Parsed chunks (may be empty, or several for one line).
    """
    chunks: list[StreamChunk] = []

    if not line.startswith("data:"):
        return chunks

    data_str = line[5:].strip()

    if data_str == "[DONE]":
        chunks.append(StreamChunk(type="done"))
        return chunks

    try:
        data = json.loads(data_str)
    except json.JSONDecodeError:
        return chunks

    usage = TokenUsage.from_dict(data.get("usage"))
    choices = data.get("choices") or []
    if not choices:
        # Usage-only trailer chunk
        if usage:
            chunks.append(StreamChunk(type="done", usage=usage))
        return chunks

    choice = choices[0]
    delta = choice.get("delta") or {}
    finish_reason = choice.get("finish_reason")

    if delta.get("content"):
        chunks.append(StreamChunk(type="text", content=delta["content"]))

    for tc in delta.get("tool_calls") or []:
        chunks.append(
            StreamChunk(
                type="tool_call",
                tool_call=ToolCall.from_dict(tc),
                index=tc.get("index", 0),
            )
        )

    if finish_reason or usage:
        if chunks:
            chunks[-1].finish_reason = finish_reason
            chunks[-1].usage = usage
        else:
            chunks.append(StreamChunk(type="text", content="", finish_reason=finish_reason, usage=usage))

    return chunks
