"""Tests for LLMClient."""

import time

import pytest
from aioresponses import aioresponses
from yarl import URL

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

URL_COMPLETIONS = "https://api.test.com/v1/chat/completions"


class TestCircuitBreaker:
    """Tests for CircuitBreaker."""

    def test_initial_state_is_closed(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=30.0)

        assert cb.state == CircuitState.CLOSED
        assert cb.can_execute() is True

    def test_opens_at_threshold(self):
        cb = CircuitBreaker(failure_threshold=2, recovery_timeout=30.0)

        cb.record_failure()
        assert cb.state == CircuitState.CLOSED
        cb.record_failure()
        assert cb.state == CircuitState.OPEN
        assert cb.can_execute() is False

    def test_success_resets_failures(self):
        cb = CircuitBreaker(failure_threshold=3, recovery_timeout=30.0)

        cb.record_failure()
        cb.record_success()

        assert cb.failure_count == 0
        assert cb.state == CircuitState.CLOSED

    def test_half_open_after_timeout(self):
        cb = CircuitBreaker(failure_threshold=1, recovery_timeout=0.1)

        cb.record_failure()
        time.sleep(0.15)

        assert cb.can_execute() is True
        assert cb.state == CircuitState.HALF_OPEN

    def test_half_open_failure_reopens(self):
        cb = CircuitBreaker(failure_threshold=5, recovery_timeout=0.1)
        cb.state = CircuitState.HALF_OPEN

        cb.record_failure()

        assert cb.state == CircuitState.OPEN


class TestLLMClientConfig:
    """Tests for LLMClientConfig."""

    def test_default_values(self):
        config = LLMClientConfig(base_url="https://api.example.com", api_key="k", model="gpt-4o")

        assert config.connect_timeout == 10.0
        assert config.read_timeout == 300.0
        assert config.max_retries == 3
        assert 429 in config.retryable_status_codes

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_BASE_URL", "https://api.openai.com/v1/")
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        monkeypatch.setenv("OPENAI_MODEL", "gpt-4o-mini")

        config = LLMClientConfig.from_env()

        assert config.base_url == "https://api.openai.com/v1"
        assert config.api_key == "sk-test"
        assert config.model == "gpt-4o-mini"

    def test_from_env_custom_prefix_and_overrides(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_BASE_URL", "http://localhost:11434/v1")
        monkeypatch.delenv("OLLAMA_API_KEY", raising=False)
        monkeypatch.delenv("OLLAMA_MODEL", raising=False)

        config = LLMClientConfig.from_env("OLLAMA", model="llama3", max_retries=0)

        assert config.api_key == ""
        assert config.model == "llama3"
        assert config.max_retries == 0

    def test_from_env_missing(self, monkeypatch):
        monkeypatch.delenv("MISSING_BASE_URL", raising=False)

        with pytest.raises(ValueError, match="MISSING_BASE_URL is not set"):
            LLMClientConfig.from_env("MISSING")


@pytest.fixture
def client_config():
    return LLMClientConfig(
        base_url="https://api.test.com/v1",
        api_key="test-key",
        model="gpt-4",
        max_retries=2,
        retry_base_delay=0.01,  # Fast retries for testing
    )


class TestLLMClientSend:
    """Tests for LLMClient.send() non-streaming method."""

    @pytest.mark.asyncio
    async def test_successful_request(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(
                    URL_COMPLETIONS,
                    payload={
                        "model": "gpt-4",
                        "choices": [{"message": {"content": "Hello!"}, "finish_reason": "stop"}],
                        "usage": {"prompt_tokens": 10, "completion_tokens": 5},
                    },
                )

                response = await client.send({"messages": []}, trace_id="test")

                assert response.content == "Hello!"
                assert response.finish_reason == "stop"
                assert response.usage.total_tokens == 15

    @pytest.mark.asyncio
    async def test_request_body_defaults(self, client_config):
        """Model defaults to the configured one and stream is forced off."""
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(URL_COMPLETIONS, payload={"choices": []})

                await client.send({"messages": [], "stream": True})

                request = m.requests[("POST", URL(URL_COMPLETIONS))][0]
                assert request.kwargs["json"]["model"] == "gpt-4"
                assert request.kwargs["json"]["stream"] is False

    @pytest.mark.asyncio
    async def test_tool_calls_parsed(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(
                    URL_COMPLETIONS,
                    payload={
                        "choices": [
                            {
                                "message": {
                                    "content": None,
                                    "tool_calls": [
                                        {
                                            "id": "call_1",
                                            "type": "function",
                                            "function": {
                                                "name": "web_search",
                                                "arguments": '{"query": "rust"}',
                                            },
                                        }
                                    ],
                                },
                                "finish_reason": "tool_calls",
                            }
                        ]
                    },
                )

                response = await client.send({"messages": []})

                assert response.content == ""
                assert response.tool_calls[0].name == "web_search"
                assert response.tool_calls[0].parsed_arguments() == {"query": "rust"}

    @pytest.mark.asyncio
    async def test_retry_on_429(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(URL_COMPLETIONS, status=429, body="Rate limited")
                m.post(
                    URL_COMPLETIONS,
                    payload={"choices": [{"message": {"content": "OK"}, "finish_reason": "stop"}]},
                )

                response = await client.send({})

                assert response.content == "OK"

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                for _ in range(3):
                    m.post(URL_COMPLETIONS, status=503, body="Unavailable")

                with pytest.raises(UpstreamError) as exc_info:
                    await client.send({})

                assert exc_info.value.status_code == 503
                assert exc_info.value.response_body == "Unavailable"

    @pytest.mark.asyncio
    async def test_non_retryable_error(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(URL_COMPLETIONS, status=401, body="Unauthorized")

                with pytest.raises(UpstreamError) as exc_info:
                    await client.send({})

                assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_circuit_breaker_opens(self, client_config):
        client_config.circuit_failure_threshold = 2
        client_config.max_retries = 0

        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                for _ in range(5):
                    m.post(URL_COMPLETIONS, status=500, body="Server error")

                with pytest.raises(UpstreamError):
                    await client.send({})
                with pytest.raises(UpstreamError):
                    await client.send({})
                with pytest.raises(CircuitOpenError):
                    await client.send({})

    @pytest.mark.asyncio
    async def test_client_not_connected_raises(self, client_config):
        client = LLMClient(config=client_config)

        with pytest.raises(RuntimeError, match="not connected"):
            await client.send({})

    def test_satisfies_provider_protocol(self, client_config):
        assert isinstance(LLMClient(config=client_config), ChatCompletionProvider)


class TestLLMClientStream:
    """Tests for LLMClient.stream() streaming method."""

    @pytest.mark.asyncio
    async def test_successful_stream(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                sse_response = (
                    b'data: {"choices":[{"delta":{"content":"Hello"}}]}\n\n'
                    b'data: {"choices":[{"delta":{"content":" World"},"finish_reason":"stop"}]}\n\n'
                    b"data: [DONE]\n\n"
                )
                m.post(
                    URL_COMPLETIONS,
                    body=sse_response,
                    headers={"Content-Type": "text/event-stream"},
                )

                chunks = [chunk async for chunk in client.stream({})]

                text = "".join(c.content for c in chunks if c.type == "text")
                assert text == "Hello World"
                assert chunks[-1].type == "done"
                assert any(c.finish_reason == "stop" for c in chunks)

    @pytest.mark.asyncio
    async def test_stream_retry_on_503(self, client_config):
        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(URL_COMPLETIONS, status=503, body="Service unavailable")
                m.post(
                    URL_COMPLETIONS,
                    body=b'data: {"choices":[{"delta":{"content":"OK"}}]}\n\ndata: [DONE]\n\n',
                )

                chunks = [chunk async for chunk in client.stream({})]

                assert any(c.type == "text" for c in chunks)

    @pytest.mark.asyncio
    async def test_stream_circuit_breaker(self, client_config):
        client_config.circuit_failure_threshold = 1
        client_config.max_retries = 0

        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                for _ in range(3):
                    m.post(URL_COMPLETIONS, status=500, body="Error")

                with pytest.raises(UpstreamError):
                    async for _ in client.stream({}):
                        pass

                with pytest.raises(CircuitOpenError):
                    async for _ in client.stream({}):
                        pass

    @pytest.mark.asyncio
    async def test_cancelled_stream(self, client_config):
        """A cancelled token stops the stream without tripping the circuit."""
        token = CancellationToken()
        token.cancel()

        async with LLMClient(config=client_config) as client:
            with aioresponses() as m:
                m.post(
                    URL_COMPLETIONS,
                    body=b'data: {"choices":[{"delta":{"content":"Hi"}}]}\n\ndata: [DONE]\n\n',
                )

                with pytest.raises(StreamCancelledError):
                    async for _ in client.stream({}, cancellation=token):
                        pass

                assert client._circuit.failure_count == 0
                assert client._circuit.state == CircuitState.CLOSED
