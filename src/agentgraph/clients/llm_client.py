"""Chat-completion client for OpenAI-compatible endpoints.

Uses aiohttp.ClientSession for HTTP. Graph nodes call it from inside
their transforms; the engine itself never talks to a provider.

Features:
- Circuit breaker for fault tolerance
- Retry with exponential backoff
- Both streaming and non-streaming requests
- Cooperative cancellation of streams
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Protocol, runtime_checkable

import aiohttp

from agentgraph.clients.cancellation import CancellationToken, StreamCancelledError
from agentgraph.clients.types import ChatResponse, StreamChunk, parse_sse_line

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = auto()  # Normal operation
    OPEN = auto()  # Failing, reject requests
    HALF_OPEN = auto()  # Testing recovery


class CircuitOpenError(Exception):
    """Raised when circuit breaker is open."""

    pass


class UpstreamError(Exception):
    """Raised when the upstream API returns an error."""

    def __init__(self, message: str, status_code: int, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


@runtime_checkable
class ChatCompletionProvider(Protocol):
    """What a graph node needs from a chat-completion client."""

    async def send(self, request_body: dict[str, Any], trace_id: str | None = None) -> ChatResponse:
        ...

    def stream(
        self,
        request_body: dict[str, Any],
        trace_id: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> AsyncIterator[StreamChunk]:
        ...


@dataclass
class LLMClientConfig:
    """Configuration for LLMClient."""

    base_url: str
    api_key: str
    model: str

    # Timeouts (seconds)
    connect_timeout: float = 10.0
    read_timeout: float = 300.0

    # Retry configuration
    max_retries: int = 3
    retry_base_delay: float = 1.0
    retry_max_delay: float = 30.0
    retryable_status_codes: frozenset[int] = frozenset({429, 500, 502, 503, 504})

    # Circuit breaker
    circuit_failure_threshold: int = 5
    circuit_recovery_timeout: float = 30.0

    @classmethod
    def from_env(cls, prefix: str = "OPENAI", **overrides: Any) -> LLMClientConfig:
        """Build a config from <PREFIX>_BASE_URL, <PREFIX>_API_KEY and <PREFIX>_MODEL.

        Args:
            prefix: Environment variable prefix.
            **overrides: Field values that take precedence over the environment.

        Raises:
            ValueError: If base_url or model is missing from both.
        """
        values: dict[str, Any] = {
            "base_url": os.environ.get(f"{prefix}_BASE_URL", ""),
            "api_key": os.environ.get(f"{prefix}_API_KEY", ""),
            "model": os.environ.get(f"{prefix}_MODEL", ""),
        }
        values.update(overrides)
        for required in ("base_url", "model"):
            if not values[required]:
                raise ValueError(f"{prefix}_{required.upper()} is not set")
        values["base_url"] = str(values["base_url"]).rstrip("/")
        return cls(**values)


@dataclass
class CircuitBreaker:
    """Simple circuit breaker for upstream resilience.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Too many failures, requests are rejected immediately
    - HALF_OPEN: Testing if service recovered, one request allowed
    """

    failure_threshold: int
    recovery_timeout: float
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure_time: float = 0.0

    def record_success(self) -> None:
        self.failure_count = 0
        self.state = CircuitState.CLOSED

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()
        if self.state == CircuitState.HALF_OPEN or self.failure_count >= self.failure_threshold:
            logger.warning("Circuit breaker opened after %d failures", self.failure_count)
            self.state = CircuitState.OPEN

    def can_execute(self) -> bool:
        """Check if a request can be executed."""
        if self.state == CircuitState.CLOSED:
            return True

        if self.state == CircuitState.OPEN:
            if time.time() - self.last_failure_time > self.recovery_timeout:
                logger.info("Circuit breaker entering half-open state")
                self.state = CircuitState.HALF_OPEN
                return True
            return False

        return True


@dataclass
class LLMClient:
    """HTTP client for OpenAI-compatible chat-completion APIs.

    Example:
        >>> client = LLMClient(config=LLMClientConfig.from_env())
        >>> async with client:
        ...     response = await client.send({"messages": [ChatMessage.user("Hi").to_dict()]})
        ...     print(response.content)
    """

    config: LLMClientConfig
    _session: aiohttp.ClientSession | None = None
    _circuit: CircuitBreaker = field(default_factory=lambda: CircuitBreaker(5, 30.0))

    async def connect(self) -> None:
        """Create the HTTP session and reset the circuit breaker."""
        timeout = aiohttp.ClientTimeout(
            connect=self.config.connect_timeout,
            total=self.config.read_timeout,
        )
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        self._session = aiohttp.ClientSession(headers=headers, timeout=timeout)
        self._circuit = CircuitBreaker(
            failure_threshold=self.config.circuit_failure_threshold,
            recovery_timeout=self.config.circuit_recovery_timeout,
        )

    async def close(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> LLMClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def url(self) -> str:
        return f"{self.config.base_url}/chat/completions"

    def _prepare(self, request_body: dict[str, Any], stream: bool) -> dict[str, Any]:
        body = {"model": self.config.model, **request_body, "stream": stream}
        return body

    def _backoff(self, attempt: int) -> float:
        return min(self.config.retry_base_delay * (2**attempt), self.config.retry_max_delay)

    async def send(
        self,
        request_body: dict[str, Any],
        trace_id: str | None = None,
    ) -> ChatResponse:
        """Non-streaming request.

        Args:
            request_body: OpenAI-format request body. "model" defaults to
                the configured model; "stream" is forced to False.
            trace_id: Optional ID for log correlation.

        Returns:
            The parsed response.

        Raises:
            CircuitOpenError: If circuit breaker is open.
            UpstreamError: If upstream returns an error.
        """
        trace_id = trace_id or f"req_{int(time.time() * 1000)}"

        if not self._circuit.can_execute():
            raise CircuitOpenError("Circuit breaker is open")

        body = self._prepare(request_body, stream=False)
        start_time = time.monotonic()

        try:
            data = await self._execute_with_retry(body, trace_id)
        except Exception:
            self._circuit.record_failure()
            raise

        self._circuit.record_success()
        response = ChatResponse.from_dict(data)
        logger.debug(
            "[%s] chat_complete: finish_reason=%s, tool_calls=%d (%.1fs)",
            trace_id,
            response.finish_reason,
            len(response.tool_calls),
            time.monotonic() - start_time,
        )
        return response

    async def stream(
        self,
        request_body: dict[str, Any],
        trace_id: str | None = None,
        cancellation: CancellationToken | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Streaming request.

        Args:
            request_body: OpenAI-format request body; "stream" is forced to True.
            trace_id: Optional ID for log correlation.
            cancellation: Optional token checked before each chunk is yielded.

        Yields:
            StreamChunk for each piece of the response.

        Raises:
            CircuitOpenError: If circuit breaker is open.
            UpstreamError: If upstream returns an error.
            StreamCancelledError: If the token was cancelled mid-stream.
        """
        trace_id = trace_id or f"req_{int(time.time() * 1000)}"

        if not self._circuit.can_execute():
            raise CircuitOpenError("Circuit breaker is open")

        body = self._prepare(request_body, stream=True)

        try:
            async for chunk in self._stream_with_retry(body, trace_id, cancellation):
                yield chunk
        except StreamCancelledError:
            logger.debug("[%s] Stream cancelled by caller", trace_id)
            raise
        except Exception:
            self._circuit.record_failure()
            raise

        self._circuit.record_success()

    async def _execute_with_retry(self, body: dict[str, Any], trace_id: str) -> dict[str, Any]:
        """Execute request with retry logic."""
        last_error: Exception | None = None

        for attempt in range(self.config.max_retries + 1):
            if self._session is None:
                raise RuntimeError("Client not connected. Call connect() first.")

            try:
                async with self._session.post(self.url, json=body) as response:
                    if response.status == 200:
                        return await response.json()

                    error_body = await response.text()
                    if response.status not in self.config.retryable_status_codes:
                        raise UpstreamError(
                            f"Upstream returned {response.status}: {error_body}",
                            response.status,
                            error_body,
                        )

                    last_error = UpstreamError(
                        f"Upstream returned {response.status}",
                        response.status,
                        error_body,
                    )
                    reason = str(response.status)

            except aiohttp.ClientError as e:
                last_error = e
                reason = type(e).__name__

            if attempt < self.config.max_retries:
                delay = self._backoff(attempt)
                logger.warning(
                    "Request %s failed with %s, retrying in %.1fs (attempt %d/%d)",
                    trace_id,
                    reason,
                    delay,
                    attempt + 1,
                    self.config.max_retries,
                )
                await asyncio.sleep(delay)

        if last_error:
            raise last_error
        raise RuntimeError("Retry loop exited without result or error")

    async def _stream_with_retry(
        self,
        body: dict[str, Any],
        trace_id: str,
        cancellation: CancellationToken | None,
    ) -> AsyncIterator[StreamChunk]:
        """Stream response with retry logic.

        Only the initial connection is retried; once chunks have been
        yielded a failure propagates.
        """
        last_error: Exception | None = None
        started = False

        for attempt in range(self.config.max_retries + 1):
            if self._session is None:
                raise RuntimeError("Client not connected. Call connect() first.")

            try:
                async with self._session.post(self.url, json=body) as response:
                    if response.status != 200:
                        error_body = await response.text()
                        logger.error(
                            "[%s] Upstream error %d: %s",
                            trace_id,
                            response.status,
                            error_body[:500],
                        )
                        if response.status not in self.config.retryable_status_codes:
                            raise UpstreamError(
                                f"Upstream returned {response.status}",
                                response.status,
                                error_body,
                            )
                        last_error = UpstreamError(
                            f"Upstream returned {response.status}",
                            response.status,
                            error_body,
                        )
                        reason = str(response.status)
                    else:
                        started = True
                        line_count = 0
                        async for line in response.content:
                            if cancellation is not None:
                                cancellation.check()
                            line_str = line.decode("utf-8").strip()
                            if not line_str:
                                continue
                            line_count += 1
                            for chunk in parse_sse_line(line_str):
                                yield chunk
                        logger.debug("[%s] Stream complete, received %d lines", trace_id, line_count)
                        return

            except aiohttp.ClientError as e:
                if started:
                    raise
                last_error = e
                reason = type(e).__name__

            if attempt < self.config.max_retries:
                delay = self._backoff(attempt)
                logger.warning("Stream %s failed with %s, retrying in %.1fs", trace_id, reason, delay)
                await asyncio.sleep(delay)

        if last_error:
            raise last_error
        raise RuntimeError("Retry loop exited without result or error")
