"""Cooperative cancellation for streamed chat completions.

The graph engine has no cancellation hook of its own. A node that needs
to be interruptible carries a CancellationToken in its state (or closes
over one) and hands it to LLMClient.stream(), which checks it between
chunks.
"""

from __future__ import annotations

import asyncio


class StreamCancelledError(Exception):
    """Raised by a stream when its cancellation token was triggered."""

    pass


class CancellationToken:
    """Token for cooperative cancellation.

    Example:
        >>> token = CancellationToken()
        >>> task = asyncio.create_task(consume(client.stream(request, cancellation=token)))
        >>> await asyncio.sleep(1)
        >>> token.cancel()
        >>> try:
        ...     await task
        ... except StreamCancelledError:
        ...     print("Stream was cancelled")
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event = asyncio.Event()

    def cancel(self) -> None:
        """Request cancellation. Safe to call multiple times."""
        self._cancelled = True
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def check(self) -> None:
        """Raise StreamCancelledError if cancelled.

        Raises:
            StreamCancelledError: If cancellation was requested.
        """
        if self._cancelled:
            raise StreamCancelledError("Stream cancelled")

    async def wait(self) -> None:
        """Block until cancel() is called."""
        await self._event.wait()
