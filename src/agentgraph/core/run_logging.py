"""Run-scoped logging helpers for graph execution.

Every execution gets a run ID so interleaved log lines from concurrent
runs of the same compiled graph can be told apart.

Log Format:
    [<identifier>] action: key=value, key=value (duration)

Examples:
    [20251228_143022_x7k] graph_start: start=call_model
    [20251228_143022_x7k] step_start: step=1, node=call_model
    [20251228_143022_x7k] step_complete: step=1, node=call_model, next=execute_tools (0.4s)
    [20251228_143022_x7k] graph_complete: steps=5 (3.5s)
"""

from __future__ import annotations

import logging
import random
import string
import time
from typing import Any


def generate_run_id() -> str:
    """Generate a unique run ID.

    Format: YYYYMMDD_HHMMSS_xxx (second precision plus a 3-char suffix).

    Returns:
        Run ID string like "20251228_143022_x7k"
    """
    timestamp = time.strftime("%Y%m%d_%H%M%S")
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=3))
    return f"{timestamp}_{suffix}"


def truncate(value: Any, max_length: int = 100) -> str:
    """Truncate a value for logging.

    Args:
        value: Value to truncate.
        max_length: Maximum length before truncation.

    Returns:
        Truncated string with length indicator if truncated.
    """
    s = str(value)
    if len(s) <= max_length:
        return s
    return f"{s[:max_length]}... ({len(s)} chars)"


def _format(identifier: str, action: str, kwargs: dict[str, Any]) -> str:
    kv_pairs = ", ".join(f"{k}={truncate(v)}" for k, v in kwargs.items())
    return f"[{identifier}] {action}: {kv_pairs}" if kv_pairs else f"[{identifier}] {action}"


def log_start(
    logger: logging.Logger | None,
    identifier: str,
    action: str,
    **kwargs: Any,
) -> None:
    """Log a start event at DEBUG.

    Args:
        logger: Logger to use. If None, this is a no-op.
        identifier: Primary identifier (usually the run ID).
        action: Action name (e.g., "graph_start", "step_start").
        **kwargs: Additional key=value pairs to log.
    """
    if logger is None or not logger.isEnabledFor(logging.DEBUG):
        return
    logger.debug(_format(identifier, action, kwargs))


def log_complete(
    logger: logging.Logger | None,
    identifier: str,
    action: str,
    duration_s: float,
    **kwargs: Any,
) -> None:
    """Log a completion event with duration at DEBUG."""
    if logger is None or not logger.isEnabledFor(logging.DEBUG):
        return
    kv_pairs = ", ".join(f"{k}={truncate(v)}" for k, v in kwargs.items())
    if kv_pairs:
        msg = f"[{identifier}] {action}: {kv_pairs} ({duration_s:.1f}s)"
    else:
        msg = f"[{identifier}] {action}: ({duration_s:.1f}s)"
    logger.debug(msg)


def log_error(
    logger: logging.Logger | None,
    identifier: str,
    action: str,
    error: str | BaseException,
    **kwargs: Any,
) -> None:
    """Log an error event.

    Args:
        logger: Logger to use. If None, this is a no-op.
        identifier: Primary identifier.
        action: Action name (e.g., "step_failed").
        error: Error message or exception.
        **kwargs: Additional key=value pairs to log.
    """
    if logger is None:
        return
    kwargs["error"] = truncate(str(error), max_length=200)
    logger.error(_format(identifier, action, kwargs))


def log_warning(
    logger: logging.Logger | None,
    identifier: str,
    action: str,
    **kwargs: Any,
) -> None:
    """Log a warning event."""
    if logger is None:
        return
    logger.warning(_format(identifier, action, kwargs))
