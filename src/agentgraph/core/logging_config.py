"""Logging configuration for agentgraph.

The library itself only ever calls ``logging.getLogger(__name__)``; it
never installs handlers on import. Applications (and the CLI) call
``configure_logging()`` once at startup to get console and optional file
output, as plain text or JSON.

Usage:
    from agentgraph.core.logging_config import configure_logging, get_logger

    configure_logging(level="DEBUG")
    logger = get_logger(__name__)

Environment Variables:
    AGENTGRAPH_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    AGENTGRAPH_LOG_FORMAT: Output format ("text" or "json")
    AGENTGRAPH_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ENV_LEVEL = "AGENTGRAPH_LOG_LEVEL"
ENV_FORMAT = "AGENTGRAPH_LOG_FORMAT"
ENV_FILE = "AGENTGRAPH_LOG_FILE"

# Attributes every LogRecord carries; anything else was passed via extra=
_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)

_configured = False


@dataclass
class LogConfig:
    """Logging configuration.

    Attributes:
        level: Log level name.
        format: Output format ("text" or "json").
        file_path: Optional file path for file logging.
        include_ms: Include milliseconds in text timestamps.
    """

    level: str = "INFO"
    format: Literal["text", "json"] = "text"
    file_path: str | None = None
    include_ms: bool = True

    @classmethod
    def from_env(cls) -> LogConfig:
        """Build a config from AGENTGRAPH_LOG_* environment variables."""
        fmt = os.environ.get(ENV_FORMAT, "text").lower()
        if fmt not in ("text", "json"):
            raise ValueError(f"{ENV_FORMAT} must be 'text' or 'json', got '{fmt}'")
        return cls(
            level=os.environ.get(ENV_LEVEL, "INFO").upper(),
            format=fmt,  # type: ignore[arg-type]
            file_path=os.environ.get(ENV_FILE) or None,
        )


class JsonFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    {"timestamp": "...", "level": "DEBUG", "logger": "agentgraph.core.graph.compiled",
     "message": "[run] step_start: node=call_model", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
    logger_name: str = "agentgraph",
) -> logging.Logger:
    """Configure logging for the application.

    Call once at startup. Subsequent calls are ignored unless force=True.
    Explicit arguments win over AGENTGRAPH_LOG_* environment variables.

    Args:
        level: Log level. Defaults to AGENTGRAPH_LOG_LEVEL or "INFO".
        format: Output format. Defaults to AGENTGRAPH_LOG_FORMAT or "text".
        file_path: Optional file path. Defaults to AGENTGRAPH_LOG_FILE.
        include_ms: Include milliseconds in timestamp.
        force: Reconfigure even if already configured.
        logger_name: Logger to configure ("" for the root logger).

    Returns:
        The configured logger.
    """
    global _configured
    target = logging.getLogger(logger_name or None)
    if _configured and not force:
        return target

    env = LogConfig.from_env()
    config = LogConfig(
        level=level or env.level,
        format=format or env.format,
        file_path=file_path or env.file_path,
        include_ms=include_ms,
    )

    target.setLevel(_resolve_level(config.level))
    target.handlers.clear()

    if config.format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        fmt = TEXT_FORMAT_WITH_MS if config.include_ms else TEXT_FORMAT
        formatter = logging.Formatter(fmt, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    target.addHandler(console_handler)

    if config.file_path:
        file_handler = logging.FileHandler(config.file_path)
        file_handler.setFormatter(formatter)
        target.addHandler(file_handler)

    _configured = True
    return target


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str | None = "agentgraph") -> None:
    """Set log level for a specific logger.

    Args:
        level: Log level name.
        logger_name: Logger name. None for the root logger.
    """
    logging.getLogger(logger_name).setLevel(_resolve_level(level))
