"""Pytest configuration and fixtures."""

import logging

import pytest

import agentgraph.core.logging_config as logging_config


@pytest.fixture(autouse=True)
def reset_agentgraph_logging():
    """Undo configure_logging() calls made by a test."""
    logger = logging.getLogger("agentgraph")
    handlers = list(logger.handlers)
    level = logger.level

    yield

    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logging_config._configured = False


@pytest.fixture
def clean_log_env(monkeypatch):
    """Remove AGENTGRAPH_LOG_* overrides from the environment."""
    for name in ("AGENTGRAPH_LOG_LEVEL", "AGENTGRAPH_LOG_FORMAT", "AGENTGRAPH_LOG_FILE"):
        monkeypatch.delenv(name, raising=False)
