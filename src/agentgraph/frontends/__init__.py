"""User-facing frontends for agentgraph."""
