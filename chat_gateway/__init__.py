"""Agent chat gateway: authenticated proxy in front of an agent-execution server."""

__version__ = "1.0.0"
