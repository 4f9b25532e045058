"""Stdio MCP adapter that forwards requests to a local JSON-RPC backend."""

__version__ = "0.1.0"
