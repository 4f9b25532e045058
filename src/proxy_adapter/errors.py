"""Error taxonomy for the proxy adapter."""

from __future__ import annotations

from typing import Optional


class AdapterError(RuntimeError):
    """Base class for adapter errors."""


class TransportError(AdapterError):
    """Raised when the backend cannot be reached or answers with a non-2xx status."""

    def __init__(self, status: Optional[int], body: str) -> None:
        self.status = status
        self.body = body
        status_hint = f"status={status}" if status is not None else "no response"
        super().__init__(f"Backend transport error ({status_hint}): {body}")


class BackendError(AdapterError):
    """Raised when the backend answers with a JSON-RPC error."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Backend error: {message}")


class NotInitializedError(AdapterError):
    def __init__(self, component: str) -> None:
        self.component = component
        super().__init__(f"{component} is not initialized")


class InvalidArgumentsError(AdapterError):
    def __init__(self, tool: str, detail: str) -> None:
        self.tool = tool
        self.detail = detail
        super().__init__(f"Invalid arguments for {tool}: {detail}")


class InvalidParamsError(AdapterError):
    """Malformed protocol parameters, reported as JSON-RPC -32602."""
