"""Protocol dispatcher wiring MCP methods to the gateway and internal tools."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from .catalog import CatalogAssembler
from .errors import AdapterError, InvalidParamsError
from .internal_tools import InternalToolRegistry, error_content, json_content
from .logging import redact_payload

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")

# JSON-RPC error codes
INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class DispatcherState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


class MethodNotFoundError(AdapterError):
    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class ProtocolDispatcher:
    def __init__(
        self,
        gateway: Any,
        internal_tools: InternalToolRegistry,
        catalog: CatalogAssembler,
        server_name: str = "MCP Proxy Server",
        server_version: str = "0.1.0",
        respect_hidden_tools: bool = False,
    ) -> None:
        self.gateway = gateway
        self.internal_tools = internal_tools
        self.catalog = catalog
        self.server_name = server_name
        self.server_version = server_version
        self.respect_hidden_tools = respect_hidden_tools
        self.state = DispatcherState.UNINITIALIZED
        self._handlers: Dict[str, Handler] = {
            "initialize": self.handle_initialize,
            "ping": self.ping,
            "resources/list": self.list_resources,
            "resources/read": self.read_resource,
            "tools/list": self.list_tools,
            "tools/call": self.call_tool,
            "prompts/list": self.list_prompts,
            "prompts/get": self.get_prompt,
        }

    async def initialize_internal_tools(self) -> None:
        """Build the search index and mark the internal tools ready; runs once."""
        if self.state is not DispatcherState.UNINITIALIZED:
            return
        self.state = DispatcherState.INITIALIZING
        logger.info("Initializing internal tools")
        try:
            await self.internal_tools.initialize()
        finally:
            self.state = DispatcherState.READY
        logger.info("Dispatcher ready")

    async def handle(self, method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        handler = self._handlers.get(method)
        if handler is None:
            raise MethodNotFoundError(method)
        return await handler(params or {})

    async def handle_message(self, message: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Turn one inbound JSON-RPC message into its response envelope.

        Notifications and stray responses produce ``None``.
        """
        method = message.get("method")
        msg_id = message.get("id")
        if not isinstance(method, str):
            logger.debug("Ignoring message without a method: %s", redact_payload(message))
            return None
        if msg_id is None:
            logger.debug("Received notification %s", method)
            return None

        params = message.get("params")
        if params is not None and not isinstance(params, dict):
            return _error(msg_id, INVALID_PARAMS, "params must be an object")

        try:
            result = await self.handle(method, params)
        except MethodNotFoundError as exc:
            return _error(msg_id, METHOD_NOT_FOUND, str(exc))
        except InvalidParamsError as exc:
            return _error(msg_id, INVALID_PARAMS, str(exc))
        except Exception:
            logger.exception("Unexpected error while handling %s", method)
            return _error(msg_id, INTERNAL_ERROR, "Internal error during request dispatch.")
        return {"jsonrpc": "2.0", "id": msg_id, "result": result}

    async def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else SUPPORTED_PROTOCOL_VERSIONS[0]
        client_info = params.get("clientInfo") or {}
        logger.info("Client connected: %s (protocol %s)", client_info.get("name", "unknown"), version)
        return {
            "protocolVersion": version,
            "capabilities": {
                "resources": {},
                "tools": {"listChanged": True},
                "prompts": {},
            },
            "serverInfo": {"name": self.server_name, "version": self.server_version},
        }

    async def ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"message": "pong"}

    async def list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._pass_through("resources/list", params, {"resources": []})

    async def read_resource(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._pass_through("resources/read", params, {"contents": []})

    async def list_prompts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._pass_through("prompts/list", params, {"prompts": []})

    async def get_prompt(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await self._pass_through("prompts/get", params, {"messages": []})

    async def list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        backend_result: Any = None
        if self.respect_hidden_tools and await self.gateway.tools_hidden():
            logger.info("Backend tools are hidden; advertising internal tools only")
        else:
            try:
                backend_result = await self.gateway.forward("tools/list", params)
            except AdapterError as exc:
                logger.error("Error fetching tools list: %s", exc)
        return {"tools": self.catalog.assemble(backend_result)}

    async def call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("tools/call requires a tool name")
        arguments = params.get("arguments")

        try:
            internal = await self.internal_tools.dispatch(name, arguments)
        except AdapterError as exc:
            logger.error("Internal tool %s failed: %s", name, exc)
            return error_content(str(exc))
        if internal.handled:
            return internal.result or {"content": []}

        try:
            result = await self.gateway.forward("tools/call", params)
        except AdapterError as exc:
            logger.error("Error calling tool %s: %s", name, exc)
            return error_content(f"Tool call failed: {exc}")
        return result if isinstance(result, dict) else json_content(result)

    async def _pass_through(
        self, method: str, params: Dict[str, Any], fallback: Dict[str, Any]
    ) -> Dict[str, Any]:
        try:
            result = await self.gateway.forward(method, params)
        except AdapterError as exc:
            logger.error("Error forwarding %s: %s", method, exc)
            return fallback
        if not isinstance(result, dict):
            logger.warning("Unexpected %s result shape: %s", method, type(result).__name__)
            return fallback
        return result


def _error(msg_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}
