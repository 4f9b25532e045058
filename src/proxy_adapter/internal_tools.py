"""Tools answered by the adapter itself instead of the backend."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Sequence, Type

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import InvalidArgumentsError, NotInitializedError
from .logging import redact_payload
from .models import decode_registry_snapshot
from .search_index import SearchIndex

logger = logging.getLogger(__name__)

SEARCH_TOOL_NAME = "search_mcp_servers_and_tools"
INSTALL_TOOL_NAME = "install_mcp_servers_and_tools"
CONFIGURE_TOOL_NAME = "configure_mcp_tool"


def text_content(text: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}]}


def json_content(result: Any) -> Dict[str, Any]:
    return text_content(json.dumps(result))


def error_content(message: str) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": message}], "isError": True}


class SearchArguments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: str
    exact: Optional[bool] = False


class InstallArguments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tool_id: str


class ConfigureArguments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tool_id: str
    config: Dict[str, Any]


@dataclass(frozen=True)
class InternalToolResult:
    handled: bool
    result: Optional[Dict[str, Any]] = None


class InternalTool:
    name: ClassVar[str]
    descriptor: ClassVar[Dict[str, Any]]
    arguments_model: ClassVar[Type[BaseModel]]

    def __init__(self, gateway: Any) -> None:
        self.gateway = gateway
        self.initialized = False

    async def initialize(self) -> None:
        self.initialized = True

    def describe(self) -> Dict[str, Any]:
        return copy.deepcopy(self.descriptor)

    async def invoke(self, arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not self.initialized:
            raise NotInitializedError(self.name)
        try:
            parsed = self.arguments_model.model_validate(arguments or {})
        except ValidationError as exc:
            raise InvalidArgumentsError(self.name, str(exc)) from exc
        return await self.run(parsed)

    async def run(self, arguments: Any) -> Dict[str, Any]:
        raise NotImplementedError


class SearchTool(InternalTool):
    name = SEARCH_TOOL_NAME
    arguments_model = SearchArguments
    descriptor = {
        "fullDescription": "Searches for MCP Servers & Tools available to be installed.",
        "description": "Searches for MCP Servers & Tools available to be installed.",
        "inputSchema": {
            "description": "Query to search for MCP Servers & Tools available to be installed.",
            "properties": {
                "query": {
                    "description": "Query to search for MCP Servers & Tools available to be installed.",
                    "title": "Query",
                    "type": "string",
                },
                "exact": {
                    "default": False,
                    "description": "If true, the search will only return exact matches.",
                    "title": "Exact",
                    "type": "boolean",
                },
            },
            "required": ["query"],
            "title": "Search MCP Servers & Tools",
            "type": "object",
        },
        "name": SEARCH_TOOL_NAME,
        "server_id": SEARCH_TOOL_NAME,
        "installed": True,
        "categories": ["mcp-dockmaster", "search"],
    }

    def __init__(self, gateway: Any, index: SearchIndex) -> None:
        super().__init__(gateway)
        self.index = index

    async def initialize(self) -> None:
        result = await self.gateway.forward("registry/list", {})
        self.index.build(decode_registry_snapshot(result))
        await super().initialize()

    async def run(self, arguments: SearchArguments) -> Dict[str, Any]:
        if arguments.exact:
            matches = self.index.search(arguments.query, exact=True)
            if not matches:
                return text_content(f"No exact match found for {arguments.query}")
            return json_content(matches)
        return json_content(self.index.search(arguments.query))


class InstallTool(InternalTool):
    name = INSTALL_TOOL_NAME
    arguments_model = InstallArguments
    descriptor = {
        "fullDescription": "Installs MCP Servers & Tools available to be installed.",
        "description": "Installs MCP Servers & Tools available to be installed.",
        "inputSchema": {
            "description": "Name of the MCP Server or Tool to install.",
            "properties": {
                "tool_id": {
                    "description": "The tool 'id' of the MCP Server or Tool to install.",
                    "title": "Tool ID",
                    "type": "string",
                },
            },
            "required": ["tool_id"],
            "title": "Install MCP Server",
            "type": "object",
        },
        "name": INSTALL_TOOL_NAME,
        "server_id": INSTALL_TOOL_NAME,
        "installed": True,
        "categories": ["mcp-dockmaster", "install"],
    }

    async def run(self, arguments: InstallArguments) -> Dict[str, Any]:
        logger.info("Installing tool_id=%s", arguments.tool_id)
        result = await self.gateway.forward("registry/install", {"tool_id": arguments.tool_id})
        return json_content(result)


class ConfigureTool(InternalTool):
    name = CONFIGURE_TOOL_NAME
    arguments_model = ConfigureArguments
    descriptor = {
        "fullDescription": "Configure MCP Tool settings and parameters.",
        "description": "Configure MCP Tool settings and parameters.",
        "inputSchema": {
            "description": "Configuration parameters for the MCP Tool.",
            "properties": {
                "tool_id": {
                    "description": "ID of the MCP Tool to configure.",
                    "title": "Tool ID",
                    "type": "string",
                },
                "config": {
                    "description": "Configuration object with key-value pairs.",
                    "title": "Configuration",
                    "type": "object",
                    "additionalProperties": True,
                },
            },
            "required": ["tool_id", "config"],
            "title": "Configure MCP Tool",
            "type": "object",
        },
        "name": CONFIGURE_TOOL_NAME,
        "server_id": CONFIGURE_TOOL_NAME,
        "installed": True,
        "categories": ["mcp-dockmaster", "config"],
    }

    async def run(self, arguments: ConfigureArguments) -> Dict[str, Any]:
        logger.info(
            "Configuring tool_id=%s config=%s",
            arguments.tool_id,
            redact_payload(arguments.config),
        )
        result = await self.gateway.forward(
            "server/config",
            {"tool_id": arguments.tool_id, "config": arguments.config},
        )
        return json_content(result)


class InternalToolRegistry:
    """Fixed dispatch table of internal tools, checked in construction order."""

    def __init__(self, tools: Sequence[InternalTool]) -> None:
        self.tools: List[InternalTool] = list(tools)

    @classmethod
    def build(
        cls,
        gateway: Any,
        index: SearchIndex,
        enable_configure: bool = True,
    ) -> "InternalToolRegistry":
        tools: List[InternalTool] = [InstallTool(gateway), SearchTool(gateway, index)]
        if enable_configure:
            tools.append(ConfigureTool(gateway))
        return cls(tools)

    @property
    def names(self) -> List[str]:
        return [tool.name for tool in self.tools]

    def descriptors(self) -> List[Dict[str, Any]]:
        return [tool.describe() for tool in self.tools]

    def get(self, name: str) -> Optional[InternalTool]:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    async def initialize(self) -> None:
        """Initialize every tool; a tool whose setup fails stays uninitialized."""
        for tool in self.tools:
            try:
                await tool.initialize()
            except Exception:
                logger.exception("Failed to initialize internal tool %s", tool.name)
                continue
            logger.info("Internal tool ready: %s", tool.name)

    async def dispatch(
        self, name: str, arguments: Optional[Dict[str, Any]]
    ) -> InternalToolResult:
        tool = self.get(name)
        if tool is None:
            return InternalToolResult(handled=False)
        return InternalToolResult(handled=True, result=await tool.invoke(arguments))
