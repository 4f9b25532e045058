"""Assembly of the client-facing tool catalog."""

from __future__ import annotations

import copy
import logging
import re
from typing import Any, Dict, List, Sequence, Set

from .models import decode_tool_list

logger = logging.getLogger(__name__)

MAX_TOOL_NAME_LENGTH = 64
OPTIONAL_MARKER = "(Optional)"
OPTIONAL_SUFFIX = " (Optional) leave it empty if optional"
STRIPPED_FIELDS = ("proxy_id", "server_id", "categories", "tags", "is_active", "id")

_INVALID_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_tool_name(name: str) -> str:
    return _INVALID_NAME_CHARS.sub("_", name)[:MAX_TOOL_NAME_LENGTH]


def patch_single_parameter_schema(tool: Dict[str, Any]) -> Dict[str, Any]:
    """Mark the only parameter of a schema as required.

    Some clients refuse to call tools that have no required parameters. The
    parameter's description is flagged so callers know they may send it empty.
    """
    schema = tool.get("inputSchema")
    if not isinstance(schema, dict):
        return tool
    properties = schema.get("properties")
    if not isinstance(properties, dict) or len(properties) != 1:
        return tool
    if schema.get("required"):
        return tool

    property_name = next(iter(properties))
    schema["required"] = [property_name]

    definition = properties[property_name]
    if isinstance(definition, dict):
        description = definition.get("description")
        if isinstance(description, str) and description and OPTIONAL_MARKER not in description:
            definition["description"] = description + OPTIONAL_SUFFIX
    return tool


def strip_internal_fields(tool: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in tool.items() if key not in STRIPPED_FIELDS}


class CatalogAssembler:
    def __init__(
        self,
        internal_tools: Sequence[Dict[str, Any]],
        patch_schemas: bool = True,
    ) -> None:
        self.internal_tools = list(internal_tools)
        self.patch_schemas = patch_schemas

    def assemble(self, backend_result: Any) -> List[Dict[str, Any]]:
        """Build the ``tools/list`` payload from a raw backend result.

        Backend order is kept and the internal tools are appended last, even
        when ``backend_result`` is missing or malformed.
        """
        tools = [copy.deepcopy(tool) for tool in decode_tool_list(backend_result)]
        tools.extend(copy.deepcopy(tool) for tool in self.internal_tools)

        catalog: List[Dict[str, Any]] = []
        seen: Set[str] = set()
        for tool in tools:
            if tool.get("is_active") is False:
                continue

            name = tool.get("name")
            if not isinstance(name, str) or not name:
                logger.warning("Skipping tool without a usable name: %r", name)
                continue

            if self.patch_schemas:
                tool = patch_single_parameter_schema(tool)
            tool = strip_internal_fields(tool)
            tool["name"] = sanitize_tool_name(name)

            if tool["name"] in seen:
                logger.warning("Duplicate tool name in catalog after sanitizing: %s", tool["name"])
            seen.add(tool["name"])
            catalog.append(tool)

        return catalog
