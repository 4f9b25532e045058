"""Registry models and decode steps for backend payloads."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class RegistryEntry(BaseModel):
    """One installable tool from the backend's registry snapshot.

    Only the fields that feed the search index and the tool summary are
    checked. Publisher, distribution, license, runtime and config are kept
    as the backend sent them.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)

    name: str
    id: Optional[Union[str, int]] = None
    description: str = ""
    full_description: Optional[str] = Field(default=None, alias="fullDescription")
    categories: List[str] = Field(default_factory=list)
    tags: List[Any] = Field(default_factory=list)
    installed: bool = False
    publisher: Any = None
    distribution: Any = None
    license: Any = None
    runtime: Any = None
    config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("categories", "tags", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("installed", mode="before")
    @classmethod
    def _none_installed(cls, value: Any) -> Any:
        return False if value is None else value

    @field_validator("config", mode="before")
    @classmethod
    def _config_object(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else {}

    def env(self) -> Dict[str, Any]:
        env = self.config.get("env")
        return dict(env) if isinstance(env, dict) else {}

    def searchable_description(self) -> str:
        return self.full_description or self.description or ""

    def summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "fullDescription": self.searchable_description(),
            "id": self.name,
            "installed": self.installed,
            "categories": list(self.categories),
            "config": self.env(),
        }


@dataclass(frozen=True)
class SearchIndexEntry:
    ref: str
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_registry_entry(cls, entry: RegistryEntry) -> "SearchIndexEntry":
        return cls(
            ref=entry.name.lower(),
            fields={
                "name": entry.name,
                "categories": ", ".join(entry.categories),
                "fullDescription": entry.searchable_description(),
            },
        )


def _unwrap_tools(result: Any, source: str) -> List[Any]:
    if result is None:
        return []
    if isinstance(result, dict) and isinstance(result.get("tools"), list):
        return result["tools"]
    if isinstance(result, list):
        return result
    logger.warning("Unexpected %s result shape: %s", source, type(result).__name__)
    return []


def decode_tool_list(result: Any) -> List[Dict[str, Any]]:
    """Coerce a ``tools/list`` result into a list of raw tool objects.

    Accepts ``{"tools": [...]}`` or a bare list; anything else decodes to an
    empty list. Non-object items are dropped.
    """
    tools: List[Dict[str, Any]] = []
    for item in _unwrap_tools(result, "tools/list"):
        if isinstance(item, dict):
            tools.append(item)
        else:
            logger.warning("Skipping non-object tool entry: %r", item)
    return tools


def decode_registry_snapshot(result: Any) -> List[RegistryEntry]:
    entries: List[RegistryEntry] = []
    for item in _unwrap_tools(result, "registry/list"):
        if not isinstance(item, dict):
            logger.warning("Skipping non-object registry entry: %r", item)
            continue
        try:
            entries.append(RegistryEntry.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid registry entry %r: %s", item.get("name"), exc)
    return entries
