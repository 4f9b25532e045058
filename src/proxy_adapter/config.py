"""Configuration for the MCP proxy adapter."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False)

    backend_host: str = Field(default="localhost")
    backend_port: int = Field(
        default=11011,
        validation_alias=AliasChoices("backend_port", "dockmaster_http_server_port"),
    )
    backend_path: str = Field(default="/mcp-proxy")
    backend_timeout_seconds: Optional[float] = Field(default=None)

    adapter_server_name: str = Field(default="MCP Proxy Server")
    adapter_server_version: str = Field(default="0.1.0")
    adapter_max_concurrency: int = Field(default=1, ge=1)
    adapter_log_level: str = Field(default="INFO")
    adapter_search_limit: int = Field(default=10, ge=1, le=10)

    adapter_enable_configure_tool: bool = Field(default=True)
    adapter_enable_schema_patch: bool = Field(default=True)
    adapter_respect_hidden_tools: bool = Field(default=False)

    def backend_url(self) -> str:
        path = self.backend_path if self.backend_path.startswith("/") else f"/{self.backend_path}"
        return f"http://{self.backend_host}:{self.backend_port}{path}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
