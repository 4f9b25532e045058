"""Shared fixtures: a recording stand-in for the backend gateway."""

from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest

from proxy_adapter.errors import TransportError

Responder = Union[Any, Exception, Callable[[Dict[str, Any]], Any]]


class FakeGateway:
    """Answers ``forward`` calls from a method -> response table and records them."""

    def __init__(self, responses: Optional[Dict[str, Responder]] = None, hidden: bool = False) -> None:
        self.responses: Dict[str, Responder] = dict(responses or {})
        self.hidden = hidden
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    async def forward(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        params = params or {}
        self.calls.append((method, params))
        if method not in self.responses:
            raise TransportError(404, f"no canned response for {method}")
        response = self.responses[method]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(params)
        return response

    async def tools_hidden(self) -> bool:
        self.calls.append(("tools/hidden", {}))
        return self.hidden

    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]


class FailingGateway(FakeGateway):
    async def forward(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.calls.append((method, params or {}))
        raise TransportError(503, "backend unavailable")


REGISTRY_TOOLS = [
    {
        "id": "sql-server",
        "name": "sql-server",
        "description": "SQL database server",
        "fullDescription": "Query and manage a SQL database server with read and write access.",
        "categories": ["database", "sql"],
        "installed": True,
        "publisher": {"id": "acme", "name": "Acme", "url": "https://acme.example"},
        "distribution": {"type": "npm", "package": "@acme/sql-server"},
        "license": "MIT",
        "runtime": "node",
        "config": {
            "command": "npx",
            "args": ["-y", "@acme/sql-server"],
            "env": {"DATABASE_URL": {"required": True, "description": "Connection string"}},
        },
    },
    {
        "name": "github-issues",
        "fullDescription": "Browse GitHub issues and pull requests.",
        "categories": ["developer", "git"],
        "installed": False,
        "config": {"command": "npx", "args": [], "env": {}},
    },
    {
        "name": "weather-forecast",
        "fullDescription": "Weather forecast lookups by city.",
        "categories": ["weather"],
        "config": {"command": "uvx", "args": [], "env": {}},
    },
]


@pytest.fixture
def registry_tools() -> List[Dict[str, Any]]:
    return [dict(tool) for tool in REGISTRY_TOOLS]
