"""Tests for proxy_adapter.backend_client: JSON-RPC forwarding over HTTP."""

import json

import httpx
import pytest

from proxy_adapter.backend_client import BackendClient
from proxy_adapter.errors import BackendError, TransportError

BACKEND_URL = "http://localhost:11011/mcp-proxy"


def _client(handler):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BackendClient(BACKEND_URL, http_client=http_client)


@pytest.mark.asyncio
async def test_forward_sends_jsonrpc_envelope():
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content.decode("utf-8"))
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": {"tools": []}})

    result = await _client(handler).forward("tools/list", {"cursor": "abc"})

    assert result == {"tools": []}
    assert seen["method"] == "POST"
    assert seen["url"] == BACKEND_URL
    assert seen["body"] == {
        "jsonrpc": "2.0",
        "id": 1,
        "method": "tools/list",
        "params": {"cursor": "abc"},
    }


@pytest.mark.asyncio
async def test_forward_defaults_params_to_empty_object():
    async def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        assert body["params"] == {}
        return httpx.Response(200, json={"result": ["a", "b"]})

    assert await _client(handler).forward("registry/list") == ["a", "b"]


@pytest.mark.asyncio
async def test_non_2xx_is_transport_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="backend exploded")

    with pytest.raises(TransportError) as excinfo:
        await _client(handler).forward("tools/list", {})
    assert excinfo.value.status == 500
    assert excinfo.value.body == "backend exploded"


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error():
    async def handler(request: httpx.Request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(TransportError) as excinfo:
        await _client(handler).forward("tools/list", {})
    assert excinfo.value.status is None


@pytest.mark.asyncio
async def test_jsonrpc_error_is_backend_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": {"code": -1, "message": "Tool not found"}})

    with pytest.raises(BackendError, match="Tool not found"):
        await _client(handler).forward("tools/call", {"name": "nope"})


@pytest.mark.asyncio
async def test_invalid_json_is_backend_error():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>not json</html>")

    with pytest.raises(BackendError):
        await _client(handler).forward("tools/list", {})


@pytest.mark.asyncio
async def test_tools_hidden():
    async def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8"))
        assert body["method"] == "tools/hidden"
        return httpx.Response(200, json={"result": {"hidden": True}})

    assert await _client(handler).tools_hidden() is True


@pytest.mark.asyncio
async def test_tools_hidden_defaults_false_on_failure():
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="unknown method")

    assert await _client(handler).tools_hidden() is False


@pytest.mark.parametrize("error", [{}, ""])
@pytest.mark.asyncio
async def test_empty_error_member_is_backend_error(error):
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "error": error})

    with pytest.raises(BackendError):
        await _client(handler).forward("tools/list", {})
