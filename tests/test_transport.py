"""Tests for proxy_adapter.transport: stdio message framing."""

import io
import json

import pytest

from proxy_adapter.transport import StdioTransport


def _transport(data: bytes):
    return StdioTransport(io.BytesIO(data), io.BytesIO())


@pytest.mark.asyncio
async def test_reads_newline_delimited_messages():
    transport = _transport(
        b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n'
        b"\n"
        b'{"jsonrpc":"2.0","id":2,"method":"tools/list"}\n'
    )
    first = await transport.read_message()
    second = await transport.read_message()
    assert first["id"] == 1
    assert second["method"] == "tools/list"
    assert await transport.read_message() is None
    assert transport.closed is True


@pytest.mark.asyncio
async def test_reads_content_length_framing():
    body = json.dumps({"jsonrpc": "2.0", "id": 9, "method": "ping"}).encode("utf-8")
    transport = _transport(b"Content-Length: %d\r\n\r\n" % len(body) + body)
    message = await transport.read_message()
    assert message["id"] == 9


@pytest.mark.asyncio
async def test_skips_garbage_and_non_objects():
    transport = _transport(b"not json\n[1, 2, 3]\n" b'{"jsonrpc":"2.0","id":3,"method":"ping"}\n')
    message = await transport.read_message()
    assert message["id"] == 3


@pytest.mark.asyncio
async def test_send_writes_one_line_per_message():
    transport = _transport(b"")
    await transport.send({"jsonrpc": "2.0", "id": 1, "result": {}})
    await transport.send({"jsonrpc": "2.0", "id": 2, "result": {}})
    lines = transport.output_stream.getvalue().decode("utf-8").splitlines()
    assert [json.loads(line)["id"] for line in lines] == [1, 2]


@pytest.mark.asyncio
async def test_send_after_close_is_dropped():
    transport = _transport(b"")
    assert await transport.read_message() is None
    await transport.send({"jsonrpc": "2.0", "id": 1, "result": {}})
    assert transport.output_stream.getvalue() == b""
