"""Line-oriented JSON-RPC transport over a pair of binary streams."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, BinaryIO, Dict, Optional

logger = logging.getLogger(__name__)


class StdioTransport:
    """Reads inbound JSON-RPC messages and writes outbound ones.

    Input is newline-delimited JSON; ``Content-Length`` framed messages are
    accepted as well. Output is always one JSON document per line. Blocking
    reads run in a worker thread so the event loop stays free for in-flight
    backend calls.
    """

    def __init__(self, input_stream: BinaryIO, output_stream: BinaryIO) -> None:
        self.input_stream = input_stream
        self.output_stream = output_stream
        self.closed = False
        self._write_lock = asyncio.Lock()

    async def read_message(self) -> Optional[Dict[str, Any]]:
        if self.closed:
            return None
        message = await asyncio.to_thread(self._read_message_blocking)
        if message is None:
            self.closed = True
        return message

    async def send(self, message: Dict[str, Any]) -> None:
        if self.closed:
            return
        payload = (json.dumps(message) + "\n").encode("utf-8")
        async with self._write_lock:
            try:
                self.output_stream.write(payload)
                self.output_stream.flush()
            except (BrokenPipeError, OSError) as exc:
                self.closed = True
                logger.warning("Stdio transport closed while sending: %s", exc)

    def _read_message_blocking(self) -> Optional[Dict[str, Any]]:
        while True:
            line = self.input_stream.readline()
            if not line:
                return None
            if not line.strip():
                continue

            if line.lower().startswith(b"content-length:"):
                try:
                    content_length = int(line.split(b":", 1)[1].strip())
                    if content_length <= 0:
                        raise ValueError("content length must be positive")
                except ValueError:
                    logger.warning("Invalid Content-Length header: %r", line)
                    if not self._consume_framing_headers():
                        return None
                    continue

                if not self._consume_framing_headers():
                    return None
                payload = self.input_stream.read(content_length)
                if not payload or len(payload) != content_length:
                    return None
            else:
                payload = line

            try:
                message = json.loads(payload.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("Discarding unparseable message: %r", payload[:200])
                continue

            if isinstance(message, dict):
                return message
            logger.warning("Discarding non-object message: %r", message)

    def _consume_framing_headers(self) -> bool:
        while True:
            header_line = self.input_stream.readline()
            if not header_line:
                return False
            if header_line in (b"\r\n", b"\n"):
                return True
