"""JSON-RPC over HTTP client for the tool backend."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import BackendError, TransportError
from .logging import preview, redact_payload

logger = logging.getLogger(__name__)


class BackendClient:
    """Forwards JSON-RPC calls to the backend's local HTTP endpoint.

    No retries are attempted. With ``timeout_seconds=None`` requests never
    time out, so a hung backend stalls only the request that is waiting on it.
    """

    def __init__(
        self,
        url: str,
        timeout_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    async def forward(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        request_body = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params or {},
        }
        logger.debug(
            "Forwarding method=%s to %s params=%s",
            method,
            self.url,
            redact_payload(request_body["params"]),
        )

        try:
            if self._http_client is not None:
                response = await self._http_client.post(self.url, json=request_body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                    response = await client.post(self.url, json=request_body)
        except httpx.HTTPError as exc:
            raise TransportError(None, str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            raise TransportError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise BackendError(f"invalid JSON response for {method}") from exc

        if not isinstance(data, dict):
            raise BackendError(f"unexpected response envelope for {method}")

        error = data.get("error")
        if error is not None:
            message = error.get("message") if isinstance(error, dict) else None
            raise BackendError(message or str(error) or "empty error object")

        result = data.get("result")
        logger.debug("Received response for method=%s: %s", method, preview(result))
        return result

    async def tools_hidden(self) -> bool:
        try:
            result = await self.forward("tools/hidden", {})
        except (TransportError, BackendError) as exc:
            logger.warning("Error checking if tools are hidden: %s", exc)
            return False
        if isinstance(result, dict):
            return bool(result.get("hidden", False))
        return False
