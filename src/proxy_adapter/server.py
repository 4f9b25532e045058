"""Server assembly and the stdio serve loop."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import sys
from typing import Any, Dict, Optional, Set

from .backend_client import BackendClient
from .catalog import CatalogAssembler
from .config import Settings
from .dispatcher import ProtocolDispatcher
from .internal_tools import InternalToolRegistry
from .search_index import SearchIndex
from .transport import StdioTransport

logger = logging.getLogger(__name__)


class ProxyServer:
    def __init__(
        self,
        dispatcher: ProtocolDispatcher,
        transport: StdioTransport,
        max_concurrency: int = 1,
    ) -> None:
        self.dispatcher = dispatcher
        self.transport = transport
        self.semaphore = asyncio.Semaphore(max_concurrency)

    async def serve(self) -> None:
        """Answer requests until the input stream closes.

        Internal tools are initialized in the background; pass-through
        methods are served while that is in progress. A slot is taken before
        each message is dispatched, so with one slot requests are answered
        strictly in arrival order.
        """
        init_task = asyncio.create_task(self.dispatcher.initialize_internal_tools())
        pending: Set[asyncio.Task[None]] = set()
        try:
            while True:
                message = await self.transport.read_message()
                if message is None:
                    break
                await self.semaphore.acquire()
                task = asyncio.create_task(self._process(message))
                pending.add(task)
                task.add_done_callback(pending.discard)
            if pending:
                await asyncio.gather(*pending)
        finally:
            if not init_task.done():
                init_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await init_task
        logger.info("Stdio transport closed; shutting down")

    async def _process(self, message: Dict[str, Any]) -> None:
        try:
            response = await self.dispatcher.handle_message(message)
            if response is not None:
                await self.transport.send(response)
        finally:
            self.semaphore.release()


def build_dispatcher(settings: Settings, gateway: Optional[Any] = None) -> ProtocolDispatcher:
    gateway = gateway or BackendClient(
        url=settings.backend_url(),
        timeout_seconds=settings.backend_timeout_seconds,
    )
    index = SearchIndex(limit=settings.adapter_search_limit)
    internal_tools = InternalToolRegistry.build(
        gateway,
        index,
        enable_configure=settings.adapter_enable_configure_tool,
    )
    catalog = CatalogAssembler(
        internal_tools.descriptors(),
        patch_schemas=settings.adapter_enable_schema_patch,
    )
    return ProtocolDispatcher(
        gateway,
        internal_tools,
        catalog,
        server_name=settings.adapter_server_name,
        server_version=settings.adapter_server_version,
        respect_hidden_tools=settings.adapter_respect_hidden_tools,
    )


def build_server(settings: Settings) -> ProxyServer:
    logger.info("Target backend: %s", settings.backend_url())
    dispatcher = build_dispatcher(settings)
    transport = StdioTransport(sys.stdin.buffer, sys.stdout.buffer)
    return ProxyServer(dispatcher, transport, max_concurrency=settings.adapter_max_concurrency)
