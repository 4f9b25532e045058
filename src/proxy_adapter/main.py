"""CLI entry point for the MCP proxy adapter."""

from __future__ import annotations

import asyncio

from .config import get_settings
from .logging import configure_logging
from .server import build_server


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings.adapter_log_level)

    server = build_server(settings)
    await server.serve()


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
