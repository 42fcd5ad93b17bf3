"""Shared httpx client handling for the HTTP adapters."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

DEFAULT_USER_AGENT = "mcp-server-llm-search/0.1"


@asynccontextmanager
async def http_client(client: httpx.AsyncClient | None, timeout: float) -> AsyncIterator[httpx.AsyncClient]:
    """Yield ``client`` if one was injected, otherwise a short-lived client closed on exit."""
    if client is not None:
        yield client
        return

    async with httpx.AsyncClient(timeout=timeout, headers={"User-Agent": DEFAULT_USER_AGENT}, follow_redirects=True) as owned:
        yield owned
