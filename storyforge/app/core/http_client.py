"""The process-wide ``httpx.AsyncClient``.

Opened by the application lifespan. The Gemini provider and the Supabase
token check borrow it, so both share one connection pool.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from storyforge.app.core.config import Settings, settings

_client: Optional[httpx.AsyncClient] = None


def build_http_client(config: Settings = settings) -> httpx.AsyncClient:
    """A new client with the configured timeouts and pool limits.

    The read timeout bounds the gap between streamed chunks, not the whole
    generation.
    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=config.httpx_connect_timeout,
            read=config.httpx_read_timeout,
            write=config.httpx_write_timeout,
            pool=config.httpx_pool_timeout,
        ),
        limits=httpx.Limits(
            max_connections=config.httpx_max_connections,
            max_keepalive_connections=config.httpx_max_keepalive_connections,
            keepalive_expiry=config.httpx_keepalive_expiry,
        ),
    )


def get_http_client() -> httpx.AsyncClient:
    """Return the shared client.

    Raises:
        RuntimeError: Outside the application lifespan
    """
    if _client is None:
        raise RuntimeError("HTTP client is not open; it only exists inside the application lifespan")
    return _client


@asynccontextmanager
async def init_http_client(config: Settings = settings) -> AsyncIterator[httpx.AsyncClient]:
    """Open the shared client for the duration of the block."""
    global _client
    client = build_http_client(config)
    _client = client
    try:
        yield client
    finally:
        _client = None
        await client.aclose()
