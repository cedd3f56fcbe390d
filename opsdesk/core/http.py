"""Shared ``httpx.AsyncClient`` instances for outbound calls.

Clients are created on first use, keyed by name, and closed together
by the application lifespan.
"""

import httpx

IDENTITY_TOOLKIT = "identity-toolkit"

_TIMEOUT = httpx.Timeout(10.0, connect=5.0, pool=5.0)

_LIMITS = {
    IDENTITY_TOOLKIT: httpx.Limits(max_connections=50, max_keepalive_connections=10),
}

_clients: dict[str, httpx.AsyncClient] = {}


def get_http_client(name: str) -> httpx.AsyncClient:
    """Return the pooled client for ``name``, creating it if needed."""
    client = _clients.get(name)
    if client is None or client.is_closed:
        client = httpx.AsyncClient(
            timeout=_TIMEOUT,
            limits=_LIMITS.get(name, httpx.Limits(max_connections=20)),
        )
        _clients[name] = client
    return client


def get_identity_toolkit_client() -> httpx.AsyncClient:
    return get_http_client(IDENTITY_TOOLKIT)


async def close_http_clients() -> None:
    while _clients:
        _, client = _clients.popitem()
        await client.aclose()
