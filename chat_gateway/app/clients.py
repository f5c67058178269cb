"""
Authenticated agent-server client.

Outbound calls to the agent server get their bearer token from an injected
token provider instead of a process-wide override of the HTTP client, so
concurrent requests never see each other's credentials.

Usage:
    async with create_agent_client(api_url, static_token_provider(token)) as client:
        thread = await fetch_thread(client, thread_id)
"""

import logging
from typing import Any, AsyncGenerator, Awaitable, Callable, Dict, Generator, Optional

import httpx

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]


def static_token_provider(token: Optional[str]) -> TokenProvider:
    """Token provider for a token that is already known (e.g. the caller's)."""

    async def provide() -> Optional[str]:
        return token

    return provide


class BearerTokenAuth(httpx.Auth):
    """
    httpx auth flow setting ``Authorization: Bearer <token>``.

    The provider is awaited for every request. When it returns no token the
    request is sent unchanged.
    """

    def __init__(self, token_provider: TokenProvider):
        self._token_provider = token_provider

    def sync_auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("BearerTokenAuth requires an httpx.AsyncClient")

    async def async_auth_flow(self, request: httpx.Request) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._token_provider()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"
        else:
            logger.debug("No bearer token available for agent request", extra={"url": str(request.url)})
        yield request


def create_agent_client(
    api_url: str,
    token_provider: TokenProvider,
    api_key: Optional[str] = None,
    timeout: float = 30.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """
    Create an HTTP client for the agent server.

    Args:
        api_url: Agent server base URL
        token_provider: Async callable returning the bearer token or None
        api_key: Optional API key sent as X-Api-Key
        timeout: Request timeout in seconds
        transport: Optional transport override

    Returns:
        httpx.AsyncClient; the caller owns it and must close it
    """
    headers: Dict[str, str] = {}
    if api_key:
        headers["X-Api-Key"] = api_key

    return httpx.AsyncClient(
        base_url=api_url.rstrip("/"),
        headers=headers,
        auth=BearerTokenAuth(token_provider),
        timeout=timeout,
        transport=transport,
    )


async def fetch_thread(client: httpx.AsyncClient, thread_id: str) -> Optional[Any]:
    """
    Fetch a thread (with its state values) from the agent server.

    Returns:
        Thread JSON, or None if the agent server does not know the thread

    Raises:
        httpx.HTTPStatusError: For other non-2xx responses
    """
    response = await client.get(f"/threads/{thread_id}")
    if response.status_code == 404:
        return None
    response.raise_for_status()
    return response.json()
