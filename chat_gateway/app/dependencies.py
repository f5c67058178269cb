"""
Application state and shared FastAPI dependencies.

The app factory attaches one AppState per application instance to
``app.state.app_state``; the lifespan fills in the HTTP clients and the
share store. Tests replace these attributes with mocks.
"""

from typing import Any, Optional

import httpx
from fastapi import Request, status

from .config import Settings, get_settings
from .errors import ApiError


class AppState:
    """
    Per-application state container.

    Holds the pooled HTTP clients and the share snapshot store.
    """

    def __init__(self):
        # Client used by the forwarding proxy for the agent server
        self.backend_client: Optional[httpx.AsyncClient] = None
        # Client for webhook, identity provider and PostgREST calls
        self.outbound_client: Optional[httpx.AsyncClient] = None
        # Transport override for agent clients built per request (tests)
        self.agent_transport: Optional[httpx.AsyncBaseTransport] = None
        self.share_store: Any = None


def get_app_settings(request: Request) -> Settings:
    """Settings bound to the application, falling back to the cached singleton."""
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        return get_settings()
    return settings


def get_app_state(request: Request) -> AppState:
    if not hasattr(request.app.state, "app_state"):
        raise ApiError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service unavailable",
            "Application state not initialized",
        )
    return request.app.state.app_state


def get_backend_client(request: Request) -> httpx.AsyncClient:
    """
    Get the agent-server HTTP client from app state.

    Raises:
        ApiError: 503 if the client has not been created
    """
    client = get_app_state(request).backend_client
    if not client:
        raise ApiError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service unavailable",
            "Backend client not available",
        )
    return client


def get_outbound_client(request: Request) -> httpx.AsyncClient:
    """Get the HTTP client for webhook, identity and store calls."""
    client = get_app_state(request).outbound_client
    if not client:
        raise ApiError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service unavailable",
            "Outbound HTTP client not available",
        )
    return client


def get_share_store(request: Request) -> Any:
    store = get_app_state(request).share_store
    if store is None:
        raise ApiError(
            status.HTTP_503_SERVICE_UNAVAILABLE,
            "Service unavailable",
            "Share store not available",
        )
    return store
