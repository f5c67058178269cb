"""
Proxy Routes - Agent Server Request Forwarding
==============================================

This module implements the authenticated forwarding proxy between the browser
chat client and the agent-execution server.

Security Model:
---------------
1. Every forwarded request must carry ``Authorization: Bearer <token>``
2. Requests without a token are rejected with 401 before any backend contact
3. The outbound Authorization header is rebuilt from the extracted token
4. Only Content-Type and Authorization are forwarded
5. Paths are forwarded as received; the agent server decides what exists

Endpoints:
----------
- GET|POST|PUT|DELETE /api/{path}: forward to <backend>/{path}
- OPTIONS /api/{path}: CORS preflight, answered locally
"""

import asyncio
import logging
from typing import Awaitable, Dict, Optional

import httpx
from fastapi import APIRouter, Request, Response, status

from ..auth.tokens import bearer_token_from_request, describe_credential
from ..config import Settings
from ..dependencies import get_app_settings, get_backend_client
from ..errors import MISSING_TOKEN_ERROR, MISSING_TOKEN_MESSAGE, error_response, exception_message

logger = logging.getLogger(__name__)

# Create router
proxy_router = APIRouter()

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

BODY_METHODS = ("POST", "PUT")

DEFAULT_CONTENT_TYPE = "application/json"

# How often to check for a vanished client while the backend call is pending
DISCONNECT_POLL_SECONDS = 1.0

# Non-standard status (nginx convention) for requests the client abandoned
CLIENT_CLOSED_REQUEST = 499


class ClientDisconnected(Exception):
    """The browser went away before the backend answered"""
    pass


# ============================================================================
# Request Building
# ============================================================================

def build_target_url(backend_base_url: str, path: str) -> str:
    """
    Build the backend URL for a proxied path.

    No encoding or sanitization is applied.

    Example:
        >>> build_target_url("http://localhost:2024", "threads/abc/runs")
        'http://localhost:2024/threads/abc/runs'
    """
    return f"{backend_base_url}/{path}"


def build_backend_headers(token: str, content_type: Optional[str]) -> Dict[str, str]:
    """
    Build headers for the backend request.

    The Authorization header is always re-derived from the extracted token;
    the inbound header value is never copied.
    """
    headers: Dict[str, str] = {}
    if content_type:
        headers["Content-Type"] = content_type
    headers["Authorization"] = f"Bearer {token}"
    return headers


def build_timeout(settings: Settings) -> httpx.Timeout:
    return httpx.Timeout(
        settings.BACKEND_TIMEOUT_SECONDS,
        connect=settings.BACKEND_CONNECT_TIMEOUT_SECONDS,
    )


# ============================================================================
# Response Building
# ============================================================================

def relay_response(backend_response: httpx.Response) -> Response:
    """
    Copy a backend response for the browser.

    Status and body are copied verbatim; the body is never parsed. CORS
    headers replace anything the backend sent under the same names.
    """
    headers = {
        "Content-Type": backend_response.headers.get("content-type") or DEFAULT_CONTENT_TYPE,
        **CORS_HEADERS,
    }
    return Response(
        content=backend_response.content,
        status_code=backend_response.status_code,
        headers=headers,
    )


def missing_token_response() -> Response:
    return error_response(
        status.HTTP_401_UNAUTHORIZED,
        MISSING_TOKEN_ERROR,
        MISSING_TOKEN_MESSAGE,
        headers=CORS_HEADERS,
    )


def proxy_error_response(exc: BaseException) -> Response:
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        exception_message(exc),
        headers=CORS_HEADERS,
    )


# ============================================================================
# Forwarding
# ============================================================================

async def _send_unless_disconnected(request: Request, send: Awaitable[httpx.Response]) -> httpx.Response:
    """
    Await the backend call, cancelling it if the browser disconnects.

    Raises:
        ClientDisconnected: The client went away first
    """
    send_task = asyncio.ensure_future(send)
    try:
        while True:
            done, _ = await asyncio.wait({send_task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return send_task.result()
            if await request.is_disconnected():
                raise ClientDisconnected()
    finally:
        if not send_task.done():
            send_task.cancel()


async def forward_request(request: Request, path: str, method: str) -> Response:
    """
    Forward one browser request to the agent server.

    Flow:
    1. Require a bearer token (401 without backend contact otherwise)
    2. Build target URL and headers
    3. Read the body for POST/PUT only
    4. Send the request with the same method
    5. Relay status, body and Content-Type, adding CORS headers

    Any failure after step 1 becomes a 500 with the error envelope; a
    backend error status is relayed like any other response.
    """
    authorization = request.headers.get("authorization")
    token = bearer_token_from_request(request)

    logger.debug(
        "Proxy request received",
        extra={"path": path, "method": method, **describe_credential(authorization)},
    )

    if token is None:
        logger.error("No authorization token found in request headers", extra={"path": path, "method": method})
        return missing_token_response()

    try:
        settings = get_app_settings(request)
        backend_client = get_backend_client(request)

        target_url = build_target_url(settings.backend_base_url, path)
        headers = build_backend_headers(token, request.headers.get("content-type"))

        body: Optional[bytes] = None
        if method in BODY_METHODS:
            body = await request.body()

        logger.info(
            "Forwarding request to agent server",
            extra={"url": target_url, "method": method, "body_length": len(body) if body else 0},
        )

        backend_response = await _send_unless_disconnected(
            request,
            backend_client.request(
                method,
                target_url,
                headers=headers,
                content=body,
                timeout=build_timeout(settings),
            ),
        )

        logger.info(
            "Agent server response received",
            extra={
                "url": target_url,
                "status_code": backend_response.status_code,
                "reason_phrase": backend_response.reason_phrase,
            },
        )

        return relay_response(backend_response)

    except ClientDisconnected:
        logger.info("Client disconnected, backend request cancelled", extra={"path": path, "method": method})
        return Response(status_code=CLIENT_CLOSED_REQUEST, headers=CORS_HEADERS)

    except Exception as e:
        logger.error(f"Proxy error: {e}", exc_info=True, extra={"path": path, "method": method})
        return proxy_error_response(e)


# ============================================================================
# Proxy Endpoints
# ============================================================================

@proxy_router.api_route("/api/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def proxy_agent_request(request: Request, path: str) -> Response:
    """Forward GET/POST/PUT/DELETE /api/{path} to the agent server."""
    return await forward_request(request, path, request.method)


@proxy_router.options("/api/{path:path}")
async def proxy_preflight(path: str) -> Response:
    """Answer CORS preflight requests without contacting the backend."""
    return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
