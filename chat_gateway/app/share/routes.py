"""
Share Routes - Thread Snapshot Sharing
======================================

Endpoints:
----------
- POST /api/share: snapshot a thread from the agent server (requires bearer token)
- GET /api/share?shareId=...: read a snapshot (public, time-limited)

Snapshots are copies taken at share time; later changes to the thread are
not visible through the share.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth.tokens import bearer_token_from_request, describe_credential
from ..clients import create_agent_client, fetch_thread, static_token_provider
from ..config import Settings
from ..dependencies import get_app_settings, get_app_state, get_share_store
from ..errors import ApiError, MissingCredentialError, exception_message
from ..models import ShareCreatedResponse, ShareRecord, SharedThreadResponse, ShareRequest
from .store import ShareStore, ShareStoreError

logger = logging.getLogger(__name__)

share_router = APIRouter()


def build_share_url(request: Request, settings: Settings, share_id: str) -> str:
    """Public URL of the shared-thread page for a snapshot."""
    origin = settings.PUBLIC_BASE_URL or str(request.base_url)
    return f"{origin.rstrip('/')}/shared/{share_id}"


@share_router.post("/api/share", response_model=ShareCreatedResponse)
async def create_share(
    request: Request,
    payload: ShareRequest,
    settings: Settings = Depends(get_app_settings),
    store: ShareStore = Depends(get_share_store),
) -> ShareCreatedResponse:
    """
    Snapshot a thread and return its public share URL.

    Flow:
    1. Validate threadId, apiUrl and assistantId (400)
    2. Require the caller's bearer token (401)
    3. Fetch the thread from the agent server with that token (404 if unknown)
    4. Store the snapshot with its expiry (500 if the store fails)

    Raises:
        ApiError: For each failure above
    """
    if not payload.threadId or not payload.apiUrl or not payload.assistantId:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Missing required parameters",
            "threadId, apiUrl, and assistantId are required",
        )

    token = bearer_token_from_request(request)
    logger.debug("Share request received", extra=describe_credential(request.headers.get("authorization")))
    if token is None:
        raise MissingCredentialError()

    try:
        async with create_agent_client(
            payload.apiUrl,
            static_token_provider(token),
            api_key=settings.LANGGRAPH_API_KEY,
            timeout=settings.BACKEND_TIMEOUT_SECONDS,
            transport=get_app_state(request).agent_transport,
        ) as agent_client:
            thread = await fetch_thread(agent_client, payload.threadId)
    except Exception as e:
        logger.error(f"Failed to fetch thread for sharing: {e}", exc_info=True, extra={"thread_id": payload.threadId})
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            exception_message(e),
        )

    if not thread:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "Thread not found",
            "The specified thread could not be found",
        )

    record = ShareRecord.new(
        share_id=str(uuid.uuid4()),
        thread_id=payload.threadId,
        thread_data=thread,
        expiry_days=settings.SHARE_EXPIRY_DAYS,
    )

    try:
        await store.insert(record)
    except ShareStoreError as e:
        logger.error(f"Error storing shared thread: {e}", extra={"thread_id": payload.threadId})
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to create share",
            "Could not store the thread snapshot",
        )

    logger.info(
        "Thread shared",
        extra={"thread_id": payload.threadId, "share_id": record.share_id, "expires_at": record.expires_at.isoformat()},
    )

    return ShareCreatedResponse(
        shareId=record.share_id,
        shareUrl=build_share_url(request, settings, record.share_id),
    )


@share_router.get("/api/share", response_model=SharedThreadResponse)
async def get_share(
    shareId: Optional[str] = Query(None, description="Share identifier"),
    store: ShareStore = Depends(get_share_store),
) -> SharedThreadResponse:
    """
    Return a stored snapshot.

    Raises:
        ApiError: 400 without shareId, 404 if unknown, 410 if expired
    """
    if not shareId:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Share ID required",
            "Please provide a share ID",
        )

    try:
        record = await store.get(shareId)
    except ShareStoreError as e:
        logger.error(f"Share lookup failed: {e}", extra={"share_id": shareId})
        record = None

    if record is None:
        raise ApiError(
            status.HTTP_404_NOT_FOUND,
            "Share not found",
            "The shared thread could not be found or has expired",
        )

    if record.is_expired():
        raise ApiError(
            status.HTTP_410_GONE,
            "Share expired",
            "This shared thread has expired",
        )

    return SharedThreadResponse(
        thread=record.thread_data,
        shareId=record.share_id,
        createdAt=record.created_at,
        expiresAt=record.expires_at,
    )
