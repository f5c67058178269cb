"""
Unit Tests for Share Routes
===========================

Tests for chat_gateway/app/share/routes.py

Test Coverage:
--------------
1. Parameter validation and bearer token enforcement
2. Thread fetch from the agent server with the caller's token
3. Snapshot storage and read-back
4. Not found and expired snapshots
5. Store failures

Run tests:
----------
    pytest chat_gateway/app/tests/test_share.py -v
"""

import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import httpx
import pytest
from fastapi import status

from chat_gateway.app.models import ShareRecord
from chat_gateway.app.share.store import ShareStoreError

THREAD = {
    "thread_id": "thread-1",
    "values": {"messages": [{"type": "human", "content": "hi"}, {"type": "ai", "content": "hello"}]},
}


@pytest.fixture
def agent_requests():
    """Requests received by the fake agent server"""
    return []


@pytest.fixture
def agent_server(app, agent_requests):
    """Install a fake agent server answering GET /threads/{id}"""

    def handler(request: httpx.Request) -> httpx.Response:
        agent_requests.append(request)
        if request.url.path == "/threads/thread-1":
            return httpx.Response(200, json=THREAD)
        return httpx.Response(404, json={"detail": "Thread not found"})

    app.state.app_state.agent_transport = httpx.MockTransport(handler)
    return handler


def share_payload(**overrides):
    payload = {"threadId": "thread-1", "apiUrl": "http://agent-server:2024", "assistantId": "agent"}
    payload.update(overrides)
    return payload


# ============================================================================
# Validation Tests
# ============================================================================

@pytest.mark.parametrize("missing", ["threadId", "apiUrl", "assistantId"])
def test_create_share_requires_all_parameters(client, auth_headers, missing):
    payload = share_payload()
    del payload[missing]

    response = client.post("/api/share", headers=auth_headers, json=payload)

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "Missing required parameters",
        "message": "threadId, apiUrl, and assistantId are required",
    }


def test_create_share_requires_bearer_token(client, agent_server, agent_requests):
    response = client.post("/api/share", json=share_payload())

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Authorization token required"
    assert agent_requests == []


def test_create_share_rejects_non_json_body(client, auth_headers, agent_server, agent_requests):
    response = client.post(
        "/api/share",
        headers={**auth_headers, "Content-Type": "application/json"},
        content=b"not json",
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert set(response.json()) == {"error", "message"}
    assert response.json()["error"] == "Invalid request"
    assert agent_requests == []


def test_create_share_rejects_wrongly_typed_field(client, auth_headers, agent_server):
    response = client.post("/api/share", headers=auth_headers, json=share_payload(threadId=123))

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "error": "Invalid request",
        "message": "body.threadId: Input should be a valid string",
    }


# ============================================================================
# Create / Read Tests
# ============================================================================

def test_create_share_stores_snapshot(client, auth_headers, agent_server, agent_requests, share_store):
    response = client.post("/api/share", headers=auth_headers, json=share_payload())

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    share_id = data["shareId"]
    uuid.UUID(share_id)
    assert data["shareUrl"] == f"http://testserver/shared/{share_id}"
    assert data["message"] == "Thread shared successfully"

    # Fetched with the caller's token
    assert len(agent_requests) == 1
    assert agent_requests[0].headers["Authorization"] == "Bearer tok123"

    record = share_store._records[share_id]
    assert record.thread_id == "thread-1"
    assert record.thread_data == THREAD
    assert record.expires_at - record.created_at == timedelta(days=30)


def test_create_share_uses_public_base_url(app, client, auth_headers, agent_server, test_settings):
    app.state.settings = test_settings.model_copy(update={"PUBLIC_BASE_URL": "https://chat.example.com/"})

    response = client.post("/api/share", headers=auth_headers, json=share_payload())

    share_id = response.json()["shareId"]
    assert response.json()["shareUrl"] == f"https://chat.example.com/shared/{share_id}"


def test_created_share_can_be_read(client, auth_headers, agent_server):
    share_id = client.post("/api/share", headers=auth_headers, json=share_payload()).json()["shareId"]

    response = client.get("/api/share", params={"shareId": share_id})

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["thread"] == THREAD
    assert data["shareId"] == share_id
    assert "createdAt" in data
    assert "expiresAt" in data


def test_create_share_unknown_thread_returns_404(client, auth_headers, agent_server, share_store):
    response = client.post("/api/share", headers=auth_headers, json=share_payload(threadId="missing"))

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Thread not found"
    assert share_store._records == {}


def test_create_share_agent_server_unreachable(app, client, auth_headers):
    def handler(request):
        raise httpx.ConnectError("Connection refused")

    app.state.app_state.agent_transport = httpx.MockTransport(handler)

    response = client.post("/api/share", headers=auth_headers, json=share_payload())

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error", "message": "Connection refused"}


def test_create_share_store_failure(app, client, auth_headers, agent_server):
    failing_store = Mock()
    failing_store.insert = AsyncMock(side_effect=ShareStoreError("db down"))
    app.state.app_state.share_store = failing_store

    response = client.post("/api/share", headers=auth_headers, json=share_payload())

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {
        "error": "Failed to create share",
        "message": "Could not store the thread snapshot",
    }


# ============================================================================
# Read Tests
# ============================================================================

def test_get_share_requires_share_id(client):
    response = client.get("/api/share")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {"error": "Share ID required", "message": "Please provide a share ID"}


def test_get_unknown_share_returns_404(client):
    response = client.get("/api/share", params={"shareId": "does-not-exist"})

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["error"] == "Share not found"


def test_get_expired_share_returns_410(client, share_store):
    record = ShareRecord.new(
        share_id="old-share",
        thread_id="thread-1",
        thread_data=THREAD,
        expiry_days=30,
        now=datetime.now(timezone.utc) - timedelta(days=31),
    )
    share_store._records[record.share_id] = record

    response = client.get("/api/share", params={"shareId": "old-share"})

    assert response.status_code == status.HTTP_410_GONE
    assert response.json() == {"error": "Share expired", "message": "This shared thread has expired"}


def test_get_share_lookup_failure_returns_404(app, client):
    failing_store = Mock()
    failing_store.get = AsyncMock(side_effect=ShareStoreError("db down"))
    app.state.app_state.share_store = failing_store

    response = client.get("/api/share", params={"shareId": "abc"})

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_share_record_expiry():
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    record = ShareRecord.new("s", "t", {}, expiry_days=30, now=now)

    assert record.expires_at == datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert not record.is_expired(now + timedelta(days=29))
    assert record.is_expired(now + timedelta(days=31))
