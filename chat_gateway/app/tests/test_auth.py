"""
Unit Tests for Authentication
=============================

Tests for chat_gateway/app/auth/

Test Coverage:
--------------
1. Bearer token extraction rules
2. /api/test-auth with local JWT verification
3. /api/test-auth with the remote Supabase Auth API
4. Identity provider misconfiguration and failures
"""

import time
from unittest.mock import AsyncMock

import httpx
import jwt
import pytest
from fastapi import status

from chat_gateway.app.auth.identity import IdentityVerifier
from chat_gateway.app.auth.tokens import describe_credential, extract_bearer_token

JWT_SECRET = "test-supabase-jwt-secret-1234567890abcdef"
SUPABASE_USER_URL = "https://project.supabase.co/auth/v1/user"


def identity_response(status_code, **kwargs):
    """Supabase Auth API response bound to its request"""
    return httpx.Response(status_code, request=httpx.Request("GET", SUPABASE_USER_URL), **kwargs)


def make_token(secret=JWT_SECRET, expires_in=3600, **claims):
    payload = {
        "sub": "user-123",
        "email": "test@example.com",
        "aud": "authenticated",
        "exp": int(time.time()) + expires_in,
    }
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


@pytest.fixture
def local_verification(app, test_settings):
    app.state.settings = test_settings.model_copy(update={"SUPABASE_JWT_SECRET": JWT_SECRET})
    return app


@pytest.fixture
def remote_verification(app, test_settings):
    app.state.settings = test_settings.model_copy(
        update={"SUPABASE_URL": "https://project.supabase.co", "SUPABASE_SERVICE_KEY": "service-key"}
    )
    return app


# ============================================================================
# Token Extraction Tests
# ============================================================================

def test_extract_bearer_token():
    assert extract_bearer_token("Bearer tok123") == "tok123"
    assert extract_bearer_token("Bearer  spaced") == " spaced"
    assert extract_bearer_token(None) is None
    assert extract_bearer_token("") is None
    assert extract_bearer_token("Bearer ") is None
    assert extract_bearer_token("bearer tok123") is None
    assert extract_bearer_token("Basic abc") is None


def test_describe_credential_never_contains_token():
    summary = describe_credential("Bearer secret-token")

    assert summary == {"has_auth_header": True, "has_token": True, "token_length": 12}
    assert "secret-token" not in str(summary)


# ============================================================================
# /api/test-auth Tests
# ============================================================================

def test_test_auth_requires_token(client):
    response = client.get("/api/test-auth")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {
        "error": "Authorization token required",
        "message": "No authorization header found in request. Please ensure you are logged in.",
    }


def test_test_auth_local_valid_token(local_verification, client):
    response = client.get("/api/test-auth", headers={"Authorization": f"Bearer {make_token()}"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "success": True,
        "user": {"id": "user-123", "email": "test@example.com"},
        "message": "Authentication successful",
    }


@pytest.mark.parametrize(
    "token",
    [
        make_token(expires_in=-60),
        make_token(secret="another-secret-that-is-long-enough-1234"),
        make_token(aud="anon"),
        "not-a-jwt",
    ],
)
def test_test_auth_local_rejected_token(local_verification, client, token):
    response = client.get("/api/test-auth", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {
        "error": "Invalid token",
        "message": "The provided token is invalid or expired",
    }


def test_test_auth_remote_valid_token(remote_verification, client, mock_outbound_client):
    mock_outbound_client.get = AsyncMock(
        return_value=identity_response(200, json={"id": "user-9", "email": "remote@example.com"})
    )

    response = client.get("/api/test-auth", headers={"Authorization": "Bearer opaque-token"})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"] == {"id": "user-9", "email": "remote@example.com"}

    call_args = mock_outbound_client.get.call_args
    assert call_args.args[0] == SUPABASE_USER_URL
    assert call_args.kwargs["headers"]["Authorization"] == "Bearer opaque-token"
    assert call_args.kwargs["headers"]["apikey"] == "service-key"


def test_test_auth_remote_rejected_token(remote_verification, client, mock_outbound_client):
    mock_outbound_client.get = AsyncMock(return_value=identity_response(401, json={"msg": "invalid JWT"}))

    response = client.get("/api/test-auth", headers={"Authorization": "Bearer opaque-token"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["error"] == "Invalid token"


def test_test_auth_remote_unreachable(remote_verification, client, mock_outbound_client):
    mock_outbound_client.get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

    response = client.get("/api/test-auth", headers={"Authorization": "Bearer opaque-token"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Internal server error", "message": "Connection refused"}


def test_test_auth_without_identity_provider(client):
    response = client.get("/api/test-auth", headers={"Authorization": "Bearer tok123"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Identity provider not configured"


def test_test_auth_remote_server_error(remote_verification, client, mock_outbound_client):
    mock_outbound_client.get = AsyncMock(return_value=identity_response(503, text="unavailable"))

    response = client.get("/api/test-auth", headers={"Authorization": "Bearer opaque-token"})

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json()["error"] == "Internal server error"
    assert "503" in response.json()["message"]


# ============================================================================
# IdentityVerifier Tests
# ============================================================================

@pytest.mark.asyncio
async def test_verifier_uses_given_client(test_settings):
    settings = test_settings.model_copy(
        update={"SUPABASE_URL": "https://project.supabase.co/", "SUPABASE_SERVICE_KEY": "service-key"}
    )
    captured = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200, json={"id": "user-9"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        user = await IdentityVerifier(settings, http_client).verify("opaque-token")

    assert user.id == "user-9"
    assert user.email is None
    assert str(captured[0].url) == SUPABASE_USER_URL
