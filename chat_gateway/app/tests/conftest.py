"""
Shared fixtures for gateway tests.

The application is built with explicit settings and its app state is filled
with mocks; TestClient is used without its context manager so the lifespan
does not replace them with real HTTP clients.
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from chat_gateway.app.config import Settings
from chat_gateway.app.main import create_app
from chat_gateway.app.share.store import InMemoryShareStore


@pytest.fixture
def test_settings():
    """Settings isolated from the environment and .env"""
    return Settings(
        _env_file=None,
        LANGGRAPH_API_URL="http://agent-server:2024",
        BACKEND_TIMEOUT_SECONDS=60.0,
        BACKEND_CONNECT_TIMEOUT_SECONDS=5.0,
        SHARE_EXPIRY_DAYS=30,
    )


@pytest.fixture
def mock_backend_client():
    """Mock agent-server HTTP client"""
    return AsyncMock()


@pytest.fixture
def mock_outbound_client():
    """Mock HTTP client for webhook and identity provider calls"""
    return AsyncMock()


@pytest.fixture
def share_store():
    return InMemoryShareStore()


@pytest.fixture
def app(test_settings, mock_backend_client, mock_outbound_client, share_store):
    """Create test FastAPI application"""
    app = create_app(settings=test_settings)

    state = app.state.app_state
    state.backend_client = mock_backend_client
    state.outbound_client = mock_outbound_client
    state.share_store = share_store

    return app


@pytest.fixture
def client(app):
    """Create test client"""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    """Standard authorization headers for authenticated requests"""
    return {"Authorization": "Bearer tok123"}
