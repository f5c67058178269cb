"""
FastAPI Gateway Application Factory
===================================

This is the main entry point for the gateway service that sits between the
browser chat client and the agent-execution server.

Architecture:
    Browser → Gateway (this service) → Agent server

Routers:
    - /api/test-auth  : Bearer token diagnostics against the identity provider
    - /api/share      : Thread snapshot sharing
    - /api/report-bug : Bug report delivery
    - /api/{path}     : Authenticated forwarding proxy (catch-all, registered last)
    - /health         : Health check endpoint

Running the Service:
    Development:
        uvicorn chat_gateway.app.main:app --reload --host 0.0.0.0 --port 8080

    Production:
        uvicorn chat_gateway.app.main:app --host 0.0.0.0 --port 8080 --workers 4

    With custom log level:
        LOG_LEVEL=DEBUG uvicorn chat_gateway.app.main:app --reload

See chat_gateway/app/config.py for the environment variables.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import uvicorn
from fastapi import FastAPI

from .auth import auth_router
from .config import Settings, get_settings, log_configuration_report
from .dependencies import AppState
from .errors import register_exception_handlers
from .models import HealthResponse
from .proxy import proxy_router
from .reports import reports_router
from .share import create_share_store, share_router

SERVICE_NAME = "chat-gateway"
SERVICE_VERSION = "1.0.0"


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup tasks:
        - Configure logging
        - Report configuration problems
        - Open pooled HTTP clients for the agent server and outbound calls
        - Create the share snapshot store

    Shutdown tasks:
        - Close HTTP clients
    """
    settings: Settings = app.state.settings
    state: AppState = app.state.app_state

    setup_logging(settings.LOG_LEVEL)
    logger = logging.getLogger("chat_gateway.main")

    logger.info(
        "Starting gateway service",
        extra={
            "backend_url": settings.backend_base_url,
            "log_level": settings.LOG_LEVEL,
        }
    )
    log_configuration_report(settings, logger)

    # No base_url: the proxy always passes absolute URLs
    state.backend_client = httpx.AsyncClient(
        timeout=httpx.Timeout(
            settings.BACKEND_TIMEOUT_SECONDS,
            connect=settings.BACKEND_CONNECT_TIMEOUT_SECONDS,
        )
    )
    state.outbound_client = httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT_SECONDS)
    state.share_store = create_share_store(settings, state.outbound_client)

    logger.info(
        "Gateway service started successfully",
        extra={"service": SERVICE_NAME, "version": SERVICE_VERSION}
    )

    yield

    # Shutdown
    logger.info("Shutting down gateway service")

    for client in (state.backend_client, state.outbound_client):
        if client is not None:
            try:
                await client.aclose()
            except Exception as e:
                logger.error(f"Error closing HTTP client: {e}")

    logger.info("Gateway service shutdown complete")


# Create FastAPI application
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Application factory function.

    Creates and configures the FastAPI application instance with:
        - Lifespan management
        - Route handlers
        - Exception handlers

    CORS is not handled by middleware: the proxy sets its own permissive
    CORS headers on every response.

    Args:
        settings: Settings to use instead of the environment (tests)

    Returns:
        FastAPI: Configured application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Agent Chat Gateway",
        description="Authenticated proxy, sharing and bug reporting for the agent chat client",
        version=SERVICE_VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.state.settings = settings
    app.state.app_state = AppState()

    register_exception_handlers(app)

    # Named /api routes first; the proxy catch-all would shadow them otherwise
    app.include_router(auth_router, tags=["Authentication"])
    app.include_router(share_router, tags=["Sharing"])
    app.include_router(reports_router, tags=["Bug Reports"])
    app.include_router(proxy_router, tags=["Agent Proxy"])

    # Health check endpoint
    @app.get("/health", tags=["System"], response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        """
        Health check endpoint.

        Returns service status and basic metadata.
        """
        return HealthResponse(status="ok", service=SERVICE_NAME, version=SERVICE_VERSION)

    # Root endpoint
    @app.get("/", tags=["System"])
    async def root() -> Dict[str, Any]:
        """
        Root endpoint with service information.

        Returns:
            dict: Service metadata and available endpoints
        """
        return {
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "description": "Authenticated proxy, sharing and bug reporting for the agent chat client",
            "endpoints": {
                "health": "/health",
                "docs": "/docs",
                "proxy": "/api/{path}",
                "share": "/api/share",
                "report_bug": "/api/report-bug",
                "test_auth": "/api/test-auth",
            }
        }

    return app


# Create app instance for uvicorn
app = create_app()


if __name__ == "__main__":
    """
    Direct execution entry point.

    This allows running the service directly with: python -m chat_gateway.app.main
    However, using uvicorn command is recommended for production.
    """
    settings = get_settings()

    uvicorn.run(
        "chat_gateway.app.main:app",
        host=settings.GATEWAY_HOST,
        port=settings.GATEWAY_PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
