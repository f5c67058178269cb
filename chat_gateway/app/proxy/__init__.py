"""
Proxy Package
=============

This package implements the authenticated forwarding proxy that relays
browser requests to the agent-execution server.

Main Components:
----------------
- routes.py: FastAPI router with the /api/{path} catch-all and its preflight

Security Features:
------------------
- Bearer token required before any backend contact
- Authorization header rebuilt from the extracted token
- Header allow-list (Content-Type, Authorization)
- CORS headers on every response, including errors

Usage:
------
    from chat_gateway.app.proxy import proxy_router
    app.include_router(proxy_router)  # register last, it is a catch-all
"""

from .routes import proxy_router

__all__ = ["proxy_router"]
