"""
Authentication Package

This package handles the caller's bearer credential for the gateway.

Key responsibilities:
- Bearer token extraction from the Authorization header
- Identity provider checks for the /api/test-auth diagnostic endpoint

Modules:
- tokens: Bearer token extraction and the require_bearer_token dependency
- identity: Local (JWT secret) and remote (Supabase Auth API) token checks
- routes: Diagnostic endpoint (/api/test-auth)

The forwarding proxy only checks that a bearer token is present; it never
validates or decodes it. The agent server is the authority on the token.
"""

from .routes import auth_router

__all__ = [
    "auth_router",
]
