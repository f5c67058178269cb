"""
Bearer Token Handling
=====================

Extraction of the caller's bearer credential from the Authorization header.

The gateway treats the credential as opaque: it is never decoded here, only
passed on to the agent server or to the identity provider.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Header, Request

from ..errors import MissingCredentialError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extract Bearer token from Authorization header.

    The prefix is matched exactly and case-sensitively. A missing header, a
    different scheme or an empty token all count as "no credential".

    Args:
        authorization: Authorization header value

    Returns:
        Token string, or None

    Example:
        >>> extract_bearer_token("Bearer tok123")
        'tok123'
        >>> extract_bearer_token("bearer tok123") is None
        True
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):]
    return token or None


def bearer_token_from_request(request: Request) -> Optional[str]:
    # Starlette header lookup is case-insensitive
    return extract_bearer_token(request.headers.get("authorization"))


def describe_credential(authorization: Optional[str]) -> Dict[str, Any]:
    """Log-safe summary of the Authorization header (never the token itself)."""
    token = extract_bearer_token(authorization)
    return {
        "has_auth_header": authorization is not None,
        "has_token": token is not None,
        "token_length": len(token) if token else 0,
    }


# =============================================================================
# FastAPI Dependencies
# =============================================================================

async def require_bearer_token(
    authorization: Optional[str] = Header(None)
) -> str:
    """
    FastAPI dependency returning the caller's bearer token.

    Usage in routes:
        @router.get("/protected")
        async def protected_route(token: str = Depends(require_bearer_token)):
            ...

    Raises:
        MissingCredentialError: If no usable bearer token is present
    """
    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning(
            "Request rejected: no bearer token",
            extra=describe_credential(authorization),
        )
        raise MissingCredentialError()
    return token


__all__ = [
    "BEARER_PREFIX",
    "extract_bearer_token",
    "bearer_token_from_request",
    "describe_credential",
    "require_bearer_token",
]
