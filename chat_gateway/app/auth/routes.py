"""
Authentication diagnostics routes.

Endpoints:
    GET /api/test-auth - Check the caller's bearer token with the identity provider
"""

import logging

import httpx
from fastapi import APIRouter, Depends, status

from ..config import Settings
from ..dependencies import get_app_settings, get_outbound_client
from ..errors import ApiError, exception_message
from ..models import AuthTestResponse
from .identity import IdentityNotConfiguredError, IdentityVerifier, TokenRejectedError
from .tokens import require_bearer_token

logger = logging.getLogger(__name__)

auth_router = APIRouter()


@auth_router.get("/api/test-auth", response_model=AuthTestResponse)
async def test_auth(
    token: str = Depends(require_bearer_token),
    settings: Settings = Depends(get_app_settings),
    http_client: httpx.AsyncClient = Depends(get_outbound_client),
) -> AuthTestResponse:
    """
    Verify the caller's bearer token.

    Returns:
        The user the token belongs to

    Raises:
        ApiError: 401 if the token is rejected, 500 if the identity provider
                  is not configured or fails
    """
    verifier = IdentityVerifier(settings, http_client)

    try:
        user = await verifier.verify(token)
    except TokenRejectedError:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid token",
            "The provided token is invalid or expired",
        )
    except IdentityNotConfiguredError as e:
        logger.error(f"Identity provider not configured: {e}")
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Identity provider not configured",
            str(e),
        )
    except Exception as e:
        logger.error(f"Test auth error: {e}", exc_info=True)
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            exception_message(e),
        )

    logger.info("Token verified", extra={"user_id": user.id})
    return AuthTestResponse(user=user)
