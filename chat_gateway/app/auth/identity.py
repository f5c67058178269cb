"""
Identity provider checks for bearer tokens.

This module handles:
- Local verification of Supabase access tokens with the project JWT secret
- Remote verification against the Supabase Auth API when no secret is set

Only the /api/test-auth diagnostic endpoint uses this; the forwarding proxy
never inspects tokens.
"""

import logging
from typing import Any, Dict

import httpx
import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from ..config import Settings
from ..models import AuthenticatedUser

logger = logging.getLogger(__name__)

# Audience Supabase puts on access tokens of signed-in users
SUPABASE_AUDIENCE = "authenticated"


# =============================================================================
# Exceptions
# =============================================================================

class IdentityError(Exception):
    """Base exception for identity provider failures"""
    pass


class IdentityNotConfiguredError(IdentityError):
    """Neither a JWT secret nor a Supabase project is configured"""
    pass


class TokenRejectedError(IdentityError):
    """The identity provider does not accept the token"""
    pass


# =============================================================================
# Verifier
# =============================================================================

class IdentityVerifier:
    """
    Resolve a bearer token to the user it belongs to.

    Local verification is preferred when SUPABASE_JWT_SECRET is configured;
    otherwise the Supabase Auth API is asked.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._http_client = http_client

    async def verify(self, token: str) -> AuthenticatedUser:
        """
        Verify a token and return the user it identifies.

        Raises:
            TokenRejectedError: Token invalid, expired or unknown
            IdentityNotConfiguredError: No way to check the token
            httpx.HTTPError: Identity provider unreachable
        """
        if self._settings.SUPABASE_JWT_SECRET:
            return self._verify_locally(token)
        if self._settings.supabase_configured:
            return await self._verify_remotely(token)
        raise IdentityNotConfiguredError(
            "Set SUPABASE_JWT_SECRET or SUPABASE_URL and SUPABASE_SERVICE_KEY"
        )

    def _verify_locally(self, token: str) -> AuthenticatedUser:
        try:
            claims = jwt.decode(
                token,
                self._settings.SUPABASE_JWT_SECRET,
                algorithms=["HS256"],
                audience=SUPABASE_AUDIENCE,
                options={"require": ["exp", "sub"]},
            )
        except ExpiredSignatureError:
            logger.warning("Access token expired")
            raise TokenRejectedError("Token has expired")
        except InvalidTokenError as e:
            logger.warning(f"Invalid access token: {e}")
            raise TokenRejectedError(f"Invalid token: {e}") from e

        return _user_from_payload(claims, id_field="sub")

    async def _verify_remotely(self, token: str) -> AuthenticatedUser:
        url = f"{self._settings.supabase_base_url}/auth/v1/user"
        headers = {
            "apikey": self._settings.SUPABASE_SERVICE_KEY,
            "Authorization": f"Bearer {token}",
        }

        response = await self._http_client.get(
            url, headers=headers, timeout=self._settings.WEBHOOK_TIMEOUT_SECONDS
        )

        if response.status_code in (401, 403):
            logger.warning(f"Identity provider rejected token: {response.status_code}")
            raise TokenRejectedError("Identity provider rejected the token")
        response.raise_for_status()

        return _user_from_payload(response.json(), id_field="id")


def _user_from_payload(payload: Dict[str, Any], id_field: str) -> AuthenticatedUser:
    user_id = payload.get(id_field)
    if not user_id:
        raise TokenRejectedError(f"Token payload has no '{id_field}'")
    return AuthenticatedUser(id=str(user_id), email=payload.get("email"))


__all__ = [
    "IdentityVerifier",
    "IdentityError",
    "IdentityNotConfiguredError",
    "TokenRejectedError",
]
