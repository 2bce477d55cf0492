"""
Bearer Token Verification

This module is responsible for:

1. Verifying the optional identity token presented with a request.
2. Producing a validated `UserContext` object to downstream routes.

Security Model
--------------
- Identity is optional. Without an ``Authorization`` header, or when no
  ``jwt_secret`` is configured, the request is anonymous and query history
  is disabled. This is not an error.
- A token that *is* presented must verify (signature, issuer, audience,
  expiry); otherwise the request is rejected with 401.
"""

from __future__ import annotations

import logging
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..config import settings
from .models import UserContext

logger = logging.getLogger("docinsight.auth")


# ---------------------------------------------------------------------
# Security Scheme
# ---------------------------------------------------------------------

security = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------

def _identity_enabled() -> bool:
    return settings.jwt_secret is not None and bool(settings.jwt_secret.get_secret_value())


def _decode_identity_token(token: str) -> dict:
    """
    Decode and validate an identity token.

    Raises
    ------
    Various JWT-related exceptions, which the public wrapper handles.
    """
    return jwt.decode(
        token,
        settings.jwt_secret.get_secret_value(),
        algorithms=[settings.jwt_algo],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
        options={"require": ["sub", "iss", "aud", "exp"]},
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ---------------------------------------------------------------------
# Public Authentication Dependencies
# ---------------------------------------------------------------------

def get_optional_identity(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[UserContext]:
    """
    Resolve the caller's identity, if any.

    Returns
    -------
    Optional[UserContext]
        None for anonymous requests or when identity is not configured.

    Raises
    ------
    HTTPException(401) for invalid or expired tokens.
    """
    if creds is None or not _identity_enabled():
        return None

    try:
        payload = _decode_identity_token(creds.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired.")
    except jwt.InvalidAudienceError:
        raise _unauthorized("Invalid token audience.")
    except jwt.InvalidIssuerError:
        raise _unauthorized("Invalid token issuer.")
    except jwt.InvalidTokenError as exc:
        logger.info("Rejected identity token: %s", exc)
        raise _unauthorized("Invalid or malformed token.")

    owner_id = payload.get("sub")
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise _unauthorized("Token missing 'sub' claim.")

    return UserContext(owner_id=owner_id, issuer=payload["iss"])


def require_identity(
    user: Optional[UserContext] = Depends(get_optional_identity),
) -> UserContext:
    """Like ``get_optional_identity`` but anonymous requests get 401."""
    if user is None:
        raise _unauthorized("Authentication required.")
    return user
