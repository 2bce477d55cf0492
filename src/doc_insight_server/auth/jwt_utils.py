"""
JWT Utility Functions

Issues identity tokens accepted by ``auth.security``. Used by trusted callers
(the front end's backend, the command line tool, tests) to obtain a bearer
token that scopes query history to one owner.

Key characteristics:
- Short-lived (TTL configured in settings)
- Subject claim carries the owner id
- Includes explicit issuer/audience claims
"""

from __future__ import annotations

import time
from typing import Any, Dict

import jwt

from ..config import settings


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class JWTConfigurationError(RuntimeError):
    """Raised when JWT generation cannot proceed due to configuration issues."""


# ---------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------

def _get_current_timestamp() -> int:
    """Return current UNIX timestamp in UTC as integer seconds."""
    return int(time.time())


def _validate_jwt_config() -> None:
    if settings.jwt_secret is None or not settings.jwt_secret.get_secret_value():
        raise JWTConfigurationError("jwt_secret is not configured. Cannot generate JWT.")

    if settings.jwt_ttl_seconds <= 0:
        raise JWTConfigurationError(
            f"JWT_TTL_SECONDS must be a positive integer; got {settings.jwt_ttl_seconds}"
        )


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def create_identity_token(owner_id: str) -> str:
    """
    Generate a short-lived identity token for ``owner_id``.

    Parameters
    ----------
    owner_id : str
        Value of the ``sub`` claim; history is stored under this id.

    Returns
    -------
    str
        Encoded JWT suitable for use in Authorization: Bearer <token> header.

    Raises
    ------
    JWTConfigurationError
        If configuration is missing or invalid, or ``owner_id`` is blank.
    """
    _validate_jwt_config()

    if not owner_id or not owner_id.strip():
        raise JWTConfigurationError("owner_id must not be blank.")

    now = _get_current_timestamp()

    payload: Dict[str, Any] = {
        "sub": owner_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + settings.jwt_ttl_seconds,
    }

    secret = settings.jwt_secret.get_secret_value()

    try:
        token = jwt.encode(payload, secret, algorithm=settings.jwt_algo)
    except Exception as exc:
        raise JWTConfigurationError(
            f"Failed to generate JWT: {type(exc).__name__}: {str(exc)}"
        ) from exc

    return token
