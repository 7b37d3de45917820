"""
Bearer credential utilities.

Users sign in with a separate auth service that issues HS256 JWTs whose
``sub`` claim is the user id. This module only verifies those tokens:

- ``verify_access_token`` for the realtime handshake
- ``get_current_user`` as a FastAPI dependency for the owner routes

``create_access_token`` issues a token with the shared secret; it is used by
local tooling and the test suite.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shoplist.config import get_settings
from shoplist.services.exceptions import AuthorizationError

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class UserContext:
    """Represents the authenticated user."""
    user_id: str  # Subject of the bearer credential


def create_access_token(user_id: str, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.access_token_minutes
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=minutes),
    }
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_access_token(credential: str) -> str:
    """
    Check a bearer credential and return its user id.

    Raises:
        AuthorizationError: the credential is malformed, expired or not signed by us
    """
    settings = get_settings()
    try:
        claims = jwt.decode(
            credential,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise AuthorizationError("Access token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthorizationError("Invalid access token") from e

    return str(claims["sub"])


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> UserContext:
    """
    Require an authenticated owner.

    Raises:
        AuthorizationError: no bearer credential, or it did not verify
    """
    if credentials is None or not credentials.credentials:
        raise AuthorizationError("Access token required")
    return UserContext(user_id=verify_access_token(credentials.credentials))
