"""Session token helpers and FastAPI security dependencies.

This module issues and verifies the signed JWT that proves a prior
login, moves it in and out of the `token` cookie, and exposes two
dependencies:

- `get_current_claim` returns the caller's `IdentityClaim` or raises
  `Unauthorized` when the cookie is missing, malformed or expired;
- `get_optional_claim` returns `None` instead, for endpoints that
  anonymous callers may use.

The claim is rebuilt from the token payload alone; there is no
server-side session or revocation list, so a token stays valid until
it expires even after logout.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Response
from fastapi.security import APIKeyCookie

from .config import settings
from .errors import Unauthorized
from .models import Role, User
from .policy import IdentityClaim

COOKIE_NAME = 'token'

cookie_scheme = APIKeyCookie(name=COOKIE_NAME, auto_error=False)


def create_access_token(user: User) -> str:
    """Sign a token carrying the account's identity claim."""
    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user.id),
        'email': user.email,
        'name': user.name,
        'role': Role(user.role).value,
        'iat': now,
        'exp': now + timedelta(days=settings.JWT_EXPIRE_DAYS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Returns the decoded payload on success or raises `Unauthorized`
    on failure.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise Unauthorized() from exc


def claim_from_token(token: str) -> IdentityClaim:
    """Turn a session token into an `IdentityClaim`."""
    payload = decode_token(token)
    try:
        return IdentityClaim(
            id=int(payload['sub']),
            email=str(payload['email']),
            name=str(payload['name']),
            role=Role(payload['role']),
        )
    except (KeyError, TypeError, ValueError):
        raise Unauthorized()


def get_optional_claim(token: Optional[str] = Depends(cookie_scheme)) -> Optional[IdentityClaim]:
    """FastAPI dependency returning the caller's claim, or `None` if anonymous."""
    if not token:
        return None
    try:
        return claim_from_token(token)
    except Unauthorized:
        return None


def get_current_claim(token: Optional[str] = Depends(cookie_scheme)) -> IdentityClaim:
    """FastAPI dependency that returns the authenticated caller's claim."""
    if not token:
        raise Unauthorized()
    return claim_from_token(token)


def set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.session_max_age,
        path='/',
        httponly=True,
        samesite='lax',
        secure=settings.COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=COOKIE_NAME,
        path='/',
        httponly=True,
        samesite='lax',
        secure=settings.COOKIE_SECURE,
    )
