from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.config import settings
from app.utils.time import utc_now

logger = logging.getLogger("app.auth")

_bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(subject: str) -> str:
    now = utc_now()
    exp = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload: Dict[str, Any] = {
        "sub": subject,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token. Raises JWTError on failure."""
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


def _unauthenticated(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_caller(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> str:
    """Return the calling account: the subject claim of a valid Bearer token.

    Every identity-bound operation needs to know who is calling, so the
    token is required in all environments.
    """
    if creds is None or creds.credentials == "":
        raise _unauthenticated("Authentication required")

    try:
        payload = decode_token(creds.credentials)
    except JWTError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        raise _unauthenticated(f"Invalid token: {exc}")

    subject = payload.get("sub")
    if not subject:
        raise _unauthenticated("Token has no subject")
    return subject
