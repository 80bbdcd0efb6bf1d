"""Access tokens: verified on every request, minted only by `mockexam-jobs issue-token` and tests."""

from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import uuid4

import jwt

from mockexam.core.config import settings

TOKEN_TYPE = "access"
REQUIRED_CLAIMS = ["sub", "role", "exp", "type"]


def _secret() -> str:
    if not settings.JWT_SECRET:
        raise ValueError("JWT_SECRET must be set")
    return settings.JWT_SECRET


def create_access_token(user_id: str, role: str, expires_minutes: int | None = None) -> str:
    now = datetime.now(timezone.utc)
    lifetime = timedelta(
        minutes=expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    claims = {
        "sub": str(user_id),
        "role": role,
        "type": TOKEN_TYPE,
        "iat": now,
        "exp": now + lifetime,
        "jti": str(uuid4()),
    }
    return jwt.encode(claims, _secret(), algorithm=settings.JWT_ALG)


def verify_access_token(token: str) -> dict[str, Any]:
    """Decode and check signature, expiry and required claims.

    Raises jwt.InvalidTokenError with a readable reason on any failure.
    """
    try:
        payload = jwt.decode(
            token,
            _secret(),
            algorithms=[settings.JWT_ALG],
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise jwt.InvalidTokenError("Token has expired") from None
    except jwt.InvalidTokenError as e:
        raise jwt.InvalidTokenError(f"Invalid token: {e}") from e

    if payload["type"] != TOKEN_TYPE:
        raise jwt.InvalidTokenError("Token is not an access token")
    return payload
